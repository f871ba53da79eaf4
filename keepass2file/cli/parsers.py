"""CLI argument parsers and validators."""

from __future__ import annotations

import os
from pathlib import Path

import typer


def parse_file_mode(value: str) -> int:
    """Parse octal file mode string."""
    try:
        return int(value, 8)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid octal mode: {value!r}") from e


def resolve_output_path(template: str, output: str, relative_to_input: bool) -> str:
    """Resolve where a template's output goes.

    Absolute outputs are kept. Relative outputs are joined to the template's
    directory when ``relative_to_input`` is set, otherwise to the current
    directory; ``./`` and ``../`` segments are collapsed.
    """
    output_path = Path(output).expanduser()
    if output_path.is_absolute():
        return str(output_path)
    base = Path(template).parent if relative_to_input else Path.cwd()
    return os.path.normpath(base / output_path)


def absolute_path(value: str) -> str:
    """Absolute form of ``value``; the file does not need to exist."""
    return str(Path(value).expanduser().resolve())
