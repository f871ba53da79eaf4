"""File I/O shared by the renderer and the configuration store."""

from __future__ import annotations

import contextlib
import os
import stat
import tempfile
from pathlib import Path

DEFAULT_MODE = 0o644


def ensure_parent(path: Path) -> None:
    """Create the parent directories of ``path`` if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)


def current_mode(path: Path) -> int | None:
    """Permission bits of ``path``, or None if it does not exist."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return None


def atomic_write_text(path: Path, text: str, mode: int | None = None) -> None:
    """Replace ``path`` with ``text`` through a temporary file in the same folder.

    Readers see either the old file or the complete new one. Without an
    explicit ``mode`` an existing file keeps its permissions and a new one
    gets ``DEFAULT_MODE``. Raises OSError when any step fails.

    Args:
        path: Destination file path
        text: Text content to write
        mode: File permissions (octal)
    """
    ensure_parent(path)
    if mode is None:
        mode = current_mode(path)
        if mode is None:
            mode = DEFAULT_MODE

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.remove(tmp_name)
