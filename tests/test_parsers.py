"""
Tests for keepass2file.cli.parsers
==================================
"""

import os
from pathlib import Path

import pytest
import typer

from keepass2file.cli.parsers import absolute_path, parse_file_mode, resolve_output_path


class TestParseFileMode:
    """Tests for parse_file_mode."""

    @pytest.mark.parametrize(("raw", "mode"), [("0644", 0o644), ("600", 0o600)])
    def test_valid(self, raw: str, mode: int) -> None:
        assert parse_file_mode(raw) == mode

    def test_invalid(self) -> None:
        with pytest.raises(typer.BadParameter):
            parse_file_mode("rw-r--r--")


class TestResolveOutputPath:
    """Tests for resolve_output_path."""

    def test_absolute_output_is_kept(self, tmp_path: Path) -> None:
        output = str(tmp_path / "out.env")

        assert resolve_output_path("templates/a.tpl", output, True) == output

    def test_relative_to_template(self) -> None:
        resolved = resolve_output_path("/srv/templates/a.tpl", "../out/a.env", True)

        assert resolved == os.path.normpath("/srv/out/a.env")

    def test_relative_to_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)

        resolved = resolve_output_path("/srv/templates/a.tpl", "./out/a.env", False)

        assert resolved == os.path.normpath(Path.cwd() / "out" / "a.env")


class TestAbsolutePath:
    """Tests for absolute_path."""

    def test_relative(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        assert absolute_path("missing.tpl") == str(Path.cwd().resolve() / "missing.tpl")
