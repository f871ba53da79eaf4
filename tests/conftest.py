"""
pytest configuration and shared fixtures.

Fixtures
--------
credential_tree : CredentialTree
    A small KeePass-like tree held in memory (see ``tests.fakes.build_tree``).

collector : DiagnosticCollector
    A fresh diagnostic sink.

write_file : Callable[[str, str], Path]
    Writes a file under ``tmp_path`` and returns its path.

restore_package_log_level : None (autouse)
    Puts the ``keepass2file`` logger level back after each test; the CLI
    callback changes it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator

import pytest

from keepass2file.core.diagnostics import DiagnosticCollector
from keepass2file.keepass.database import CredentialTree
from tests.fakes import build_tree


@pytest.fixture
def credential_tree() -> CredentialTree:
    return build_tree()


@pytest.fixture
def collector() -> DiagnosticCollector:
    return DiagnosticCollector()


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper writing ``content`` to ``tmp_path / name``."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def restore_package_log_level() -> Iterator[None]:
    package_logger = logging.getLogger("keepass2file")
    level = package_logger.level
    yield
    package_logger.setLevel(level)
