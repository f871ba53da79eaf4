"""Lookup diagnostics collected while a template renders.

A failed ``keepass(...)`` lookup never aborts rendering. The resolver writes a
placeholder into the output and registers a :class:`Diagnostic` here; the
renderer reports the collected diagnostics once the template is done.
"""

from __future__ import annotations

import threading
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


class DiagnosticKind(str, Enum):
    """Every way a lookup can fail."""

    MISSING_ENTRY = "missing_entry"
    MISSING_FIELD = "missing_field"
    NO_PASSWORD = "no_password"
    NO_USERNAME = "no_username"
    NO_URL = "no_url"


# Inline text written into the rendered output in place of the secret.
_PLACEHOLDERS: dict[DiagnosticKind, str] = {
    DiagnosticKind.MISSING_ENTRY: "<Not found keepass entry>",
    DiagnosticKind.MISSING_FIELD: "<Attribute ({field}) not found in entry>",
    DiagnosticKind.NO_PASSWORD: "<No password found in entry>",
    DiagnosticKind.NO_USERNAME: "<No username found in entry>",
    DiagnosticKind.NO_URL: "<No URL found in entry>",
}

# Report lines logged after the template has been rendered.
_REPORTS: dict[DiagnosticKind, str] = {
    DiagnosticKind.MISSING_ENTRY: "Entry not found: {path}",
    DiagnosticKind.MISSING_FIELD: "Field not found: {field} in path: {path}",
    DiagnosticKind.NO_PASSWORD: "Entry doesn't contain a password: {path}",
    DiagnosticKind.NO_USERNAME: "Entry doesn't contain a username: {path}",
    DiagnosticKind.NO_URL: "Entry doesn't contain a URL: {path}",
}


class Diagnostic(BaseModel):
    """A single lookup failure, identified by its kind and entry path."""

    model_config = ConfigDict(frozen=True)

    kind: DiagnosticKind
    path: tuple[str, ...]
    field: str | None = None

    @model_validator(mode="after")
    def _field_matches_kind(self) -> Diagnostic:
        if self.kind is DiagnosticKind.MISSING_FIELD and self.field is None:
            raise ValueError("missing_field diagnostics need the field name")
        if self.kind is not DiagnosticKind.MISSING_FIELD and self.field is not None:
            raise ValueError(f"{self.kind.value} diagnostics do not carry a field")
        return self

    @classmethod
    def missing_entry(cls, path: tuple[str, ...]) -> Diagnostic:
        return cls(kind=DiagnosticKind.MISSING_ENTRY, path=path)

    @classmethod
    def missing_field(cls, path: tuple[str, ...], field: str) -> Diagnostic:
        return cls(kind=DiagnosticKind.MISSING_FIELD, path=path, field=field)

    @classmethod
    def no_password(cls, path: tuple[str, ...]) -> Diagnostic:
        return cls(kind=DiagnosticKind.NO_PASSWORD, path=path)

    @classmethod
    def no_username(cls, path: tuple[str, ...]) -> Diagnostic:
        return cls(kind=DiagnosticKind.NO_USERNAME, path=path)

    @classmethod
    def no_url(cls, path: tuple[str, ...]) -> Diagnostic:
        return cls(kind=DiagnosticKind.NO_URL, path=path)

    @property
    def joined_path(self) -> str:
        return "/".join(self.path)

    def placeholder(self) -> str:
        """Text rendered inline where the secret would have been."""
        return _PLACEHOLDERS[self.kind].format(field=self.field)

    def report_line(self) -> str:
        """Human-readable line for the post-render report."""
        return _REPORTS[self.kind].format(field=self.field, path=self.joined_path)


class DiagnosticCollector:
    """Ordered, lock-protected sink of diagnostics for one render pass.

    Jinja2 may call the lookup helper from anywhere inside a render, so every
    access goes through the lock. Duplicates are kept; order is the order of
    registration.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._diagnostics: list[Diagnostic] = []

    def register(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._diagnostics.append(diagnostic)

    def drain(self) -> list[Diagnostic]:
        """Return a copy of the collected diagnostics without clearing them."""
        with self._lock:
            return list(self._diagnostics)

    def clear(self) -> None:
        with self._lock:
            self._diagnostics.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._diagnostics)
