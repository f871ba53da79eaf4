"""Resolve ``keepass(...)`` template calls against an open database."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, NamedTuple, Sequence

from ..core.diagnostics import Diagnostic, DiagnosticCollector
from .database import CredentialTree, read_attribute

logger = logging.getLogger(__name__)


class FieldKind(str, Enum):
    PASSWORD = "password"
    USERNAME = "username"
    URL = "url"
    ATTRIBUTE = "attribute"


class FieldSelector(NamedTuple):
    kind: FieldKind
    attribute: str | None = None


PASSWORD = FieldSelector(FieldKind.PASSWORD)

_NAMED_FIELDS = {
    "password": FieldKind.PASSWORD,
    "username": FieldKind.USERNAME,
    "url": FieldKind.URL,
}


def extract_field_type(raw: Any) -> FieldSelector:
    """Classify the ``field=`` argument of a template call.

    Missing or empty selects the password. ``username``, ``password`` and
    ``url`` match case-insensitively; anything else names a custom attribute
    and is kept verbatim.
    """
    if raw is None:
        return PASSWORD
    field = str(raw)
    if not field:
        return PASSWORD
    kind = _NAMED_FIELDS.get(field.lower())
    if kind is not None:
        return FieldSelector(kind)
    return FieldSelector(FieldKind.ATTRIBUTE, field)


class EntryResolver:
    """Lookup capability installed into the template engine.

    A failed lookup is registered with the collector and rendered as a
    placeholder so the rest of the template still renders.
    """

    def __init__(self, tree: CredentialTree, collector: DiagnosticCollector) -> None:
        self._tree = tree
        self._collector = collector

    def resolve(
        self, path: Sequence[str], selector: FieldSelector = PASSWORD
    ) -> str | Diagnostic:
        """Return the selected field of the entry at ``path``, or why it is missing."""
        path = tuple(path)
        node = self._tree.lookup(path)
        if node is None or node.is_group:
            return Diagnostic.missing_entry(path)

        entry = node.value
        if selector.kind is FieldKind.PASSWORD:
            value = entry.password
            return value if value is not None else Diagnostic.no_password(path)
        if selector.kind is FieldKind.USERNAME:
            value = entry.username
            return value if value is not None else Diagnostic.no_username(path)
        if selector.kind is FieldKind.URL:
            value = entry.url
            return value if value is not None else Diagnostic.no_url(path)

        attribute = selector.attribute or ""
        value = read_attribute(entry, attribute)
        if value is None:
            return Diagnostic.missing_field(path, attribute)
        return value

    def __call__(self, *segments: Any, field: Any = None) -> str:
        path = tuple(str(segment) for segment in segments)
        result = self.resolve(path, extract_field_type(field))
        if isinstance(result, Diagnostic):
            logger.debug(f"Lookup failed: {result.report_line()}")
            self._collector.register(result)
            return result.placeholder()
        return result
