"""Operational errors.

These abort the current unit of work (one template in batch mode, the whole
invocation otherwise). Lookup failures inside templates are not errors; they
are recorded as diagnostics.
"""

from __future__ import annotations


class Keepass2FileError(Exception):
    """Base class for all operational errors."""


class ConfigError(Keepass2FileError):
    """Raised when the configuration document cannot be read, parsed or saved."""


class CredentialStoreError(Keepass2FileError):
    """Raised when the KeePass database cannot be opened."""


class TemplateRenderError(Keepass2FileError):
    """Raised when a template cannot be loaded, compiled or rendered."""


class OutputWriteError(Keepass2FileError):
    """Raised when a rendered file cannot be written."""
