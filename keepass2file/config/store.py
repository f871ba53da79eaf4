"""Persistent YAML configuration: templates, variables and the default database."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

import yaml
from pydantic import TypeAdapter, ValidationError

from ..core.errors import ConfigError
from ..core.models import (
    ConfigDocument,
    LegacyConfigDocument,
    TemplateBinding,
    VersionedConfig,
)
from ..rendering.io import atomic_write_text, ensure_parent

logger = logging.getLogger(__name__)

_VERSIONED = TypeAdapter(VersionedConfig)


class ConfigState(str, Enum):
    """What the file held when it was loaded."""

    ABSENT = "absent"
    EMPTY = "empty"
    LEGACY = "legacy"
    CURRENT = "current"


def parse_document(text: str) -> tuple[ConfigDocument, ConfigState]:
    """Parse configuration text, upgrading legacy documents.

    Args:
        text: Raw file contents

    Returns:
        The document in its current shape and the state it was read from
    """
    if not text:
        return ConfigDocument(), ConfigState.EMPTY

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse configuration YAML: {e}") from e

    if data is None:
        return ConfigDocument(), ConfigState.EMPTY
    if not isinstance(data, dict):
        raise ConfigError("Configuration document must be a mapping")

    try:
        parsed = _VERSIONED.validate_python(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration document: {e}") from e

    if isinstance(parsed, LegacyConfigDocument):
        return parsed.upgrade(), ConfigState.LEGACY
    return parsed, ConfigState.CURRENT


def dump_document(document: ConfigDocument) -> str:
    """Serialize ``document`` in the current tagged form."""
    payload = document.model_dump(mode="json")
    return yaml.safe_dump(
        payload,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


class ConfigStore:
    """A configuration document bound to the file it is saved to.

    Mutations happen on :attr:`document` in memory; nothing reaches disk until
    :meth:`save` rewrites the whole file.
    """

    def __init__(
        self,
        path: Path,
        document: ConfigDocument | None = None,
        loaded_from: ConfigState = ConfigState.EMPTY,
    ) -> None:
        self.path = path
        self.document = document if document is not None else ConfigDocument()
        self.loaded_from = loaded_from

    @classmethod
    def load(cls, path: str | Path) -> ConfigStore:
        """Load the configuration at ``path``, creating an empty file if absent."""
        config_path = Path(path).expanduser()

        created = not config_path.exists()
        if created:
            try:
                ensure_parent(config_path)
                config_path.touch()
            except OSError as e:
                raise ConfigError(
                    f"Cannot create configuration file {config_path}: {e}"
                ) from e
            logger.debug(f"Created empty configuration file: {config_path}")

        try:
            text = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {config_path}: {e}") from e

        document, state = parse_document(text)
        if created:
            state = ConfigState.ABSENT
        if state is ConfigState.LEGACY:
            logger.debug("Loaded legacy configuration; it is upgraded on the next save")
        return cls(config_path, document, state)

    def save(self) -> None:
        try:
            atomic_write_text(self.path, dump_document(self.document))
        except OSError as e:
            raise ConfigError(f"Cannot write configuration file {self.path}: {e}") from e
        logger.debug(f"Saved configuration: {self.path}")

    def prune(self) -> list[TemplateBinding]:
        """Drop bindings whose template file no longer exists."""
        missing = [
            t for t in self.document.templates if not Path(t.template_path).exists()
        ]
        for template in missing:
            self.document.delete_template(template.template_path, template.output_path)
        return missing
