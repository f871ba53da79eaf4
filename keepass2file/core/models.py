"""Domain models for the persisted configuration document."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator

CURRENT_VERSION = "2"
_LEGACY_TAG = "legacy"


class TemplateBinding(BaseModel):
    """A template file and the file it renders to."""

    name: str | None = Field(default=None, description="Optional label")
    template_path: str = Field(..., description="Template file path")
    output_path: str = Field(..., description="Output file path")

    @property
    def key(self) -> tuple[str, str]:
        """Uniqueness key of the binding."""
        return self.template_path, self.output_path

    @property
    def engine_name(self) -> str:
        """Name the template is registered under in the render engine."""
        return self.name if self.name is not None else self.template_path

    @property
    def label(self) -> str:
        """Identity used when reporting on this binding."""
        if self.name is not None:
            return self.name
        return f"{self.template_path} => {self.output_path}"


def _check_variable_names(value: dict[str, str]) -> dict[str, str]:
    for key in value:
        if not key.strip():
            raise ValueError("variable names cannot be empty")
    return value


class ConfigDocument(BaseModel):
    """Current (version 2) configuration document.

    ``templates`` is kept sorted by ``(template_path, output_path)`` by every
    mutation. Loading does not reorder, so a file that is loaded and saved
    unchanged keeps its layout.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    version: Literal["2"] = CURRENT_VERSION
    keepass: str | None = Field(default=None, description="Default KeePass database")
    templates: list[TemplateBinding] = Field(default_factory=list)
    variables: dict[str, str] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_string(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("variables")
    @classmethod
    def _variable_names(cls, v: dict[str, str]) -> dict[str, str]:
        return _check_variable_names(v)

    def add_template(
        self, name: str | None, template_path: str, output_path: str
    ) -> TemplateBinding:
        """Add a binding, or rename the one already bound to the same paths."""
        for template in self.templates:
            if template.key == (template_path, output_path):
                template.name = name
                binding = template
                break
        else:
            binding = TemplateBinding(
                name=name, template_path=template_path, output_path=output_path
            )
            self.templates.append(binding)

        self.templates.sort(key=lambda t: t.key)
        return binding

    def delete_templates(self, name: str) -> int:
        """Remove every binding carrying ``name``. Returns how many were removed."""
        kept = [t for t in self.templates if t.name != name]
        removed = len(self.templates) - len(kept)
        self.templates = kept
        return removed

    def delete_template(self, template_path: str, output_path: str) -> int:
        """Remove the binding at ``(template_path, output_path)``."""
        kept = [t for t in self.templates if t.key != (template_path, output_path)]
        removed = len(self.templates) - len(kept)
        self.templates = kept
        return removed

    def add_var(self, name: str, value: str) -> None:
        if not name.strip():
            raise ValueError("variable names cannot be empty")
        self.variables[name] = value

    def del_var(self, name: str) -> bool:
        return self.variables.pop(name, None) is not None


class LegacyConfigDocument(BaseModel):
    """Untagged document written before versioning was introduced.

    ``templates`` and ``variables`` may be missing or null.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    keepass: str | None = None
    templates: list[TemplateBinding] | None = None
    variables: dict[str, str] | None = None

    @field_validator("variables")
    @classmethod
    def _variable_names(cls, v: dict[str, str] | None) -> dict[str, str] | None:
        return _check_variable_names(v) if v is not None else v

    def upgrade(self) -> ConfigDocument:
        return ConfigDocument(
            keepass=self.keepass,
            templates=self.templates or [],
            variables=self.variables or {},
        )


def _schema_tag(raw: Any) -> str | None:
    """Pick the union member for a raw document.

    No ``version`` key means a legacy document. An unknown version yields no
    tag so validation fails instead of guessing.
    """
    if isinstance(raw, ConfigDocument):
        return CURRENT_VERSION
    if isinstance(raw, LegacyConfigDocument):
        return _LEGACY_TAG
    if not isinstance(raw, dict):
        return None
    if "version" not in raw:
        return _LEGACY_TAG
    tag = str(raw["version"])
    return tag if tag != _LEGACY_TAG else None


VersionedConfig = Annotated[
    Union[
        Annotated[ConfigDocument, Tag(CURRENT_VERSION)],
        Annotated[LegacyConfigDocument, Tag(_LEGACY_TAG)],
    ],
    Discriminator(
        _schema_tag,
        custom_error_type="unsupported_version",
        custom_error_message="Unsupported configuration document version",
    ),
]
