from __future__ import annotations

from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_config_path() -> Path:
    return Path.home() / ".config" / "keepass-2-file.yaml"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="KEEPASS2FILE_", case_sensitive=False)

    config_path: Path = Field(default_factory=_default_config_path)
    password: SecretStr | None = None
    file_mode: str = "0644"
