"""DiscShelf Settings Configuration Model.

Main Settings class that consolidates all configuration domains.
"""

from __future__ import annotations

from pathlib import Path

import toml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from discshelf.config.models.api_settings import APISettings
from discshelf.config.models.app_settings import AppSettings, LoggingSettings
from discshelf.config.models.cache_settings import CacheSettings
from discshelf.config.models.matching_settings import MatchingSettings
from discshelf.config.models.scanner_settings import ScannerSettings


class Settings(BaseSettings):
    """Settings facade providing unified configuration access.

    Nested values can be overridden from the environment, for example
    ``DISCSHELF_API__METADATA__API_KEY`` or ``DISCSHELF_CACHE__MAX_SIZE_MB``.
    """

    model_config = SettingsConfigDict(
        env_prefix="DISCSHELF_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    api: APISettings = Field(default_factory=APISettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    scanner: ScannerSettings = Field(default_factory=ScannerSettings)

    @classmethod
    def from_toml_file(cls, file_path: str | Path) -> Settings:
        """Load settings from TOML file with environment variable overrides."""

        file_path = Path(file_path)
        if not file_path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        raw_config = toml.load(file_path)
        return cls(**raw_config)

    def to_toml_file(self, file_path: str | Path) -> None:
        """Save settings to TOML file.

        The metadata API key is written too; file permissions protect it.
        """

        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(exclude_none=True)

        with open(file_path, "w", encoding="utf-8") as f:
            toml.dump(config_dict, f)
