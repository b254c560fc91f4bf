"""Configuration management for Contrato de Sangue using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DATA_DIR = Path(__file__).parent / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="CONTRATO_",
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Enable debug mode (echoes SQL)")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/contrato.db",
        description="Database connection URL",
    )

    # Rules and strings
    language: str = Field(default="pt-BR", description="String table used for display text")
    rules_file: Path | None = Field(
        default=None, description="Override for the packaged rules.yaml"
    )
    lang_dir: Path | None = Field(
        default=None, description="Override for the packaged string tables directory"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log format (console or json)")

    @property
    def rules_path(self) -> Path:
        """Get the rules configuration file path."""
        return self.rules_file or PACKAGE_DATA_DIR / "rules.yaml"

    @property
    def lang_path(self) -> Path:
        """Get the string table directory path."""
        return self.lang_dir or PACKAGE_DATA_DIR / "lang"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
