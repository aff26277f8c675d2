"""Runtime configuration: CRUDIO_* environment variables and .env files."""

from pathlib import Path
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

from crudio.generation.constants import (
    DEFAULT_MANY_COUNT,
    DEFAULT_ROW_COUNT,
    MAX_EXPANSION_ROUNDS,
    MAX_UNIQUE_ATTEMPTS,
)

ENV_FILE_NAME = ".env"
ENV_SEARCH_DEPTH = 3


def find_and_load_env_file(start: Optional[Path] = None) -> Optional[Path]:
    """
    Load the nearest .env file, searching upwards from start (default: cwd).

    Variables already present in the environment are not overridden.

    Returns:
        Path of the loaded file, or None when there is none
    """
    current = (start or Path.cwd()).resolve()
    for directory in [current, *current.parents][: ENV_SEARCH_DEPTH + 1]:
        env_path = directory / ENV_FILE_NAME
        if env_path.is_file():
            load_dotenv(env_path, override=False)
            return env_path
    return None


class Settings(BaseSettings):
    """Generation and runtime configuration, read from CRUDIO_* variables."""

    # Generation
    seed: Optional[int] = Field(default=None, description="RNG seed; None draws from OS entropy")
    default_row_count: int = Field(default=DEFAULT_ROW_COUNT, ge=1)
    default_many_count: int = Field(default=DEFAULT_MANY_COUNT, ge=1)
    max_unique_attempts: int = Field(default=MAX_UNIQUE_ATTEMPTS, ge=1)
    max_expansion_rounds: int = Field(default=MAX_EXPANSION_ROUNDS, ge=1)

    # Output
    output_dir: Path = Path("output")

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="CRUDIO_",
        env_file=None,  # loaded by find_and_load_env_file
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        return v.strip().upper()

    def __init__(self, **kwargs):
        find_and_load_env_file()
        super().__init__(**kwargs)
        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)


_settings: Optional[Settings] = None


def get_settings(reload: bool = False) -> Settings:
    """Get the process-wide settings, building them on first use or on reload."""
    global _settings
    if _settings is None or reload:
        _settings = Settings()
    return _settings
