import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Budgetflow configuration, read from BUDGETFLOW_* environment variables."""

    data_dir: Path = Path("data")
    snapshot_file: str = "budgetflow_data.json"
    # sample snapshot loaded when nothing has been saved yet
    seed_file: Optional[Path] = Path("data/seed.json")
    base_currency: str = Field(default="EUR", min_length=3, max_length=3)
    autosave: bool = True
    log_level: str = Field(default="INFO", pattern=r"(?i)^(debug|info|warning|error|critical)$")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BUDGETFLOW_",
        extra="ignore",
    )

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / self.snapshot_file


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    log_level = getattr(logging, (level or get_settings().log_level).upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("budgetflow").setLevel(log_level)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
