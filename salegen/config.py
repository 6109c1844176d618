"""
Configuration settings for salegen.

Uses Pydantic Settings to load environment variables (or a `.env` file) for
logging, run defaults and file placement. CLI options override these per run
through `salegen.orchestrator.RunConfig`.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ExecutorName = Literal["threads", "processes"]


class Settings(BaseSettings):
    # Application
    log_level: str = Field("INFO", alias="SALEGEN_LOG_LEVEL")
    json_logs: bool = Field(False, alias="SALEGEN_JSON_LOGS")

    # Run defaults
    record_count: int = Field(1_000_000, ge=0, alias="SALEGEN_RECORD_COUNT")
    workers: Optional[int] = Field(None, ge=1, alias="SALEGEN_WORKERS")
    executor: ExecutorName = Field("threads", alias="SALEGEN_EXECUTOR")
    write_batch_size: int = Field(10_000, ge=1, alias="SALEGEN_WRITE_BATCH_SIZE")
    seed: Optional[int] = Field(None, alias="SALEGEN_SEED")

    # Filesystem
    output_dir: Path = Field(Path("."), alias="SALEGEN_OUTPUT_DIR")
    temp_dir: Optional[Path] = Field(None, alias="SALEGEN_TEMP_DIR")
    report_dir: Optional[Path] = Field(None, alias="SALEGEN_REPORT_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["ExecutorName", "Settings", "get_settings"]
