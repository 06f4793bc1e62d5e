"""
trademate.config
~~~~~~~~~~~~~~~~
Central configuration for the trademate library.

All values have defaults that work out of the box (local SQLite file + local
Ollama vision model). Override any field via a ``.env`` file or environment
variables prefixed with ``TRADEMATE_`` — pydantic-settings picks them up
automatically.

Usage::

    from trademate.config import cfg

    print(cfg.db_path)                  # ~/.trademate/trademate.db
    print(cfg.get_vision_config())      # typed VisionModelConfig dataclass
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TRADEMATE_HOME = Path.home() / ".trademate"
DEFAULT_DB_PATH = TRADEMATE_HOME / "trademate.db"


# ---------------------------------------------------------------------------
# Typed snapshot for the extraction client
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VisionModelConfig:
    """Immutable snapshot of the vision model settings."""

    base_url:    str
    model:       str
    temperature: float
    top_p:       float
    num_ctx:     int
    max_retries: int
    timeout:     int


# ---------------------------------------------------------------------------
# Main settings class
# ---------------------------------------------------------------------------

class Config(BaseSettings):
    """
    Runtime configuration for trademate.

    Reads from (in priority order):
      1. Environment variables (prefixed with ``TRADEMATE_``)
      2. A ``.env`` file in the working directory
      3. The defaults defined below
    """

    model_config = SettingsConfigDict(
        env_prefix="TRADEMATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    db_path: Path = Field(
        default=DEFAULT_DB_PATH,
        description="SQLite file holding accounts, session and expenses.",
    )

    # ------------------------------------------------------------------
    # Vision model (Ollama)
    # ------------------------------------------------------------------

    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of the Ollama server.",
    )
    vision_model: str = Field(
        default="qwen2.5vl:7b",
        description="Ollama model tag of a vision-capable model.",
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature (0 = deterministic).",
    )
    top_p:   float = Field(default=0.9, ge=0.0, le=1.0)
    num_ctx: int   = Field(default=4096, ge=512)

    # ------------------------------------------------------------------
    # HTTP / retry
    # ------------------------------------------------------------------

    max_retries: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Attempts per receipt against the vision model.",
    )
    request_timeout: int = Field(
        default=60,
        ge=1,
        description="HTTP request timeout in seconds.",
    )

    # ------------------------------------------------------------------
    # Plans, batches, export
    # ------------------------------------------------------------------

    standard_monthly_limit: int = Field(
        default=10,
        ge=1,
        description="Receipts a standard-plan account may capture per calendar month.",
    )
    max_batch_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Images accepted in one scan batch.",
    )
    extraction_workers: int = Field(
        default=2,
        ge=1,
        le=16,
        description="Concurrent requests to the vision model within a batch.",
    )
    export_prefix: str = Field(
        default="trademate_expenses",
        min_length=1,
        description="Filename prefix for CSV exports: <prefix>_<YYYY-MM>.csv",
    )

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("ollama_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("export_prefix")
    @classmethod
    def _no_path_separators(cls, v: str) -> str:
        if "/" in v or "\\" in v:
            raise ValueError("export_prefix must be a bare filename prefix.")
        return v

    @model_validator(mode="after")
    def _warn_on_high_temperature(self) -> "Config":
        if self.temperature > 0.5:
            warnings.warn(
                f"temperature={self.temperature} is high for structured extraction. "
                "Values above 0.3 may produce inconsistent JSON output.",
                UserWarning,
                stacklevel=2,
            )
        return self

    # ------------------------------------------------------------------
    # Helper methods
    # ------------------------------------------------------------------

    def get_vision_config(self) -> VisionModelConfig:
        """Return an immutable, typed snapshot of the vision model settings."""
        return VisionModelConfig(
            base_url=self.ollama_base_url,
            model=self.vision_model,
            temperature=self.temperature,
            top_p=self.top_p,
            num_ctx=self.num_ctx,
            max_retries=self.max_retries,
            timeout=self.request_timeout,
        )


# ---------------------------------------------------------------------------
# Module-level singleton — import this everywhere
# ---------------------------------------------------------------------------

cfg = Config()

__all__ = ["Config", "VisionModelConfig", "DEFAULT_DB_PATH", "TRADEMATE_HOME", "cfg"]
