# src/json_formatter/config/settings.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Formatter Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated configuration for detection limits and the
    virtualization policy. Values are read from ``JSON_FORMATTER_*``
    environment variables; callers that need per-call overrides pass
    explicit arguments instead of mutating settings.

Design:
    - Pydantic v2 BaseSettings with constrained fields.
    - Singleton accessor `get_settings()` with LRU cache.
    - Invalid configuration surfaces as ``RuntimeError`` at the boundary.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Final

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_MAX_LENGTH: Final[int] = 3_000_000


class Settings(BaseSettings):
    """Typed configuration for the formatter."""

    # ---------------------------
    # Detection
    # ---------------------------
    max_length: int = Field(
        default=DEFAULT_MAX_LENGTH,
        ge=1,
        description="Longest raw text (in characters) the detector will parse.",
    )

    # ---------------------------
    # Virtualization
    # ---------------------------
    virtualization_threshold: int = Field(
        default=200,
        ge=1,
        description="Composites with more children than this render lazily.",
    )
    initial_window: int = Field(
        default=100,
        ge=1,
        description="Entries materialized synchronously for each lazy composite.",
    )
    batch_size: int = Field(
        default=250,
        ge=1,
        description="Upper bound on entries materialized per scheduler turn.",
    )
    frame_budget_ms: float = Field(
        default=16.0,
        gt=0.0,
        le=1000.0,
        description="Soft time budget for one batch; a batch stops early once exceeded.",
    )

    # ---------------------------
    # Logging
    # ---------------------------
    log_level: str = Field(
        default="INFO",
        description="Root log level used by the CLI.",
    )

    model_config = SettingsConfigDict(
        env_prefix="JSON_FORMATTER_",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _normalize(self) -> Settings:
        """Normalize the log level name."""
        self.log_level = self.log_level.upper()
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance.

    Returns:
        Settings: Validated formatter settings.

    Raises:
        RuntimeError: If configuration is invalid.
    """
    try:
        settings = Settings()
    except ValidationError as exc:
        logger.exception("Invalid formatter configuration")
        raise RuntimeError(f"Invalid configuration: {exc}") from exc
    logger.debug(
        "Settings initialized",
        extra={
            "max_length": settings.max_length,
            "virtualization": {
                "threshold": settings.virtualization_threshold,
                "initial_window": settings.initial_window,
                "batch_size": settings.batch_size,
                "frame_budget_ms": settings.frame_budget_ms,
            },
        },
    )
    return settings
