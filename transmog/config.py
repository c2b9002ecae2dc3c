"""
Configuration for transmog.

Settings are read from environment variables prefixed with ``TRANSMOG_``,
for example ``TRANSMOG_STRICT_CONVERSION=true``.

Invariants:
    - All settings have defaults that work without any environment
    - A registry reads its settings once, at construction
"""

from __future__ import annotations

import logging
from typing import Literal

import json_log_formatter
from pydantic import Field
from pydantic_settings import BaseSettings


class TransmogSettings(BaseSettings):
    """Marshaling engine configuration."""

    # Conversion
    strict_conversion: bool = Field(
        default=False,
        description="Reject stored values that only match their type after coercion",
    )
    record_container_types: bool = Field(
        default=True,
        description="Write container type tags so collections reload as the same class",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["text", "json"] = Field(default="text")

    model_config = {"env_prefix": "TRANSMOG_"}


def setup_logging(settings: TransmogSettings) -> None:
    """Configure the root logger from settings.

    Libraries embedding transmog normally configure logging themselves;
    this is for scripts and tests.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]
