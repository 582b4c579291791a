"""
Service configuration.

Load order (later overrides earlier):
  1. field defaults below
  2. ``.env`` in the working directory (python-dotenv, does not override real env)
  3. environment variables with the ``CHI_SCAN_`` prefix

Entry point: ``load_settings() -> Settings``. ``create_app`` stores the settings it
is given on ``app.state``; endpoints read them through the ``get_settings``
dependency, which tests can swap with ``app.dependency_overrides``.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from fastapi import Request
from pydantic import BaseModel, ConfigDict, field_validator

ENV_PREFIX = "CHI_SCAN_"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    log_level: str = "INFO"
    log_json: bool = False

    palette_method: Literal["quantized", "kmeans"] = "quantized"
    palette_size: int = 5
    sample_size: int = 200          # px, square resize before sampling
    sample_step: int = 4            # sample every Nth pixel on each axis
    quantize_step: int = 32
    kmeans_max_size: int = 400

    max_upload_bytes: int = 10 * 1024 * 1024
    max_image_pixels: int = 40_000_000   # width * height, checked before decoding
    cors_origins: list[str] = ["*"]

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()

    @field_validator("palette_size", "sample_size", "sample_step", "quantize_step",
                     "kmeans_max_size", "max_upload_bytes", "max_image_pixels")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be a positive integer, got {v}.")
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v):
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v


def settings_from_env(environ=None) -> Settings:
    """Build Settings from ``CHI_SCAN_*`` keys of ``environ`` (default: os.environ)."""
    environ = os.environ if environ is None else environ
    values = {}
    for name in Settings.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in environ:
            values[name] = environ[key]
    return Settings(**values)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    load_dotenv()
    return settings_from_env()


def get_settings(request: Request) -> Settings:
    """Settings the running app was built with (see ``create_app``)."""
    return request.app.state.settings
