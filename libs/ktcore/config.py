"""Configuration loading for keytempo.

Reads environment variables into a typed settings object using Pydantic v2.

Env variables:
- KT_LOG_LEVEL (default: INFO)
- KT_ENV (default: development)
- KT_OTEL_ENDPOINT (optional)
- KT_CHROMA_FRAME_SIZE / KT_CHROMA_HOP_SIZE (default: 8192 / 4096)
- KT_ONSET_FRAME_SIZE / KT_ONSET_HOP_SIZE (default: 2048 / 512)
- KT_PARALLEL (default: false)
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Settings(BaseModel):
    KT_LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    KT_ENV: str = Field(default="development", description="Environment name")
    KT_OTEL_ENDPOINT: Optional[str] = Field(
        default=None, description="OTLP HTTP endpoint (e.g., http://localhost:4318)"
    )

    KT_CHROMA_FRAME_SIZE: int = Field(default=8192, description="Key pass frame size (power of two)")
    KT_CHROMA_HOP_SIZE: int = Field(default=4096, ge=1, description="Key pass hop size")
    KT_ONSET_FRAME_SIZE: int = Field(default=2048, description="Tempo pass frame size (power of two)")
    KT_ONSET_HOP_SIZE: int = Field(default=512, ge=1, description="Tempo pass hop size")
    KT_PARALLEL: bool = Field(default=False, description="Run key and tempo passes on two threads")

    class Config:
        extra = "ignore"

    @field_validator("KT_CHROMA_FRAME_SIZE", "KT_ONSET_FRAME_SIZE")
    @classmethod
    def _power_of_two(cls, v: int) -> int:
        if v < 2 or v & (v - 1):
            raise ValueError(f"frame size must be a power of two >= 2, got {v}")
        return v

    @model_validator(mode="after")
    def _hop_within_frame(self) -> "Settings":
        if self.KT_CHROMA_HOP_SIZE > self.KT_CHROMA_FRAME_SIZE:
            raise ValueError("KT_CHROMA_HOP_SIZE must not exceed KT_CHROMA_FRAME_SIZE")
        if self.KT_ONSET_HOP_SIZE > self.KT_ONSET_FRAME_SIZE:
            raise ValueError("KT_ONSET_HOP_SIZE must not exceed KT_ONSET_FRAME_SIZE")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment and memoize.

    Raises:
        ValueError: if an environment variable holds an invalid value.
    """

    env = {
        "KT_LOG_LEVEL": os.getenv("KT_LOG_LEVEL", "INFO"),
        "KT_ENV": os.getenv("KT_ENV", "development"),
        "KT_OTEL_ENDPOINT": os.getenv("KT_OTEL_ENDPOINT"),
        "KT_CHROMA_FRAME_SIZE": os.getenv("KT_CHROMA_FRAME_SIZE", "8192"),
        "KT_CHROMA_HOP_SIZE": os.getenv("KT_CHROMA_HOP_SIZE", "4096"),
        "KT_ONSET_FRAME_SIZE": os.getenv("KT_ONSET_FRAME_SIZE", "2048"),
        "KT_ONSET_HOP_SIZE": os.getenv("KT_ONSET_HOP_SIZE", "512"),
        "KT_PARALLEL": os.getenv("KT_PARALLEL", "false"),
    }

    return Settings.model_validate(env)


__all__ = ["Settings", "get_settings"]
