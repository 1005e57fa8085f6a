"""Analyzer pod configuration and initialization."""

import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Configuration for analyzer pod."""

    # Service
    SERVICE_NAME = "analyzer"
    SERVICE_VERSION = "0.1.0"
    SERVICE_PORT = int(os.getenv("ANALYZER_PORT", 8001))
    ENV = os.getenv("ENV", "dev")

    # Limits
    MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", 50 * 1024 * 1024))  # 50 MB
    MAX_AUDIO_DURATION = int(os.getenv("MAX_AUDIO_DURATION", 600))  # 10 minutes

    # Decoded audio is resampled to this rate before analysis (0 disables)
    TARGET_SAMPLE_RATE = int(os.getenv("TARGET_SAMPLE_RATE", 44100))

    # OTEL
    OTEL_ENABLED = os.getenv("OTEL_ENABLED", "false").lower() == "true"

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if ENV == "prod" else "DEBUG")


__all__ = ["Config"]
