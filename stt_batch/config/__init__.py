"""Configuration loader utilities and the transcription configuration model."""

from .loader import DEFAULT_CONFIG_PATH, AppConfig, load_config
from .transcription import (
    COMPATIBILITY_TABLE,
    Device,
    ModelSize,
    Precision,
    TranscriptionConfig,
    validate,
)

__all__ = [
    "AppConfig",
    "COMPATIBILITY_TABLE",
    "DEFAULT_CONFIG_PATH",
    "Device",
    "ModelSize",
    "Precision",
    "TranscriptionConfig",
    "load_config",
    "validate",
]
