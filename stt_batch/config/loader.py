from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from stt_batch.config.default import (
    DEFAULT_BEAM_SIZE,
    DEFAULT_BENCHMARK_MAX_WORKERS,
    DEFAULT_BENCHMARK_WARMUP,
    DEFAULT_COMPUTE_TYPE,
    DEFAULT_CPU_COMPUTE_TYPE,
    DEFAULT_DEVICE,
    DEFAULT_FAIL_ON_ERROR,
    DEFAULT_FASTER_WHISPER_LOG_LEVEL,
    DEFAULT_JOB_TIMEOUT_SEC,
    DEFAULT_LANGUAGE,
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_WORKERS,
    DEFAULT_MODEL_BACKEND,
    DEFAULT_MODEL_NAME,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_VAD_FILTER,
    DEFAULT_WORD_TIMESTAMPS,
    MODEL_SECTION_MAP,
    RUNTIME_SECTION_MAP,
)
from stt_batch.errors import ConfigurationError, ErrorCode


@dataclass
class AppConfig:
    model: str = DEFAULT_MODEL_NAME
    model_backend: str = DEFAULT_MODEL_BACKEND
    device: str = DEFAULT_DEVICE
    # None means "not chosen": the CLI picks a device-appropriate default.
    compute_type: Optional[str] = None
    language: Optional[str] = DEFAULT_LANGUAGE
    beam_size: int = DEFAULT_BEAM_SIZE
    vad_filter: bool = DEFAULT_VAD_FILTER
    word_timestamps: bool = DEFAULT_WORD_TIMESTAMPS
    max_workers: int = DEFAULT_MAX_WORKERS
    job_timeout_sec: Optional[float] = DEFAULT_JOB_TIMEOUT_SEC
    fail_on_error: bool = DEFAULT_FAIL_ON_ERROR
    output_format: str = DEFAULT_OUTPUT_FORMAT
    benchmark_max_workers: int = DEFAULT_BENCHMARK_MAX_WORKERS
    benchmark_warmup: bool = DEFAULT_BENCHMARK_WARMUP
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[str] = DEFAULT_LOG_FILE
    faster_whisper_log_level: Optional[str] = DEFAULT_FASTER_WHISPER_LOG_LEVEL

    def resolved_compute_type(self) -> str:
        """Return the configured compute type or the default for the device."""
        if self.compute_type:
            return self.compute_type
        if str(self.device).strip().lower() == "cpu":
            return DEFAULT_CPU_COMPUTE_TYPE
        return DEFAULT_COMPUTE_TYPE


PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "stt_batch.yaml"

SECTION_MAP: Dict[str, Dict[str, str]] = {"model": MODEL_SECTION_MAP}
SECTION_MAP.update(RUNTIME_SECTION_MAP)


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load configuration from YAML, falling back to defaults."""
    cfg = AppConfig()
    data = _read_yaml(path or DEFAULT_CONFIG_PATH)
    if data:
        _apply_sections(cfg, data)
    return cfg


def _read_yaml(path: Optional[Path]) -> Optional[Dict[str, Any]]:
    if not path or not path.exists():
        return None
    with path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                ErrorCode.INVALID_OPTION, f"cannot parse {path}: {exc}", field="config"
            ) from exc
    if isinstance(data, dict):
        return data
    return None


def _apply_sections(cfg: AppConfig, raw: Dict[str, Any]) -> None:
    field_names = {f.name for f in fields(AppConfig)}
    for section, mapping in SECTION_MAP.items():
        data = raw.get(section)
        if not isinstance(data, dict):
            continue
        for key, attr in mapping.items():
            if key in data and data[key] is not None:
                setattr(cfg, attr, data[key])

    for key, value in raw.items():
        if key in SECTION_MAP:
            continue
        if key in field_names and value is not None:
            setattr(cfg, key, value)


__all__ = [
    "AppConfig",
    "DEFAULT_CONFIG_PATH",
    "load_config",
]
