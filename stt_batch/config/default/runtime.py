"""Default values for scheduling, benchmarking and logging."""

from typing import Dict

DEFAULT_MAX_WORKERS = 2
DEFAULT_JOB_TIMEOUT_SEC = None
DEFAULT_BENCHMARK_MAX_WORKERS = 1
DEFAULT_BENCHMARK_WARMUP = True
DEFAULT_FAIL_ON_ERROR = False
DEFAULT_OUTPUT_FORMAT = "json"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FILE = None
DEFAULT_FASTER_WHISPER_LOG_LEVEL = "WARNING"

RUNTIME_SECTION_MAP: Dict[str, Dict[str, str]] = {
    "runtime": {
        "max_workers": "max_workers",
        "job_timeout_sec": "job_timeout_sec",
        "fail_on_error": "fail_on_error",
        "output_format": "output_format",
    },
    "benchmark": {
        "max_workers": "benchmark_max_workers",
        "warmup": "benchmark_warmup",
    },
    "logging": {
        "level": "log_level",
        "file": "log_file",
        "faster_whisper_level": "faster_whisper_log_level",
    },
}

__all__ = [
    "DEFAULT_MAX_WORKERS",
    "DEFAULT_JOB_TIMEOUT_SEC",
    "DEFAULT_BENCHMARK_MAX_WORKERS",
    "DEFAULT_BENCHMARK_WARMUP",
    "DEFAULT_FAIL_ON_ERROR",
    "DEFAULT_OUTPUT_FORMAT",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_LOG_FILE",
    "DEFAULT_FASTER_WHISPER_LOG_LEVEL",
    "RUNTIME_SECTION_MAP",
]
