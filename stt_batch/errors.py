"""Centralized error codes and exit-status mappings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Final, Optional, Union


class ErrorCategory(str, Enum):
    """Top-level failure families reported to users and in reports."""

    CONFIGURATION = "configuration"
    INPUT = "input"
    BACKEND = "backend"
    OUTPUT = "output"


class ErrorCode(str, Enum):
    """Stable error identifiers surfaced in reports and logs."""

    # configuration (ERR100x)
    UNKNOWN_VARIANT = "ERR1001"
    INCOMPATIBLE_PRECISION = "ERR1002"
    INVALID_OPTION = "ERR1003"

    # input (ERR200x)
    INPUT_NOT_FOUND = "ERR2001"
    UNSUPPORTED_FORMAT = "ERR2002"
    NO_AUDIO_FILES = "ERR2003"

    # backend (ERR300x)
    PROTOCOL_MISMATCH = "ERR3001"
    EXTERNAL_FAILURE = "ERR3002"
    TIMEOUT = "ERR3003"

    # output (ERR400x)
    OUTPUT_WRITE_FAILED = "ERR4001"


@dataclass(frozen=True)
class ErrorSpec:
    """Maps an error code to its category, process exit code and message."""

    code: ErrorCode
    category: ErrorCategory
    exit_code: int
    message: str


ERROR_SPECS: Final[dict[ErrorCode, ErrorSpec]] = {
    ErrorCode.UNKNOWN_VARIANT: ErrorSpec(
        ErrorCode.UNKNOWN_VARIANT,
        ErrorCategory.CONFIGURATION,
        2,
        "unknown configuration value",
    ),
    ErrorCode.INCOMPATIBLE_PRECISION: ErrorSpec(
        ErrorCode.INCOMPATIBLE_PRECISION,
        ErrorCategory.CONFIGURATION,
        2,
        "precision is not supported on this device",
    ),
    ErrorCode.INVALID_OPTION: ErrorSpec(
        ErrorCode.INVALID_OPTION,
        ErrorCategory.CONFIGURATION,
        2,
        "invalid option",
    ),
    ErrorCode.INPUT_NOT_FOUND: ErrorSpec(
        ErrorCode.INPUT_NOT_FOUND,
        ErrorCategory.INPUT,
        3,
        "input path does not exist",
    ),
    ErrorCode.UNSUPPORTED_FORMAT: ErrorSpec(
        ErrorCode.UNSUPPORTED_FORMAT,
        ErrorCategory.INPUT,
        3,
        "unsupported audio format",
    ),
    ErrorCode.NO_AUDIO_FILES: ErrorSpec(
        ErrorCode.NO_AUDIO_FILES,
        ErrorCategory.INPUT,
        3,
        "no audio files found",
    ),
    ErrorCode.PROTOCOL_MISMATCH: ErrorSpec(
        ErrorCode.PROTOCOL_MISMATCH,
        ErrorCategory.BACKEND,
        4,
        "backend returned an unexpected response shape",
    ),
    ErrorCode.EXTERNAL_FAILURE: ErrorSpec(
        ErrorCode.EXTERNAL_FAILURE,
        ErrorCategory.BACKEND,
        4,
        "backend call failed",
    ),
    ErrorCode.TIMEOUT: ErrorSpec(
        ErrorCode.TIMEOUT,
        ErrorCategory.BACKEND,
        4,
        "backend call timed out",
    ),
    ErrorCode.OUTPUT_WRITE_FAILED: ErrorSpec(
        ErrorCode.OUTPUT_WRITE_FAILED,
        ErrorCategory.OUTPUT,
        5,
        "failed to write report",
    ),
}

ERROR_EXIT_CODE_MAP: Final[dict[ErrorCode, int]] = {
    code: spec.exit_code for code, spec in ERROR_SPECS.items()
}


def spec_for(code: ErrorCode) -> ErrorSpec:
    """Return the ErrorSpec for a given error code."""
    return ERROR_SPECS[code]


def exit_code_for(code: ErrorCode) -> int:
    """Return the process exit code associated with an error code."""
    return ERROR_SPECS[code].exit_code


def format_error(code: ErrorCode, detail: Optional[str] = None) -> str:
    """Format an error code and optional detail into a message."""
    spec = ERROR_SPECS[code]
    message = detail if detail else spec.message
    return f"{spec.code.value} {message}"


class TranscriptionError(RuntimeError):
    """Base class for every failure this package reports.

    ``input_path`` is filled in by the transcription service so batch and
    benchmark callers can attribute a failure to the file that caused it.
    """

    category: Optional[ErrorCategory] = None

    def __init__(
        self,
        code: ErrorCode,
        detail: Optional[str] = None,
        *,
        input_path: Optional[Union[str, Path]] = None,
    ) -> None:
        spec = ERROR_SPECS[code]
        if self.category is not None and spec.category is not self.category:
            raise ValueError(
                f"{code.name} belongs to {spec.category.value}, "
                f"not {self.category.value}"
            )
        self.category = spec.category
        self.code = code
        self.detail = detail or spec.message
        self.exit_code = spec.exit_code
        self.input_path: Optional[Path] = (
            Path(input_path) if input_path is not None else None
        )
        super().__init__(format_error(code, detail))

    def tag_input(self, path: Union[str, Path]) -> "TranscriptionError":
        """Attach the offending input path and return the same error."""
        self.input_path = Path(path)
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Build the serialisable error payload used in reports."""
        return {
            "code": self.code.value,
            "kind": self.code.name,
            "category": self.category.value,
            "message": self.detail,
            "input": str(self.input_path) if self.input_path else None,
        }


class ConfigurationError(TranscriptionError):
    """Invalid model/device/precision selection or runtime option."""

    category = ErrorCategory.CONFIGURATION

    def __init__(
        self,
        code: ErrorCode,
        detail: Optional[str] = None,
        *,
        field: Optional[str] = None,
        input_path: Optional[Union[str, Path]] = None,
    ) -> None:
        self.field = field
        super().__init__(code, detail, input_path=input_path)


class InputError(TranscriptionError):
    """Audio input missing, of an unsupported format, or absent."""

    category = ErrorCategory.INPUT


class BackendError(TranscriptionError):
    """Failure raised by, or while talking to, the external model runtime."""

    category = ErrorCategory.BACKEND


class OutputError(TranscriptionError):
    """Failure writing a report; always fatal to the invocation."""

    category = ErrorCategory.OUTPUT


__all__ = [
    "BackendError",
    "ConfigurationError",
    "ERROR_EXIT_CODE_MAP",
    "ERROR_SPECS",
    "ErrorCategory",
    "ErrorCode",
    "ErrorSpec",
    "InputError",
    "OutputError",
    "TranscriptionError",
    "exit_code_for",
    "format_error",
    "spec_for",
]
