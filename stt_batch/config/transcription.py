"""Model size, device and precision selection with compatibility rules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Final, Optional, Type, TypeVar, Union

from stt_batch.config.default.model import (
    DEFAULT_BEAM_SIZE,
    DEFAULT_VAD_FILTER,
    DEFAULT_WORD_TIMESTAMPS,
)
from stt_batch.errors import ConfigurationError, ErrorCode


class ModelSize(str, Enum):
    """Whisper checkpoint sizes; declaration order is smallest to largest."""

    TINY = "tiny"
    BASE = "base"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE_V2 = "large-v2"
    LARGE_V3 = "large-v3"

    @property
    def ordinal(self) -> int:
        return _MODEL_ORDER[self]


_MODEL_ORDER: Final[Dict[ModelSize, int]] = {
    size: index for index, size in enumerate(ModelSize)
}


class Device(str, Enum):
    """Compute target handed to the backend. ``mps`` is Apple Metal."""

    AUTO = "auto"
    CPU = "cpu"
    CUDA = "cuda"
    MPS = "mps"


class Precision(str, Enum):
    """Backend compute type."""

    FLOAT16 = "float16"
    FLOAT32 = "float32"
    INT8 = "int8"


COMPATIBILITY_TABLE: Final[Dict[Device, FrozenSet[Precision]]] = {
    Device.AUTO: frozenset({Precision.FLOAT16, Precision.FLOAT32, Precision.INT8}),
    Device.CPU: frozenset({Precision.FLOAT32, Precision.INT8}),
    Device.CUDA: frozenset({Precision.FLOAT16, Precision.FLOAT32, Precision.INT8}),
    Device.MPS: frozenset({Precision.FLOAT16, Precision.FLOAT32}),
}


def is_compatible(device: Device, precision: Precision) -> bool:
    """Return True when the (device, precision) pair is in the table."""
    return precision in COMPATIBILITY_TABLE.get(device, frozenset())


def allowed_precisions(device: Device) -> list[Precision]:
    """Return the precisions a device supports, in declaration order."""
    supported = COMPATIBILITY_TABLE.get(device, frozenset())
    return [precision for precision in Precision if precision in supported]


@dataclass(frozen=True)
class TranscriptionConfig:
    """Immutable model selection shared read-only by concurrent jobs."""

    model_size: ModelSize
    device: Device
    precision: Precision
    vad_filter: bool = DEFAULT_VAD_FILTER
    word_timestamps: bool = DEFAULT_WORD_TIMESTAMPS
    beam_size: int = DEFAULT_BEAM_SIZE
    language: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.model_size.value}/{self.device.value}/{self.precision.value}"

    def backend_key(self) -> tuple[str, str, str]:
        """Identity of the loaded model this config needs."""
        return (self.model_size.value, self.device.value, self.precision.value)


E = TypeVar("E", bound=Enum)


def _parse_variant(enum_cls: Type[E], value: Union[str, E], field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    normalized = value.strip().lower() if isinstance(value, str) else value
    try:
        return enum_cls(normalized)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(
            ErrorCode.UNKNOWN_VARIANT,
            f"unknown {field} {value!r} (allowed: {allowed})",
            field=field,
        ) from None


def validate(
    model_size: Union[str, ModelSize],
    device: Union[str, Device],
    precision: Union[str, Precision],
    *,
    vad_filter: bool = DEFAULT_VAD_FILTER,
    word_timestamps: bool = DEFAULT_WORD_TIMESTAMPS,
    beam_size: int = DEFAULT_BEAM_SIZE,
    language: Optional[str] = None,
) -> TranscriptionConfig:
    """Build a TranscriptionConfig or raise ConfigurationError.

    Pure: never touches the filesystem or the backend. Variant membership is
    checked first (model size, device, precision in that order), then the
    device/precision compatibility table.
    """
    size = _parse_variant(ModelSize, model_size, "model_size")
    dev = _parse_variant(Device, device, "device")
    prec = _parse_variant(Precision, precision, "precision")

    if not is_compatible(dev, prec):
        allowed = ", ".join(p.value for p in allowed_precisions(dev))
        raise ConfigurationError(
            ErrorCode.INCOMPATIBLE_PRECISION,
            f"precision {prec.value!r} is not supported on device "
            f"{dev.value!r} (allowed: {allowed})",
            field="precision",
        )

    if isinstance(beam_size, bool) or not isinstance(beam_size, int) or beam_size < 1:
        raise ConfigurationError(
            ErrorCode.INVALID_OPTION,
            f"beam_size must be a positive integer, got {beam_size!r}",
            field="beam_size",
        )

    return TranscriptionConfig(
        model_size=size,
        device=dev,
        precision=prec,
        vad_filter=bool(vad_filter),
        word_timestamps=bool(word_timestamps),
        beam_size=beam_size,
        language=language or None,
    )


__all__ = [
    "COMPATIBILITY_TABLE",
    "Device",
    "ModelSize",
    "Precision",
    "TranscriptionConfig",
    "allowed_precisions",
    "is_compatible",
    "validate",
]
