"""Single call boundary between this package and the model runtime."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from stt_batch.config.transcription import TranscriptionConfig
from stt_batch.errors import BackendError, ErrorCode
from stt_batch.model.backends.base import BackendFactory, ModelBackend
from stt_batch.types import AudioInput, Segment

LOGGER = logging.getLogger("stt_batch.adapter")


@dataclass(frozen=True)
class RawBackendResult:
    """Validated backend response, before timing is attached."""

    language: str
    language_probability: float
    duration: float
    segments: Tuple[Segment, ...]
    device: Optional[str] = None


def _protocol_error(detail: str) -> BackendError:
    return BackendError(ErrorCode.PROTOCOL_MISMATCH, detail)


def _require_number(
    data: Mapping[str, Any],
    key: str,
    where: str,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> float:
    if key not in data:
        raise _protocol_error(f"{where}: missing required field '{key}'")
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _protocol_error(
            f"{where}: field '{key}' must be a number, got {type(value).__name__}"
        )
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        raise _protocol_error(f"{where}: field '{key}' is not finite")
    if minimum is not None and number < minimum:
        raise _protocol_error(f"{where}: field '{key}'={number} is below {minimum}")
    if maximum is not None and number > maximum:
        raise _protocol_error(f"{where}: field '{key}'={number} is above {maximum}")
    return number


def _require_str(data: Mapping[str, Any], key: str, where: str) -> str:
    if key not in data:
        raise _protocol_error(f"{where}: missing required field '{key}'")
    value = data[key]
    if not isinstance(value, str):
        raise _protocol_error(
            f"{where}: field '{key}' must be a string, got {type(value).__name__}"
        )
    return value


def _parse_segments(raw: Any) -> Tuple[Segment, ...]:
    if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
        raise _protocol_error(
            f"response: field 'segments' must be a list, got {type(raw).__name__}"
        )
    segments: List[Segment] = []
    previous_start = 0.0
    for index, item in enumerate(raw):
        where = f"segment[{index}]"
        if not isinstance(item, Mapping):
            raise _protocol_error(f"{where}: expected a mapping, got {type(item).__name__}")
        start = _require_number(item, "start", where, minimum=0.0)
        end = _require_number(item, "end", where)
        if end < start:
            raise _protocol_error(f"{where}: end {end} precedes start {start}")
        if segments and start < previous_start:
            raise _protocol_error(
                f"{where}: start {start} precedes previous start {previous_start}"
            )
        text = _require_str(item, "text", where)
        no_speech_prob = _require_number(
            item, "no_speech_prob", where, minimum=0.0, maximum=1.0
        )
        segments.append(Segment(start, end, text.strip(), no_speech_prob))
        previous_start = start
    return tuple(segments)


def parse_response(response: Any) -> RawBackendResult:
    """Validate a raw backend response; raise PROTOCOL_MISMATCH on any defect."""
    if not isinstance(response, Mapping):
        raise _protocol_error(
            f"response: expected a mapping, got {type(response).__name__}"
        )
    language = _require_str(response, "language", "response")
    language_probability = _require_number(
        response, "language_probability", "response", minimum=0.0, maximum=1.0
    )
    duration = _require_number(response, "duration", "response", minimum=0.0)
    if "segments" not in response:
        raise _protocol_error("response: missing required field 'segments'")
    segments = _parse_segments(response["segments"])
    device = response.get("device")
    if device is not None and not isinstance(device, str):
        device = str(device)
    return RawBackendResult(
        language=language,
        language_probability=language_probability,
        duration=duration,
        segments=segments,
        device=device or None,
    )


def build_options(config: TranscriptionConfig) -> Dict[str, Any]:
    """Translate a TranscriptionConfig into backend ``transcribe`` options."""
    options: Dict[str, Any] = {
        "beam_size": config.beam_size,
        "vad_filter": config.vad_filter,
        "word_timestamps": config.word_timestamps,
    }
    if config.language:
        options["language"] = config.language
    return options


class BackendAdapter:
    """Owns loaded backends and performs every call into the model runtime.

    Backends are created lazily, one per (model size, device, precision), and
    reused across calls. Each ``invoke`` is exactly one backend call; there
    are no retries here.
    """

    def __init__(self, backend_factory: BackendFactory) -> None:
        self._factory = backend_factory
        self._lock = threading.Lock()
        self._backends: Dict[Tuple[str, str, str], ModelBackend] = {}
        self._load_locks: Dict[Tuple[str, str, str], threading.Lock] = {}

    def loaded_keys(self) -> List[Tuple[str, str, str]]:
        with self._lock:
            return list(self._backends.keys())

    def prepare(self, config: TranscriptionConfig) -> None:
        """Load the backend for ``config`` ahead of a timed call."""
        self._get_backend(config)

    def invoke(self, config: TranscriptionConfig, audio: AudioInput) -> RawBackendResult:
        """Run one synchronous backend call and return the validated result."""
        backend = self._get_backend(config)
        options = build_options(config)
        LOGGER.debug(
            "Invoking backend config=%s input=%s options=%s",
            config.label,
            audio.path,
            options,
        )
        try:
            response = backend.transcribe(str(audio.path), options)
        except Exception as exc:
            raise BackendError(
                ErrorCode.EXTERNAL_FAILURE, str(exc) or type(exc).__name__
            ) from exc
        return parse_response(response)

    def _get_backend(self, config: TranscriptionConfig) -> ModelBackend:
        key = config.backend_key()
        with self._lock:
            backend = self._backends.get(key)
            if backend is not None:
                return backend
            load_lock = self._load_locks.setdefault(key, threading.Lock())

        with load_lock:
            with self._lock:
                backend = self._backends.get(key)
            if backend is not None:
                return backend
            LOGGER.info("Loading backend model=%s device=%s compute_type=%s", *key)
            try:
                backend = self._factory(*key)
            except Exception as exc:
                LOGGER.error("Failed to load backend %s: %s", config.label, exc)
                raise BackendError(
                    ErrorCode.EXTERNAL_FAILURE,
                    f"failed to initialize model {config.label}: {exc}",
                ) from exc
            with self._lock:
                self._backends[key] = backend
            return backend


__all__ = ["BackendAdapter", "RawBackendResult", "build_options", "parse_response"]
