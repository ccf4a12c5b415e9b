"""Runs one configuration against one audio file."""

from __future__ import annotations

import logging
import threading
import time
from concurrent import futures
from typing import Callable, Optional

from stt_batch.config.transcription import TranscriptionConfig
from stt_batch.errors import BackendError, ErrorCode, TranscriptionError
from stt_batch.model.adapter import BackendAdapter, RawBackendResult
from stt_batch.types import (
    AudioInput,
    TranscriptionResult,
    join_segment_text,
    real_time_factor,
)
from stt_batch.utils.audio import check_audio_input

LOGGER = logging.getLogger("stt_batch.transcriber")

Clock = Callable[[], float]


def build_result(raw: RawBackendResult, transcription_time: float) -> TranscriptionResult:
    """Attach timing to a validated backend result.

    The real-time factor is always recomputed here from the backend's
    duration and the locally measured time.
    """
    return TranscriptionResult(
        language=raw.language,
        language_probability=raw.language_probability,
        duration=raw.duration,
        segments=raw.segments,
        full_text=join_segment_text(raw.segments),
        transcription_time=transcription_time,
        real_time_factor=real_time_factor(raw.duration, transcription_time),
        reported_device=raw.device,
    )


def _call_detached(
    fn: Callable[[], RawBackendResult], timeout_sec: float
) -> RawBackendResult:
    """Run ``fn`` on a daemon thread and stop waiting after ``timeout_sec``.

    The backend call cannot be interrupted; on timeout the thread keeps
    running until the backend returns and its result is discarded.
    """
    future: "futures.Future[RawBackendResult]" = futures.Future()

    def _runner() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(fn())
        except BaseException as exc:  # handed back to the waiting thread
            future.set_exception(exc)

    thread = threading.Thread(target=_runner, name="backend-call", daemon=True)
    thread.start()
    try:
        return future.result(timeout=timeout_sec)
    except futures.TimeoutError:
        raise BackendError(
            ErrorCode.TIMEOUT,
            f"backend call exceeded {timeout_sec:.2f}s; "
            "the call continues detached and may still hold resources",
        ) from None


class TranscriptionService:
    """Validates an input, calls the adapter and times the call."""

    def __init__(
        self,
        adapter: BackendAdapter,
        timeout_sec: Optional[float] = None,
        clock: Clock = time.perf_counter,
    ) -> None:
        self.adapter = adapter
        self.timeout_sec = timeout_sec if timeout_sec and timeout_sec > 0 else None
        self._clock = clock

    def prepare(self, config: TranscriptionConfig) -> None:
        """Load the model for ``config`` so a later call is not charged for it."""
        self.adapter.prepare(config)

    def transcribe(
        self, config: TranscriptionConfig, audio: AudioInput
    ) -> TranscriptionResult:
        check_audio_input(audio)

        LOGGER.info("Starting transcription input=%s config=%s", audio.path, config.label)
        start = self._clock()
        try:
            if self.timeout_sec is None:
                raw = self.adapter.invoke(config, audio)
            else:
                raw = _call_detached(
                    lambda: self.adapter.invoke(config, audio), self.timeout_sec
                )
        except TranscriptionError as exc:
            exc.tag_input(audio.path)
            raise
        elapsed = self._clock() - start

        result = build_result(raw, elapsed)
        LOGGER.info(
            "Transcription completed input=%s audio=%.2fs elapsed=%.2fs "
            "real_time_factor=%.2f segments=%d lang=%s",
            audio.path,
            result.duration,
            result.transcription_time,
            result.real_time_factor,
            result.segment_count,
            result.language or "unknown",
        )
        return result


__all__ = ["TranscriptionService", "build_result"]
