"""Concurrent transcription of a file or a directory of files."""

from __future__ import annotations

import logging
from concurrent import futures
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from stt_batch.config.default import DEFAULT_MAX_WORKERS
from stt_batch.config.transcription import TranscriptionConfig
from stt_batch.errors import BackendError, ErrorCode, TranscriptionError
from stt_batch.service.transcriber import TranscriptionService
from stt_batch.types import AudioFormat, AudioInput, TranscriptionResult
from stt_batch.utils.audio import discover_audio_inputs

LOGGER = logging.getLogger("stt_batch.batch")


@dataclass(frozen=True)
class JobOutcome:
    """Result slot for one scheduled input: exactly one of result/error is set."""

    audio: AudioInput
    result: Optional[TranscriptionResult] = None
    error: Optional[TranscriptionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_job(
    service: TranscriptionService, config: TranscriptionConfig, audio: AudioInput
) -> JobOutcome:
    """Run one transcription and fold any failure into a JobOutcome."""
    try:
        return JobOutcome(audio, result=service.transcribe(config, audio))
    except TranscriptionError as exc:
        LOGGER.error("Failed %s: %s", audio.path, exc)
        return JobOutcome(audio, error=exc)
    except Exception as exc:
        LOGGER.exception("Unexpected failure transcribing %s", audio.path)
        error = BackendError(
            ErrorCode.EXTERNAL_FAILURE,
            f"unexpected {type(exc).__name__}: {exc}",
            input_path=audio.path,
        )
        return JobOutcome(audio, error=error)


class BatchScheduler:
    """Fans jobs out to a bounded thread pool and collects them in input order.

    The pool bound keeps concurrent backend calls (and therefore device
    memory) limited. Only the calling thread writes the outcome list, one
    slot per completed job.
    """

    def __init__(
        self,
        service: TranscriptionService,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.service = service
        self.max_workers = max_workers

    def discover(self, root: Union[str, Path]) -> List[AudioInput]:
        """List the inputs to schedule for ``root``.

        A file (or a path that does not exist) yields exactly one input; the
        transcription service reports it if it is missing or unsupported.
        """
        path = Path(root).expanduser()
        if path.is_dir():
            inputs = discover_audio_inputs(path)
            LOGGER.info("Found %d audio files in %s", len(inputs), path)
            return inputs
        resolved = path.resolve() if path.exists() else path
        return [AudioInput(resolved, AudioFormat.from_path(path))]

    def run(self, config: TranscriptionConfig, root: Union[str, Path]) -> List[JobOutcome]:
        return self.run_inputs(config, self.discover(root))

    def run_inputs(
        self, config: TranscriptionConfig, inputs: Sequence[AudioInput]
    ) -> List[JobOutcome]:
        if not inputs:
            return []
        worker_count = min(self.max_workers, len(inputs))
        LOGGER.info(
            "Processing %d inputs with %d workers (config=%s)",
            len(inputs),
            worker_count,
            config.label,
        )
        outcomes: List[Optional[JobOutcome]] = [None] * len(inputs)
        with futures.ThreadPoolExecutor(
            max_workers=worker_count, thread_name_prefix="stt-job"
        ) as executor:
            pending: Dict[futures.Future, int] = {
                executor.submit(run_job, self.service, config, audio): index
                for index, audio in enumerate(inputs)
            }
            for future in futures.as_completed(pending):
                index = pending[future]
                outcome = future.result()
                outcomes[index] = outcome
                if outcome.ok:
                    LOGGER.info("Completed %s", outcome.audio.path)

        completed = [outcome for outcome in outcomes if outcome is not None]
        failed = sum(1 for outcome in completed if not outcome.ok)
        LOGGER.info(
            "Batch finished: %d succeeded, %d failed", len(completed) - failed, failed
        )
        return completed


__all__ = ["BatchScheduler", "JobOutcome", "run_job"]
