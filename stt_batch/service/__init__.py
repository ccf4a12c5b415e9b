"""Transcription, batch scheduling and benchmarking services."""

from .batch import BatchScheduler, JobOutcome
from .benchmark import BenchmarkEngine, BenchmarkReport, BenchmarkSweep
from .transcriber import TranscriptionService

__all__ = [
    "BatchScheduler",
    "BenchmarkEngine",
    "BenchmarkReport",
    "BenchmarkSweep",
    "JobOutcome",
    "TranscriptionService",
]
