"""Sweeps model/device/precision combinations and compares their timing."""

from __future__ import annotations

import logging
from concurrent import futures
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from stt_batch.config.default import (
    DEFAULT_BENCHMARK_MAX_WORKERS,
    DEFAULT_BENCHMARK_WARMUP,
)
from stt_batch.config.transcription import (
    Device,
    ModelSize,
    Precision,
    TranscriptionConfig,
    validate,
)
from stt_batch.errors import TranscriptionError
from stt_batch.service.batch import run_job
from stt_batch.service.transcriber import TranscriptionService
from stt_batch.types import AudioInput, TranscriptionResult

LOGGER = logging.getLogger("stt_batch.benchmark")

DEFAULT_COMPARISON_DEVICES: Tuple[Device, ...] = (Device.CPU, Device.MPS)
DEFAULT_COMPARISON_MODELS: Tuple[ModelSize, ...] = (
    ModelSize.TINY,
    ModelSize.BASE,
    ModelSize.SMALL,
    ModelSize.MEDIUM,
)
DEFAULT_COMPARISON_PRECISIONS: Tuple[Precision, ...] = (
    Precision.FLOAT16,
    Precision.FLOAT32,
)


class BenchmarkSweep:
    """Ordered, duplicate-free list of configurations to benchmark.

    Builder helpers validate every configuration they generate, so an
    incompatible combination fails here rather than at run time.
    """

    def __init__(self, **options: Any) -> None:
        # Shared decode options (vad_filter, word_timestamps, beam_size,
        # language) applied to every generated configuration.
        self.options = options
        self._configs: List[TranscriptionConfig] = []

    def __len__(self) -> int:
        return len(self._configs)

    def __iter__(self):
        return iter(self._configs)

    @property
    def configs(self) -> List[TranscriptionConfig]:
        return list(self._configs)

    def add(self, config: TranscriptionConfig) -> bool:
        """Append ``config`` unless an identical one is already scheduled."""
        if config in self._configs:
            LOGGER.debug("Skipping duplicate sweep point %s", config.label)
            return False
        self._configs.append(config)
        return True

    def add_combination(
        self,
        model_size: Union[str, ModelSize],
        device: Union[str, Device],
        precision: Union[str, Precision],
    ) -> bool:
        return self.add(validate(model_size, device, precision, **self.options))

    def add_device_comparison(
        self,
        model_size: Union[str, ModelSize],
        precision: Union[str, Precision],
        devices: Iterable[Union[str, Device]] = DEFAULT_COMPARISON_DEVICES,
    ) -> "BenchmarkSweep":
        for device in devices:
            self.add_combination(model_size, device, precision)
        return self

    def add_model_size_comparison(
        self,
        device: Union[str, Device],
        precision: Union[str, Precision],
        models: Iterable[Union[str, ModelSize]] = DEFAULT_COMPARISON_MODELS,
    ) -> "BenchmarkSweep":
        for model_size in models:
            self.add_combination(model_size, device, precision)
        return self

    def add_precision_comparison(
        self,
        model_size: Union[str, ModelSize],
        device: Union[str, Device],
        precisions: Iterable[Union[str, Precision]] = DEFAULT_COMPARISON_PRECISIONS,
    ) -> "BenchmarkSweep":
        for precision in precisions:
            self.add_combination(model_size, device, precision)
        return self

    @classmethod
    def full_sweep(cls, **options: Any) -> "BenchmarkSweep":
        """CPU vs Metal, model sizes on Metal, and precisions on Metal.

        The CPU/Metal pair runs at float32 because float16 is not supported
        on the CPU.
        """
        sweep = cls(**options)
        sweep.add_device_comparison(ModelSize.BASE, Precision.FLOAT32)
        sweep.add_model_size_comparison(Device.MPS, Precision.FLOAT16)
        sweep.add_precision_comparison(ModelSize.BASE, Device.MPS)
        return sweep

    @classmethod
    def medium_sweep(
        cls,
        device: Union[str, Device],
        precision: Union[str, Precision],
        **options: Any,
    ) -> "BenchmarkSweep":
        """Base vs medium on the given device and precision."""
        sweep = cls(**options)
        sweep.add_model_size_comparison(
            device, precision, models=(ModelSize.BASE, ModelSize.MEDIUM)
        )
        return sweep


@dataclass(frozen=True)
class BenchmarkRun:
    """One sweep point: a configuration applied to one input."""

    config: TranscriptionConfig
    audio: AudioInput
    timestamp: datetime
    result: Optional[TranscriptionResult] = None
    error: Optional[TranscriptionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None

    @property
    def key(self) -> Tuple[TranscriptionConfig, Path]:
        return (self.config, self.audio.path)


@dataclass(frozen=True)
class DeviceSpeedup:
    """How much faster ``compared_device`` ran than ``baseline_device``."""

    model_size: ModelSize
    precision: Precision
    audio: AudioInput
    baseline_device: Device
    compared_device: Device
    baseline_time: float
    compared_time: float

    @property
    def speedup(self) -> float:
        return self.baseline_time / self.compared_time


@dataclass(frozen=True)
class ModelComparison:
    """Timing of a smaller model against a larger one on the same setup."""

    device: Device
    precision: Precision
    audio: AudioInput
    smaller_model: ModelSize
    larger_model: ModelSize
    smaller_time: float
    larger_time: float

    @property
    def time_ratio(self) -> float:
        return self.larger_time / self.smaller_time

    @property
    def percent_faster(self) -> float:
        """Share of the larger model's time saved by the smaller model."""
        return (self.larger_time - self.smaller_time) / self.larger_time * 100.0


@dataclass(frozen=True)
class BenchmarkReport:
    runs: Tuple[BenchmarkRun, ...]
    fastest: Optional[BenchmarkRun]
    device_speedups: Tuple[DeviceSpeedup, ...] = ()
    model_comparisons: Tuple[ModelComparison, ...] = ()
    inputs: Tuple[AudioInput, ...] = field(default=())

    @property
    def successful_runs(self) -> List[BenchmarkRun]:
        return [run for run in self.runs if run.ok]

    @property
    def failed_runs(self) -> List[BenchmarkRun]:
        return [run for run in self.runs if not run.ok]


def rank_fastest(runs: Sequence[BenchmarkRun]) -> Optional[BenchmarkRun]:
    """Minimum transcription time; ties go to the smaller model, then sweep order."""
    candidates = [
        (run.result.transcription_time, run.config.model_size.ordinal, index, run)
        for index, run in enumerate(runs)
        if run.ok and run.result is not None
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda item: item[:3])[3]


def _timed_pairs(runs: Sequence[BenchmarkRun]):
    timed = [
        run
        for run in runs
        if run.ok and run.result is not None and run.result.transcription_time > 0
    ]
    for i, first in enumerate(timed):
        for second in timed[i + 1 :]:
            if first.audio.path == second.audio.path:
                yield first, second


def compute_device_speedups(runs: Sequence[BenchmarkRun]) -> List[DeviceSpeedup]:
    """Pairwise ratios for runs sharing model and precision on different devices."""
    speedups: List[DeviceSpeedup] = []
    for first, second in _timed_pairs(runs):
        a, b = first.config, second.config
        if (
            a.model_size == b.model_size
            and a.precision == b.precision
            and a.device != b.device
        ):
            speedups.append(
                DeviceSpeedup(
                    model_size=a.model_size,
                    precision=a.precision,
                    audio=first.audio,
                    baseline_device=a.device,
                    compared_device=b.device,
                    baseline_time=first.result.transcription_time,
                    compared_time=second.result.transcription_time,
                )
            )
    return speedups


def compute_model_comparisons(runs: Sequence[BenchmarkRun]) -> List[ModelComparison]:
    """Pairwise comparisons for runs sharing device and precision on different models."""
    comparisons: List[ModelComparison] = []
    for first, second in _timed_pairs(runs):
        a, b = first.config, second.config
        if a.device != b.device or a.precision != b.precision:
            continue
        if a.model_size == b.model_size:
            continue
        smaller, larger = (
            (first, second)
            if a.model_size.ordinal < b.model_size.ordinal
            else (second, first)
        )
        comparisons.append(
            ModelComparison(
                device=a.device,
                precision=a.precision,
                audio=first.audio,
                smaller_model=smaller.config.model_size,
                larger_model=larger.config.model_size,
                smaller_time=smaller.result.transcription_time,
                larger_time=larger.result.transcription_time,
            )
        )
    return comparisons


class BenchmarkReportBuilder:
    """Collects runs as sweep points finish; finalizes once all have resolved."""

    def __init__(self, points: Sequence[Tuple[TranscriptionConfig, AudioInput]]) -> None:
        keys = [(config, audio.path) for config, audio in points]
        if len(set(keys)) != len(keys):
            raise ValueError("duplicate (config, input) pair in benchmark points")
        self._points = list(points)
        self._slots: List[Optional[BenchmarkRun]] = [None] * len(points)

    def record(self, index: int, run: BenchmarkRun) -> None:
        if self._slots[index] is not None:
            raise ValueError(f"sweep point {index} already recorded")
        config, audio = self._points[index]
        if run.key != (config, audio.path):
            raise ValueError(f"run for {run.config.label} does not match point {index}")
        self._slots[index] = run

    @property
    def pending(self) -> int:
        return sum(1 for slot in self._slots if slot is None)

    def finalize(self) -> BenchmarkReport:
        if self.pending:
            raise RuntimeError(f"{self.pending} sweep points have not resolved")
        runs = tuple(slot for slot in self._slots if slot is not None)
        inputs: List[AudioInput] = []
        for _, audio in self._points:
            if audio not in inputs:
                inputs.append(audio)
        return BenchmarkReport(
            runs=runs,
            fastest=rank_fastest(runs),
            device_speedups=tuple(compute_device_speedups(runs)),
            model_comparisons=tuple(compute_model_comparisons(runs)),
            inputs=tuple(inputs),
        )


class BenchmarkEngine:
    """Runs each sweep point once per input on a bounded worker pool.

    Timing covers only the backend call of each point; with ``warmup`` the
    model is loaded before the timed call. Concurrent points still compete
    for hardware, so ``max_workers`` defaults to 1.
    """

    def __init__(
        self,
        service: TranscriptionService,
        max_workers: int = DEFAULT_BENCHMARK_MAX_WORKERS,
        warmup: bool = DEFAULT_BENCHMARK_WARMUP,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.service = service
        self.max_workers = max_workers
        self.warmup = warmup

    def run(
        self,
        sweep: Union[BenchmarkSweep, Sequence[TranscriptionConfig]],
        audio: Union[AudioInput, Sequence[AudioInput]],
    ) -> BenchmarkReport:
        inputs: List[AudioInput] = []
        seen_paths = set()
        for item in [audio] if isinstance(audio, AudioInput) else audio:
            if item.path in seen_paths:
                LOGGER.debug("Skipping duplicate benchmark input %s", item.path)
                continue
            seen_paths.add(item.path)
            inputs.append(item)
        configs: List[TranscriptionConfig] = []
        for config in sweep:
            if config not in configs:
                configs.append(config)
        points = [(config, item) for config in configs for item in inputs]
        builder = BenchmarkReportBuilder(points)

        LOGGER.info(
            "Starting benchmark with %d configurations over %d inputs",
            len(configs),
            len(inputs),
        )
        if points:
            worker_count = min(self.max_workers, len(points))
            with futures.ThreadPoolExecutor(
                max_workers=worker_count, thread_name_prefix="stt-bench"
            ) as executor:
                pending: Dict[futures.Future, int] = {
                    executor.submit(self._run_point, index, len(points), config, item): index
                    for index, (config, item) in enumerate(points)
                }
                for future in futures.as_completed(pending):
                    builder.record(pending[future], future.result())

        report = builder.finalize()
        if report.fastest is not None:
            LOGGER.info(
                "Fastest configuration: %s (%.2fs, %.1fx real-time)",
                report.fastest.config.label,
                report.fastest.result.transcription_time,
                report.fastest.result.real_time_factor,
            )
        else:
            LOGGER.warning("No benchmark run succeeded")
        return report

    def _run_point(
        self,
        index: int,
        total: int,
        config: TranscriptionConfig,
        audio: AudioInput,
    ) -> BenchmarkRun:
        LOGGER.info(
            "Running benchmark %d/%d: %s on %s with %s (%s)",
            index + 1,
            total,
            config.model_size.value,
            config.device.value,
            config.precision.value,
            audio.name,
        )
        timestamp = datetime.now(timezone.utc)
        if self.warmup:
            try:
                self.service.prepare(config)
            except TranscriptionError as exc:
                exc.tag_input(audio.path)
                LOGGER.error("Failed %s: %s", config.label, exc)
                return BenchmarkRun(config, audio, timestamp, error=exc)

        outcome = run_job(self.service, config, audio)
        if outcome.ok and outcome.result is not None:
            LOGGER.info(
                "Completed %s: %.2fs (%.1fx real-time)",
                config.label,
                outcome.result.transcription_time,
                outcome.result.real_time_factor,
            )
        return BenchmarkRun(
            config, audio, timestamp, result=outcome.result, error=outcome.error
        )


__all__ = [
    "BenchmarkEngine",
    "BenchmarkReport",
    "BenchmarkReportBuilder",
    "BenchmarkRun",
    "BenchmarkSweep",
    "DeviceSpeedup",
    "ModelComparison",
    "compute_device_speedups",
    "compute_model_comparisons",
    "rank_fastest",
]
