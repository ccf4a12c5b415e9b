"""JSON serialization and text rendering of transcription and benchmark results."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO

from stt_batch.config.transcription import TranscriptionConfig
from stt_batch.errors import ErrorCode, OutputError, TranscriptionError
from stt_batch.service.batch import JobOutcome
from stt_batch.service.benchmark import (
    BenchmarkReport,
    BenchmarkRun,
    DeviceSpeedup,
    ModelComparison,
)
from stt_batch.types import Segment, TranscriptionResult

LOGGER = logging.getLogger("stt_batch.report")

SCHEMA_VERSION = 1
BATCH_REPORT_NAME = "batch_report.json"
TRANSCRIPTION_SUFFIX = "_transcription.json"


def segment_to_dict(segment: Segment) -> Dict[str, Any]:
    return {
        "start": segment.start,
        "end": segment.end,
        "text": segment.text,
        "no_speech_prob": segment.no_speech_prob,
    }


def transcription_to_dict(result: TranscriptionResult) -> Dict[str, Any]:
    return {
        "language": result.language,
        "language_probability": result.language_probability,
        "duration": result.duration,
        "transcription_time": result.transcription_time,
        "real_time_factor": result.real_time_factor,
        "reported_device": result.reported_device,
        "full_text": result.full_text,
        "segments": [segment_to_dict(seg) for seg in result.segments],
    }


def error_to_dict(error: TranscriptionError) -> Dict[str, Any]:
    return error.to_payload()


def config_to_dict(config: TranscriptionConfig) -> Dict[str, Any]:
    return {
        "model": config.model_size.value,
        "device": config.device.value,
        "precision": config.precision.value,
        "vad_filter": config.vad_filter,
        "word_timestamps": config.word_timestamps,
        "beam_size": config.beam_size,
        "language": config.language,
    }


def outcome_to_dict(outcome: JobOutcome) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "input": str(outcome.audio.path),
        "format": outcome.audio.audio_format.value if outcome.audio.audio_format else None,
        "status": "ok" if outcome.ok else "error",
    }
    if outcome.result is not None:
        entry["result"] = transcription_to_dict(outcome.result)
    if outcome.error is not None:
        entry["error"] = error_to_dict(outcome.error)
    return entry


def batch_report_to_dict(
    config: TranscriptionConfig, outcomes: Sequence[JobOutcome]
) -> Dict[str, Any]:
    succeeded = sum(1 for outcome in outcomes if outcome.ok)
    return {
        "schema_version": SCHEMA_VERSION,
        "config": config_to_dict(config),
        "summary": {
            "total": len(outcomes),
            "succeeded": succeeded,
            "failed": len(outcomes) - succeeded,
        },
        "results": [outcome_to_dict(outcome) for outcome in outcomes],
    }


def benchmark_run_to_dict(run: BenchmarkRun) -> Dict[str, Any]:
    result = run.result
    return {
        "model": run.config.model_size.value,
        "device": run.config.device.value,
        "precision": run.config.precision.value,
        "input": str(run.audio.path),
        "timestamp": run.timestamp.isoformat(),
        "status": "ok" if run.ok else "error",
        "audio_duration": result.duration if result else None,
        "transcription_time": result.transcription_time if result else None,
        "real_time_factor": result.real_time_factor if result else None,
        "segment_count": result.segment_count if result else None,
        "reported_device": result.reported_device if result else None,
        "error": error_to_dict(run.error) if run.error else None,
    }


def device_speedup_to_dict(speedup: DeviceSpeedup) -> Dict[str, Any]:
    return {
        "model": speedup.model_size.value,
        "precision": speedup.precision.value,
        "input": str(speedup.audio.path),
        "baseline_device": speedup.baseline_device.value,
        "compared_device": speedup.compared_device.value,
        "baseline_time": speedup.baseline_time,
        "compared_time": speedup.compared_time,
        "speedup": speedup.speedup,
    }


def model_comparison_to_dict(comparison: ModelComparison) -> Dict[str, Any]:
    return {
        "device": comparison.device.value,
        "precision": comparison.precision.value,
        "input": str(comparison.audio.path),
        "smaller_model": comparison.smaller_model.value,
        "larger_model": comparison.larger_model.value,
        "smaller_time": comparison.smaller_time,
        "larger_time": comparison.larger_time,
        "time_ratio": comparison.time_ratio,
        "percent_faster": comparison.percent_faster,
    }


def benchmark_report_to_dict(report: BenchmarkReport) -> Dict[str, Any]:
    fastest = report.fastest
    return {
        "schema_version": SCHEMA_VERSION,
        "inputs": [str(audio.path) for audio in report.inputs],
        "runs": [benchmark_run_to_dict(run) for run in report.runs],
        "fastest": benchmark_run_to_dict(fastest) if fastest else None,
        "device_speedups": [device_speedup_to_dict(s) for s in report.device_speedups],
        "model_comparisons": [
            model_comparison_to_dict(c) for c in report.model_comparisons
        ],
    }


def dumps(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def write_json(path: Path, payload: Dict[str, Any]) -> Path:
    """Write a JSON document, raising OutputError on any filesystem failure."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dumps(payload) + "\n", encoding="utf-8")
    except OSError as exc:
        raise OutputError(
            ErrorCode.OUTPUT_WRITE_FAILED,
            f"cannot write {path}: {exc}",
            input_path=path,
        ) from exc
    LOGGER.info("Results saved to: %s", path)
    return path


def _is_directory_target(output: Path) -> bool:
    return output.is_dir() or (not output.exists() and output.suffix == "")


def write_batch_outputs(
    output: Path,
    config: TranscriptionConfig,
    outcomes: Sequence[JobOutcome],
    input_is_dir: bool,
) -> List[Path]:
    """Persist a batch run.

    A single-file run into a file target writes that file's transcription;
    a directory run into a directory target writes one
    ``<stem>_transcription.json`` per success plus ``batch_report.json``;
    anything else writes the combined batch report to ``output``.
    """
    if not input_is_dir and len(outcomes) == 1 and not _is_directory_target(output):
        outcome = outcomes[0]
        if outcome.result is not None:
            return [write_json(output, transcription_to_dict(outcome.result))]
        return [write_json(output, batch_report_to_dict(config, outcomes))]

    if _is_directory_target(output):
        written: List[Path] = []
        for outcome in outcomes:
            if outcome.result is None:
                continue
            target = output / f"{outcome.audio.path.stem}{TRANSCRIPTION_SUFFIX}"
            written.append(write_json(target, transcription_to_dict(outcome.result)))
        written.append(
            write_json(output / BATCH_REPORT_NAME, batch_report_to_dict(config, outcomes))
        )
        return written

    return [write_json(output, batch_report_to_dict(config, outcomes))]


def render_transcription_text(result: TranscriptionResult) -> str:
    lines = [
        "=== Transcription Results ===",
        f"Language: {result.language} "
        f"(confidence: {result.language_probability * 100.0:.2f}%)",
        f"Duration: {result.duration:.2f}s",
        f"Transcription Time: {result.transcription_time:.2f}s",
        f"Real-time Factor: {result.real_time_factor:.2f}x",
        "",
        "Full Text:",
        result.full_text,
    ]
    if result.segments:
        lines.extend(["", "=== Segments ==="])
        for index, seg in enumerate(result.segments, start=1):
            lines.append(f"[{index:03d}] [{seg.start:.2f}s -> {seg.end:.2f}s] {seg.text}")
    return "\n".join(lines)


def render_batch_text(outcomes: Sequence[JobOutcome]) -> str:
    blocks: List[str] = []
    for outcome in outcomes:
        header = f"### {outcome.audio.path}"
        if outcome.result is not None:
            blocks.append(f"{header}\n{render_transcription_text(outcome.result)}")
        elif outcome.error is not None:
            blocks.append(f"{header}\nFAILED: {outcome.error}")
    return "\n\n".join(blocks)


def render_benchmark_table(report: BenchmarkReport) -> str:
    lines = [
        "Benchmark Results Comparison",
        f"{'Model':<10} {'Device':<8} {'Compute':<10} {'Audio':<9} "
        f"{'Transcr.':<10} {'RT Factor':<10} {'Segments':<8}",
        "-" * 80,
    ]
    for run in report.runs:
        cfg = run.config
        prefix = f"{cfg.model_size.value:<10} {cfg.device.value:<8} {cfg.precision.value:<10}"
        if run.result is not None:
            res = run.result
            lines.append(
                f"{prefix} {res.duration:<8.1f}s {res.transcription_time:<9.2f}s "
                f"{res.real_time_factor:<9.1f}x {res.segment_count:<8}"
            )
        else:
            code = run.error.code.value if run.error else "unknown"
            lines.append(f"{prefix} FAILED ({code})")

    if report.fastest is not None and report.fastest.result is not None:
        fastest = report.fastest
        lines.extend(
            [
                "",
                "Fastest Configuration:",
                f"   {fastest.config.model_size.value} on {fastest.config.device.value} "
                f"with {fastest.config.precision.value} - "
                f"{fastest.result.transcription_time:.2f}s "
                f"({fastest.result.real_time_factor:.1f}x real-time)",
            ]
        )
    if report.device_speedups:
        lines.extend(["", "Device Speedups:"])
        for s in report.device_speedups:
            lines.append(
                f"   {s.model_size.value}/{s.precision.value}: {s.compared_device.value} "
                f"is {s.speedup:.2f}x faster than {s.baseline_device.value}"
            )
    if report.model_comparisons:
        lines.extend(["", "Model Comparisons:"])
        for c in report.model_comparisons:
            lines.append(
                f"   {c.device.value}/{c.precision.value}: {c.smaller_model.value} is "
                f"{c.percent_faster:.1f}% faster than {c.larger_model.value} "
                f"({c.smaller_time:.2f}s vs {c.larger_time:.2f}s)"
            )
    return "\n".join(lines)


def emit(text: str, stream: Optional[TextIO]) -> None:
    """Write rendered output to a stream, raising OutputError on failure."""
    if stream is None:
        return
    try:
        stream.write(text + "\n")
        stream.flush()
    except OSError as exc:
        raise OutputError(ErrorCode.OUTPUT_WRITE_FAILED, f"cannot write report: {exc}") from exc


__all__ = [
    "BATCH_REPORT_NAME",
    "SCHEMA_VERSION",
    "batch_report_to_dict",
    "benchmark_report_to_dict",
    "dumps",
    "emit",
    "outcome_to_dict",
    "render_batch_text",
    "render_benchmark_table",
    "render_transcription_text",
    "transcription_to_dict",
    "write_batch_outputs",
    "write_json",
]
