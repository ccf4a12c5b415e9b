import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from stt_batch.config import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    TranscriptionConfig,
    load_config,
    validate,
)
from stt_batch.config.transcription import Device, ModelSize, Precision
from stt_batch.errors import (
    BackendError,
    ConfigurationError,
    ErrorCode,
    InputError,
    TranscriptionError,
)
from stt_batch.model.adapter import BackendAdapter
from stt_batch.model.backends import BackendFactory, get_backend
from stt_batch.report import (
    batch_report_to_dict,
    benchmark_report_to_dict,
    dumps,
    emit,
    render_batch_text,
    render_benchmark_table,
    render_transcription_text,
    transcription_to_dict,
    write_batch_outputs,
    write_json,
)
from stt_batch.service.batch import BatchScheduler, JobOutcome
from stt_batch.service.benchmark import BenchmarkEngine, BenchmarkSweep
from stt_batch.service.transcriber import TranscriptionService
from stt_batch.types import AudioInput
from stt_batch.utils.audio import discover_audio_inputs, resolve_audio_input
from stt_batch.utils.logger import LOGGER, configure_logging, shutdown_logging

OUTPUT_FORMATS = ("json", "text")
EXIT_JOB_FAILURES = 1


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="stt-batch",
        description="Batch transcription and benchmarking with faster-whisper",
    )
    parser.add_argument(
        "-i", "--input", required=True, help="Input audio file or directory"
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output file or directory for JSON results (default: stdout)",
    )
    parser.add_argument(
        "--config",
        type=str,
        help=f"Path to YAML config (default search: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "-m",
        "--model",
        default=None,
        help="Model size: " + ", ".join(size.value for size in ModelSize),
    )
    parser.add_argument(
        "-d",
        "--device",
        default=None,
        help="Device: " + ", ".join(dev.value for dev in Device)
        + " (mps = Metal on macOS)",
    )
    parser.add_argument(
        "-c",
        "--compute-type",
        default=None,
        help="Compute type: " + ", ".join(prec.value for prec in Precision),
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-b",
        "--benchmark",
        action="store_true",
        help="Run the full benchmark sweep (CPU vs Metal, model sizes, compute types)",
    )
    mode.add_argument(
        "--medium-bench",
        action="store_true",
        help="Compare the base and medium models on the selected device",
    )
    parser.add_argument(
        "--backend", default=None, help="Model backend (default: faster_whisper)"
    )
    parser.add_argument(
        "--language", default=None, help="Language hint (omit for auto-detect)"
    )
    parser.add_argument("--beam-size", type=int, default=None, help="Beam size")
    parser.add_argument(
        "--vad-filter", dest="vad_filter", action="store_true", help="Enable VAD filter"
    )
    parser.add_argument(
        "--no-vad-filter",
        dest="vad_filter",
        action="store_false",
        help="Disable VAD filter (overrides config)",
    )
    parser.add_argument(
        "--word-timestamps",
        dest="word_timestamps",
        action="store_true",
        help="Request word-level timestamps",
    )
    parser.add_argument(
        "--no-word-timestamps",
        dest="word_timestamps",
        action="store_false",
        help="Disable word-level timestamps (overrides config)",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Maximum concurrent transcriptions",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for each backend call (<=0 disables). "
        "Timed-out calls keep running detached.",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Rendering used when writing to stdout",
    )
    parser.add_argument(
        "--fail-on-error",
        dest="fail_on_error",
        action="store_true",
        help="Exit non-zero when any file fails to transcribe",
    )
    parser.set_defaults(vad_filter=None, word_timestamps=None, fail_on_error=None)
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO); overrides config",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path; overrides config",
    )
    return parser.parse_args(argv)


def configure_from_args(args: argparse.Namespace) -> AppConfig:
    config_arg_path = Path(args.config).expanduser() if args.config else None
    effective_config_path = config_arg_path or DEFAULT_CONFIG_PATH
    config = load_config(effective_config_path)

    if args.model is not None:
        config.model = args.model
    if args.device is not None:
        config.device = args.device
    if args.compute_type is not None:
        config.compute_type = args.compute_type
    if args.backend is not None:
        config.model_backend = args.backend
    if args.language is not None:
        config.language = args.language
    if args.beam_size is not None:
        config.beam_size = args.beam_size
    if args.vad_filter is not None:
        config.vad_filter = args.vad_filter
    if args.word_timestamps is not None:
        config.word_timestamps = args.word_timestamps
    if args.max_workers is not None:
        config.max_workers = args.max_workers
    if args.timeout is not None:
        config.job_timeout_sec = args.timeout
    if args.output_format is not None:
        config.output_format = args.output_format
    if args.fail_on_error is not None:
        config.fail_on_error = args.fail_on_error
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_file is not None:
        config.log_file = args.log_file

    check_logging_options(config)
    configure_logging(config.log_level, config.log_file, config.faster_whisper_log_level)
    if effective_config_path.exists():
        LOGGER.info("Loaded config from %s", effective_config_path)
    else:
        LOGGER.debug(
            "Config file not found at %s; using defaults/CLI overrides",
            effective_config_path,
        )
    return config


def check_logging_options(config: AppConfig) -> None:
    for name in ("log_level", "faster_whisper_log_level", "log_file"):
        value = getattr(config, name)
        if value is not None and not isinstance(value, str):
            raise ConfigurationError(
                ErrorCode.INVALID_OPTION,
                f"{name} must be a string, got {value!r}",
                field=name,
            )


def decode_options(config: AppConfig) -> Dict[str, Any]:
    return {
        "vad_filter": config.vad_filter,
        "word_timestamps": config.word_timestamps,
        "beam_size": config.beam_size,
        "language": config.language,
    }


def build_transcription_config(config: AppConfig) -> TranscriptionConfig:
    """Validate the selected model/device/precision; no side effects."""
    return validate(
        config.model,
        config.device,
        config.resolved_compute_type(),
        **decode_options(config),
    )


def check_runtime_options(config: AppConfig) -> None:
    for name in ("max_workers", "benchmark_max_workers"):
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigurationError(
                ErrorCode.INVALID_OPTION,
                f"{name} must be a positive integer, got {value!r}",
                field=name,
            )
    if config.output_format not in OUTPUT_FORMATS:
        raise ConfigurationError(
            ErrorCode.INVALID_OPTION,
            f"output_format must be one of {', '.join(OUTPUT_FORMATS)}, "
            f"got {config.output_format!r}",
            field="output_format",
        )


def resolve_backend(name: str) -> BackendFactory:
    try:
        return get_backend(name)
    except ValueError as exc:
        raise ConfigurationError(
            ErrorCode.INVALID_OPTION, str(exc), field="model_backend"
        ) from exc
    except RuntimeError as exc:
        raise BackendError(ErrorCode.EXTERNAL_FAILURE, str(exc)) from exc


def build_service(config: AppConfig) -> TranscriptionService:
    adapter = BackendAdapter(resolve_backend(config.model_backend))
    return TranscriptionService(adapter, timeout_sec=config.job_timeout_sec)


def _exit_code_for_failures(config: AppConfig, failed: int) -> int:
    if failed and config.fail_on_error:
        LOGGER.error("%d job(s) failed", failed)
        return EXIT_JOB_FAILURES
    return 0


def run_transcription(args: argparse.Namespace, config: AppConfig) -> int:
    transcription_config = build_transcription_config(config)
    check_runtime_options(config)
    LOGGER.info(
        "Model: %s, Device: %s, Compute Type: %s",
        transcription_config.model_size.value,
        transcription_config.device.value,
        transcription_config.precision.value,
    )

    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        raise InputError(
            ErrorCode.INPUT_NOT_FOUND,
            f"input path does not exist: {input_path}",
            input_path=input_path,
        )

    service = build_service(config)
    scheduler = BatchScheduler(service, max_workers=config.max_workers)
    outcomes = scheduler.run(transcription_config, input_path)

    if args.output:
        write_batch_outputs(
            Path(args.output).expanduser(),
            transcription_config,
            outcomes,
            input_is_dir=input_path.is_dir(),
        )
    else:
        emit(_render_outcomes(config, transcription_config, outcomes, input_path), sys.stdout)

    failed = sum(1 for outcome in outcomes if not outcome.ok)
    return _exit_code_for_failures(config, failed)


def _render_outcomes(
    config: AppConfig,
    transcription_config: TranscriptionConfig,
    outcomes: List[JobOutcome],
    input_path: Path,
) -> str:
    single = len(outcomes) == 1 and not input_path.is_dir()
    if config.output_format == "text":
        if single and outcomes[0].result is not None:
            return render_transcription_text(outcomes[0].result)
        return render_batch_text(outcomes)
    if single and outcomes[0].result is not None:
        return dumps(transcription_to_dict(outcomes[0].result))
    return dumps(batch_report_to_dict(transcription_config, outcomes))


def _benchmark_inputs(input_path: Path) -> List[AudioInput]:
    if input_path.is_dir():
        return discover_audio_inputs(input_path)
    return [resolve_audio_input(input_path)]


def run_benchmark(args: argparse.Namespace, config: AppConfig) -> int:
    # Rejects bad -m/-d/-c values even though the sweep picks its own points.
    build_transcription_config(config)
    if args.medium_bench:
        sweep = BenchmarkSweep.medium_sweep(
            config.device, config.resolved_compute_type(), **decode_options(config)
        )
    else:
        sweep = BenchmarkSweep.full_sweep(**decode_options(config))
    check_runtime_options(config)
    inputs = _benchmark_inputs(Path(args.input).expanduser())

    service = build_service(config)
    engine = BenchmarkEngine(
        service,
        max_workers=config.benchmark_max_workers,
        warmup=config.benchmark_warmup,
    )
    report = engine.run(sweep, inputs)

    if args.output:
        write_json(Path(args.output).expanduser(), benchmark_report_to_dict(report))
        emit(render_benchmark_table(report), sys.stdout)
    elif config.output_format == "text":
        emit(render_benchmark_table(report), sys.stdout)
    else:
        emit(dumps(benchmark_report_to_dict(report)), sys.stdout)

    return _exit_code_for_failures(config, len(report.failed_runs))


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = configure_from_args(args)
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return exc.exit_code
    try:
        if args.benchmark or args.medium_bench:
            return run_benchmark(args, config)
        return run_transcription(args, config)
    except TranscriptionError as exc:
        LOGGER.error("%s", exc)
        return exc.exit_code
    finally:
        shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
