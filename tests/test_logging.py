import logging
from pathlib import Path

from stt_batch.utils import logger as logger_module
from stt_batch.utils.logger import (
    LOGGER,
    TRACE_LEVEL_NUM,
    configure_logging,
    shutdown_logging,
)


def test_logging_writes_to_file(tmp_path: Path, restore_root_logging) -> None:
    """Test records reach the optional file sink with the package logger name."""
    log_path = tmp_path / "logs" / "batch.log"
    configure_logging("INFO", str(log_path))
    try:
        LOGGER.info("log-test")
        LOGGER.debug("hidden-debug")
    finally:
        shutdown_logging()

    content = log_path.read_text(encoding="utf-8")
    assert "[INFO] stt_batch: log-test" in content
    assert "hidden-debug" not in content
    assert logger_module.QUEUE_LISTENER is None


def test_trace_level_is_available(tmp_path: Path, restore_root_logging) -> None:
    """Test the TRACE level is registered and routed to sinks."""
    log_path = tmp_path / "trace.log"
    configure_logging("TRACE", str(log_path))
    try:
        assert logging.getLogger().level == TRACE_LEVEL_NUM
        LOGGER.trace("trace-line")  # type: ignore[attr-defined]
    finally:
        shutdown_logging()

    assert "[TRACE] stt_batch: trace-line" in log_path.read_text(encoding="utf-8")


def test_faster_whisper_logger_level_is_configurable(restore_root_logging) -> None:
    """Test the faster-whisper logger level is set independently."""
    configure_logging("DEBUG", None, faster_whisper_level="ERROR")
    try:
        assert logging.getLogger("faster_whisper").level == logging.ERROR
    finally:
        shutdown_logging()


def test_logs_do_not_go_to_stdout(capsys, restore_root_logging) -> None:
    """Test log records go to stderr so stdout stays machine-readable."""
    configure_logging("INFO", None)
    try:
        LOGGER.info("stderr-only")
    finally:
        shutdown_logging()

    captured = capsys.readouterr()
    assert "stderr-only" not in captured.out
    assert "stderr-only" in captured.err


def test_unknown_level_name_falls_back_to_info(restore_root_logging) -> None:
    """Test an unrecognised level name configures INFO."""
    configure_logging(" nonsense ", None)
    try:
        assert logging.getLogger().level == logging.INFO
    finally:
        shutdown_logging()
