import logging
import logging.handlers
import queue
from pathlib import Path
from typing import List, Optional

# Custom TRACE level below DEBUG.
TRACE_LEVEL_NUM = 5
logging.addLevelName(TRACE_LEVEL_NUM, "TRACE")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FASTER_WHISPER_LOGGER = "faster_whisper"


def trace(self: logging.Logger, message: str, *args, **kwargs) -> None:
    """Logger helper for TRACE level."""
    if self.isEnabledFor(TRACE_LEVEL_NUM):
        self._log(TRACE_LEVEL_NUM, message, args, **kwargs)


logging.Logger.trace = trace  # type: ignore

LOG_QUEUE: "queue.Queue[logging.LogRecord]" = queue.Queue()
QUEUE_LISTENER: Optional[logging.handlers.QueueListener] = None


def _resolve_level(name: str) -> int:
    """Map a level name to its number; unknown names fall back to INFO."""
    normalized = name.strip().upper()
    if normalized == "TRACE":
        return TRACE_LEVEL_NUM
    value = logging.getLevelName(normalized)
    return value if isinstance(value, int) else logging.INFO


def _sink_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    # stderr always; stdout is reserved for the rendered report.
    sinks: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sinks.append(logging.FileHandler(log_path, encoding="utf-8"))
    formatter = logging.Formatter(LOG_FORMAT)
    for sink in sinks:
        sink.setFormatter(formatter)
    return sinks


def configure_logging(
    level: str,
    log_file: Optional[str],
    faster_whisper_level: Optional[str] = None,
) -> None:
    """Route every logger through one queue drained by a listener thread.

    Worker threads only enqueue records, so a slow file sink never stalls
    a transcription job. ``faster_whisper_level`` tunes the library's own
    logger independently of ours.
    """
    global QUEUE_LISTENER
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(_resolve_level(level))
    root_logger.addHandler(logging.handlers.QueueHandler(LOG_QUEUE))

    if faster_whisper_level:
        logging.getLogger(FASTER_WHISPER_LOGGER).setLevel(_resolve_level(faster_whisper_level))

    if QUEUE_LISTENER:
        QUEUE_LISTENER.stop()
    QUEUE_LISTENER = logging.handlers.QueueListener(
        LOG_QUEUE, *_sink_handlers(log_file), respect_handler_level=True
    )
    QUEUE_LISTENER.start()


def shutdown_logging() -> None:
    """Flush queued records and stop the listener thread."""
    global QUEUE_LISTENER
    if QUEUE_LISTENER:
        QUEUE_LISTENER.stop()
        for handler in QUEUE_LISTENER.handlers:
            handler.close()
        QUEUE_LISTENER = None


LOGGER = logging.getLogger("stt_batch")

__all__ = ["configure_logging", "shutdown_logging", "LOGGER", "TRACE_LEVEL_NUM"]
