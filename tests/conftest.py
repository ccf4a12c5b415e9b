"""Shared fakes so no test ever loads a real Whisper model."""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pytest

from stt_batch.utils import logger as logger_module

BackendKey = Tuple[str, str, str]
Responder = Callable[[BackendKey, str, Dict[str, Any]], Any]


def _make_response(
    duration: float = 10.0,
    texts: Sequence[str] = ("hello", "world"),
    language: str = "en",
    language_probability: float = 0.98,
    device: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a well-formed backend response with evenly spaced segments."""
    step = duration / max(len(texts), 1)
    segments = [
        {
            "start": index * step,
            "end": (index + 1) * step,
            "text": f" {text} ",
            "no_speech_prob": 0.01,
        }
        for index, text in enumerate(texts)
    ]
    response: Dict[str, Any] = {
        "language": language,
        "language_probability": language_probability,
        "duration": duration,
        "segments": segments,
    }
    if device is not None:
        response["device"] = device
    return response


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self._lock = threading.Lock()

    def advance(self, seconds: float) -> None:
        with self._lock:
            self.now += seconds

    def __call__(self) -> float:
        with self._lock:
            return self.now


class FakeBackendFactory:
    """Backend factory that records construction and every transcribe call."""

    def __init__(
        self,
        responder: Optional[Responder] = None,
        on_create: Optional[Callable[[BackendKey], None]] = None,
    ) -> None:
        self.responder = responder or (lambda key, path, options: _make_response())
        self.on_create = on_create
        self.created: List[BackendKey] = []
        self.calls: List[Tuple[BackendKey, str, Dict[str, Any]]] = []
        self._lock = threading.Lock()

    def __call__(self, model_size: str, device: str, compute_type: str) -> "FakeBackend":
        key = (model_size, device, compute_type)
        if self.on_create is not None:
            self.on_create(key)
        with self._lock:
            self.created.append(key)
        return FakeBackend(self, key)

    @property
    def call_paths(self) -> List[str]:
        with self._lock:
            return [path for _key, path, _options in self.calls]


class FakeBackend:
    """Test helper FakeBackend."""

    def __init__(self, factory: FakeBackendFactory, key: BackendKey) -> None:
        self.factory = factory
        self.key = key

    def transcribe(self, audio_path: str, options: Dict[str, Any]) -> Any:
        with self.factory._lock:
            self.factory.calls.append((self.key, audio_path, dict(options)))
        return self.factory.responder(self.key, audio_path, options)


def _write_audio(directory: Path, *names: str) -> List[Path]:
    """Create placeholder files; fake backends never decode them."""
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for name in names:
        path = directory / name
        path.write_bytes(b"RIFF0000WAVE")
        paths.append(path)
    return paths


@pytest.fixture(name="make_response")
def make_response_fixture():
    """Factory for well-formed backend responses."""
    return _make_response


@pytest.fixture(name="write_audio")
def write_audio_fixture():
    """Factory for placeholder audio files."""
    return _write_audio


@pytest.fixture
def backend_factory():
    """The recording backend factory class, for tests that need a responder."""
    return FakeBackendFactory


@pytest.fixture
def fake_factory() -> FakeBackendFactory:
    return FakeBackendFactory()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def restore_root_logging():
    """Undo configure_logging's changes to the root logger after a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    fw_level = logging.getLogger("faster_whisper").level
    yield
    logger_module.shutdown_logging()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("faster_whisper").setLevel(fw_level)
