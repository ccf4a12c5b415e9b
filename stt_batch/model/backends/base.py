"""Backend interface for Whisper model implementations."""

from typing import Any, Dict, Mapping, Protocol

# Loosely typed on purpose: the adapter validates every field it reads.
BackendResponse = Mapping[str, Any]


class ModelBackend(Protocol):
    """Backend interface for model implementations.

    ``transcribe`` returns a mapping with ``language``,
    ``language_probability``, ``duration``, ``segments`` (a list of mappings
    with ``start``, ``end``, ``text`` and ``no_speech_prob``) and optionally
    ``device``. Failures are raised as exceptions.
    """

    def __init__(self, model_size: str, device: str, compute_type: str) -> None:
        """Initialize backend with model configuration."""
        raise NotImplementedError

    def transcribe(self, audio_path: str, options: Dict[str, Any]) -> BackendResponse:
        """Transcribe an audio file and return the raw response mapping."""
        raise NotImplementedError


class BackendFactory(Protocol):
    """Callable that builds a model backend."""

    def __call__(self, model_size: str, device: str, compute_type: str) -> ModelBackend:
        """Create a backend instance."""
        raise NotImplementedError
