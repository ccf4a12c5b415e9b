"""Backend registry for model implementations."""

from typing import Type

from stt_batch.model.backends.base import BackendFactory, BackendResponse, ModelBackend


def get_backend(name: str) -> Type[ModelBackend]:
    """Resolve a backend implementation by name."""
    normalized = (name or "faster_whisper").lower()
    if normalized in {"faster_whisper", "faster-whisper", "fw"}:
        try:
            from stt_batch.model.backends.faster_whisper import FasterWhisperBackend
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError(
                "faster_whisper backend requires the faster-whisper package. "
                "Install with: pip install faster-whisper"
            ) from exc

        return FasterWhisperBackend
    raise ValueError(f"Unknown model backend: {name}")


__all__ = ["BackendFactory", "BackendResponse", "ModelBackend", "get_backend"]
