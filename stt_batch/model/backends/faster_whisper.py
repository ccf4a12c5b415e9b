"""faster-whisper backend implementation."""

import logging
from typing import Any, Dict, List

from faster_whisper import WhisperModel

from stt_batch.model.backends.base import BackendResponse, ModelBackend

LOGGER = logging.getLogger("stt_batch.model_backend")

# faster-whisper picks the accelerator itself; only cpu is passed explicitly.
DEVICE_MAP = {
    "auto": "auto",
    "cpu": "cpu",
    "cuda": "auto",
    "mps": "auto",
}


def backend_device(device: str) -> str:
    """Translate a configured device name into faster-whisper's spelling."""
    return DEVICE_MAP.get(device, "auto")


class FasterWhisperBackend(ModelBackend):
    """Backend wrapper for faster-whisper."""

    def __init__(self, model_size: str, device: str, compute_type: str) -> None:
        self.device = device
        self.compute_type = compute_type
        self.model = WhisperModel(
            model_size, device=backend_device(device), compute_type=compute_type
        )
        LOGGER.info(
            "faster_whisper loaded model=%s device=%s (requested %s) compute_type=%s",
            model_size,
            backend_device(device),
            device,
            compute_type,
        )

    def transcribe(self, audio_path: str, options: Dict[str, Any]) -> BackendResponse:
        opts = {key: value for key, value in options.items() if value is not None}
        segments_iter, info = self.model.transcribe(audio_path, **opts)
        # Decoding is lazy; drain the generator so the whole pass happens here.
        segments: List[Dict[str, Any]] = [
            {
                "start": getattr(seg, "start", None),
                "end": getattr(seg, "end", None),
                "text": getattr(seg, "text", None),
                "no_speech_prob": getattr(seg, "no_speech_prob", None),
            }
            for seg in segments_iter
        ]
        return {
            "language": getattr(info, "language", None),
            "language_probability": getattr(info, "language_probability", None),
            "duration": getattr(info, "duration", None),
            "segments": segments,
            "device": self._resolved_device(),
        }

    def _resolved_device(self) -> Any:
        inner = getattr(self.model, "model", None)
        return getattr(inner, "device", None)
