"""Value types shared by the transcription, batch and benchmark layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class AudioFormat(str, Enum):
    """Container formats accepted for scheduling."""

    WAV = "wav"
    MP3 = "mp3"
    FLAC = "flac"
    M4A = "m4a"
    OGG = "ogg"

    @classmethod
    def from_path(cls, path: Path) -> Optional["AudioFormat"]:
        """Detect the format from the file extension (case-insensitive)."""
        suffix = path.suffix.lower().lstrip(".")
        try:
            return cls(suffix)
        except ValueError:
            return None


@dataclass(frozen=True)
class AudioInput:
    """A file scheduled for transcription.

    ``audio_format`` is None when the extension is not on the allow-list;
    such inputs are rejected by the transcription service before any
    backend call.
    """

    path: Path
    audio_format: Optional[AudioFormat]

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class Segment:
    """Timestamped span of transcribed text."""

    start: float
    end: float
    text: str
    no_speech_prob: float


@dataclass(frozen=True)
class TranscriptionResult:
    """Outcome of one successful backend call for one audio input."""

    language: str
    language_probability: float
    duration: float
    segments: Tuple[Segment, ...]
    full_text: str
    transcription_time: float
    real_time_factor: float
    reported_device: Optional[str] = None

    @property
    def segment_count(self) -> int:
        return len(self.segments)


def real_time_factor(duration: float, transcription_time: float) -> float:
    """Audio seconds processed per wall-clock second (0.0 if time is not positive)."""
    if transcription_time > 0:
        return duration / transcription_time
    return 0.0


def join_segment_text(segments: Tuple[Segment, ...]) -> str:
    return " ".join(seg.text for seg in segments if seg.text)


__all__ = [
    "AudioFormat",
    "AudioInput",
    "Segment",
    "TranscriptionResult",
    "join_segment_text",
    "real_time_factor",
]
