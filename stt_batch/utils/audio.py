from pathlib import Path
from typing import List, Union

from stt_batch.errors import ErrorCode, InputError
from stt_batch.types import AudioFormat, AudioInput

AUDIO_EXTENSIONS = frozenset(f".{fmt.value}" for fmt in AudioFormat)


def is_audio_file(path: Path) -> bool:
    """Return True for regular files with an allow-listed extension."""
    return path.is_file() and path.suffix.lower() in AUDIO_EXTENSIONS


def check_audio_input(audio: AudioInput) -> None:
    """Raise InputError unless the input exists and has an allowed format."""
    if not audio.path.is_file():
        raise InputError(
            ErrorCode.INPUT_NOT_FOUND,
            f"file does not exist: {audio.path}",
            input_path=audio.path,
        )
    if audio.audio_format is None or AudioFormat.from_path(audio.path) is None:
        suffix = audio.path.suffix.lower() or "no extension"
        raise InputError(
            ErrorCode.UNSUPPORTED_FORMAT,
            f"unsupported audio format: {suffix}",
            input_path=audio.path,
        )


def resolve_audio_input(path: Union[str, Path]) -> AudioInput:
    """Resolve a path into a validated AudioInput or raise InputError."""
    candidate = Path(path).expanduser()
    audio = AudioInput(candidate.resolve(), AudioFormat.from_path(candidate))
    check_audio_input(audio)
    return audio


def discover_audio_inputs(directory: Union[str, Path]) -> List[AudioInput]:
    """Scan a directory (non-recursive) for allow-listed audio files.

    Results are sorted by file name so discovery order is stable across
    platforms and filesystems.
    """
    root = Path(directory).expanduser()
    if not root.is_dir():
        raise InputError(
            ErrorCode.INPUT_NOT_FOUND,
            f"directory does not exist: {root}",
            input_path=root,
        )
    matches = sorted(
        (entry for entry in root.iterdir() if is_audio_file(entry)),
        key=lambda entry: entry.name,
    )
    if not matches:
        raise InputError(
            ErrorCode.NO_AUDIO_FILES,
            f"no audio files found in directory: {root}",
            input_path=root,
        )
    return [AudioInput(entry.resolve(), AudioFormat.from_path(entry)) for entry in matches]


__all__ = [
    "AUDIO_EXTENSIONS",
    "check_audio_input",
    "discover_audio_inputs",
    "is_audio_file",
    "resolve_audio_input",
]
