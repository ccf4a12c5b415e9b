"""Default values and helpers for model-related configuration."""

DEFAULT_MODEL_BACKEND = "faster_whisper"
DEFAULT_MODEL_NAME = "base"
DEFAULT_DEVICE = "auto"
DEFAULT_COMPUTE_TYPE = "float16"
DEFAULT_CPU_COMPUTE_TYPE = "int8"
DEFAULT_LANGUAGE = None
DEFAULT_BEAM_SIZE = 5
DEFAULT_VAD_FILTER = True
DEFAULT_WORD_TIMESTAMPS = True

MODEL_SECTION_MAP = {
    "name": "model",
    "backend": "model_backend",
    "device": "device",
    "compute_type": "compute_type",
    "language": "language",
    "beam_size": "beam_size",
    "vad_filter": "vad_filter",
    "word_timestamps": "word_timestamps",
}


__all__ = [
    "DEFAULT_MODEL_BACKEND",
    "DEFAULT_MODEL_NAME",
    "DEFAULT_DEVICE",
    "DEFAULT_COMPUTE_TYPE",
    "DEFAULT_CPU_COMPUTE_TYPE",
    "DEFAULT_LANGUAGE",
    "DEFAULT_BEAM_SIZE",
    "DEFAULT_VAD_FILTER",
    "DEFAULT_WORD_TIMESTAMPS",
    "MODEL_SECTION_MAP",
]
