import itertools

import pytest

from stt_batch.config.loader import AppConfig
from stt_batch.config.transcription import (
    COMPATIBILITY_TABLE,
    Device,
    ModelSize,
    Precision,
    TranscriptionConfig,
    allowed_precisions,
    is_compatible,
    validate,
)
from stt_batch.errors import ConfigurationError, ErrorCode


@pytest.mark.parametrize(
    "device,precision", list(itertools.product(Device, Precision))
)
def test_validate_follows_compatibility_table(device, precision):
    """Every (device, precision) pair is accepted iff the table allows it."""
    if precision in COMPATIBILITY_TABLE[device]:
        config = validate(ModelSize.BASE, device, precision)
        assert config.device is device
        assert config.precision is precision
    else:
        with pytest.raises(ConfigurationError) as exc_info:
            validate(ModelSize.BASE, device, precision)
        assert exc_info.value.code is ErrorCode.INCOMPATIBLE_PRECISION
        assert exc_info.value.field == "precision"


def test_known_incompatible_pairs():
    """Test cpu rejects float16 and mps rejects int8."""
    assert not is_compatible(Device.CPU, Precision.FLOAT16)
    assert not is_compatible(Device.MPS, Precision.INT8)
    assert allowed_precisions(Device.CPU) == [Precision.FLOAT32, Precision.INT8]


def test_validate_parses_strings_case_insensitively():
    """Test names are trimmed and matched without regard to case."""
    config = validate("Medium", " CPU ", "INT8")
    assert config == TranscriptionConfig(ModelSize.MEDIUM, Device.CPU, Precision.INT8)
    assert config.label == "medium/cpu/int8"
    assert config.backend_key() == ("medium", "cpu", "int8")


def test_unknown_variants_are_reported_in_field_order():
    """Model size is checked before device, device before precision."""
    with pytest.raises(ConfigurationError) as exc_info:
        validate("huge", "gpu", "float64")
    assert exc_info.value.code is ErrorCode.UNKNOWN_VARIANT
    assert exc_info.value.field == "model_size"

    with pytest.raises(ConfigurationError) as exc_info:
        validate("base", "gpu", "float64")
    assert exc_info.value.field == "device"

    with pytest.raises(ConfigurationError) as exc_info:
        validate("base", "cpu", "float64")
    assert exc_info.value.field == "precision"
    assert "float64" in str(exc_info.value)


def test_unknown_variant_wins_over_incompatible_pair():
    """Test an unknown name is reported before any pair check."""
    with pytest.raises(ConfigurationError) as exc_info:
        validate("huge", "cpu", "float16")
    assert exc_info.value.code is ErrorCode.UNKNOWN_VARIANT


@pytest.mark.parametrize("beam_size", [0, -1, True, 2.5])
def test_validate_rejects_bad_beam_size(beam_size):
    """Test beam sizes below one are rejected."""
    with pytest.raises(ConfigurationError) as exc_info:
        validate("base", "cpu", "int8", beam_size=beam_size)
    assert exc_info.value.code is ErrorCode.INVALID_OPTION
    assert exc_info.value.exit_code == 2


def test_decode_options_are_carried_on_the_config():
    """Test decode options travel on the validated config."""
    config = validate(
        "tiny", "auto", "float16", vad_filter=False, word_timestamps=False,
        beam_size=3, language="ko",
    )
    assert config.vad_filter is False
    assert config.word_timestamps is False
    assert config.beam_size == 3
    assert config.language == "ko"
    assert validate("tiny", "auto", "float16", language="").language is None


def test_configs_are_frozen_and_hashable():
    """Test equal configs compare and hash equal and cannot be mutated."""
    first = validate("base", "mps", "float16")
    second = validate(ModelSize.BASE, Device.MPS, Precision.FLOAT16)
    assert first == second
    assert len({first, second}) == 1
    with pytest.raises(AttributeError):
        first.device = Device.CPU  # type: ignore[misc]


def test_model_size_ordinals_increase_with_size():
    """Test model sizes order from smallest to largest."""
    ordinals = [size.ordinal for size in ModelSize]
    assert ordinals == sorted(ordinals)
    assert ModelSize.TINY.ordinal < ModelSize.MEDIUM.ordinal < ModelSize.LARGE_V3.ordinal


def test_resolved_compute_type_depends_on_device():
    """Test cpu defaults to int8 and other devices to float16."""
    assert AppConfig().resolved_compute_type() == "float16"
    assert AppConfig(device="cpu").resolved_compute_type() == "int8"
    assert AppConfig(device="CPU").resolved_compute_type() == "int8"
    assert AppConfig(device="cpu", compute_type="float32").resolved_compute_type() == "float32"
