"""Config mapping contract tests for YAML/CLI -> AppConfig."""

from dataclasses import fields

import pytest
import yaml

from stt_batch.config.default import MODEL_SECTION_MAP, RUNTIME_SECTION_MAP
from stt_batch.config.loader import AppConfig, load_config
from stt_batch.errors import ConfigurationError, ErrorCode
from stt_batch.main import configure_from_args, parse_args


def test_section_maps_target_valid_app_config_fields() -> None:
    """All section-map targets must resolve to real AppConfig fields."""
    field_names = {f.name for f in fields(AppConfig)}

    for _section, mapping in RUNTIME_SECTION_MAP.items():
        for _yaml_key, target_field in mapping.items():
            assert target_field in field_names

    for _yaml_key, target_field in MODEL_SECTION_MAP.items():
        assert target_field in field_names


def test_missing_config_file_yields_defaults(tmp_path) -> None:
    """A missing YAML file falls back to built-in defaults."""
    loaded = load_config(tmp_path / "absent.yaml")
    assert loaded == AppConfig()
    assert loaded.model == "base"
    assert loaded.device == "auto"
    assert loaded.compute_type is None


def test_yaml_and_cli_overrides_map_into_app_config(
    tmp_path, monkeypatch, restore_root_logging
) -> None:
    """YAML values should load, and CLI flags should override selected fields."""
    config_yaml = tmp_path / "stt_batch.yaml"
    config_yaml.write_text(
        yaml.safe_dump(
            {
                "model": {
                    "name": "small",
                    "device": "cpu",
                    "compute_type": "float32",
                    "beam_size": 2,
                    "vad_filter": False,
                    "unknown_key": "ignored",
                },
                "runtime": {"max_workers": 4, "job_timeout_sec": 30.0},
                "benchmark": {"max_workers": 2, "warmup": False},
                "logging": {"level": "WARNING", "faster_whisper_level": "ERROR"},
                "fail_on_error": True,
            }
        ),
        encoding="utf-8",
    )

    loaded = load_config(config_yaml)
    assert loaded.model == "small"
    assert loaded.device == "cpu"
    assert loaded.compute_type == "float32"
    assert loaded.beam_size == 2
    assert loaded.vad_filter is False
    assert loaded.max_workers == 4
    assert loaded.job_timeout_sec == 30.0
    assert loaded.benchmark_max_workers == 2
    assert loaded.benchmark_warmup is False
    assert loaded.log_level == "WARNING"
    assert loaded.faster_whisper_log_level == "ERROR"
    assert loaded.fail_on_error is True
    assert not hasattr(loaded, "unknown_key")

    monkeypatch.setattr(
        "sys.argv",
        [
            "stt_batch.main",
            "--input",
            str(tmp_path),
            "--config",
            str(config_yaml),
            "--model",
            "tiny",
            "--compute-type",
            "int8",
            "--max-workers",
            "1",
            "--timeout",
            "12.5",
            "--vad-filter",
            "--no-word-timestamps",
            "--format",
            "text",
        ],
    )
    args = parse_args()
    configured = configure_from_args(args)

    assert configured.model == "tiny"
    assert configured.compute_type == "int8"
    assert configured.max_workers == 1
    assert configured.job_timeout_sec == 12.5
    assert configured.vad_filter is True
    assert configured.word_timestamps is False
    assert configured.output_format == "text"

    # Non-overridden YAML fields should remain intact.
    assert configured.device == "cpu"
    assert configured.beam_size == 2
    assert configured.benchmark_warmup is False
    assert configured.fail_on_error is True


def test_boolean_flags_leave_yaml_values_when_absent(
    tmp_path, restore_root_logging
) -> None:
    """Absent boolean flags must not clobber YAML values."""
    config_yaml = tmp_path / "stt_batch.yaml"
    config_yaml.write_text(
        yaml.safe_dump({"model": {"word_timestamps": False}}), encoding="utf-8"
    )
    args = parse_args(["-i", str(tmp_path), "--config", str(config_yaml)])
    configured = configure_from_args(args)
    assert configured.word_timestamps is False
    assert configured.vad_filter is True
    assert configured.fail_on_error is False


def test_unparsable_yaml_is_a_configuration_error(tmp_path) -> None:
    """Malformed YAML surfaces as INVALID_OPTION rather than a parser error."""
    config_yaml = tmp_path / "stt_batch.yaml"
    config_yaml.write_text("model:\n  name: [base\n", encoding="utf-8")
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(config_yaml)
    assert exc_info.value.code is ErrorCode.INVALID_OPTION
    assert exc_info.value.field == "config"
    assert exc_info.value.exit_code == 2


def test_non_string_log_level_is_rejected(tmp_path, restore_root_logging) -> None:
    """A numeric logging level is reported against its field."""
    config_yaml = tmp_path / "stt_batch.yaml"
    config_yaml.write_text(yaml.safe_dump({"logging": {"level": 10}}), encoding="utf-8")
    args = parse_args(["-i", str(tmp_path), "--config", str(config_yaml)])
    with pytest.raises(ConfigurationError) as exc_info:
        configure_from_args(args)
    assert exc_info.value.field == "log_level"
