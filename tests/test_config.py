"""
Tests for config
"""
from pathlib import Path

import pytest

from label_toolkit.config import DEFAULT_AI_BASE_URL, ToolkitConfig, parse_format
from label_toolkit.crop.cropper import OutputFormat
from label_toolkit.presets.store import PRESETS_KEY


def test_defaults():
    config = ToolkitConfig()

    assert config.render_scale == 2.0
    assert config.single_format is OutputFormat.PNG
    assert config.batch_format is OutputFormat.PNG
    assert config.jpeg_quality == 80
    assert config.presets_key == PRESETS_KEY
    assert config.ai_base_url == DEFAULT_AI_BASE_URL
    assert not config.detection_enabled


@pytest.mark.parametrize(
    "kwargs",
    [
        {"render_scale": 0},
        {"render_scale": 9},
        {"jpeg_quality": 0},
        {"jpeg_quality": 101},
        {"detection_timeout_s": 0},
        {"presets_key": ""},
    ],
)
def test_validation(kwargs):
    with pytest.raises(ValueError):
        ToolkitConfig(**kwargs)


@pytest.mark.parametrize(
    "value,expected",
    [("png", OutputFormat.PNG), ("JPEG", OutputFormat.JPEG), (" jpg ", OutputFormat.JPEG)],
)
def test_parse_format(value, expected):
    assert parse_format(value) is expected


def test_parse_format_unknown():
    with pytest.raises(ValueError):
        parse_format("gif")


def test_from_env():
    env = {
        "LABEL_TOOLKIT_SCALE": "3",
        "LABEL_TOOLKIT_FORMAT": "jpg",
        "LABEL_TOOLKIT_OUTPUT_DIR": "/data/out",
        "LABEL_TOOLKIT_SETTINGS": "/data/settings.json",
        "AI_API_KEY": "secret",
        "AI_MODEL": "vision-test",
        "AI_TIMEOUT": "12.5",
    }

    config = ToolkitConfig.from_env(env)

    assert config.render_scale == 3.0
    assert config.single_format is OutputFormat.JPEG
    assert config.batch_format is OutputFormat.PNG
    assert config.output_dir == Path("/data/out")
    assert config.settings_path == Path("/data/settings.json")
    assert config.ai_model == "vision-test"
    assert config.detection_timeout_s == 12.5
    assert config.detection_enabled


def test_from_env_empty_key_disables_detection():
    config = ToolkitConfig.from_env({"AI_API_KEY": ""})

    assert not config.detection_enabled


def test_overrides_win_over_env():
    config = ToolkitConfig.from_env(
        {"LABEL_TOOLKIT_SCALE": "3"}, render_scale=1.5, batch_format=None
    )

    assert config.render_scale == 1.5
    assert config.batch_format is OutputFormat.PNG


def test_from_env_invalid_value():
    with pytest.raises(ValueError):
        ToolkitConfig.from_env({"LABEL_TOOLKIT_SCALE": "big"})
