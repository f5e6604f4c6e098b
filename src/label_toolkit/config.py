"""
Module: config

Purpose:
    Configuration dataclass for the toolkit. Immutable configuration
    with validation on construction, optionally read from environment
    variables.

Key Classes:
    - ToolkitConfig: Render, output, preset and detection settings

Environment:
    - LABEL_TOOLKIT_SCALE: Render scale (default 2.0)
    - LABEL_TOOLKIT_FORMAT / LABEL_TOOLKIT_BATCH_FORMAT: png or jpeg
    - LABEL_TOOLKIT_OUTPUT_DIR: Export folder
    - LABEL_TOOLKIT_SETTINGS: Key-value store file for presets
    - AI_API_KEY, AI_BASE_URL, AI_MODEL, AI_TIMEOUT: Detection service

Used By:
    - session.state: LabelSession
    - cli: Command wiring
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from label_toolkit.crop.cropper import DEFAULT_JPEG_QUALITY, OutputFormat
from label_toolkit.detection.bridge import DEFAULT_MODEL, DEFAULT_TIMEOUT_S
from label_toolkit.presets.store import PRESETS_KEY
from label_toolkit.render.rasterizer import DEFAULT_RENDER_SCALE
from label_toolkit.utils.paths import get_output_dir, get_settings_path

# Gemini's OpenAI-compatible endpoint
DEFAULT_AI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


def parse_format(value: str) -> OutputFormat:
    """Parse 'png', 'jpeg' or 'jpg' (case-insensitive)."""
    normalized = value.strip().lower()
    if normalized == "jpg":
        normalized = "jpeg"
    try:
        return OutputFormat(normalized)
    except ValueError as e:
        raise ValueError(f"Unsupported output format: {value!r}") from e


@dataclass(frozen=True)
class ToolkitConfig:
    """
    Toolkit configuration (immutable).

    Attributes:
        render_scale: Zoom factor for page rendering (2.0 = 144 dpi)
        single_format: Codec for single-page downloads (lossless PNG)
        batch_format: Codec for bulk archive entries
        jpeg_quality: Quality when a JPEG codec is used
        output_dir: Folder where exports are saved
        settings_path: JSON key-value store holding presets
        presets_key: Slot name for presets
        ai_api_key: Detection service key (None disables detection)
        ai_base_url: OpenAI-compatible endpoint
        ai_model: Vision model name
        detection_timeout_s: Timeout for one detection request

    Example:
        >>> config = ToolkitConfig(render_scale=3.0)
        >>> config.batch_format
        <OutputFormat.PNG: 'png'>
    """

    render_scale: float = DEFAULT_RENDER_SCALE
    single_format: OutputFormat = OutputFormat.PNG
    batch_format: OutputFormat = OutputFormat.PNG
    jpeg_quality: int = DEFAULT_JPEG_QUALITY

    output_dir: Path = field(default_factory=get_output_dir)
    settings_path: Path = field(default_factory=get_settings_path)
    presets_key: str = PRESETS_KEY

    ai_api_key: Optional[str] = None
    ai_base_url: str = DEFAULT_AI_BASE_URL
    ai_model: str = DEFAULT_MODEL
    detection_timeout_s: float = DEFAULT_TIMEOUT_S

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not 0 < self.render_scale <= 8:
            raise ValueError(f"render_scale must be in (0, 8]: {self.render_scale}")
        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be in 1..100: {self.jpeg_quality}")
        if self.detection_timeout_s <= 0:
            raise ValueError(f"detection_timeout_s must be positive: {self.detection_timeout_s}")
        if not self.presets_key:
            raise ValueError("presets_key must not be empty")

    @property
    def detection_enabled(self) -> bool:
        return bool(self.ai_api_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> ToolkitConfig:
        """
        Build configuration from environment variables.

        Explicit keyword overrides win over the environment.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        values: dict = {}

        if "LABEL_TOOLKIT_SCALE" in env:
            values["render_scale"] = float(env["LABEL_TOOLKIT_SCALE"])
        if "LABEL_TOOLKIT_FORMAT" in env:
            values["single_format"] = parse_format(env["LABEL_TOOLKIT_FORMAT"])
        if "LABEL_TOOLKIT_BATCH_FORMAT" in env:
            values["batch_format"] = parse_format(env["LABEL_TOOLKIT_BATCH_FORMAT"])
        if "LABEL_TOOLKIT_OUTPUT_DIR" in env:
            values["output_dir"] = Path(env["LABEL_TOOLKIT_OUTPUT_DIR"]).expanduser()
        if "LABEL_TOOLKIT_SETTINGS" in env:
            values["settings_path"] = Path(env["LABEL_TOOLKIT_SETTINGS"]).expanduser()
        if env.get("AI_API_KEY"):
            values["ai_api_key"] = env["AI_API_KEY"]
        if env.get("AI_BASE_URL"):
            values["ai_base_url"] = env["AI_BASE_URL"]
        if env.get("AI_MODEL"):
            values["ai_model"] = env["AI_MODEL"]
        if "AI_TIMEOUT" in env:
            values["detection_timeout_s"] = float(env["AI_TIMEOUT"])

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
