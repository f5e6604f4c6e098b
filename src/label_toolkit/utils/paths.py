"""
Path utilities for handling dev vs production (frozen) file locations.

Dev mode: Uses local workspace/ directory
Frozen mode: Uses system-standard paths (AppData, Application Support)
"""
from __future__ import annotations

import os
import platform
import sys
from pathlib import Path

APP_NAME = "Label Toolkit"


def is_frozen() -> bool:
    """Check if running as a frozen (PyInstaller) application."""
    return getattr(sys, 'frozen', False) or hasattr(sys, '_MEIPASS')


def get_app_data_dir() -> Path:
    """
    Get the application data directory for internal state files.

    Frozen: ~/Library/Application Support/Label Toolkit (macOS),
            %LOCALAPPDATA%/Label Toolkit (Windows)
            or ~/.local/share/Label Toolkit (Linux)
    Dev: workspace/
    """
    if not is_frozen():
        return Path.cwd() / "workspace"

    system = platform.system()
    if system == "Windows":
        base = os.environ.get("LOCALAPPDATA", os.environ.get("APPDATA"))
        return Path(base) / APP_NAME if base else Path.home() / ".label_toolkit"
    if system == "Darwin":
        return Path.home() / "Library/Application Support" / APP_NAME
    return Path.home() / ".local/share" / APP_NAME


def get_settings_path() -> Path:
    """Key-value store file holding presets."""
    return get_app_data_dir() / "settings.json"


def get_output_dir() -> Path:
    """Default folder for exported crops and archives."""
    return get_app_data_dir() / "exports"
