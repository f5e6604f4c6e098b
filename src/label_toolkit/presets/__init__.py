"""Persisted crop templates."""

from .store import (
    PRESETS_KEY,
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    PresetEntry,
    PresetStore,
)

__all__ = [
    "PRESETS_KEY",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "PresetEntry",
    "PresetStore",
]
