"""
Preset persistence for crop templates.

Presets live in one named slot of a local key-value store as a JSON list
of region records. The store is the only place that touches persistence,
so the backend can be swapped (JSON file on disk, memory in tests).

Malformed persisted data always degrades to an empty preset list, never
to an exception.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Generator, List, Optional, Protocol, Sequence

import portalocker

from label_toolkit.core.errors import InvalidRegion
from label_toolkit.core.models import CropRegion

logger = logging.getLogger(__name__)

PRESETS_KEY = "label_crop_presets"


class KeyValueStore(Protocol):
    """Synchronous string key-value persistence."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store, for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


@contextmanager
def _locked(path: Path, mode: str, lock_type: int) -> Generator:
    """Open ``path`` with a portalocker lock held for the duration."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.touch()
    with open(path, mode, encoding="utf-8") as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


class JsonFileKeyValueStore:
    """
    Key-value store backed by one JSON object on disk.

    Each slot holds a string. Reads take a shared lock and writes an
    exclusive read-modify-write lock, so two processes sharing a profile
    never interleave a write. A corrupt or undecodable file reads as empty.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read_all(self, handle) -> Dict[str, str]:
        try:
            content = handle.read()
        except UnicodeDecodeError as e:
            logger.warning(f"Store file {self.path} is not valid UTF-8: {e}")
            return {}
        if not content.strip():
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Store file {self.path} is corrupted: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Store file {self.path} does not hold an object")
            return {}
        return data

    def get(self, key: str) -> Optional[str]:
        if not self.path.exists():
            return None
        with _locked(self.path, "r", portalocker.LOCK_SH) as f:
            value = self._read_all(f).get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with _locked(self.path, "r+", portalocker.LOCK_EX) as f:
            data = self._read_all(f)
            data[key] = value
            f.seek(0)
            f.truncate()
            f.write(json.dumps(data, indent=2))
        logger.debug(f"Wrote slot {key!r} to {self.path.name}")


@dataclass(frozen=True)
class PresetEntry:
    """A saved region and its position in the preset list."""

    index: int
    region: CropRegion

    @property
    def name(self) -> str:
        return f"Template {self.index + 1}"


class PresetStore:
    """
    Ordered, append-only list of saved crop regions.

    Duplicates are allowed; entries are identified by position.
    """

    def __init__(self, backend: KeyValueStore, key: str = PRESETS_KEY) -> None:
        self.backend = backend
        self.key = key

    def load_all(self) -> List[CropRegion]:
        """
        Load every saved region in order.

        Returns an empty list when nothing is stored or when the stored
        value is malformed in any way. Never raises.
        """
        try:
            raw = self.backend.get(self.key)
        except (OSError, portalocker.LockException) as e:
            logger.warning(f"Could not read presets: {e}")
            return []
        if raw is None:
            return []

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring malformed presets: {e}")
            return []
        if not isinstance(payload, list):
            logger.warning(f"Ignoring presets: expected a list, got {type(payload).__name__}")
            return []

        regions: List[CropRegion] = []
        for i, record in enumerate(payload):
            try:
                region = CropRegion.from_dict(record)
            except InvalidRegion as e:
                logger.warning(f"Ignoring presets: record {i} is malformed ({e})")
                return []
            if not region.is_valid():
                logger.warning(f"Ignoring presets: record {i} is out of range ({region})")
                return []
            regions.append(region)
        return regions

    def save_all(self, regions: Sequence[CropRegion]) -> None:
        """Overwrite the stored list wholesale."""
        payload = [region.to_dict() for region in regions]
        self.backend.set(self.key, json.dumps(payload))
        logger.info(f"Saved {len(payload)} presets")

    def append(self, region: CropRegion) -> List[CropRegion]:
        """Add one region at the end. Returns the new list."""
        regions = self.load_all() + [region]
        self.save_all(regions)
        return regions

    def entries(self) -> List[PresetEntry]:
        """Saved regions with their display positions."""
        return [PresetEntry(i, region) for i, region in enumerate(self.load_all())]
