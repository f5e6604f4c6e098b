"""
Unit tests for preset persistence.
"""
import json
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from label_toolkit.core.models import CropRegion
from label_toolkit.presets.store import (
    PRESETS_KEY,
    JsonFileKeyValueStore,
    MemoryKeyValueStore,
    PresetStore,
)


class FailingStore:
    """Backend whose reads always fail."""

    def get(self, key):
        raise OSError("permission denied")

    def set(self, key, value):
        raise OSError("permission denied")


class TestPresetStore(unittest.TestCase):
    """Test preset serialization against an in-memory backend."""

    def setUp(self):
        self.backend = MemoryKeyValueStore()
        self.store = PresetStore(self.backend)

    def test_empty_store_loads_nothing(self):
        self.assertEqual(self.store.load_all(), [])

    def test_round_trip(self):
        regions = [CropRegion(10, 10, 80, 40), CropRegion(0, 50, 50, 50)]
        self.store.save_all(regions)

        self.assertEqual(self.store.load_all(), regions)

    def test_saved_format(self):
        """Presets are a JSON list of {x, y, width, height} records."""
        self.store.save_all([CropRegion(1, 2, 30, 40)])

        payload = json.loads(self.backend.data[PRESETS_KEY])
        self.assertEqual(payload, [{"x": 1, "y": 2, "width": 30, "height": 40}])

    def test_save_of_load_is_stable(self):
        self.store.save_all([CropRegion(12.5, 7.25, 33.3, 20)])
        before = self.backend.data[PRESETS_KEY]

        self.store.save_all(self.store.load_all())

        self.assertEqual(self.backend.data[PRESETS_KEY], before)

    def test_append_keeps_order_and_duplicates(self):
        region = CropRegion(5, 5, 20, 20)
        self.store.append(region)
        regions = self.store.append(region)

        self.assertEqual(regions, [region, region])
        self.assertEqual(self.store.load_all(), [region, region])

    def test_entries_are_named_by_position(self):
        self.store.save_all([CropRegion(0, 0, 10, 10), CropRegion(0, 0, 20, 20)])

        names = [entry.name for entry in self.store.entries()]

        self.assertEqual(names, ["Template 1", "Template 2"])

    def test_malformed_payloads_load_empty(self):
        """Any malformed stored value degrades to no presets."""
        cases = [
            "not json",
            '{"x": 1}',
            "42",
            '[{"x": 1, "y": 2, "width": 30}]',
            '[{"x": "1", "y": 2, "width": 30, "height": 40}]',
            '[{"x": true, "y": 2, "width": 30, "height": 40}]',
            '[{"x": 90, "y": 0, "width": 30, "height": 40}]',
            '[{"x": 0, "y": 0, "width": 30, "height": 40}, "oops"]',
            '[{"x": 1' + '0' * 400 + ', "y": 0, "width": 10, "height": 10}]',
        ]
        for raw in cases:
            with self.subTest(raw=raw):
                self.backend.data[PRESETS_KEY] = raw
                self.assertEqual(self.store.load_all(), [])

    def test_backend_failure_loads_empty(self):
        store = PresetStore(FailingStore())

        self.assertEqual(store.load_all(), [])

    def test_custom_key(self):
        store = PresetStore(self.backend, key="other_slot")
        store.save_all([CropRegion(0, 0, 10, 10)])

        self.assertIn("other_slot", self.backend.data)
        self.assertEqual(self.store.load_all(), [])


class TestJsonFileKeyValueStore(unittest.TestCase):
    """Test on-disk persistence."""

    def setUp(self):
        self.temp_dir = TemporaryDirectory()
        self.path = Path(self.temp_dir.name) / "nested" / "settings.json"
        self.kv = JsonFileKeyValueStore(self.path)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_missing_file_reads_none(self):
        self.assertIsNone(self.kv.get(PRESETS_KEY))
        self.assertFalse(self.path.exists())

    def test_persistence_across_instances(self):
        PresetStore(self.kv).save_all([CropRegion(10, 10, 80, 40)])

        # Create new store instance to test persistence
        reloaded = PresetStore(JsonFileKeyValueStore(self.path))
        self.assertEqual(reloaded.load_all(), [CropRegion(10, 10, 80, 40)])

    def test_set_preserves_other_slots(self):
        self.kv.set("theme", "dark")
        self.kv.set(PRESETS_KEY, "[]")

        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(data, {"theme": "dark", PRESETS_KEY: "[]"})

    def test_corrupted_file_reads_none(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{invalid json", encoding="utf-8")

        self.assertIsNone(self.kv.get(PRESETS_KEY))
        self.assertEqual(PresetStore(self.kv).load_all(), [])

    def test_corrupted_file_is_replaced_on_write(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("[1, 2, 3]", encoding="utf-8")

        self.kv.set(PRESETS_KEY, "[]")

        self.assertEqual(self.kv.get(PRESETS_KEY), "[]")

    def test_undecodable_file_reads_none(self):
        """A settings file that is not UTF-8 degrades to no presets."""
        self.path.parent.mkdir(parents=True)
        self.path.write_bytes(b'{"label_crop_presets": "\xff\xfe"}')

        self.assertIsNone(self.kv.get(PRESETS_KEY))
        self.assertEqual(PresetStore(self.kv).load_all(), [])

    def test_undecodable_file_is_replaced_on_write(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_bytes(b"\xff\xfe")

        PresetStore(self.kv).save_all([CropRegion(0, 0, 10, 10)])

        self.assertEqual(PresetStore(self.kv).load_all(), [CropRegion(0, 0, 10, 10)])

    def test_non_string_slot_reads_none(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text(json.dumps({PRESETS_KEY: [1, 2]}), encoding="utf-8")

        self.assertIsNone(self.kv.get(PRESETS_KEY))


if __name__ == "__main__":
    unittest.main()
