"""
Unit Tests — TextureIndex and TextureLayout
===========================================

Tests for texstore/core/dedup/texture_index.py and layout.py
"""

import tempfile
import unittest
from pathlib import Path

from texstore.core.config import StoreConfig
from texstore.core.dedup import (
    BitmapCodec,
    BucketKey,
    StoreEntry,
    StoreInitError,
    TextureIndex,
    TextureLayout,
    shared_dir_for,
)

from png_factory import encode_png, gradient, solid

HEX = "ab" * 32


def _entry(key: str, fingerprint: str = "fp", width: int = 4, height: int = 4) -> StoreEntry:
    return StoreEntry(
        key=key,
        width=width,
        height=height,
        fingerprint=fingerprint,
        file_path=Path(f"/tmp/{key}@2x.png"),
        reference_path=f"HTML/Shared/{key}.png",
    )


class TestTextureLayout(unittest.TestCase):

    def setUp(self):
        self.layout = TextureLayout.from_config(Path("/res/Shared"), StoreConfig())

    def test_standard_shared_dir(self):
        self.assertEqual(
            shared_dir_for("/res", "HTML"),
            Path("/res/Common/UI/Custom/HTML/Shared"),
        )

    def test_paths_for_key(self):
        key = self.layout.key_for_digest(HEX)
        self.assertEqual(key, f"t{HEX}")
        self.assertEqual(self.layout.file_path_for_key(key), Path(f"/res/Shared/t{HEX}@2x.png"))
        self.assertEqual(self.layout.reference_path_for_key(key), f"HTML/Shared/t{HEX}.png")

    def test_key_from_file_name(self):
        self.assertEqual(self.layout.key_from_file_name(f"t{HEX}@2x.png"), f"t{HEX}")
        for name in (f"t{HEX}.png", f"t{HEX.upper()}@2x.png", "tabc@2x.png", f"x{HEX}@2x.png", f"t{HEX}@2x.jpg"):
            self.assertIsNone(self.layout.key_from_file_name(name), name)

    def test_reference_regex(self):
        text = f'Background: "HTML/Shared/t{HEX}.png"; Other: "Menu/Shared/t{HEX}.png"'
        matches = [m.group(1) for m in self.layout.reference_regex.finditer(text)]
        self.assertEqual(matches, [f"t{HEX}"])


class TestTextureIndexMaps(unittest.TestCase):

    def test_bucket_lists_stay_sorted(self):
        index = TextureIndex()
        for key in ("tc", "ta", "tb"):
            index.add_entry(_entry(key), digest=key + "-digest")
        self.assertEqual(index.candidates(BucketKey(4, 4, "fp")), ["ta", "tb", "tc"])
        self.assertEqual(index.bucket_count, 1)

    def test_buckets_split_by_dimensions(self):
        index = TextureIndex()
        index.add_entry(_entry("ta", width=4), "da")
        index.add_entry(_entry("tb", width=8), "db")
        self.assertEqual(index.candidates(BucketKey(4, 4, "fp")), ["ta"])
        self.assertEqual(index.candidates(BucketKey(8, 4, "fp")), ["tb"])
        self.assertEqual(index.candidates(BucketKey(4, 4, "other")), [])

    def test_alias_resolves_to_existing_entry(self):
        index = TextureIndex()
        entry = _entry("ta")
        index.add_entry(entry, "da")
        index.add_alias("near-digest", "ta")
        self.assertIs(index.lookup_exact("near-digest"), entry)
        self.assertEqual(len(index), 1)
        self.assertEqual(index.alias_count, 1)

    def test_alias_to_unknown_key(self):
        with self.assertRaises(KeyError):
            TextureIndex().add_alias("d", "missing")

    def test_duplicate_entry_rejected(self):
        index = TextureIndex()
        index.add_entry(_entry("ta"), "da")
        with self.assertRaises(ValueError):
            index.add_entry(_entry("ta"), "db")

    def test_candidates_returns_a_copy(self):
        index = TextureIndex()
        index.add_entry(_entry("ta"), "da")
        index.candidates(BucketKey(4, 4, "fp")).append("tz")
        self.assertEqual(index.candidates(BucketKey(4, 4, "fp")), ["ta"])


class TestRehydrate(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.shared = self.root / "Shared"
        self.codec = BitmapCodec()
        self.layout = TextureLayout.from_config(self.shared, StoreConfig())

    def tearDown(self):
        self._tmp.cleanup()

    def _persist(self, pixels) -> str:
        data = encode_png(pixels)
        key = self.layout.key_for_digest(self.codec.exact_digest(self.codec.decode(data)))
        self.shared.mkdir(parents=True, exist_ok=True)
        (self.shared / self.layout.file_name_for_key(key)).write_bytes(data)
        return key

    def test_creates_missing_directory(self):
        self.assertEqual(TextureIndex().rehydrate(self.layout, self.codec), 0)
        self.assertTrue(self.shared.is_dir())

    def test_loads_valid_files_and_skips_others(self):
        keys = [self._persist(solid(8, 8, (i * 40, 0, 0, 255))) for i in range(3)]
        (self.shared / "notes.txt").write_text("not a texture")
        (self.shared / "tabc@2x.png").write_bytes(b"short key")
        (self.shared / f"{keys[0]}.png").write_bytes(b"missing @2x")
        (self.shared / "subdir").mkdir()

        index = TextureIndex()
        self.assertEqual(index.rehydrate(self.layout, self.codec), 3)
        self.assertEqual(list(index.keys()), sorted(keys))

        entry = index.get(keys[0])
        self.assertEqual((entry.width, entry.height), (8, 8))
        self.assertEqual(entry.reference_path, f"HTML/Shared/{keys[0]}.png")
        self.assertTrue(entry.file_path.is_file())

    def test_recomputes_digests(self):
        pixels = gradient(16, 16)
        key = self._persist(pixels)
        index = TextureIndex()
        index.rehydrate(self.layout, self.codec)
        digest = self.codec.exact_digest(self.codec.decode(encode_png(pixels)))
        self.assertEqual(index.lookup_exact(digest).key, key)

    def test_misnamed_content_keeps_file_name_key(self):
        data = encode_png(solid(4, 4))
        self.shared.mkdir(parents=True)
        (self.shared / f"t{HEX}@2x.png").write_bytes(data)
        index = TextureIndex()
        index.rehydrate(self.layout, self.codec)
        digest = self.codec.exact_digest(self.codec.decode(data))
        self.assertEqual(index.lookup_exact(digest).key, f"t{HEX}")

    def test_path_is_a_file(self):
        self.shared.write_bytes(b"")
        with self.assertRaises(StoreInitError):
            TextureIndex().rehydrate(self.layout, self.codec)

    def test_corrupt_texture_fails_startup(self):
        self.shared.mkdir(parents=True)
        (self.shared / f"t{HEX}@2x.png").write_bytes(b"garbage")
        with self.assertRaises(StoreInitError):
            TextureIndex().rehydrate(self.layout, self.codec)

    def test_rehydrate_replaces_previous_state(self):
        index = TextureIndex()
        index.add_entry(_entry("tstale"), "stale")
        self._persist(solid(4, 4))
        self.assertEqual(index.rehydrate(self.layout, self.codec), 1)
        self.assertNotIn("tstale", index)


if __name__ == '__main__':
    unittest.main()
