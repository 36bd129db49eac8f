"""
Texture Index
=============

In-memory lookup structures of the shared texture store:

- exact digest -> key (several digests may alias one key once
  near-duplicates have collapsed onto it)
- bucket (width, height, fingerprint) -> sorted list of candidate keys
- key -> StoreEntry

The index is never persisted. It is rebuilt on every start from the shared
texture directory, which is the only source of truth.
"""

import bisect
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, NamedTuple, Optional

from texstore.core.dedup.bitmap_codec import BitmapCodec
from texstore.core.dedup.errors import DecodeError, StoreInitError
from texstore.core.dedup.layout import TextureLayout
from texstore.utils.logger import log_operation

logger = logging.getLogger(__name__)


class BucketKey(NamedTuple):
    width: int
    height: int
    fingerprint: str


@dataclass(frozen=True)
class StoreEntry:
    """
    A persisted shared texture.

    Attributes:
        key: Store key, e.g. t<sha256>
        width: Texture width in pixels
        height: Texture height in pixels
        fingerprint: Coarse fingerprint used for bucketing
        file_path: Absolute path of the @2x file on disk
        reference_path: Path generated documents refer to (no @2x)
    """
    key: str
    width: int
    height: int
    fingerprint: str
    file_path: Path
    reference_path: str

    @property
    def bucket(self) -> BucketKey:
        return BucketKey(self.width, self.height, self.fingerprint)


class TextureIndex:
    """
    Exact-digest, bucket and entry maps for one shared texture directory.

    Not thread-safe: the store only touches it from its registration worker.
    """

    def __init__(self):
        self._exact: Dict[str, str] = {}
        self._buckets: Dict[BucketKey, List[str]] = {}
        self._entries: Dict[str, StoreEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def keys(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def get(self, key: str) -> Optional[StoreEntry]:
        return self._entries.get(key)

    def lookup_exact(self, digest: str) -> Optional[StoreEntry]:
        key = self._exact.get(digest)
        return self._entries.get(key) if key is not None else None

    def candidates(self, bucket: BucketKey) -> List[str]:
        return list(self._buckets.get(bucket, ()))

    @property
    def bucket_count(self) -> int:
        return len(self._buckets)

    @property
    def alias_count(self) -> int:
        """Digests mapped to an entry stored under a different digest."""
        return max(0, len(self._exact) - len(self._entries))

    def add_entry(self, entry: StoreEntry, digest: str) -> None:
        if entry.key in self._entries:
            raise ValueError(f"Entry {entry.key} is already indexed")
        self._entries[entry.key] = entry
        self._exact[digest] = entry.key
        bisect.insort(self._buckets.setdefault(entry.bucket, []), entry.key)

    def add_alias(self, digest: str, key: str) -> None:
        if key not in self._entries:
            raise KeyError(key)
        self._exact[digest] = key

    def clear(self) -> None:
        self._exact.clear()
        self._buckets.clear()
        self._entries.clear()

    @log_operation(operation="Rehydrate")
    def rehydrate(self, layout: TextureLayout, codec: BitmapCodec) -> int:
        """
        Rebuilds the index from the textures persisted in layout.shared_dir.

        The directory is created when missing. Files that do not follow the
        naming convention are skipped. Digest and fingerprint are recomputed
        from the decoded pixels; the file name only provides the key string.

        Returns:
            Number of entries loaded

        Raises:
            StoreInitError: the directory cannot be created or listed, or a
                persisted texture cannot be read or decoded
        """
        shared_dir = layout.shared_dir
        if shared_dir.exists() and not shared_dir.is_dir():
            raise StoreInitError(f"Shared texture path is not a directory: {shared_dir}")

        try:
            shared_dir.mkdir(parents=True, exist_ok=True)
            names = sorted(p.name for p in shared_dir.iterdir() if p.is_file())
        except OSError as e:
            raise StoreInitError(f"Cannot read shared texture directory {shared_dir}: {e}") from e

        self.clear()
        skipped = 0
        for name in names:
            key = layout.key_from_file_name(name)
            if key is None:
                skipped += 1
                logger.debug(f"Skipping {name}: not a shared texture file")
                continue

            file_path = shared_dir / name
            try:
                buffer = codec.load(file_path)
            except (OSError, DecodeError) as e:
                raise StoreInitError(f"Cannot load shared texture {file_path}: {e}") from e

            digest = codec.exact_digest(buffer)
            if layout.key_for_digest(digest) != key:
                logger.warning(f"{name}: content digest {digest[:12]}... does not match its file name")

            self.add_entry(
                StoreEntry(
                    key=key,
                    width=buffer.width,
                    height=buffer.height,
                    fingerprint=codec.fingerprint(buffer),
                    file_path=file_path.resolve(),
                    reference_path=layout.reference_path_for_key(key),
                ),
                digest,
            )

        logger.info(f"Rehydrated {len(self)} shared textures from {shared_dir} ({skipped} other files skipped)")
        return len(self)
