"""
Shared Texture Store
====================

Registration pipeline of the shared texture store. Each encoded texture is
resolved in three tiers:

1. exact match on the content digest
2. near-duplicate match against the candidates of its fingerprint bucket,
   compared pixel by pixel on premultiplied RGBA
3. otherwise persisted as a new shared texture

All registrations on one store run on a single worker thread in FIFO order,
so the read-then-write sequence above never interleaves with another
registration.

Usage:
------
    from texstore.core.dedup import SharedTextureStore

    with SharedTextureStore.from_resources_root(resources_root, "HTML") as store:
        store.rehydrate()
        texture = store.register(png_bytes)
        print(texture.reference_path)
"""

import logging
from concurrent.futures import Future
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from texstore.core.config import StoreConfig
from texstore.core.dedup.bitmap_codec import BitmapCodec, PixelBuffer
from texstore.core.dedup.errors import PersistenceWriteError, StoreInitError
from texstore.core.dedup.layout import TextureLayout, shared_dir_for
from texstore.core.dedup.pixel_comparison import allowed_mismatches, count_mismatched_pixels
from texstore.core.dedup.texture_index import BucketKey, StoreEntry, TextureIndex
from texstore.core.dedup.utils import write_file_atomic
from texstore.utils.background_worker import BackgroundWorker

logger = logging.getLogger(__name__)


class MatchKind(Enum):
    """How a registration was resolved."""
    EXACT = "exact"   # Same pixels already indexed
    NEAR = "near"     # Collapsed onto a near-identical stored texture
    NEW = "new"       # Persisted as a new shared texture


@dataclass(frozen=True)
class RegisteredTexture:
    """Result of a registration."""
    key: str
    reference_path: str
    file_path: Path
    match: MatchKind


@dataclass(frozen=True)
class StoreStats:
    entries: int
    buckets: int
    aliases: int


class SharedTextureStore:
    """
    Content-addressable store of shared textures backed by one directory.
    """

    def __init__(
        self,
        shared_dir: Union[str, Path],
        config: Optional[StoreConfig] = None,
        codec: Optional[BitmapCodec] = None,
    ):
        self.config = (config or StoreConfig()).validate()
        self.layout = TextureLayout.from_config(Path(shared_dir).resolve(), self.config)
        self.codec = codec or BitmapCodec(self.config.fingerprint_size)
        self.index = TextureIndex()
        self._ready = False
        self._worker = BackgroundWorker(name=f"TextureStore-{self.config.namespace}")

    @classmethod
    def from_resources_root(
        cls,
        resources_root: Union[str, Path],
        namespace: Optional[str] = None,
        config: Optional[StoreConfig] = None,
    ) -> "SharedTextureStore":
        """Store on the standard <resources>/Common/UI/Custom/<namespace>/Shared directory."""
        config = config or StoreConfig()
        if namespace is not None and namespace != config.namespace:
            config = replace(config, namespace=namespace)
        return cls(shared_dir_for(resources_root, config.namespace, config.shared_dir_name), config)

    @property
    def shared_dir(self) -> Path:
        return self.layout.shared_dir

    # ------------------------------------------------------------------
    # Public API (every call is routed through the worker thread)
    # ------------------------------------------------------------------

    def rehydrate(self) -> int:
        """
        Rebuilds the index from disk. Must complete before any registration.

        Raises:
            StoreInitError: the shared directory is unusable
        """
        return self._worker.submit(self._rehydrate).result()

    def submit(self, encoded: bytes) -> Future:
        """Queues a registration and returns its future."""
        return self._worker.submit(self._register, encoded)

    def register(self, encoded: bytes) -> RegisteredTexture:
        """
        Registers an encoded texture and blocks until it is resolved.

        Raises:
            DecodeError: the buffer is not a decodable PNG
            PersistenceWriteError: a new texture could not be written
            StoreInitError: rehydrate() has not completed
        """
        return self.submit(encoded).result()

    def stats(self) -> StoreStats:
        return self._worker.submit(
            lambda: StoreStats(len(self.index), self.index.bucket_count, self.index.alias_count)
        ).result()

    def close(self) -> None:
        """Drains queued registrations and stops the worker."""
        self._worker.shutdown()

    def __enter__(self) -> "SharedTextureStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ------------------------------------------------------------------
    # Worker-side implementation
    # ------------------------------------------------------------------

    def _rehydrate(self) -> int:
        self._ready = False
        count = self.index.rehydrate(self.layout, self.codec)
        self._ready = True
        return count

    def _register(self, encoded: bytes) -> RegisteredTexture:
        if not self._ready:
            raise StoreInitError("Texture store used before rehydrate() completed")

        decoded = self.codec.decode(encoded)
        digest = self.codec.exact_digest(decoded)

        existing = self.index.lookup_exact(digest)
        if existing is not None:
            logger.debug(f"Exact match {existing.key} for {decoded.width}x{decoded.height} texture")
            return self._result(existing, MatchKind.EXACT)

        bucket = BucketKey(decoded.width, decoded.height, self.codec.fingerprint(decoded))
        winner = self._find_near_duplicate(decoded, bucket)
        if winner is not None:
            self.index.add_alias(digest, winner.key)
            logger.debug(f"Near-duplicate of {winner.key}; digest {digest[:12]}... aliased")
            return self._result(winner, MatchKind.NEAR)

        entry = self._persist_new(encoded, digest, bucket)
        logger.debug(f"Stored new shared texture {entry.key} ({entry.width}x{entry.height})")
        return self._result(entry, MatchKind.NEW)

    def _find_near_duplicate(self, decoded: PixelBuffer, bucket: BucketKey) -> Optional[StoreEntry]:
        """
        Scans every candidate of the bucket and returns the one with the fewest
        mismatches within budget, the smaller key winning ties.
        """
        candidates = self.index.candidates(bucket)
        if not candidates:
            return None

        allowed = allowed_mismatches(
            decoded.pixel_count,
            self.config.similarity_threshold,
            self.config.max_mismatch_pixels,
        )

        best: Optional[StoreEntry] = None
        best_mismatches = allowed + 1
        for key in candidates:
            entry = self.index.get(key)
            if entry is None or entry.width != decoded.width or entry.height != decoded.height:
                continue

            stored = self.codec.load(entry.file_path)
            if stored.width != decoded.width or stored.height != decoded.height:
                continue

            mismatches = count_mismatched_pixels(
                decoded,
                stored,
                allowed,
                channel_tolerance=self.config.channel_tolerance,
                alpha_ignore_below=self.config.alpha_ignore_below,
            )
            # Candidates arrive in key order, so strict < keeps the smaller key on ties
            if mismatches <= allowed and mismatches < best_mismatches:
                best, best_mismatches = entry, mismatches

        return best

    def _persist_new(self, encoded: bytes, digest: str, bucket: BucketKey) -> StoreEntry:
        key = self.layout.key_for_digest(digest)
        indexed = self.index.get(key)
        if indexed is not None:
            # Key taken by a file whose name disagrees with its pixels
            self.index.add_alias(digest, key)
            return indexed

        file_path = self.layout.file_path_for_key(key)

        if not file_path.exists():
            try:
                write_file_atomic(file_path, encoded)
            except OSError as e:
                logger.error(f"Failed to write shared texture {file_path}: {e}", exc_info=True)
                raise PersistenceWriteError(f"Failed to write shared texture {file_path}: {e}") from e

        entry = StoreEntry(
            key=key,
            width=bucket.width,
            height=bucket.height,
            fingerprint=bucket.fingerprint,
            file_path=file_path,
            reference_path=self.layout.reference_path_for_key(key),
        )
        self.index.add_entry(entry, digest)
        return entry

    @staticmethod
    def _result(entry: StoreEntry, match: MatchKind) -> RegisteredTexture:
        return RegisteredTexture(
            key=entry.key,
            reference_path=entry.reference_path,
            file_path=entry.file_path,
            match=match,
        )
