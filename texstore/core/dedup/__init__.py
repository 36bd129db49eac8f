"""
Shared Texture Deduplication
============================

This package provides the shared texture store: exact deduplication by
content digest, near-duplicate collapse by per-pixel comparison within a
fingerprint bucket, rehydration from disk and pruning of unreferenced
textures.

Usage:
------
    from texstore.core.dedup import SharedTextureStore, prune_unused_shared_textures

    with SharedTextureStore.from_resources_root(resources_root, "HTML") as store:
        store.rehydrate()
        texture = store.register(png_bytes)

    prune_unused_shared_textures(ui_output_dir, resources_root)
"""

from texstore.core.dedup.errors import (
    TextureStoreError,
    DecodeError,
    StoreInitError,
    PersistenceWriteError
)
from texstore.core.dedup.bitmap_codec import BitmapCodec, PixelBuffer, premultiply
from texstore.core.dedup.pixel_comparison import allowed_mismatches, count_mismatched_pixels
from texstore.core.dedup.layout import TextureLayout, shared_dir_for
from texstore.core.dedup.texture_index import BucketKey, StoreEntry, TextureIndex
from texstore.core.dedup.texture_store import (
    MatchKind,
    RegisteredTexture,
    SharedTextureStore,
    StoreStats
)
from texstore.core.dedup.pruning import (
    PruneResult,
    collect_referenced_keys,
    prune,
    prune_unused_shared_textures
)
from texstore.core.dedup.utils import (
    directory_size,
    format_file_size,
    list_files_recursive,
    write_file_atomic
)

__all__ = [
    # Errors
    'TextureStoreError',
    'DecodeError',
    'StoreInitError',
    'PersistenceWriteError',

    # Codec and comparison
    'BitmapCodec',
    'PixelBuffer',
    'premultiply',
    'allowed_mismatches',
    'count_mismatched_pixels',

    # Layout and index
    'TextureLayout',
    'shared_dir_for',
    'BucketKey',
    'StoreEntry',
    'TextureIndex',

    # Store
    'MatchKind',
    'RegisteredTexture',
    'SharedTextureStore',
    'StoreStats',

    # Pruning
    'PruneResult',
    'collect_referenced_keys',
    'prune',
    'prune_unused_shared_textures',

    # Utilities
    'directory_size',
    'format_file_size',
    'list_files_recursive',
    'write_file_atomic',
]
