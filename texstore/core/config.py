"""
Store Configuration and Constants
=================================

This module contains the configuration values, constants, and defaults used
throughout the texture store. It serves as a single source of truth for:

- Naming conventions of persisted textures and generated references
- Near-duplicate matching tolerances
- Fingerprint grid size used for candidate bucketing
- The StoreConfig dataclass that carries all of the above at runtime

Note:
    All constants use UPPER_SNAKE_CASE naming convention. StoreConfig takes
    its defaults from them; a JSON config file (see
    texstore.utils.config_manager) can override any field per project.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict

# ============================================================================
# LAYOUT CONVENTIONS
# ============================================================================
# Shared textures live under <resources>/Common/UI/Custom/<namespace>/Shared
# and are named <prefix><sha256>@2x.png. Generated UI documents reference
# them as <namespace>/Shared/<prefix><sha256>.png (without the @2x suffix).

RESOURCE_PATH_SEGMENTS = ("Common", "UI", "Custom")
SHARED_TEXTURES_DIR = "Shared"
SHARED_TEXTURE_PREFIX = "t"
TEXTURE_EXTENSION = "png"
HIRES_SUFFIX = "@2x"
DEFAULT_NAMESPACE = "HTML"

# Generated documents scanned by the pruner
DOCUMENT_SUFFIX = ".ui"

# ============================================================================
# NEAR-DUPLICATE MATCHING
# ============================================================================
# Exact matches are deduplicated by content hash. On top of that, extremely
# small pixel-level differences collapse near-identical textures into a
# single shared file.

# Fraction of pixels that must match (99.9%)
DEDUPE_SIMILARITY_THRESHOLD = 0.999

# Cap on mismatched pixels for very large textures
DEDUPE_MAX_MISMATCH_PIXELS = 64

# Per-channel tolerance on premultiplied RGBA, 0-255
DEDUPE_CHANNEL_TOLERANCE = 4

# Pixels where both alphas are <= this never count as a mismatch
DEDUPE_ALPHA_IGNORE_BELOW = 4

# Downsample grid for candidate bucketing
DEDUPE_FINGERPRINT_SIZE = 16


# ============================================================================
# CONFIGURATION DATACLASS
# ============================================================================

@dataclass
class StoreConfig:
    """
    Runtime configuration for a shared texture store.

    Attributes:
        namespace: UI namespace the references are generated under
        shared_dir_name: Sub-directory of the namespace holding shared textures
        key_prefix: Prefix put in front of the sha256 hex digest to form a key
        extension: File extension of persisted textures (without the dot)
        document_suffix: Suffix of generated documents scanned when pruning
        similarity_threshold: Fraction of pixels that must match (0-1)
        max_mismatch_pixels: Absolute cap on tolerated mismatched pixels
        channel_tolerance: Largest per-channel delta still counted as equal
        alpha_ignore_below: Alpha at or below which both pixels are ignored
        fingerprint_size: Width/height of the fingerprint sampling grid
    """
    namespace: str = DEFAULT_NAMESPACE
    shared_dir_name: str = SHARED_TEXTURES_DIR
    key_prefix: str = SHARED_TEXTURE_PREFIX
    extension: str = TEXTURE_EXTENSION
    document_suffix: str = DOCUMENT_SUFFIX
    similarity_threshold: float = DEDUPE_SIMILARITY_THRESHOLD
    max_mismatch_pixels: int = DEDUPE_MAX_MISMATCH_PIXELS
    channel_tolerance: int = DEDUPE_CHANNEL_TOLERANCE
    alpha_ignore_below: int = DEDUPE_ALPHA_IGNORE_BELOW
    fingerprint_size: int = DEDUPE_FINGERPRINT_SIZE

    def validate(self) -> "StoreConfig":
        """Raise ValueError on out-of-range settings; returns self for chaining."""
        for name in ("namespace", "shared_dir_name", "key_prefix", "extension", "document_suffix"):
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"{name} must be a string, got {getattr(self, name)!r}")
        for name in ("max_mismatch_pixels", "channel_tolerance", "alpha_ignore_below", "fingerprint_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if isinstance(self.similarity_threshold, bool) or not isinstance(self.similarity_threshold, (int, float)):
            raise ValueError(f"similarity_threshold must be a number, got {self.similarity_threshold!r}")
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ValueError(f"similarity_threshold must be within [0, 1], got {self.similarity_threshold}")
        if self.max_mismatch_pixels < 0:
            raise ValueError("max_mismatch_pixels cannot be negative")
        if not 0 <= self.channel_tolerance <= 255:
            raise ValueError("channel_tolerance must be within [0, 255]")
        if not 0 <= self.alpha_ignore_below <= 255:
            raise ValueError("alpha_ignore_below must be within [0, 255]")
        if self.fingerprint_size < 1:
            raise ValueError("fingerprint_size must be at least 1")
        for name in ("namespace", "shared_dir_name", "key_prefix", "extension"):
            if not getattr(self, name):
                raise ValueError(f"{name} cannot be empty")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
