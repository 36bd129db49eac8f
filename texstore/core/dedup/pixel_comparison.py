"""
Pixel Comparison Utilities
==========================

Functions for comparing two decoded textures pixel by pixel on
premultiplied RGBA, and for deriving the mismatch budget a candidate must
stay within to count as a near-duplicate.
"""

import math

import numpy as np

from texstore.core.config import (
    DEDUPE_ALPHA_IGNORE_BELOW,
    DEDUPE_CHANNEL_TOLERANCE,
    DEDUPE_MAX_MISMATCH_PIXELS,
    DEDUPE_SIMILARITY_THRESHOLD,
)
from texstore.core.dedup.bitmap_codec import PixelBuffer, premultiply

# Pixels compared per vectorized step before the early-exit check
CHUNK_PIXELS = 4096


def allowed_mismatches(
    total_pixels: int,
    similarity_threshold: float = DEDUPE_SIMILARITY_THRESHOLD,
    max_mismatch_pixels: int = DEDUPE_MAX_MISMATCH_PIXELS,
) -> int:
    """
    Mismatch budget: the ratio-based allowance capped by an absolute ceiling.
    """
    by_ratio = math.floor(total_pixels * (1 - similarity_threshold))
    return max(0, min(by_ratio, max_mismatch_pixels))


def count_mismatched_pixels(
    a: PixelBuffer,
    b: PixelBuffer,
    allowed: int,
    channel_tolerance: int = DEDUPE_CHANNEL_TOLERANCE,
    alpha_ignore_below: int = DEDUPE_ALPHA_IGNORE_BELOW,
) -> int:
    """
    Counts pixels whose premultiplied channels differ by more than the tolerance.

    Pixels where both alphas are at or below alpha_ignore_below always match.
    Stops as soon as the count exceeds `allowed` and returns allowed + 1, so
    the result is only exact while it stays within the budget. Buffers of
    different byte length are never similar.
    """
    if len(a.data) != len(b.data):
        return allowed + 1

    left = np.frombuffer(a.data, dtype=np.uint8).reshape(-1, 4)
    right = np.frombuffer(b.data, dtype=np.uint8).reshape(-1, 4)

    mismatches = 0
    for start in range(0, left.shape[0], CHUNK_PIXELS):
        pa = left[start:start + CHUNK_PIXELS].astype(np.int32)
        pb = right[start:start + CHUNK_PIXELS].astype(np.int32)
        alpha_a = pa[:, 3]
        alpha_b = pb[:, 3]

        delta = np.abs(
            premultiply(pa[:, :3], alpha_a[:, None]) - premultiply(pb[:, :3], alpha_b[:, None])
        ).max(axis=1)
        delta = np.maximum(delta, np.abs(alpha_a - alpha_b))

        ignored = (alpha_a <= alpha_ignore_below) & (alpha_b <= alpha_ignore_below)
        mismatches += int(np.count_nonzero((delta > channel_tolerance) & ~ignored))
        if mismatches > allowed:
            return allowed + 1

    return mismatches
