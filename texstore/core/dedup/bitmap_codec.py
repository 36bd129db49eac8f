"""
Bitmap Codec
============

Decodes encoded PNG buffers into a fixed RGBA pixel format and derives the
two digests the store keys on:

- exact digest: sha256 over the dimensions and the raw RGBA bytes. Used as
  the dedup key and as the persisted filename stem.
- fingerprint: sha256 over a coarse, premultiplied and quantized sample
  grid. Only narrows the near-duplicate search; two different bitmaps may
  share one.
"""

import hashlib
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from texstore.core.config import DEDUPE_FINGERPRINT_SIZE
from texstore.core.dedup.errors import DecodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PixelBuffer:
    """
    Decoded bitmap: width, height and row-major RGBA bytes (4 per pixel).
    """
    width: int
    height: int
    data: bytes

    def __post_init__(self):
        expected = self.width * self.height * 4
        if self.width < 0 or self.height < 0 or len(self.data) != expected:
            raise ValueError(
                f"Pixel data length {len(self.data)} does not match {self.width}x{self.height} RGBA ({expected})"
            )

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def as_array(self) -> np.ndarray:
        """Read-only (height, width, 4) uint8 view over the pixel bytes."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width, 4)


def premultiply(channels: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """
    Scale color channels by alpha/255, rounding half up.

    Integer form of round(c * a / 255) so results never depend on float
    rounding: floor((2ca + 255) / 510).
    """
    return (2 * channels * alpha + 255) // 510


def _quantize(values: np.ndarray) -> np.ndarray:
    # round(v / 17) half up, clamped to 16 levels
    return np.clip((2 * values + 17) // 34, 0, 15)


class BitmapCodec:
    """
    Decodes encoded textures and computes their exact digest and fingerprint.
    """

    ACCEPTED_FORMATS = ("PNG",)

    def __init__(self, fingerprint_size: int = DEDUPE_FINGERPRINT_SIZE):
        if fingerprint_size < 1:
            raise ValueError("fingerprint_size must be at least 1")
        self.fingerprint_size = fingerprint_size

    def decode(self, encoded: bytes) -> PixelBuffer:
        """
        Decodes a PNG buffer into RGBA pixels.

        Raises:
            DecodeError: empty or malformed input, or a container other than PNG
        """
        if not encoded:
            raise DecodeError("Cannot decode an empty buffer")

        try:
            with Image.open(io.BytesIO(encoded)) as image:
                if image.format not in self.ACCEPTED_FORMATS:
                    raise DecodeError(f"Unsupported texture format: {image.format}")
                image.load()
                rgba = image if image.mode == "RGBA" else image.convert("RGBA")
                return PixelBuffer(width=rgba.width, height=rgba.height, data=rgba.tobytes())
        except DecodeError:
            raise
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError, EOFError) as e:
            raise DecodeError(f"Failed to decode texture: {e}") from e

    def load(self, file_path: Union[str, Path]) -> PixelBuffer:
        """
        Reads and decodes a persisted texture. OSError from reading propagates.
        """
        with open(file_path, "rb") as f:
            return self.decode(f.read())

    def exact_digest(self, buffer: PixelBuffer) -> str:
        hasher = hashlib.sha256()
        hasher.update(f"{buffer.width}x{buffer.height}\0".encode("ascii"))
        hasher.update(buffer.data)
        return hasher.hexdigest()

    def fingerprint(self, buffer: PixelBuffer) -> str:
        """
        Samples the pixel nearest each cell center of an N x N grid,
        premultiplies, quantizes every channel to 16 levels and hashes the grid.
        """
        size = self.fingerprint_size
        if buffer.pixel_count == 0:
            return hashlib.sha256(bytes(size * size * 4)).hexdigest()

        cells = np.arange(size, dtype=np.float64) + 0.5
        src_y = np.clip(np.floor(cells * buffer.height / size).astype(np.int64), 0, buffer.height - 1)
        src_x = np.clip(np.floor(cells * buffer.width / size).astype(np.int64), 0, buffer.width - 1)

        samples = buffer.as_array()[src_y][:, src_x].astype(np.int32)
        alpha = samples[..., 3]
        quantized = np.empty_like(samples)
        quantized[..., :3] = _quantize(premultiply(samples[..., :3], alpha[..., None]))
        quantized[..., 3] = _quantize(alpha)

        return hashlib.sha256(quantized.astype(np.uint8).tobytes()).hexdigest()
