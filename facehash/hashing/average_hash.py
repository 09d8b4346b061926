"""
Average-hash fingerprint extraction.

This module reduces an arbitrary-size color image to a fixed-length
binary fingerprint. The fingerprint tolerates small blur and scale
changes in the source image but is sensitive to major recompositions,
so it is a coarse similarity signal rather than an exact hash.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Tuple

import cv2
import numpy as np

from facehash.errors import InvalidImage

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_GRID_SIZE = 16
DEFAULT_FINGERPRINT_BITS = DEFAULT_GRID_SIZE * DEFAULT_GRID_SIZE
DEFAULT_RESAMPLE = "area"

RESAMPLE_FILTERS = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "area": cv2.INTER_AREA,
    "cubic": cv2.INTER_CUBIC,
    "lanczos": cv2.INTER_LANCZOS4,
}


# =============================================================================
# FINGERPRINT VALUE TYPE
# =============================================================================


@dataclass(frozen=True)
class Fingerprint:
    """
    Fixed-length ordered sequence of bits.

    Bits are stored row-major, top-left cell first. Two fingerprints are
    equal when their bit sequences are identical.

    Attributes:
        bits: Tuple of 0/1 integers
    """
    bits: Tuple[int, ...]

    def __post_init__(self):
        bits = tuple(int(b) for b in self.bits)
        if any(b not in (0, 1) for b in bits):
            raise ValueError("Fingerprint bits must be 0 or 1")
        object.__setattr__(self, "bits", bits)

    def __len__(self) -> int:
        return len(self.bits)

    def __iter__(self):
        return iter(self.bits)

    def __str__(self) -> str:
        return self.to_bitstring()

    @classmethod
    def from_bits(cls, bits: Iterable[int]) -> "Fingerprint":
        """Build a fingerprint from any iterable of 0/1 values."""
        return cls(tuple(bits))

    @classmethod
    def from_bitstring(cls, text: str) -> "Fingerprint":
        """
        Parse the textual form, e.g. ``"0110..."``.

        Raises:
            ValueError: If the string contains anything but '0' and '1'
        """
        if any(ch not in "01" for ch in text):
            raise ValueError(f"Not a bit string: {text[:32]!r}")
        return cls(tuple(1 if ch == "1" else 0 for ch in text))

    @classmethod
    def from_hex(cls, text: str, length: int) -> "Fingerprint":
        """Parse a hex string produced by :meth:`to_hex`."""
        value = int(text, 16)
        if value >> length:
            raise ValueError(f"Hex value does not fit in {length} bits")
        return cls.from_bitstring(format(value, f"0{length}b"))

    def to_bitstring(self) -> str:
        return "".join("1" if b else "0" for b in self.bits)

    def to_hex(self) -> str:
        """Hex form, zero padded to ``ceil(len / 4)`` digits."""
        if not self.bits:
            return ""
        width = (len(self.bits) + 3) // 4
        return format(int(self.to_bitstring(), 2), f"0{width}x")

    def to_array(self) -> np.ndarray:
        return np.array(self.bits, dtype=np.uint8)


# =============================================================================
# EXTRACTOR
# =============================================================================


def _as_rgb(image) -> np.ndarray:
    """
    Validate an image and return its RGB planes as a new uint8 array.

    Accepts (H, W) grayscale, (H, W, 3) RGB and (H, W, 4) RGBA arrays.
    """
    try:
        array = np.asarray(image)
    except Exception as e:
        raise InvalidImage(f"Cannot read pixel data: {e}") from e

    if array.dtype == object or not (
        np.issubdtype(array.dtype, np.number) or array.dtype == np.bool_
    ):
        raise InvalidImage(f"Unsupported pixel type: {array.dtype}")

    if array.ndim == 2:
        array = array[:, :, np.newaxis].repeat(3, axis=2)
    elif array.ndim == 3 and array.shape[2] in (3, 4):
        array = array[:, :, :3]
    else:
        raise InvalidImage(f"Unsupported image shape: {array.shape}")

    height, width = array.shape[:2]
    if height == 0 or width == 0:
        raise InvalidImage(f"Image has zero size: {width}x{height}")

    if array.dtype != np.uint8:
        if np.issubdtype(array.dtype, np.floating) and not np.isfinite(array).all():
            raise InvalidImage("Image contains NaN or infinite pixel values")
        array = np.clip(np.rint(array.astype(np.float64)), 0, 255)

    # cv2 needs a contiguous buffer; this also detaches us from the caller
    return np.ascontiguousarray(array, dtype=np.uint8).copy()


class AverageHashExtractor:
    """
    Average-hash fingerprint extractor.

    Algorithm:
    ----------
    1. Resample the image to an N x N grid with a fixed interpolation filter
    2. Gray value per cell: round((R + G + B) / 3), alpha discarded
    3. Threshold: arithmetic mean of the N² gray values
    4. Bit per cell, row-major: 1 if gray > mean, else 0

    The resampling filter does not change correctness but does affect
    match quality, so it is fixed per extractor instance.
    """

    def __init__(
        self,
        grid_size: int = DEFAULT_GRID_SIZE,
        resample: str = DEFAULT_RESAMPLE,
    ):
        """
        Initialize the extractor.

        Args:
            grid_size: Grid resolution N; fingerprints have N² bits
            resample: One of the keys of RESAMPLE_FILTERS
        """
        if grid_size < 1:
            raise ValueError(f"grid_size must be >= 1, got {grid_size}")
        if resample not in RESAMPLE_FILTERS:
            raise ValueError(
                f"Unknown resample filter {resample!r}; "
                f"choose from {sorted(RESAMPLE_FILTERS)}"
            )
        self._grid_size = grid_size
        self._resample = resample

    @property
    def grid_size(self) -> int:
        return self._grid_size

    @property
    def resample(self) -> str:
        return self._resample

    @property
    def bit_length(self) -> int:
        """Number of bits in every fingerprint this extractor produces."""
        return self._grid_size * self._grid_size

    def extract(self, image) -> Fingerprint:
        """
        Compute the fingerprint of an image.

        Args:
            image: Pixel array (H x W, H x W x 3 or H x W x 4), values in [0, 255]

        Returns:
            Fingerprint of length grid_size²

        Raises:
            InvalidImage: If the image is empty or its pixel data is unusable
        """
        rgb = _as_rgb(image)
        n = self._grid_size

        try:
            cells = cv2.resize(
                rgb, (n, n), interpolation=RESAMPLE_FILTERS[self._resample]
            )
        except cv2.error as e:
            raise InvalidImage(f"Resampling failed: {e}") from e

        cells = cells.reshape(n, n, 3).astype(np.int64)

        # round-half-up of sum / 3 in integer arithmetic
        gray = (cells.sum(axis=2) + 1) // 3
        mean = float(gray.sum()) / gray.size

        bits = (gray > mean).astype(np.uint8).flatten()
        logger.debug(
            "Extracted %d-bit fingerprint from %dx%d image (mean %.2f)",
            bits.size, rgb.shape[1], rgb.shape[0], mean,
        )
        return Fingerprint(tuple(int(b) for b in bits))

    def __repr__(self) -> str:
        return (
            f"AverageHashExtractor(grid_size={self._grid_size}, "
            f"resample={self._resample!r})"
        )


def extract(
    image,
    grid_size: int = DEFAULT_GRID_SIZE,
    resample: str = DEFAULT_RESAMPLE,
) -> Fingerprint:
    """
    Convenience function to compute an average-hash fingerprint.

    Args:
        image: Pixel array
        grid_size: Grid resolution N
        resample: Interpolation filter name

    Returns:
        Fingerprint of length grid_size²
    """
    return AverageHashExtractor(grid_size=grid_size, resample=resample).extract(image)
