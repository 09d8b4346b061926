"""Unit tests for fingerprint extraction and distance."""

import sys
import unittest
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from facehash.errors import InvalidImage, LengthMismatch
from facehash.hashing import (
    AverageHashExtractor,
    Fingerprint,
    extract,
    hamming_distance,
    normalized_distance,
    DEFAULT_FINGERPRINT_BITS,
)


def split_image(size=64, dark_value=0, bright_value=255):
    """Left half dark, right half bright."""
    image = np.full((size, size, 3), bright_value, dtype=np.uint8)
    image[:, : size // 2] = dark_value
    return image


class TestExtraction(unittest.TestCase):
    """Test average-hash extraction."""

    def setUp(self):
        self.extractor = AverageHashExtractor()
        self.rng = np.random.default_rng(7)

    def test_default_length(self):
        fp = self.extractor.extract(split_image())
        self.assertEqual(len(fp), 256)
        self.assertEqual(DEFAULT_FINGERPRINT_BITS, 256)
        self.assertEqual(self.extractor.bit_length, 256)

    def test_known_pattern_row_major(self):
        fp = self.extractor.extract(split_image())
        expected = ([0] * 8 + [1] * 8) * 16
        self.assertEqual(list(fp.bits), expected)

    def test_top_left_cell_is_first_bit(self):
        image = np.zeros((32, 32, 3), dtype=np.uint8)
        image[:2, :2] = 255
        fp = self.extractor.extract(image)
        self.assertEqual(fp.bits[0], 1)
        self.assertEqual(sum(fp.bits), 1)

    def test_uniform_image_is_all_zeros(self):
        # No cell is strictly greater than the mean
        image = np.full((40, 30, 3), 200, dtype=np.uint8)
        fp = self.extractor.extract(image)
        self.assertEqual(sum(fp.bits), 0)

    def test_deterministic(self):
        image = self.rng.integers(0, 256, size=(120, 90, 3), dtype=np.uint8)
        self.assertEqual(self.extractor.extract(image), self.extractor.extract(image))

    def test_does_not_mutate_input(self):
        image = self.rng.integers(0, 256, size=(50, 70, 4), dtype=np.uint8)
        original = image.copy()
        self.extractor.extract(image)
        np.testing.assert_array_equal(image, original)

    def test_alpha_is_discarded(self):
        rgb = self.rng.integers(0, 256, size=(48, 48, 3), dtype=np.uint8)
        alpha = self.rng.integers(0, 256, size=(48, 48, 1), dtype=np.uint8)
        rgba = np.concatenate([rgb, alpha], axis=2)
        self.assertEqual(self.extractor.extract(rgb), self.extractor.extract(rgba))

    def test_grayscale_matches_rgb(self):
        gray = self.rng.integers(0, 256, size=(64, 64), dtype=np.uint8)
        rgb = np.stack([gray, gray, gray], axis=2)
        self.assertEqual(self.extractor.extract(gray), self.extractor.extract(rgb))

    def test_tiny_and_large_images_are_resampled(self):
        tiny = np.array([[[10, 20, 30]]], dtype=np.uint8)
        large = self.rng.integers(0, 256, size=(1200, 900, 3), dtype=np.uint8)
        self.assertEqual(len(self.extractor.extract(tiny)), 256)
        self.assertEqual(len(self.extractor.extract(large)), 256)

    def test_float_pixels_accepted(self):
        image = split_image().astype(np.float64)
        self.assertEqual(
            self.extractor.extract(image), self.extractor.extract(split_image())
        )

    def test_small_blur_is_tolerated(self):
        image = split_image(size=128)
        noisy = image.astype(np.int16) + self.rng.integers(-10, 11, size=image.shape)
        noisy = np.clip(noisy, 0, 255).astype(np.uint8)
        distance = hamming_distance(
            self.extractor.extract(image), self.extractor.extract(noisy)
        )
        self.assertLessEqual(distance, 10)

    def test_custom_grid_size(self):
        extractor = AverageHashExtractor(grid_size=8, resample="linear")
        fp = extractor.extract(split_image())
        self.assertEqual(len(fp), 64)
        self.assertEqual(len(extract(split_image(), grid_size=8)), 64)

    def test_invalid_configuration(self):
        with self.assertRaises(ValueError):
            AverageHashExtractor(grid_size=0)
        with self.assertRaises(ValueError):
            AverageHashExtractor(resample="bogus")

    def test_invalid_images(self):
        bad_inputs = [
            np.zeros((0, 10, 3), dtype=np.uint8),
            np.zeros((10, 0, 3), dtype=np.uint8),
            np.zeros((10, 10, 2), dtype=np.uint8),
            np.zeros((10,), dtype=np.uint8),
            np.array([["a", "b"], ["c", "d"]]),
            np.full((8, 8, 3), np.nan),
            np.full((8, 8), np.inf),
        ]
        for image in bad_inputs:
            with self.assertRaises(InvalidImage):
                self.extractor.extract(image)

    def test_invalid_image_is_value_error(self):
        with self.assertRaises(ValueError):
            self.extractor.extract(np.zeros((0, 0, 3), dtype=np.uint8))


class TestFingerprint(unittest.TestCase):
    """Test the Fingerprint value type."""

    def test_text_forms(self):
        fp = Fingerprint.from_bitstring("1010000011111111")
        self.assertEqual(fp.to_bitstring(), "1010000011111111")
        self.assertEqual(str(fp), "1010000011111111")
        self.assertEqual(fp.to_hex(), "a0ff")
        self.assertEqual(Fingerprint.from_hex("a0ff", 16), fp)

    def test_hex_keeps_leading_zeros(self):
        fp = Fingerprint.from_bits([0] * 12 + [1] * 4)
        self.assertEqual(fp.to_hex(), "000f")
        self.assertEqual(len(Fingerprint.from_hex("000f", 16)), 16)

    def test_rejects_non_bits(self):
        with self.assertRaises(ValueError):
            Fingerprint((0, 2, 1))
        with self.assertRaises(ValueError):
            Fingerprint.from_bitstring("01x1")
        with self.assertRaises(ValueError):
            Fingerprint.from_hex("1ff", 8)

    def test_hashable_and_comparable(self):
        a = Fingerprint.from_bitstring("0110")
        b = Fingerprint.from_bits([0, 1, 1, 0])
        self.assertEqual(a, b)
        self.assertEqual(len({a, b}), 1)


class TestHammingDistance(unittest.TestCase):
    """Test the distance metric."""

    def setUp(self):
        rng = np.random.default_rng(11)
        self.a = Fingerprint.from_bits(rng.integers(0, 2, size=256))
        self.b = Fingerprint.from_bits(rng.integers(0, 2, size=256))

    def test_zero_for_identical(self):
        self.assertEqual(hamming_distance(self.a, self.a), 0)

    def test_symmetric_and_bounded(self):
        d_ab = hamming_distance(self.a, self.b)
        self.assertEqual(d_ab, hamming_distance(self.b, self.a))
        self.assertGreaterEqual(d_ab, 0)
        self.assertLessEqual(d_ab, 256)

    def test_counts_flipped_bits(self):
        bits = list(self.a.bits)
        for i in (0, 17, 100, 255):
            bits[i] = 1 - bits[i]
        flipped = Fingerprint.from_bits(bits)
        self.assertEqual(hamming_distance(self.a, flipped), 4)
        self.assertNotEqual(self.a, flipped)

    def test_complement_is_maximal(self):
        complement = Fingerprint.from_bits(1 - b for b in self.a.bits)
        self.assertEqual(hamming_distance(self.a, complement), 256)
        self.assertEqual(normalized_distance(self.a, complement), 1.0)

    def test_length_mismatch(self):
        short = Fingerprint.from_bits([0] * 64)
        with self.assertRaises(LengthMismatch):
            hamming_distance(self.a, short)
        with self.assertRaises(LengthMismatch):
            hamming_distance(short, self.a)


if __name__ == "__main__":
    unittest.main()
