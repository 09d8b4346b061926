"""
Hamming distance between fingerprints.

Mathematical Formulation:
-------------------------
Given two bit sequences a and b of equal length L:

    d(a, b) = Σ_i [a_i != b_i]

Properties:
- Range: [0, L] (0 = identical fingerprints)
- Symmetric: d(a, b) = d(b, a)
"""

import numpy as np

from facehash.errors import LengthMismatch
from facehash.hashing.average_hash import Fingerprint


def hamming_distance(a: Fingerprint, b: Fingerprint) -> int:
    """
    Count the bit positions at which two fingerprints differ.

    Args:
        a: First fingerprint
        b: Second fingerprint

    Returns:
        Number of differing positions

    Raises:
        LengthMismatch: If the fingerprints have different lengths
    """
    if len(a) != len(b):
        raise LengthMismatch(len(a), len(b))

    return int(np.count_nonzero(a.to_array() != b.to_array()))


def normalized_distance(a: Fingerprint, b: Fingerprint) -> float:
    """Hamming distance divided by fingerprint length, in [0, 1]."""
    distance = hamming_distance(a, b)
    if len(a) == 0:
        return 0.0
    return distance / len(a)
