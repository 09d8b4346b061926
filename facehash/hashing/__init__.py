"""
Perceptual fingerprints for identity matching.
"""

from .average_hash import (
    AverageHashExtractor,
    Fingerprint,
    extract,
    DEFAULT_GRID_SIZE,
    DEFAULT_FINGERPRINT_BITS,
    DEFAULT_RESAMPLE,
    RESAMPLE_FILTERS,
)
from .distance import (
    hamming_distance,
    normalized_distance,
)

__all__ = [
    'AverageHashExtractor',
    'Fingerprint',
    'extract',
    'DEFAULT_GRID_SIZE',
    'DEFAULT_FINGERPRINT_BITS',
    'DEFAULT_RESAMPLE',
    'RESAMPLE_FILTERS',
    'hamming_distance',
    'normalized_distance',
]
