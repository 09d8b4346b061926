"""
facehash: identify a person by comparing an image's average-hash
fingerprint against a small gallery of reference images.

Typical use:

    from facehash import GalleryRegistry, extract, best_match

    registry = GalleryRegistry(entries=[{"name": "nd", "image": "users/nd.jpg"}])
    registry.populate("nd", reference_pixels)
    result = best_match(extract(probe_pixels), registry.snapshot(), threshold=100)
"""

from facehash.errors import (
    FaceHashError,
    InvalidImage,
    LengthMismatch,
    DuplicateName,
    UnknownIdentity,
)
from facehash.hashing import (
    AverageHashExtractor,
    Fingerprint,
    extract,
    hamming_distance,
    DEFAULT_FINGERPRINT_BITS,
)
from facehash.registry import (
    GalleryRegistry,
    GalleryLoader,
    KnownIdentity,
    LoadReport,
    build_gallery,
)
from facehash.matching import (
    Identifier,
    MatchResult,
    best_match,
    rank_candidates,
)

__version__ = "0.1.0"

__all__ = [
    "FaceHashError",
    "InvalidImage",
    "LengthMismatch",
    "DuplicateName",
    "UnknownIdentity",
    "AverageHashExtractor",
    "Fingerprint",
    "extract",
    "hamming_distance",
    "DEFAULT_FINGERPRINT_BITS",
    "GalleryRegistry",
    "GalleryLoader",
    "KnownIdentity",
    "LoadReport",
    "build_gallery",
    "Identifier",
    "MatchResult",
    "best_match",
    "rank_candidates",
]
