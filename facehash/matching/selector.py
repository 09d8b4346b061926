"""
Best-match selection over a gallery snapshot.

The gallery is small (tens of entries), so selection is a linear scan.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from facehash.hashing.average_hash import Fingerprint
from facehash.hashing.distance import hamming_distance
from facehash.registry.gallery import KnownIdentity


@dataclass(frozen=True)
class MatchResult:
    """
    Accepted match of a probe fingerprint.

    Attributes:
        identity: Gallery identity with the smallest distance
        distance: Hamming distance between probe and identity fingerprint
    """
    identity: KnownIdentity
    distance: int

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def similarity(self) -> float:
        """Similarity in [0, 1]: 1 - distance / fingerprint length."""
        length = len(self.identity.fingerprint) if self.identity.fingerprint else 0
        if length == 0:
            return 1.0
        return 1.0 - self.distance / length

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.identity.name,
            "image_ref": self.identity.image_ref,
            "distance": self.distance,
            "similarity": self.similarity,
        }


def best_match(
    probe: Fingerprint,
    gallery: Sequence[KnownIdentity],
    threshold: int,
) -> Optional[MatchResult]:
    """
    Find the gallery identity closest to a probe fingerprint.

    Identities without a fingerprint are skipped. On equal distances the
    identity listed first wins.

    Args:
        probe: Fingerprint of the probe image
        gallery: Identities in search order, e.g. GalleryRegistry.snapshot()
        threshold: Largest distance still accepted as a match

    Returns:
        MatchResult, or None if no populated identity is within threshold

    Raises:
        LengthMismatch: If a gallery fingerprint has a different length
    """
    best: Optional[MatchResult] = None

    for identity in gallery:
        if identity.fingerprint is None:
            continue
        distance = hamming_distance(probe, identity.fingerprint)
        if best is None or distance < best.distance:
            best = MatchResult(identity=identity, distance=distance)

    if best is not None and best.distance <= threshold:
        return best
    return None


def rank_candidates(
    probe: Fingerprint,
    gallery: Sequence[KnownIdentity],
    top_k: Optional[int] = None,
) -> List[Tuple[KnownIdentity, int]]:
    """
    Order populated identities by distance to the probe.

    Ties keep gallery order. No threshold is applied.

    Args:
        probe: Fingerprint of the probe image
        gallery: Identities in search order
        top_k: Keep only the first k candidates

    Returns:
        List of (identity, distance) tuples, closest first
    """
    scored = [
        (identity, hamming_distance(probe, identity.fingerprint))
        for identity in gallery
        if identity.fingerprint is not None
    ]
    # sorted() is stable, so equal distances stay in gallery order
    scored = sorted(scored, key=lambda item: item[1])

    if top_k is not None:
        scored = scored[:top_k]
    return scored
