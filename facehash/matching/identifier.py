"""
Identification of probe images against a gallery registry.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from facehash.hashing.average_hash import AverageHashExtractor, Fingerprint
from facehash.matching.selector import MatchResult, best_match, rank_candidates
from facehash.registry.gallery import GalleryRegistry, KnownIdentity
from facehash.utils.io import decode_image, load_image

logger = logging.getLogger(__name__)


class Identifier:
    """
    Extract a probe fingerprint and search the registry with it.

    The acceptance threshold is supplied by the caller, usually from
    ``Config.matching.threshold``.
    """

    def __init__(
        self,
        registry: GalleryRegistry,
        threshold: int,
        extractor: Optional[AverageHashExtractor] = None,
    ):
        """
        Initialize the identifier.

        Args:
            registry: Gallery to search
            threshold: Largest Hamming distance accepted as a match
            extractor: Probe extractor; defaults to the registry's own so
                probe and gallery fingerprints have the same length
        """
        self.registry = registry
        self.threshold = threshold
        self.extractor = extractor or registry.extractor

    def identify(self, image) -> Optional[MatchResult]:
        """
        Identify a decoded probe image.

        Only identities populated at call time are considered.

        Returns:
            MatchResult, or None when nothing is within the threshold
        """
        return self.match(self.extractor.extract(image))

    def match(self, probe: Fingerprint) -> Optional[MatchResult]:
        """Search the registry with an already extracted fingerprint."""
        gallery = self.registry.snapshot()
        result = best_match(probe, gallery, self.threshold)

        if result is None:
            logger.info(
                f"No match within threshold {self.threshold} "
                f"({sum(1 for i in gallery if i.is_populated)} candidates)"
            )
        else:
            logger.info(f"Matched {result.name!r} at distance {result.distance}")
        return result

    def identify_file(self, path: Union[str, Path]) -> Optional[MatchResult]:
        """Identify an image file on disk."""
        return self.identify(load_image(path))

    def identify_bytes(self, data: bytes) -> Optional[MatchResult]:
        """Identify an encoded image, e.g. an uploaded file or camera frame."""
        return self.identify(decode_image(data))

    def rank(self, image, top_k: Optional[int] = None) -> List[Tuple[KnownIdentity, int]]:
        """Return populated identities ordered by distance to the image."""
        probe = self.extractor.extract(image)
        return rank_candidates(probe, self.registry.snapshot(), top_k=top_k)
