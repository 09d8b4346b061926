"""
Gallery registry of known identities.

This module holds the reference identities a probe image is searched
against, together with their lazily computed fingerprints. Population
can happen from loader threads while searches read snapshots.
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from facehash.errors import DuplicateName, UnknownIdentity
from facehash.hashing.average_hash import AverageHashExtractor, Fingerprint

logger = logging.getLogger(__name__)


SeedEntry = Union[Mapping[str, Any], Tuple[str, str]]


@dataclass(frozen=True)
class KnownIdentity:
    """
    A registered reference identity.

    Instances are immutable; populating a fingerprint replaces the
    registry's entry with a new instance.

    Attributes:
        name: Unique identifier
        image_ref: Locator of the reference image (path or URL)
        fingerprint: Fingerprint of the reference image, None until populated
    """
    name: str
    image_ref: str
    fingerprint: Optional[Fingerprint] = None

    @property
    def is_populated(self) -> bool:
        return self.fingerprint is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "image_ref": self.image_ref,
            "fingerprint": (
                self.fingerprint.to_bitstring() if self.fingerprint else None
            ),
        }


def _parse_seed(entry: SeedEntry) -> Tuple[str, str]:
    if isinstance(entry, Mapping):
        name = entry.get("name")
        image_ref = entry.get("image_ref", entry.get("image"))
    else:
        name, image_ref = entry

    if not name:
        raise ValueError(f"Gallery entry has no name: {entry!r}")
    if image_ref is None:
        raise ValueError(f"Gallery entry {name!r} has no image reference")
    return str(name), str(image_ref)


class GalleryRegistry:
    """
    Ordered, name-keyed collection of known identities.

    Readiness is tracked per identity only: an identity takes part in
    searches once its fingerprint is present. Each entry is replaced as a
    whole under a lock, so readers never observe a half-written entry.
    """

    def __init__(
        self,
        extractor: Optional[AverageHashExtractor] = None,
        entries: Optional[Iterable[SeedEntry]] = None,
    ):
        """
        Initialize the registry.

        Args:
            extractor: Extractor used by populate(); defaults to a 16x16 average hash
            entries: Optional seed entries passed to register()
        """
        self._extractor = extractor or AverageHashExtractor()
        self._identities: Dict[str, KnownIdentity] = {}
        self._lock = threading.Lock()

        if entries is not None:
            self.register(entries)

    @property
    def extractor(self) -> AverageHashExtractor:
        return self._extractor

    def register(self, entries: Iterable[SeedEntry]) -> List[KnownIdentity]:
        """
        Seed the registry with identities whose fingerprints are absent.

        Entries are mappings with ``name`` and ``image_ref`` (or ``image``)
        keys, or ``(name, image_ref)`` pairs. Either all entries are added
        or none.

        Args:
            entries: Seed entries in gallery order

        Returns:
            The newly registered identities

        Raises:
            DuplicateName: If a name repeats or is already registered
        """
        parsed = [_parse_seed(entry) for entry in entries]

        with self._lock:
            seen = set(self._identities)
            for name, _ in parsed:
                if name in seen:
                    raise DuplicateName(name)
                seen.add(name)

            added = []
            for name, image_ref in parsed:
                identity = KnownIdentity(name=name, image_ref=image_ref)
                self._identities[name] = identity
                added.append(identity)

        logger.info(f"Registered {len(added)} identities")
        return added

    def populate(self, name: str, image) -> KnownIdentity:
        """
        Extract and store the fingerprint of an identity's reference image.

        Calling it again for the same name overwrites the fingerprint.
        Extraction runs outside the lock; only the swap is guarded.

        Args:
            name: Registered identity name
            image: Decoded reference image

        Returns:
            The updated identity

        Raises:
            UnknownIdentity: If the name was never registered
            InvalidImage: If the image cannot be fingerprinted
        """
        if name not in self:
            raise UnknownIdentity(name)

        fingerprint = self._extractor.extract(image)
        return self.set_fingerprint(name, fingerprint)

    def set_fingerprint(self, name: str, fingerprint: Fingerprint) -> KnownIdentity:
        """
        Store a precomputed fingerprint for an identity.

        Raises:
            UnknownIdentity: If the name was never registered
        """
        with self._lock:
            current = self._identities.get(name)
            if current is None:
                raise UnknownIdentity(name)
            updated = replace(current, fingerprint=fingerprint)
            self._identities[name] = updated

        logger.info(f"Populated fingerprint for {name!r}")
        return updated

    def snapshot(self) -> List[KnownIdentity]:
        """
        Return the identities in registration order.

        Each entry reflects its fingerprint state at the time of the call.
        """
        with self._lock:
            return list(self._identities.values())

    def get(self, name: str) -> Optional[KnownIdentity]:
        """Return the identity registered under ``name``, or None."""
        with self._lock:
            return self._identities.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._identities)

    def pending(self) -> List[str]:
        """Names of identities whose fingerprint is still absent."""
        return [i.name for i in self.snapshot() if not i.is_populated]

    def __len__(self) -> int:
        with self._lock:
            return len(self._identities)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._identities

    def __repr__(self) -> str:
        identities = self.snapshot()
        populated = sum(1 for i in identities if i.is_populated)
        return f"GalleryRegistry({populated}/{len(identities)} populated)"


def registry_from_fingerprints(
    items: Sequence[Tuple[str, Fingerprint]],
    extractor: Optional[AverageHashExtractor] = None,
) -> GalleryRegistry:
    """
    Build a fully populated registry from precomputed fingerprints.

    The image reference of each identity is its name.
    """
    registry = GalleryRegistry(extractor=extractor)
    registry.register([(name, name) for name, _ in items])
    for name, fingerprint in items:
        registry.set_fingerprint(name, fingerprint)
    return registry
