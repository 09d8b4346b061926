"""
Gallery of known identities and their reference fingerprints.

This package holds the registry searched during matching and the
background loader that fills it from reference images.
"""

from facehash.registry.gallery import (
    GalleryRegistry,
    KnownIdentity,
    registry_from_fingerprints,
)
from facehash.registry.loader import (
    GalleryLoader,
    LoadReport,
    build_gallery,
)

__all__ = [
    "GalleryRegistry",
    "KnownIdentity",
    "registry_from_fingerprints",
    "GalleryLoader",
    "LoadReport",
    "build_gallery",
]
