"""
Background loading of reference images into a gallery registry.

Each pending identity gets its own load-and-extract job on a thread
pool. Jobs finish in any order and populate their identity as soon as
they complete, so searches can start before the whole gallery is ready.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from facehash.hashing.average_hash import AverageHashExtractor
from facehash.registry.gallery import GalleryRegistry, KnownIdentity
from facehash.utils.io import load_image

logger = logging.getLogger(__name__)


@dataclass
class LoadReport:
    """
    Outcome of a gallery load.

    Attributes:
        loaded: Names populated successfully, in completion order
        failed: Mapping of name to error message
    """
    loaded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {"loaded": list(self.loaded), "failed": dict(self.failed)}


class GalleryLoader:
    """
    Populate a registry from its identities' image references.

    Usage:
    ------
    loader = GalleryLoader(registry, root_dir="gallery")
    loader.start()            # returns immediately
    ...                       # searches see identities as they load
    report = loader.wait()    # or loader.load_all() to do both
    """

    def __init__(
        self,
        registry: GalleryRegistry,
        extractor: Optional[AverageHashExtractor] = None,
        root_dir: Union[str, Path] = ".",
        max_workers: int = 4,
        image_loader: Callable[[Path], np.ndarray] = load_image,
    ):
        """
        Initialize the loader.

        Args:
            registry: Registry to populate
            extractor: Extractor to use; defaults to the registry's own
            root_dir: Directory relative image references are resolved against
            max_workers: Number of loader threads
            image_loader: Function decoding a path into a pixel array
        """
        self.registry = registry
        self.extractor = extractor or registry.extractor
        self.root_dir = Path(root_dir)
        self.max_workers = max_workers
        self.image_loader = image_loader

        self._executor: Optional[ThreadPoolExecutor] = None
        self._closed = False
        self._futures: Dict[str, Future] = {}
        self._report = LoadReport()
        self._report_lock = threading.Lock()

    def resolve(self, identity: KnownIdentity) -> Path:
        """Return the filesystem path of an identity's reference image."""
        path = Path(identity.image_ref)
        if path.is_absolute() and path.exists():
            return path
        # web-style "/users/x.jpg" references are relative to root_dir
        return self.root_dir / identity.image_ref.lstrip("/")

    def _load_one(self, identity: KnownIdentity) -> KnownIdentity:
        path = self.resolve(identity)
        try:
            image = self.image_loader(path)
            fingerprint = self.extractor.extract(image)
        except Exception as e:
            logger.warning(f"Failed to load reference image for {identity.name!r}: {e}")
            with self._report_lock:
                self._report.failed[identity.name] = str(e)
            raise

        updated = self.registry.set_fingerprint(identity.name, fingerprint)
        with self._report_lock:
            self._report.loaded.append(identity.name)
        return updated

    def start(self) -> Dict[str, Future]:
        """
        Submit a job for every identity that still lacks a fingerprint.

        Returns:
            Mapping of identity name to its Future; does not block
        """
        if self._executor is not None:
            raise RuntimeError("GalleryLoader.start() called twice")

        pending = [i for i in self.registry.snapshot() if not i.is_populated]
        logger.info(f"Loading {len(pending)} reference images from {self.root_dir}")

        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="gallery-loader"
        )
        self._futures = {
            identity.name: self._executor.submit(self._load_one, identity)
            for identity in pending
        }
        return dict(self._futures)

    def wait(self, timeout: Optional[float] = None) -> LoadReport:
        """
        Block until all submitted jobs have finished.

        Args:
            timeout: Maximum seconds to wait; None waits indefinitely

        Returns:
            LoadReport of the jobs finished so far

        Raises:
            TimeoutError: If jobs are still running after ``timeout``. Jobs
                that have not started are cancelled and running ones are left
                to finish; later calls return the report without waiting.
        """
        if self._executor is None or self._closed:
            return self.report()

        _, not_done = wait_futures(self._futures.values(), timeout=timeout)
        if not_done:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._closed = True
            raise TimeoutError(
                f"{len(not_done)} reference images still loading after {timeout}s"
            )

        self._executor.shutdown(wait=True)
        self._closed = True
        report = self.report()
        logger.info(
            f"Gallery loaded: {len(report.loaded)} ok, {len(report.failed)} failed"
        )
        return report

    def load_all(self, timeout: Optional[float] = None) -> LoadReport:
        """Start loading and wait for completion."""
        self.start()
        return self.wait(timeout=timeout)

    def report(self) -> LoadReport:
        with self._report_lock:
            return LoadReport(
                loaded=list(self._report.loaded),
                failed=dict(self._report.failed),
            )


def build_gallery(
    config,
    extractor: Optional[AverageHashExtractor] = None,
) -> Tuple[GalleryRegistry, GalleryLoader]:
    """
    Create a registry seeded from configuration and a loader for it.

    Args:
        config: facehash.utils.config.Config
        extractor: Optional extractor; built from config.fingerprint if omitted

    Returns:
        Tuple of (registry, loader); loading has not started yet
    """
    extractor = extractor or AverageHashExtractor(
        grid_size=config.fingerprint.grid_size,
        resample=config.fingerprint.resample,
    )
    registry = GalleryRegistry(extractor=extractor, entries=config.gallery.entries)
    loader = GalleryLoader(
        registry,
        extractor=extractor,
        root_dir=config.gallery.root_dir,
        max_workers=config.gallery.max_workers,
    )
    return registry, loader
