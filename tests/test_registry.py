"""Unit tests for the gallery registry and loader."""

import shutil
import sys
import tempfile
import threading
import unittest
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from facehash.errors import DuplicateName, InvalidImage, UnknownIdentity
from facehash.hashing import AverageHashExtractor, Fingerprint
from facehash.matching import best_match
from facehash.registry import (
    GalleryLoader,
    GalleryRegistry,
    build_gallery,
    registry_from_fingerprints,
)
from facehash.utils.config import config_from_dict
from facehash.utils.io import save_image


def split_image(size=64, vertical=True):
    """Half dark, half bright; split vertically or horizontally."""
    image = np.full((size, size, 3), 255, dtype=np.uint8)
    if vertical:
        image[:, : size // 2] = 0
    else:
        image[: size // 2, :] = 0
    return image


class TestGalleryRegistry(unittest.TestCase):
    """Test registration, population and snapshots."""

    def setUp(self):
        self.extractor = AverageHashExtractor()
        self.registry = GalleryRegistry(extractor=self.extractor)
        self.registry.register([
            {"name": "nd", "image": "/users/nd.JPG"},
            {"name": "rinki", "image_ref": "/users/rinki.JPG"},
            ("jhp", "/users/jhp.JPG"),
        ])

    def test_register_keeps_order_and_absent_fingerprints(self):
        snapshot = self.registry.snapshot()
        self.assertEqual([i.name for i in snapshot], ["nd", "rinki", "jhp"])
        self.assertEqual(snapshot[0].image_ref, "/users/nd.JPG")
        self.assertTrue(all(i.fingerprint is None for i in snapshot))
        self.assertEqual(self.registry.pending(), ["nd", "rinki", "jhp"])
        self.assertEqual(len(self.registry), 3)
        self.assertIn("rinki", self.registry)

    def test_duplicate_within_call(self):
        registry = GalleryRegistry()
        with self.assertRaises(DuplicateName):
            registry.register([("a", "a.jpg"), ("b", "b.jpg"), ("a", "c.jpg")])
        self.assertEqual(len(registry), 0)

    def test_duplicate_with_existing(self):
        with self.assertRaises(DuplicateName):
            self.registry.register([("new", "new.jpg"), ("nd", "other.jpg")])
        self.assertNotIn("new", self.registry)
        self.assertEqual(self.registry.names(), ["nd", "rinki", "jhp"])

    def test_entry_without_name_rejected(self):
        with self.assertRaises(ValueError):
            GalleryRegistry().register([{"image": "x.jpg"}])

    def test_populate(self):
        identity = self.registry.populate("rinki", split_image())
        self.assertTrue(identity.is_populated)
        self.assertEqual(identity.fingerprint, self.extractor.extract(split_image()))
        self.assertEqual(self.registry.pending(), ["nd", "jhp"])
        self.assertEqual(self.registry.get("rinki"), identity)

    def test_populate_twice_keeps_second(self):
        self.registry.populate("nd", split_image(vertical=True))
        self.registry.populate("nd", split_image(vertical=False))
        self.assertEqual(
            self.registry.get("nd").fingerprint,
            self.extractor.extract(split_image(vertical=False)),
        )

    def test_populate_out_of_order(self):
        self.registry.populate("jhp", split_image())
        self.registry.populate("nd", split_image(vertical=False))
        names = [i.name for i in self.registry.snapshot() if i.is_populated]
        self.assertEqual(names, ["nd", "jhp"])

    def test_populate_unknown(self):
        with self.assertRaises(UnknownIdentity):
            self.registry.populate("nobody", split_image())
        with self.assertRaises(KeyError):
            self.registry.set_fingerprint("nobody", Fingerprint.from_bits([0] * 256))

    def test_failed_populate_keeps_previous(self):
        self.registry.populate("nd", split_image())
        before = self.registry.get("nd").fingerprint
        with self.assertRaises(InvalidImage):
            self.registry.populate("nd", np.zeros((0, 5, 3), dtype=np.uint8))
        self.assertEqual(self.registry.get("nd").fingerprint, before)

    def test_snapshot_is_not_affected_by_later_population(self):
        snapshot = self.registry.snapshot()
        self.registry.populate("nd", split_image())
        self.assertIsNone(snapshot[0].fingerprint)
        self.assertIsNotNone(self.registry.snapshot()[0].fingerprint)

    def test_concurrent_population_and_snapshots(self):
        names = [f"user{i}" for i in range(20)]
        registry = GalleryRegistry(entries=[(n, n) for n in names])
        image = split_image()
        errors = []

        def writer():
            for name in names:
                registry.populate(name, image)

        def reader():
            for _ in range(200):
                for identity in registry.snapshot():
                    if identity.fingerprint is not None and len(identity.fingerprint) != 256:
                        errors.append(identity.name)

        threads = [threading.Thread(target=writer)] + [
            threading.Thread(target=reader) for _ in range(3)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(registry.pending(), [])

    def test_registry_from_fingerprints(self):
        fp = Fingerprint.from_bits([1] * 256)
        registry = registry_from_fingerprints([("a", fp)])
        self.assertEqual(registry.get("a").fingerprint, fp)
        self.assertEqual(registry.get("a").to_dict()["fingerprint"], "1" * 256)


class TestGalleryLoader(unittest.TestCase):
    """Test loading reference images from disk."""

    def setUp(self):
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.images = {
            "nd": split_image(vertical=True),
            "rinki": split_image(vertical=False),
        }
        for name, image in self.images.items():
            save_image(image, self.tmp_dir / "users" / f"{name}.png")

        self.extractor = AverageHashExtractor()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def test_load_all(self):
        registry = GalleryRegistry(
            extractor=self.extractor,
            entries=[("nd", "/users/nd.png"), ("rinki", "users/rinki.png")],
        )
        report = GalleryLoader(registry, root_dir=self.tmp_dir).load_all()

        self.assertTrue(report.complete)
        self.assertEqual(sorted(report.loaded), ["nd", "rinki"])
        for name, image in self.images.items():
            self.assertEqual(
                registry.get(name).fingerprint, self.extractor.extract(image)
            )

    def test_missing_image_does_not_block_others(self):
        registry = GalleryRegistry(
            entries=[("ghost", "users/ghost.png"), ("nd", "users/nd.png")]
        )
        report = GalleryLoader(registry, root_dir=self.tmp_dir).load_all()

        self.assertFalse(report.complete)
        self.assertIn("ghost", report.failed)
        self.assertEqual(report.loaded, ["nd"])
        self.assertEqual(registry.pending(), ["ghost"])

    def test_corrupt_image_reported(self):
        (self.tmp_dir / "users" / "bad.png").write_bytes(b"not an image")
        registry = GalleryRegistry(entries=[("bad", "users/bad.png")])
        report = GalleryLoader(registry, root_dir=self.tmp_dir).load_all()
        self.assertIn("bad", report.failed)

    def test_search_during_population(self):
        release = threading.Event()
        images = {"slow": split_image(vertical=True), "fast": split_image(vertical=False)}

        def image_loader(path):
            if path.stem == "slow":
                release.wait(timeout=10)
            return images[path.stem]

        registry = GalleryRegistry(entries=[("slow", "slow"), ("fast", "fast")])
        loader = GalleryLoader(registry, max_workers=2, image_loader=image_loader)
        futures = loader.start()
        futures["fast"].result(timeout=10)

        probe = self.extractor.extract(images["slow"])
        early = best_match(probe, registry.snapshot(), threshold=256)
        self.assertEqual(early.name, "fast")

        release.set()
        report = loader.wait(timeout=10)
        self.assertTrue(report.complete)

        late = best_match(probe, registry.snapshot(), threshold=256)
        self.assertEqual(late.name, "slow")
        self.assertEqual(late.distance, 0)

    def test_timeout_cancels_queued_jobs(self):
        started = threading.Event()
        release = threading.Event()

        def image_loader(path):
            started.set()
            release.wait(timeout=10)
            return split_image()

        registry = GalleryRegistry(entries=[("first", "first"), ("second", "second")])
        loader = GalleryLoader(registry, max_workers=1, image_loader=image_loader)
        futures = loader.start()
        self.assertTrue(started.wait(timeout=10))
        try:
            with self.assertRaises(TimeoutError):
                loader.wait(timeout=0.05)
            self.assertTrue(futures["second"].cancelled())
        finally:
            release.set()

        futures["first"].result(timeout=10)
        report = loader.wait()
        self.assertEqual(report.loaded, ["first"])
        self.assertEqual(registry.pending(), ["second"])

    def test_start_twice(self):
        registry = GalleryRegistry(entries=[("nd", "users/nd.png")])
        loader = GalleryLoader(registry, root_dir=self.tmp_dir)
        loader.load_all()
        with self.assertRaises(RuntimeError):
            loader.start()

    def test_build_gallery_from_config(self):
        config = config_from_dict({
            "fingerprint": {"grid_size": 8},
            "gallery": {
                "root_dir": str(self.tmp_dir),
                "entries": [{"name": "nd", "image": "users/nd.png"}],
            },
        })
        registry, loader = build_gallery(config)
        loader.load_all()
        self.assertEqual(len(registry.get("nd").fingerprint), 64)


if __name__ == "__main__":
    unittest.main()
