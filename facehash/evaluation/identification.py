"""
Identification evaluation over labeled probe images.

Protocol:
---------
1. Fingerprint every probe image once
2. Rank the gallery for each probe (closest identity, its distance)
3. For each candidate threshold, decide accept / reject per probe
4. Report accuracy and error rates per threshold

Probe outcomes at a threshold t, with d the closest distance:
- Genuine probe (its identity is in the gallery):
    accepted and correct   -> true accept
    accepted and wrong     -> false accept (misidentification)
    rejected (d > t)       -> false reject
- Impostor probe (identity not in the gallery):
    accepted               -> false accept
    rejected               -> true reject
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from facehash.errors import InvalidImage
from facehash.hashing.average_hash import AverageHashExtractor
from facehash.matching.selector import rank_candidates
from facehash.registry.gallery import GalleryRegistry
from facehash.utils.logger import ProgressTracker

logger = logging.getLogger(__name__)


@dataclass
class ThresholdMetrics:
    """
    Rates at a single acceptance threshold.

    Attributes:
        threshold: Largest accepted distance
        rank1_accuracy: Fraction of genuine probes whose closest identity is correct
        true_accept_rate: Fraction of genuine probes accepted as the right identity
        false_accept_rate: Fraction of all probes accepted as a wrong identity
        false_reject_rate: Fraction of genuine probes rejected
    """
    threshold: int
    rank1_accuracy: float
    true_accept_rate: float
    false_accept_rate: float
    false_reject_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threshold": self.threshold,
            "rank1_accuracy": self.rank1_accuracy,
            "true_accept_rate": self.true_accept_rate,
            "false_accept_rate": self.false_accept_rate,
            "false_reject_rate": self.false_reject_rate,
        }


@dataclass
class IdentificationResult:
    """
    Complete identification evaluation result.

    Attributes:
        num_genuine: Probes whose identity is in the gallery
        num_impostor: Probes whose identity is not in the gallery
        num_skipped: Probes that could not be fingerprinted
        metrics: Per-threshold metrics, ascending threshold
        closest_distances: Closest gallery distance per probe that had a candidate
        processing_time: Total processing time in seconds
    """
    num_genuine: int
    num_impostor: int
    num_skipped: int
    metrics: List[ThresholdMetrics] = field(default_factory=list)
    closest_distances: np.ndarray = field(default_factory=lambda: np.array([]))
    processing_time: float = 0.0

    def best_threshold(self) -> Optional[ThresholdMetrics]:
        """
        Threshold maximizing TAR - FAR.

        Ties go to the smallest threshold.
        """
        best = None
        for m in self.metrics:
            score = m.true_accept_rate - m.false_accept_rate
            if best is None or score > best[0]:
                best = (score, m)
        return best[1] if best else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        best = self.best_threshold()
        return {
            "num_genuine": self.num_genuine,
            "num_impostor": self.num_impostor,
            "num_skipped": self.num_skipped,
            "best_threshold": best.threshold if best else None,
            "metrics": [m.to_dict() for m in self.metrics],
            "processing_time": self.processing_time,
        }

    def __str__(self) -> str:
        lines = [
            "Identification Results",
            "=" * 50,
            f"Probes: {self.num_genuine} genuine, {self.num_impostor} impostor, "
            f"{self.num_skipped} skipped",
            f"{'threshold':>10} {'rank1':>8} {'TAR':>8} {'FAR':>8} {'FRR':>8}",
        ]
        for m in self.metrics:
            lines.append(
                f"{m.threshold:>10d} {m.rank1_accuracy * 100:>7.2f}% "
                f"{m.true_accept_rate * 100:>7.2f}% "
                f"{m.false_accept_rate * 100:>7.2f}% "
                f"{m.false_reject_rate * 100:>7.2f}%"
            )
        best = self.best_threshold()
        if best is not None:
            lines.append(f"Best threshold (max TAR - FAR): {best.threshold}")
        lines.append(f"Processing time: {self.processing_time:.1f}s")
        return "\n".join(lines)


def _safe_rate(count: int, total: int) -> float:
    return count / total if total > 0 else 0.0


class IdentificationEvaluator:
    """
    Evaluator for gallery identification.

    Usage:
    ------
    evaluator = IdentificationEvaluator(registry)
    result = evaluator.evaluate(probes, thresholds=range(0, 257, 8))
    print(result)
    """

    def __init__(
        self,
        registry: GalleryRegistry,
        extractor: Optional[AverageHashExtractor] = None,
        verbose: bool = True
    ):
        """
        Initialize evaluator.

        Args:
            registry: Populated gallery to search
            extractor: Probe extractor; defaults to the registry's own
            verbose: Whether to log progress
        """
        self.registry = registry
        self.extractor = extractor or registry.extractor
        self.verbose = verbose

    def closest(
        self, probes: Sequence[Tuple[str, Any]]
    ) -> Tuple[List[Tuple[str, str, Optional[int]]], int]:
        """
        Find the closest gallery identity for each probe.

        Args:
            probes: (true_name, image) pairs

        Returns:
            Tuple of ([(true_name, closest_name, distance)], skipped count);
            closest_name is "" and distance is None when the gallery has no
            populated identity
        """
        gallery = self.registry.snapshot()
        tracker = ProgressTracker(len(probes), logger if self.verbose else None)

        outcomes = []
        skipped = 0
        for true_name, image in probes:
            try:
                probe = self.extractor.extract(image)
            except InvalidImage as e:
                logger.warning(f"Skipping probe for {true_name!r}: {e}")
                skipped += 1
                tracker.update()
                continue

            ranked = rank_candidates(probe, gallery, top_k=1)
            if ranked:
                identity, distance = ranked[0]
                outcomes.append((true_name, identity.name, distance))
            else:
                outcomes.append((true_name, "", None))
            tracker.update()

        tracker.finish()
        return outcomes, skipped

    def evaluate(
        self,
        probes: Sequence[Tuple[str, Any]],
        thresholds: Optional[Sequence[int]] = None,
    ) -> IdentificationResult:
        """
        Evaluate identification over a threshold range.

        Args:
            probes: (true_name, image) pairs; names absent from the gallery are impostors
            thresholds: Thresholds to evaluate; defaults to 0..bit_length in steps of 8

        Returns:
            IdentificationResult
        """
        start_time = time.time()

        if thresholds is None:
            thresholds = range(0, self.extractor.bit_length + 1, 8)
        thresholds = sorted(set(int(t) for t in thresholds))

        known = set(self.registry.names())
        outcomes, skipped = self.closest(probes)

        genuine = np.array([t in known for t, _, _ in outcomes], dtype=bool)
        correct = np.array([t == c for t, c, _ in outcomes], dtype=bool)
        has_candidate = np.array([d is not None for _, _, d in outcomes], dtype=bool)
        distances = np.array(
            [d for _, _, d in outcomes if d is not None], dtype=np.int64
        )
        candidate_distances = np.zeros(len(outcomes), dtype=np.int64)
        candidate_distances[has_candidate] = distances

        num_genuine = int(genuine.sum())
        num_impostor = int((~genuine).sum())

        metrics = []
        for threshold in thresholds:
            # A probe with no candidate is rejected at every threshold
            accepted = has_candidate & (candidate_distances <= threshold)
            true_accepts = int(np.sum(accepted & correct & genuine))
            false_accepts = int(np.sum(accepted & ~correct))
            false_rejects = int(np.sum(~accepted & genuine))

            metrics.append(ThresholdMetrics(
                threshold=threshold,
                rank1_accuracy=_safe_rate(int(np.sum(correct & genuine)), num_genuine),
                true_accept_rate=_safe_rate(true_accepts, num_genuine),
                false_accept_rate=_safe_rate(false_accepts, len(outcomes)),
                false_reject_rate=_safe_rate(false_rejects, num_genuine),
            ))

        result = IdentificationResult(
            num_genuine=num_genuine,
            num_impostor=num_impostor,
            num_skipped=skipped,
            metrics=metrics,
            closest_distances=distances,
            processing_time=time.time() - start_time,
        )

        if self.verbose:
            logger.info(f"\n{result}")

        return result
