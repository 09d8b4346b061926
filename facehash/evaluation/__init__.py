"""
Evaluation tools for gallery identification.

Usage:
------
from facehash.evaluation import IdentificationEvaluator

evaluator = IdentificationEvaluator(registry)
result = evaluator.evaluate(probes)
print(result.best_threshold())
"""

from facehash.evaluation.identification import (
    IdentificationEvaluator,
    IdentificationResult,
    ThresholdMetrics,
)

__all__ = [
    "IdentificationEvaluator",
    "IdentificationResult",
    "ThresholdMetrics",
]
