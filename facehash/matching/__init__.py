"""
Best-match selection and probe identification.
"""

from facehash.matching.selector import (
    MatchResult,
    best_match,
    rank_candidates,
)
from facehash.matching.identifier import Identifier

__all__ = [
    "MatchResult",
    "best_match",
    "rank_candidates",
    "Identifier",
]
