"""enrichmatch - Company record matching against a canonical index."""

from enrichmatch.config import MatchConfig, ScoringWeights
from enrichmatch.matcher import Matcher
from enrichmatch.memory import MemoryBackend
from enrichmatch.types import CandidateQuery, InputRecord, MatchResult, ScoredHit

__all__ = [
    "CandidateQuery",
    "InputRecord",
    "MatchConfig",
    "Matcher",
    "MatchResult",
    "MemoryBackend",
    "ScoredHit",
    "ScoringWeights",
]
