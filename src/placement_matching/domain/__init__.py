"""Domain modules for matching and ranking."""

from .assembler import MatchResult, MatchRun, MatchRunMeta, match_referral_to_openings
from .eligibility import Violation, check_constraints
from .explainability import Explainability, build_explainability
from .explanations import generate_match_explanation, identify_risk_flags
from .matching_config import MatchingConfig, RankingPolicy
from .ranking import RankedMatch, rank_matches

__all__ = [
    "Explainability",
    "MatchResult",
    "MatchRun",
    "MatchRunMeta",
    "MatchingConfig",
    "RankedMatch",
    "RankingPolicy",
    "Violation",
    "build_explainability",
    "check_constraints",
    "generate_match_explanation",
    "identify_risk_flags",
    "match_referral_to_openings",
    "rank_matches",
]
