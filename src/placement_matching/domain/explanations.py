"""Human-readable match rationale and advisory risk flags.

Neither function gates anything: an opening is never excluded because of an
explanation or a flag.
"""

from __future__ import annotations

from collections.abc import Mapping

from .assembler import MatchResult
from .keyword_rules import RISK_RULES
from .matching_config import ScoringWeights
from .models import Referral

FACTOR_LABELS = {
    "county": "location match",
    "funding": "funding compatibility",
    "gender": "gender alignment",
    "age": "age appropriateness",
    "availability": "immediate availability",
    "capability": "care capability fit",
}

EXCELLENT_EXPLANATION_SCORE = 90
STRONG_EXPLANATION_SCORE = 75
GOOD_EXPLANATION_SCORE = 60
LOW_CONFIDENCE_SCORE = 60


def _label(factor: str) -> str:
    return FACTOR_LABELS.get(factor, factor.replace("_", " "))


def _percent_of_weight(factor: str, score: float, weights: ScoringWeights) -> int:
    try:
        weight = weights.for_factor(factor)
    except AttributeError:
        return round(score)
    if weight <= 0:
        return 0
    return round(score / weight * 100)


def generate_match_explanation(
    score_breakdown: Mapping[str, float],
    total_score: float,
    weights: ScoringWeights | None = None,
) -> str:
    """Describe a match using its two strongest factors.

    Ties between factors keep the breakdown's own order.
    """
    weights = weights or ScoringWeights()
    ranked = sorted(score_breakdown.items(), key=lambda item: -item[1])
    if not ranked:
        return "Acceptable match, review all criteria carefully."
    first_factor, first_score = ranked[0]
    second_factor, second_score = ranked[1] if len(ranked) > 1 else ranked[0]
    first = _label(first_factor)
    second = _label(second_factor)

    if total_score >= EXCELLENT_EXPLANATION_SCORE:
        return f"Excellent match! Perfect {first} and strong {second}."
    if total_score >= STRONG_EXPLANATION_SCORE:
        first_pct = _percent_of_weight(first_factor, first_score, weights)
        second_pct = _percent_of_weight(second_factor, second_score, weights)
        return f"Strong fit with {first} ({first_pct}%) and {second} ({second_pct}%)."
    if total_score >= GOOD_EXPLANATION_SCORE:
        return f"Good {first}, viable option for placement consideration."
    return f"Acceptable match on {first}, review other criteria carefully."


def identify_risk_flags(referral: Referral, match: MatchResult | None = None) -> list[str]:
    """Return advisory flags for a referral, optionally paired with a match."""
    summaries = {
        "behavioral": (referral.behavioral_summary or "").lower(),
        "medical": (referral.medical_summary or "").lower(),
    }
    flags = [rule.flag for rule in RISK_RULES if rule.applies_to(summaries[rule.summary])]

    if referral.urgency == "crisis":
        flags.append("Crisis placement")
    if match is not None and match.total_score < LOW_CONFIDENCE_SCORE:
        flags.append("Low match confidence")
    return flags
