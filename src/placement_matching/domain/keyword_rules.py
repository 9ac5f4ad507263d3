"""Keyword tables linking referral free text to capabilities and risk flags.

Scorers and the risk-flag generator read these tables; no pattern lives
inline in scoring code.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from .models import CapabilityProfile

SummaryField = Literal["behavioral", "medical"]
SupportGap = Callable[[CapabilityProfile, str], bool]


@dataclass(frozen=True)
class CapabilityRule:
    """A referral need and the capability gap that penalises an opening."""

    need: str
    summary: SummaryField
    pattern: re.Pattern[str]
    penalty: float
    lacks_support: SupportGap

    def applies_to(self, text: str) -> bool:
        return self.pattern.search(text) is not None


@dataclass(frozen=True)
class RiskRule:
    """A referral phrase that raises an advisory flag."""

    flag: str
    summary: SummaryField
    pattern: re.Pattern[str]

    def applies_to(self, text: str) -> bool:
        return self.pattern.search(text) is not None


def _words(*alternatives: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(alternatives) + r")", re.IGNORECASE)


def _no_aggression_support(profile: CapabilityProfile, _: str) -> bool:
    return profile.behavioral.aggression_physical == "none"


def _mild_support_for_severe_aggression(profile: CapabilityProfile, text: str) -> bool:
    return profile.behavioral.aggression_physical == "mild" and "severe" in text


def _low_elopement_support(profile: CapabilityProfile, _: str) -> bool:
    return profile.behavioral.elopement_risk in {"none", "low"}


def _no_tube_feeding(profile: CapabilityProfile, _: str) -> bool:
    return not profile.medical.tube_feeding


def _no_ventilator(profile: CapabilityProfile, _: str) -> bool:
    return not profile.medical.ventilator


def _no_seizure_management(profile: CapabilityProfile, _: str) -> bool:
    return profile.medical.seizure_management == "none"


# Penalties are fractions of the capability weight and are summed per profile.
CAPABILITY_RULES: tuple[CapabilityRule, ...] = (
    CapabilityRule(
        need="physical aggression",
        summary="behavioral",
        pattern=_words("aggression", "aggressive"),
        penalty=0.4,
        lacks_support=_no_aggression_support,
    ),
    CapabilityRule(
        need="severe physical aggression",
        summary="behavioral",
        pattern=_words("aggression", "aggressive"),
        penalty=0.3,
        lacks_support=_mild_support_for_severe_aggression,
    ),
    CapabilityRule(
        need="elopement",
        summary="behavioral",
        pattern=_words("elopement", "wander"),
        penalty=0.3,
        lacks_support=_low_elopement_support,
    ),
    CapabilityRule(
        need="tube feeding",
        summary="medical",
        pattern=_words(r"tube[- ]?feed", r"g-tube"),
        penalty=0.5,
        lacks_support=_no_tube_feeding,
    ),
    CapabilityRule(
        need="ventilator",
        summary="medical",
        pattern=re.compile(r"\b(?:ventilator|vent)\b", re.IGNORECASE),
        penalty=0.5,
        lacks_support=_no_ventilator,
    ),
    CapabilityRule(
        need="seizure management",
        summary="medical",
        pattern=_words("seizure"),
        penalty=0.3,
        lacks_support=_no_seizure_management,
    ),
)

# Order here is the order flags are reported in.
RISK_RULES: tuple[RiskRule, ...] = (
    RiskRule(
        flag="Physical aggression noted",
        summary="behavioral",
        pattern=_words("aggression", "violence"),
    ),
    RiskRule(
        flag="Self-injurious behavior",
        summary="behavioral",
        pattern=_words("self-harm", "self-injury"),
    ),
    RiskRule(
        flag="Elopement risk",
        summary="behavioral",
        pattern=_words("elopement", r"flight risk"),
    ),
    RiskRule(
        flag="Complex medical needs",
        summary="medical",
        pattern=_words("ventilator", "trach"),
    ),
)
