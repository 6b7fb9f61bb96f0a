"""
detector.py — Message Fraud Scoring Engine
===========================================

Scores a single outgoing chat message for scam indicators and decides
whether it should be allowed, flagged or blocked.

Scoring mechanics:
    1. High-risk lexicon: the first keyword found (in table order) adds 50
       points and the HIGH_RISK_CONTENT flag. Scanning stops at that hit.
    2. Pattern categories: each category whose matchers fire adds its weight
       once, with a reason naming how many matchers fired.
    3. Text heuristics (extended rule set only) add their points once each.
    4. The pre-clamp total picks the risk level:
           >= 60 critical | >= 40 high | >= 20 medium | else low
    5. The reported score is the total clamped to [0, 100].
    6. blocked = level is critical OR pre-clamp total >= 70.

The engine is a pure function over its input and the immutable rule tables
in ``rules.py``. It holds no per-call state and is safe to share between
threads. It never raises for string input.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Tuple

from safetrade import config
from safetrade.rules import (
    DEFAULT_RULESET,
    HIGH_RISK_FLAG,
    HIGH_RISK_PENALTY,
    RuleSet,
    get_ruleset,
)

logger = logging.getLogger(__name__)


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Evaluated high to low, first match wins
LEVEL_THRESHOLDS: Tuple[Tuple[int, RiskLevel], ...] = (
    (60, RiskLevel.CRITICAL),
    (40, RiskLevel.HIGH),
    (20, RiskLevel.MEDIUM),
)

BLOCK_THRESHOLD: int = 70
MIN_SCORE: int = 0
MAX_SCORE: int = 100

UNAVAILABLE_REASON = "Fraud detection unavailable"
DEVELOPMENT_REASON = "(Development mode: would be blocked in production)"


@dataclass(frozen=True)
class RiskAssessment:
    """Immutable result of scoring one message.

    Attributes:
        score:     Reported score, clamped to 0-100.
        level:     Risk bucket derived from the pre-clamp total.
        flags:     Fired category names in evaluation order.
        reasons:   One human-readable reason per fired rule.
        blocked:   Whether delivery must be refused.
        raw_score: Pre-clamp total, kept for audit.
    """

    score: int
    level: RiskLevel
    flags: Tuple[str, ...]
    reasons: Tuple[str, ...]
    blocked: bool
    raw_score: float = 0

    def to_dict(self) -> Dict[str, Any]:
        """Wire form used by the HTTP layer and the remote scoring client."""
        return {
            "riskLevel": self.level.value,
            "score": self.score,
            "flags": list(self.flags),
            "blocked": self.blocked,
            "reasons": list(self.reasons),
        }


def classify_level(total: float) -> RiskLevel:
    """Map a pre-clamp total to its risk level."""
    for threshold, level in LEVEL_THRESHOLDS:
        if total >= threshold:
            return level
    return RiskLevel.LOW


def clamp_score(total: float) -> int:
    return min(max(int(round(total)), MIN_SCORE), MAX_SCORE)


def unavailable_assessment() -> RiskAssessment:
    """Fail-open result used when scoring itself cannot run."""
    return RiskAssessment(
        score=0,
        level=RiskLevel.LOW,
        flags=(),
        reasons=(UNAVAILABLE_REASON,),
        blocked=False,
    )


def downgrade_for_development(assessment: RiskAssessment) -> RiskAssessment:
    """Turn a block into a high-risk warning so local testing isn't stopped cold."""
    if not assessment.blocked:
        return assessment
    return replace(
        assessment,
        blocked=False,
        level=RiskLevel.HIGH,
        reasons=assessment.reasons + (DEVELOPMENT_REASON,),
    )


class FraudDetector:
    """Scores messages against a single immutable rule set."""

    def __init__(self, ruleset: RuleSet = DEFAULT_RULESET) -> None:
        self.ruleset = ruleset

    def assess(self, content: str) -> RiskAssessment:
        """Score ``content`` and return a fresh RiskAssessment."""
        total: float = 0
        flags: List[str] = []
        reasons: List[str] = []

        if not content or not content.strip():
            return RiskAssessment(0, RiskLevel.LOW, (), (), False, 0)

        # 1. High-risk lexicon, first hit only
        lowered = content.lower()
        for word in self.ruleset.lexicon:
            if word in lowered:
                total += HIGH_RISK_PENALTY
                flags.append(HIGH_RISK_FLAG)
                reasons.append(f'Contains high-risk keyword: "{word}"')
                break

        # 2. Pattern categories, weight counted once each
        for category in self.ruleset.categories:
            count = category.count_matches(content)
            if count > 0:
                total += category.weight
                flags.append(category.name)
                reasons.append(f"{category.description} ({count} matches)")

        # 3. Whole-message heuristics
        for heuristic in self.ruleset.heuristics:
            if heuristic.check(content):
                total += heuristic.points
                flags.append(heuristic.name)
                reasons.append(heuristic.reason)

        level = classify_level(total)
        return RiskAssessment(
            score=clamp_score(total),
            level=level,
            flags=tuple(flags),
            reasons=tuple(reasons),
            blocked=level is RiskLevel.CRITICAL or total >= BLOCK_THRESHOLD,
            raw_score=total,
        )


def _configured_ruleset() -> RuleSet:
    try:
        return get_ruleset(config.FRAUD_RULESET)
    except KeyError:
        logger.warning(
            f"Unknown FRAUD_RULESET={config.FRAUD_RULESET!r}, "
            f"falling back to '{DEFAULT_RULESET.name}'"
        )
        return DEFAULT_RULESET


# Module-level singleton
fraud_detector = FraudDetector(_configured_ruleset())
