"""
rules.py — Fraud Rule Tables
=============================

Declarative rule data consumed by the scoring engine in ``detector.py``.

Every rule is plain data so the tables can be tested on their own and
extended without touching the scoring loop:

    - Matcher:          one case-insensitive text rule (substring or regex)
    - PatternCategory:  weighted group of matchers (weight counted once)
    - TextHeuristic:    whole-message check (caps ratio, punctuation, length)
    - RuleSet:          categories + high-risk lexicon + heuristics

Two rule sets ship with the service:

    default   — the four marketplace categories and the three-word lexicon
    extended  — the full eight-category table, eighteen-word lexicon and
                the text heuristics

The extended categories still add their weight once per message. The
original marketplace route instead scaled it with the match count, capped
at twice the weight, so extended scores differ from that route.

All regexes are compiled once when this module is imported. Nothing here
is mutated at runtime.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple


SUBSTRING = "substring"
REGEX = "regex"

HIGH_RISK_FLAG = "HIGH_RISK_CONTENT"
HIGH_RISK_PENALTY = 50


@dataclass(frozen=True)
class Matcher:
    """A single case-insensitive text rule."""

    kind: str
    pattern: str
    _compiled: Optional[re.Pattern] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.kind == REGEX:
            object.__setattr__(self, "_compiled", re.compile(self.pattern, re.IGNORECASE))
        elif self.kind == SUBSTRING:
            object.__setattr__(self, "pattern", self.pattern.lower())
        else:
            raise ValueError(f"Unknown matcher kind: {self.kind!r}")

    def matches(self, content: str) -> bool:
        if self._compiled is not None:
            return self._compiled.search(content) is not None
        return self.pattern in content.lower()


def phrase(text: str) -> Matcher:
    return Matcher(SUBSTRING, text)


def regex(source: str) -> Matcher:
    return Matcher(REGEX, source)


@dataclass(frozen=True)
class PatternCategory:
    """Named class of suspicious phrasing.

    A category contributes ``weight`` at most once per message, no matter
    how many of its matchers fire.
    """

    name: str
    matchers: Tuple[Matcher, ...]
    weight: int
    description: str

    def count_matches(self, content: str) -> int:
        """Number of distinct matchers that match ``content``."""
        return sum(1 for matcher in self.matchers if matcher.matches(content))


@dataclass(frozen=True)
class TextHeuristic:
    name: str
    points: int
    reason: str
    check: Callable[[str], bool] = field(compare=False)


@dataclass(frozen=True)
class RuleSet:
    name: str
    categories: Tuple[PatternCategory, ...]
    lexicon: Tuple[str, ...]
    heuristics: Tuple[TextHeuristic, ...] = ()


# ═══════════════════════════════════════════════════════════════════════
# DEFAULT RULE SET
# ═══════════════════════════════════════════════════════════════════════

PHONE_NUMBER = r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b"   # US style 3-3-4

DEFAULT_CATEGORIES: Tuple[PatternCategory, ...] = (
    PatternCategory(
        name="URGENCY",
        matchers=(
            regex(r"urgent(?:ly)?"),
            phrase("asap"),
            phrase("right now"),
            phrase("today only"),
        ),
        weight=15,
        description="Urgency pressure tactics",
    ),
    PatternCategory(
        name="PAYMENT_SCAM",
        matchers=(
            phrase("western union"),
            phrase("wire transfer"),
            phrase("bitcoin"),
            phrase("paypal"),
        ),
        weight=25,
        description="Suspicious payment methods",
    ),
    PatternCategory(
        name="SHIPPING_SCAM",
        matchers=(
            regex(r"ship(?:ping)?"),
            phrase("courier"),
            phrase("overseas"),
        ),
        weight=20,
        description="Shipping/remote transaction attempts",
    ),
    PatternCategory(
        name="COMMUNICATION_REDIRECT",
        matchers=(
            phrase("text me"),
            phrase("call me"),
            phrase("email me"),
            regex(PHONE_NUMBER),
        ),
        weight=15,
        description="Attempt to move communication off-platform",
    ),
)

# Order matters: the first word found is the one reported.
DEFAULT_LEXICON: Tuple[str, ...] = ("scam", "fraud", "bitcoin")


# ═══════════════════════════════════════════════════════════════════════
# EXTENDED RULE SET
# ═══════════════════════════════════════════════════════════════════════

EXTENDED_CATEGORIES: Tuple[PatternCategory, ...] = (
    PatternCategory(
        name="URGENCY",
        matchers=(
            regex(r"urgent(?:ly)?"),
            phrase("asap"),
            phrase("right now"),
            phrase("today only"),
            phrase("limited time"),
            phrase("must sell quickly"),
            phrase("need to sell fast"),
            regex(r"leaving (?:town|country|state)"),
        ),
        weight=15,
        description="Urgency pressure tactics",
    ),
    PatternCategory(
        name="PAYMENT_SCAM",
        matchers=(
            phrase("western union"),
            phrase("money gram"),
            phrase("wire transfer"),
            regex(r"cashier'?s check"),
            phrase("certified check"),
            phrase("paypal"),
            phrase("venmo"),
            phrase("zelle"),
            phrase("cash app"),
            phrase("bitcoin"),
            phrase("cryptocurrency"),
            regex(r"gift cards?"),
            regex(r"prepaid cards?"),
            phrase("bank transfer"),
            phrase("wire the money"),
            phrase("send money"),
            regex(r"additional fees?"),
            regex(r"shipping fees?"),
            phrase("extra money"),
            phrase("overpayment"),
        ),
        weight=25,
        description="Suspicious payment methods",
    ),
    PatternCategory(
        name="SHIPPING_SCAM",
        matchers=(
            regex(r"ship(?:ping)?"),
            phrase("delivered"),
            phrase("courier"),
            phrase("fedex"),
            phrase("ups"),
            phrase("dhl"),
            phrase("usps"),
            phrase("delivery service"),
            regex(r"pick.?up agent"),
            phrase("shipping agent"),
            phrase("overseas"),
            phrase("out of state"),
            phrase("military deployment"),
            phrase("business trip"),
            phrase("cannot meet"),
            phrase("not local"),
        ),
        weight=20,
        description="Shipping/remote transaction attempts",
    ),
    PatternCategory(
        name="IMPERSONATION",
        matchers=(
            regex(r"my (?:wife|husband|son|daughter|father|mother)"),
            phrase("family member"),
            phrase("on behalf of"),
            phrase("acting for"),
            phrase("representative"),
            phrase("deceased"),
            phrase("estate sale"),
            phrase("inheritance"),
            phrase("military"),
            phrase("deployed"),
            phrase("overseas"),
        ),
        weight=20,
        description="Potential impersonation",
    ),
    PatternCategory(
        name="COMMUNICATION_REDIRECT",
        matchers=(
            phrase("text me"),
            phrase("call me"),
            phrase("email me"),
            phrase("contact me at"),
            phrase("reach me at"),
            regex(PHONE_NUMBER),
            regex(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
            phrase("whatsapp"),
            phrase("telegram"),
            phrase("signal"),
            regex(r"outside (?:this )?(?:platform|app|site)"),
            phrase("move to"),
            phrase("communicate through"),
        ),
        weight=15,
        description="Attempt to move communication off-platform",
    ),
    PatternCategory(
        name="PRICE_MANIPULATION",
        matchers=(
            phrase("price is negotiable"),
            phrase("lowest price"),
            phrase("best offer"),
            phrase("cash only"),
            phrase("discount for cash"),
            phrase("reduced price"),
            phrase("special price"),
            phrase("deal of a lifetime"),
            phrase("too good to be true"),
            phrase("steal"),
            phrase("bargain"),
        ),
        weight=10,
        description="Suspicious pricing tactics",
    ),
    PatternCategory(
        name="VERIFICATION_BYPASS",
        matchers=(
            phrase("no inspection"),
            regex(r"sold as.?is"),
            phrase("no returns"),
            phrase("final sale"),
            phrase("no warranty"),
            phrase("trust me"),
            phrase("honest seller"),
            phrase("genuine"),
            phrase("legitimate"),
            phrase("not a scam"),
            phrase("skip the inspection"),
            phrase("don't need to see"),
        ),
        weight=18,
        description="Attempt to bypass verification",
    ),
    PatternCategory(
        name="EMOTIONAL_MANIPULATION",
        matchers=(
            regex(r"help(?:ing)? my family"),
            phrase("medical emergency"),
            phrase("financial hardship"),
            phrase("job loss"),
            phrase("need the money"),
            phrase("desperate"),
            phrase("please help"),
            regex(r"single (?:mother|father)"),
            phrase("disabled"),
            phrase("elderly"),
            phrase("student"),
            phrase("college fund"),
            phrase("funeral"),
            phrase("hospital"),
        ),
        weight=12,
        description="Emotional manipulation tactics",
    ),
)

EXTENDED_LEXICON: Tuple[str, ...] = (
    "scam", "fraud", "fake", "stolen", "illegal", "drugs", "money laundering",
    "terrorist", "weapon", "gun", "explosive", "bomb", "kill", "murder",
    "threat", "blackmail", "extortion", "ransom",
)


_UPPERCASE = re.compile(r"[A-Z]")
_PUNCTUATION_RUN = re.compile(r"[!?]{2,}")
_SINGLE_WORD = re.compile(r"\w+", re.ASCII)


def _excessive_caps(content: str) -> bool:
    if len(content) <= 20:
        return False
    return len(_UPPERCASE.findall(content)) / len(content) > 0.3


def _excessive_punctuation(content: str) -> bool:
    return len(_PUNCTUATION_RUN.findall(content)) > 2


def _extremely_long(content: str) -> bool:
    return len(content) > 1000


def _extremely_short(content: str) -> bool:
    return len(content) < 10 and _SINGLE_WORD.fullmatch(content) is not None


EXTENDED_HEURISTICS: Tuple[TextHeuristic, ...] = (
    TextHeuristic("EXCESSIVE_CAPS", 10, "Excessive use of capital letters", _excessive_caps),
    TextHeuristic("EXCESSIVE_PUNCTUATION", 8, "Excessive punctuation marks", _excessive_punctuation),
    TextHeuristic("EXTREMELY_LONG", 5, "Unusually long message", _extremely_long),
    TextHeuristic("EXTREMELY_SHORT", 3, "Suspicious short message", _extremely_short),
)


DEFAULT_RULESET = RuleSet("default", DEFAULT_CATEGORIES, DEFAULT_LEXICON)
EXTENDED_RULESET = RuleSet("extended", EXTENDED_CATEGORIES, EXTENDED_LEXICON, EXTENDED_HEURISTICS)

RULESETS: Dict[str, RuleSet] = {
    DEFAULT_RULESET.name: DEFAULT_RULESET,
    EXTENDED_RULESET.name: EXTENDED_RULESET,
}


def get_ruleset(name: str) -> RuleSet:
    """Look up a shipped rule set by name. Raises KeyError if unknown."""
    return RULESETS[name.strip().lower()]
