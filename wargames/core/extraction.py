"""
Heuristic Delta Extractor
=========================

Turns an edited headline into a raw Delta by keyword matching.

FENCE POST:
===========
This is a deterministic heuristic, NOT language understanding.

ALLOWED:
- Case-insensitive substring matching against fixed keyword tables
- Additive accumulation of fixed per-rule effects

FORBIDDEN:
- Calls to any model or external service
- Negation handling, stemming, or any other "interpretation"

The Delta is sparse: only dimensions touched by a matched rule are set.
``casualties_expected`` is absent, not 0, when no casualty-bearing rule
matched, so an edit without such keywords never writes a zero casualty
estimate onto the events it reaches.

The keyword tables are configuration data. Changing a keyword or an
effect changes observable behavior, so bump KEYWORD_TABLE_VERSION.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from ..contracts.state import Delta, CASUALTIES


KEYWORD_TABLE_VERSION = "1"

ESCALATION_KEYWORDS: Tuple[str, ...] = (
    "assassinated", "assassin", "kill", "massacre", "offensive", "invasion",
    "attack", "u-boat", "gas", "mobilize", "declare war",
)

DEESCALATION_KEYWORDS: Tuple[str, ...] = (
    "ceasefire", "armistice", "truce", "peace", "survives", "foiled", "fails",
    "withdraw", "retreat", "neutral", "talks", "negotiat",
)

INTELLIGENCE_KEYWORDS: Tuple[str, ...] = ("telegram", "intercept", "propaganda")
LOGISTICS_KEYWORDS: Tuple[str, ...] = ("blockade", "supply")
ALLIANCE_KEYWORDS: Tuple[str, ...] = ("alliance", "joins")

CASUALTY_BOUND = 50000


@dataclass(frozen=True)
class KeywordRule:
    """
    One keyword table and the effect it contributes.

    ``per_match=True`` applies the effect once per matched keyword;
    otherwise the effect fires once if any keyword matches.
    """
    name: str
    keywords: Tuple[str, ...]
    effect: Delta
    per_match: bool = True

    def __post_init__(self):
        if not self.keywords:
            raise ValueError(f"Rule {self.name!r} has no keywords")
        if any(k != k.lower() for k in self.keywords):
            raise ValueError(f"Rule {self.name!r} keywords must be lowercase")


DEFAULT_KEYWORD_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(
        name="escalation",
        keywords=ESCALATION_KEYWORDS,
        effect=Delta(war_escalation=0.25, mobilization_level=0.2, casualties_expected=10000),
    ),
    KeywordRule(
        name="de_escalation",
        keywords=DEESCALATION_KEYWORDS,
        effect=Delta(war_escalation=-0.35, political_stability=0.2, casualties_expected=-8000),
    ),
    KeywordRule(
        name="intelligence",
        keywords=INTELLIGENCE_KEYWORDS,
        effect=Delta(intel_leak_risk=0.3, public_support=0.15),
        per_match=False,
    ),
    KeywordRule(
        name="logistics",
        keywords=LOGISTICS_KEYWORDS,
        effect=Delta(logistics_capacity=-0.2),
        per_match=False,
    ),
    KeywordRule(
        name="alliance",
        keywords=ALLIANCE_KEYWORDS,
        effect=Delta(alliances_cohesion=0.2),
        per_match=False,
    ),
)


@dataclass(frozen=True)
class KeywordMatch:
    rule: str
    keyword: str


@dataclass
class ExtractionConfig:
    rules: Tuple[KeywordRule, ...] = DEFAULT_KEYWORD_RULES
    casualty_bound: int = CASUALTY_BOUND
    table_version: str = KEYWORD_TABLE_VERSION


@dataclass(frozen=True)
class ExtractionResult:
    """Delta plus the evidence that produced it."""
    delta: Delta
    matches: Tuple[KeywordMatch, ...] = field(default_factory=tuple)
    table_version: str = KEYWORD_TABLE_VERSION


class HeuristicDeltaExtractor:
    """
    Keyword-table extractor.

    Same text always yields the same Delta.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self._config = config or ExtractionConfig()

    def matches(self, edited_text: str) -> Tuple[KeywordMatch, ...]:
        """Every (rule, keyword) pair found in the text, in table order."""
        text = edited_text.lower()
        return tuple(
            KeywordMatch(rule=rule.name, keyword=keyword)
            for rule in self._config.rules
            for keyword in rule.keywords
            if keyword in text
        )

    def analyze(self, edited_text: str) -> ExtractionResult:
        found = self.matches(edited_text)

        totals: Dict[str, float] = {}
        for rule in self._config.rules:
            hits = sum(1 for m in found if m.rule == rule.name)
            if not hits:
                continue
            times = hits if rule.per_match else 1
            for dimension, amount in rule.effect.present().items():
                totals[dimension] = totals.get(dimension, 0.0) + amount * times

        if CASUALTIES in totals:
            bound = self._config.casualty_bound
            totals[CASUALTIES] = max(-bound, min(bound, totals[CASUALTIES]))

        return ExtractionResult(
            delta=Delta(**totals),
            matches=found,
            table_version=self._config.table_version,
        )

    def extract(self, edited_text: str) -> Delta:
        return self.analyze(edited_text).delta


_default_extractor = HeuristicDeltaExtractor()


def extract(edited_text: str) -> Delta:
    """Extract a Delta with the default keyword tables."""
    return _default_extractor.extract(edited_text)
