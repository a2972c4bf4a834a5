"""
Heuristic Delta Extractor Tests
===============================

One test per keyword table, plus accumulation and the casualty bound.
"""

import pytest

from wargames.contracts.state import Delta
from wargames.core.extraction import (
    CASUALTY_BOUND,
    ExtractionConfig,
    HeuristicDeltaExtractor,
    KeywordRule,
    extract,
)


class TestKeywordTables:

    def test_no_match_is_empty_delta(self):
        assert extract("Kaiser visits Vienna").is_empty

    def test_escalation_single_hit(self):
        delta = extract("Germany launches offensive")
        assert delta.war_escalation == pytest.approx(0.25)
        assert delta.mobilization_level == pytest.approx(0.2)
        assert delta.casualties_expected == 10000
        assert delta.political_stability is None

    def test_escalation_hits_accumulate(self):
        # "assassinated" also contains "assassin"
        delta = extract("Archduke assassinated, war declared")
        assert delta.war_escalation == pytest.approx(0.5)
        assert delta.mobilization_level == pytest.approx(0.4)
        assert delta.casualties_expected == 20000

    def test_case_insensitive(self):
        assert extract("INVASION") == extract("invasion")

    def test_de_escalation(self):
        delta = extract("Ceasefire negotiated, armistice signed")
        assert delta.war_escalation == pytest.approx(-1.05)
        assert delta.political_stability == pytest.approx(0.6)
        assert delta.casualties_expected == -24000

    def test_intelligence_fires_once(self):
        delta = extract("Telegram intercept fuels propaganda")
        assert delta.intel_leak_risk == pytest.approx(0.3)
        assert delta.public_support == pytest.approx(0.15)

    def test_logistics(self):
        assert extract("Naval blockade tightens").logistics_capacity == pytest.approx(-0.2)

    def test_casualties_absent_without_casualty_rule(self):
        delta = extract("Italy joins the alliance, naval blockade tightens")
        assert delta.casualties_expected is None
        assert "casualties_expected" not in delta.to_dict()

    def test_alliance(self):
        delta = extract("Italy joins the Entente")
        assert delta.alliances_cohesion == pytest.approx(0.2)
        assert delta.war_escalation is None


class TestCasualtyBound:

    def test_clamped_to_bound(self):
        text = "assassinated massacre offensive invasion attack mobilize declare war"
        assert extract(text).casualties_expected == CASUALTY_BOUND

    def test_clamped_to_negative_bound(self):
        text = "ceasefire armistice truce peace withdraw retreat neutral talks"
        assert extract(text).casualties_expected == -CASUALTY_BOUND

    def test_other_dimensions_not_clamped(self):
        text = "assassinated massacre offensive invasion attack"
        assert extract(text).war_escalation > 1.0


class TestExtractorConfig:

    def test_analyze_reports_matches(self):
        result = HeuristicDeltaExtractor().analyze("Blockade and invasion")
        assert [(m.rule, m.keyword) for m in result.matches] == [
            ("escalation", "invasion"),
            ("logistics", "blockade"),
        ]
        assert result.table_version == "1"

    def test_custom_rules(self):
        rule = KeywordRule(name="gas", keywords=("chlorine",), effect=Delta(public_support=-0.1))
        extractor = HeuristicDeltaExtractor(ExtractionConfig(rules=(rule,), table_version="test"))
        result = extractor.analyze("Chlorine released at Ypres")
        assert result.delta == Delta(public_support=-0.1)
        assert result.table_version == "test"

    def test_rule_keywords_must_be_lowercase(self):
        with pytest.raises(ValueError):
            KeywordRule(name="bad", keywords=("Peace",), effect=Delta(war_escalation=-0.1))

    def test_deterministic(self):
        text = "U-boat attack sinks liner; supply lines cut"
        assert extract(text) == extract(text)
