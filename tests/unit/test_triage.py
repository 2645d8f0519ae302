"""Unit tests for the keyword triage suggester."""

import pytest

from triagescheduler.core.patient import Severity
from triagescheduler.triage import KeywordTriageSuggester, TriageSuggester


@pytest.fixture
def suggester():
    return KeywordTriageSuggester()


class TestSeverity:
    def test_critical_keyword(self, suggester):
        result = suggester.suggest("Sudden CHEST PAIN radiating to the arm")
        assert result.severity is Severity.CRITICAL
        assert result.confidence == 95
        assert "chest pain" in result.matched_keywords

    def test_serious_keyword(self, suggester):
        result = suggester.suggest("Possible fracture of the left wrist")
        assert result.severity is Severity.SERIOUS
        assert result.confidence == 85

    def test_normal_keyword(self, suggester):
        result = suggester.suggest("sore throat since monday")
        assert result.severity is Severity.NORMAL
        assert result.confidence == 75
        assert result.matched_keywords == ("sore throat",)

    def test_critical_wins_over_serious(self, suggester):
        result = suggester.suggest("seizure after high fever")
        assert result.severity is Severity.CRITICAL
        assert "high fever" not in result.matched_keywords

    def test_no_match_falls_back(self, suggester):
        result = suggester.suggest("feeling odd")
        assert result.severity is Severity.NORMAL
        assert result.confidence == 50
        assert result.matched_keywords == ("general symptoms",)


class TestVentilator:
    def test_breathing_failure_flags_ventilator(self, suggester):
        result = suggester.suggest("choking, can't breathe")
        assert result.requires_ventilator
        assert result.severity is Severity.CRITICAL

    def test_serious_respiratory_flags_ventilator(self, suggester):
        assert suggester.suggest("asthma getting worse").requires_ventilator

    def test_no_ventilator_for_fracture(self, suggester):
        assert not suggester.suggest("broken bone").requires_ventilator


class TestReporting:
    def test_at_most_three_keywords(self, suggester):
        result = suggester.suggest("stroke, seizure, overdose and gunshot wound")
        assert len(result.matched_keywords) == 3

    def test_message_and_dict(self, suggester):
        result = suggester.suggest("fracture")
        assert result.message == "Suggested SERIOUS severity"
        data = result.to_dict()
        assert data["severity"] == "SERIOUS"
        assert data["matched_keywords"] == ["fracture"]

    def test_satisfies_protocol(self, suggester):
        assert isinstance(suggester, TriageSuggester)
