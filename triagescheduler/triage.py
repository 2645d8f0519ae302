"""Keyword-based triage suggestions from free-text complaints.

The suggester only advises whoever registers a patient. The allocation pass
never consults it; the registered severity and ventilator flag are whatever
the caller chooses.

Example::

    suggester = KeywordTriageSuggester()
    suggestion = suggester.suggest("Sudden chest pain and can't breathe")
    suggestion.severity             # Severity.CRITICAL
    suggestion.requires_ventilator  # True
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from triagescheduler.core.patient import Severity

CRITICAL_KEYWORDS = (
    "chest pain", "heart attack", "stroke", "unconscious", "not breathing",
    "severe bleeding", "head injury", "seizure", "overdose", "suicide",
    "stabbed", "gunshot", "can't breathe", "choking", "anaphylaxis",
    "severe burn", "unresponsive", "cardiac arrest", "heavy bleeding",
)
SERIOUS_KEYWORDS = (
    "broken bone", "fracture", "high fever", "severe pain", "vomiting blood",
    "difficulty breathing", "severe headache", "abdominal pain", "dehydration",
    "infection", "deep cut", "allergic reaction", "asthma", "pneumonia",
    "kidney stone", "appendicitis", "diabetic", "blood sugar",
)
NORMAL_KEYWORDS = (
    "cold", "cough", "fever mild", "headache", "minor cut", "sprain",
    "flu", "sore throat", "rash", "nausea", "diarrhea", "earache",
    "toothache", "back pain mild", "insect bite", "minor burn",
)
VENTILATOR_KEYWORDS = (
    "can't breathe", "choking", "respiratory", "pneumonia severe", "asthma attack",
    "difficulty breathing", "asthma", "pneumonia",
)

MAX_REPORTED_KEYWORDS = 3
FALLBACK_KEYWORD = "general symptoms"


@dataclass(frozen=True)
class TriageSuggestion:
    """Advisory severity and ventilator need for a complaint.

    Attributes:
        severity: Suggested tier.
        requires_ventilator: Whether the complaint mentions breathing failure.
        confidence: Rough confidence percentage (50-95).
        matched_keywords: Up to three keywords that drove the suggestion.
        message: Human-readable summary.
    """

    severity: Severity
    requires_ventilator: bool
    confidence: int
    matched_keywords: tuple[str, ...]
    message: str

    def to_dict(self) -> dict[str, object]:
        return {
            "severity": self.severity.name,
            "requires_ventilator": self.requires_ventilator,
            "confidence": self.confidence,
            "matched_keywords": list(self.matched_keywords),
            "message": self.message,
        }


@runtime_checkable
class TriageSuggester(Protocol):
    def suggest(self, complaint: str) -> TriageSuggestion: ...


class KeywordTriageSuggester:
    """Substring matching over fixed keyword lists, highest tier wins."""

    def __init__(
        self,
        critical: tuple[str, ...] = CRITICAL_KEYWORDS,
        serious: tuple[str, ...] = SERIOUS_KEYWORDS,
        normal: tuple[str, ...] = NORMAL_KEYWORDS,
        ventilator: tuple[str, ...] = VENTILATOR_KEYWORDS,
    ):
        self._critical = critical
        self._serious = serious
        self._normal = normal
        self._ventilator = ventilator

    def suggest(self, complaint: str) -> TriageSuggestion:
        text = complaint.lower()

        matched = [k for k in self._critical if k in text]
        if matched:
            severity, confidence = Severity.CRITICAL, 95
        else:
            matched = [k for k in self._serious if k in text]
            if matched:
                severity, confidence = Severity.SERIOUS, 85
            else:
                matched = [k for k in self._normal if k in text]
                severity, confidence = Severity.NORMAL, 75

        if not matched:
            matched = [FALLBACK_KEYWORD]
            confidence = 50

        needs_ventilator = any(k in text for k in self._ventilator)

        return TriageSuggestion(
            severity=severity,
            requires_ventilator=needs_ventilator,
            confidence=confidence,
            matched_keywords=tuple(matched[:MAX_REPORTED_KEYWORDS]),
            message=f"Suggested {severity.name} severity",
        )
