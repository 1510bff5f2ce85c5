"""Situation evaluation."""

from .situation import (
    Composition,
    EconomyAssessment,
    MapAssessment,
    MilitaryAssessment,
    ResourceAssessment,
    SituationSummary,
    TechAssessment,
    Threat,
    ThreatAssessment,
    TimingAssessment,
    evaluate_situation,
    military_strength,
    normalized_advantage,
    unit_value,
)

__all__ = [
    "SituationSummary",
    "ResourceAssessment",
    "MilitaryAssessment",
    "Composition",
    "EconomyAssessment",
    "MapAssessment",
    "Threat",
    "ThreatAssessment",
    "TechAssessment",
    "TimingAssessment",
    "evaluate_situation",
    "military_strength",
    "normalized_advantage",
    "unit_value",
]
