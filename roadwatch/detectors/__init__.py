"""
roadwatch/detectors — lexical danger classification.
"""

from roadwatch.detectors.danger_classifier import (
    HIGH_THRESHOLD,
    MEDIUM_THRESHOLD,
    URGENCY_BONUS,
    DangerClassifier,
    classifier_for,
    classify,
    danger_level,
    extract_reason,
)

__all__ = [
    "HIGH_THRESHOLD",
    "MEDIUM_THRESHOLD",
    "URGENCY_BONUS",
    "DangerClassifier",
    "classifier_for",
    "classify",
    "danger_level",
    "extract_reason",
]
