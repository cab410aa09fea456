"""
roadwatch/detectors/danger_classifier.py
Lexical danger scoring — pure Python, zero dependencies, fully offline.

Normalized text is scored against the lexicon's stem weights. Each stem is
tried as a whole word first (stem + trailing letters, so inflected forms
match) and falls back to plain substring containment. Either way a stem
contributes its weight once. Urgency adverbs add a flat bonus.

classify() is total: None, empty, or unmatched text → 'low', no evidence.
"""

import logging
import re
from functools import lru_cache
from typing import List, Optional, Pattern, Tuple

from roadwatch.lexicons import DEFAULT_LANGUAGE, Lexicon, get_lexicon
from roadwatch.models.record import (
    DANGER_HIGH, DANGER_LOW, DANGER_MEDIUM,
    ClassificationResult, Evidence,
)

logger = logging.getLogger(__name__)

# Score → tier bands (inclusive lower bounds)
HIGH_THRESHOLD   = 9
MEDIUM_THRESHOLD = 5
URGENCY_BONUS    = 3

URGENCY_STEM = 'urgency_booster'

METHOD_REGEX     = 'regex'
METHOD_SUBSTRING = 'substring'
METHOD_BOOSTER   = 'booster'


class DangerClassifier:
    """
    Patterns are compiled once per lexicon, never per call.
    Use classifier_for(language) to share instances.
    """

    def __init__(self, lexicon: Lexicon):
        self.lexicon = lexicon
        letters      = lexicon.alphabet

        self._strip_re = re.compile(rf'[^{letters}\s]')
        self._stems: List[Tuple[str, int, Pattern]] = [
            (stem, weight, re.compile(rf'\b{re.escape(stem)}[{letters}]*\b'))
            for stem, weight in lexicon.weights.items()
        ]
        self._booster_re = re.compile(
            r'\b(' + '|'.join(re.escape(b) for b in lexicon.boosters) + r')\b'
        )
        self._reason_re = re.compile(
            r'\b(' + '|'.join(re.escape(w) for w in lexicon.reason_words) + r')\b',
            re.IGNORECASE,
        )

    # ── NORMALIZATION ────────────────────────────────────────
    def normalize(self, text: Optional[str]) -> str:
        t = str(text or '').lower()
        for src, dst in self.lexicon.folding.items():
            t = t.replace(src, dst)
        t = self._strip_re.sub(' ', t)
        return ' '.join(t.split())

    # ── SCORING ──────────────────────────────────────────────
    def classify(self, text: Optional[str]) -> ClassificationResult:
        if not text:
            return ClassificationResult(tier=DANGER_LOW, score=0, evidence=[])

        t = self.normalize(text)
        evidence: List[Evidence] = []
        score = 0

        for stem, weight, pattern in self._stems:
            if pattern.search(t):
                method = METHOD_REGEX
            elif stem in t:
                method = METHOD_SUBSTRING
            else:
                continue
            score += weight
            evidence.append(Evidence(stem=stem, weight=weight, method=method))

        if self._booster_re.search(t):
            score += URGENCY_BONUS
            evidence.append(Evidence(
                stem=URGENCY_STEM, weight=URGENCY_BONUS, method=METHOD_BOOSTER,
            ))

        tier = score_to_tier(score)
        logger.debug(
            f"classify: normalized={t!r} evidence={evidence} "
            f"score={score} tier={tier}"
        )
        return ClassificationResult(tier=tier, score=score, evidence=evidence)

    # ── CAUSE EXTRACTION ─────────────────────────────────────
    def extract_reason(self, description: Optional[str]) -> Optional[str]:
        """First explicit cause keyword in the text (whole word), else None."""
        if not description:
            return None
        match = self._reason_re.search(str(description))
        return match.group(0) if match else None


def score_to_tier(score: int) -> str:
    if score >= HIGH_THRESHOLD:
        return DANGER_HIGH
    if score >= MEDIUM_THRESHOLD:
        return DANGER_MEDIUM
    return DANGER_LOW


@lru_cache(maxsize=None)
def classifier_for(language: str = DEFAULT_LANGUAGE) -> DangerClassifier:
    return DangerClassifier(get_lexicon(language))


def classify(text: Optional[str], language: str = DEFAULT_LANGUAGE) -> ClassificationResult:
    """Module-level shortcut: classify(text) → ClassificationResult."""
    return classifier_for(language).classify(text)


def danger_level(text: Optional[str], language: str = DEFAULT_LANGUAGE) -> str:
    """Tier only — 'low' / 'medium' / 'high'."""
    return classify(text, language).tier


def extract_reason(description: Optional[str], language: str = DEFAULT_LANGUAGE) -> Optional[str]:
    return classifier_for(language).extract_reason(description)
