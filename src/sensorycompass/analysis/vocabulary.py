"""Emotion and sensory-response vocabulary shared by both engines.

One negative set and one positive set are used everywhere so that patterns,
alerts, risks and the correlation matrix agree on what counts as distress.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional, Tuple

NEGATIVE_EMOTIONS: FrozenSet[str] = frozenset({"anxious", "frustrated", "angry", "overwhelmed", "sad"})
POSITIVE_EMOTIONS: FrozenSet[str] = frozenset(
    {"happy", "calm", "focused", "excited", "content", "proud", "peaceful", "relaxed"}
)

SEEKING_MARKERS: Tuple[str, ...] = ("seeking", "craving")
AVOIDING_MARKERS: Tuple[str, ...] = ("avoiding", "covering")

MODERATE_INTENSITY = 3
STRONG_POSITIVE_INTENSITY = 4

LIGHTING_SCORES: Dict[str, float] = {
    "dim": 1.0,
    "normal": 2.0,
    "bright": 3.0,
    "fluorescent": 2.5,
    "natural": 3.5,
}
DEFAULT_LIGHTING_SCORE = 2.0


def is_negative(label: str) -> bool:
    return label.lower() in NEGATIVE_EMOTIONS


def is_positive(label: str) -> bool:
    return label.lower() in POSITIVE_EMOTIONS


def is_seeking(response: str) -> bool:
    text = response.lower()
    return any(marker in text for marker in SEEKING_MARKERS)


def is_avoiding(response: str) -> bool:
    text = response.lower()
    return any(marker in text for marker in AVOIDING_MARKERS)


def sensory_direction(response: str) -> int:
    """Seeking maps to 1, avoiding to -1, anything else to 0."""
    if is_seeking(response):
        return 1
    if is_avoiding(response):
        return -1
    return 0


def lighting_score(lighting: Optional[str]) -> float:
    """Numeric quality score for a lighting description; unknown is neutral."""
    if not lighting:
        return DEFAULT_LIGHTING_SCORE
    return LIGHTING_SCORES.get(lighting.lower(), DEFAULT_LIGHTING_SCORE)


_EMOTION_RECOMMENDATIONS: Dict[str, List[str]] = {
    "anxious": [
        "Introduce mindfulness and breathing exercises",
        "Create predictable routines and schedules",
        "Provide advance notice of changes",
    ],
    "frustrated": [
        "Break tasks into smaller, manageable steps",
        "Offer choice and control opportunities",
        "Teach problem-solving strategies",
    ],
    "happy": [
        "Continue activities that promote positive engagement",
        "Document successful strategies for future use",
        "Build on current strengths",
    ],
    "calm": [
        "Maintain current supportive environment",
        "Use as a baseline for comparison",
        "Gradually introduce new challenges",
    ],
}

_GENERIC_RECOMMENDATIONS = [
    "Monitor patterns and adjust strategies as needed",
    "Consult with support team for specialized approaches",
]


def emotion_recommendations(label: str) -> List[str]:
    return list(_EMOTION_RECOMMENDATIONS.get(label.lower(), _GENERIC_RECOMMENDATIONS))


__all__ = [
    "AVOIDING_MARKERS",
    "DEFAULT_LIGHTING_SCORE",
    "LIGHTING_SCORES",
    "MODERATE_INTENSITY",
    "NEGATIVE_EMOTIONS",
    "POSITIVE_EMOTIONS",
    "SEEKING_MARKERS",
    "STRONG_POSITIVE_INTENSITY",
    "emotion_recommendations",
    "is_avoiding",
    "is_negative",
    "is_positive",
    "is_seeking",
    "lighting_score",
    "sensory_direction",
]
