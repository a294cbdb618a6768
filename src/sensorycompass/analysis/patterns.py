"""Pattern Analysis Engine.

Detects behavioral patterns, environmental correlations and trigger alerts
from windows of observation records. Thresholds come from the configuration
snapshot; sensitivity multipliers divide the matching threshold, so a larger
multiplier means earlier detection.

Example:
    >>> engine = PatternAnalysisEngine(ConfigurationProvider())
    >>> engine.analyze_emotion_patterns(bundle.emotions)
    [PatternResult(type='emotion', pattern='high-intensity-negative', ...)]
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from sensorycompass.analysis.base import ConfiguredEngine
from sensorycompass.analysis.results import CorrelationResult, PatternResult, Significance, TriggerAlert
from sensorycompass.analysis.statistics import clamp, mean, pearson_correlation, safe_ratio
from sensorycompass.analysis.vocabulary import (
    MODERATE_INTENSITY,
    STRONG_POSITIVE_INTENSITY,
    emotion_recommendations,
    is_avoiding,
    is_negative,
    is_positive,
    is_seeking,
)
from sensorycompass.models.records import EmotionRecord, SensoryRecord, SessionRecord

logger = logging.getLogger(__name__)

CONCERN_ALERT_MIN_COUNT = 2
IMPROVEMENT_MIN_POSITIVE = 3
IMPROVEMENT_MIN_RECENT = 5
PATTERN_ALERT_MIN_CORRELATION = 0.6
LIGHTING_MIN_SESSIONS = 3
LIGHTING_MIN_GAP = 0.2
LIGHTING_CATEGORICAL_CORRELATION = 0.5


class PatternAnalysisEngine(ConfiguredEngine):
    """Rule-based pattern detection over recent records."""

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------

    def effective_intensity_threshold(self) -> float:
        """High-intensity cut-off after the sensitivity multiplier."""
        return self._config.alert_sensitivity.scale_intensity(
            self._config.pattern_analysis.high_intensity_threshold
        )

    def effective_frequency_threshold(self) -> float:
        return self._config.alert_sensitivity.scale_frequency(
            self._config.pattern_analysis.concern_frequency_threshold
        )

    def analyze_emotion_patterns(
        self,
        emotions: Sequence[EmotionRecord],
        timeframe_days: Optional[int] = None,
    ) -> List[PatternResult]:
        """Find high-intensity, consistent and moderate-negative emotion patterns."""
        settings = self._config.pattern_analysis
        timeframe = timeframe_days or self._config.time_windows.default_analysis_days
        recent = self._since(emotions, timeframe)
        if not recent or len(recent) < settings.min_data_points:
            return []

        total = len(recent)
        window = f"{timeframe} days"
        intensity_threshold = self.effective_intensity_threshold()

        high_negative = [e for e in recent if e.intensity >= intensity_threshold and is_negative(e.label)]
        moderate_negative = [e for e in recent if e.intensity >= MODERATE_INTENSITY and is_negative(e.label)]

        patterns: List[PatternResult] = []
        high_share = len(high_negative) / total
        if high_share > self.effective_frequency_threshold():
            patterns.append(
                PatternResult(
                    type="emotion",
                    pattern="high-intensity-negative",
                    confidence=clamp(high_share),
                    frequency=len(high_negative),
                    description=(
                        "High-intensity negative emotions detected in "
                        f"{round(high_share * 100)}% of recent sessions"
                    ),
                    recommendations=[
                        "Consider implementing calming strategies before intense activities",
                        "Monitor environmental triggers that may contribute to stress",
                        "Discuss coping mechanisms with student",
                    ],
                    data_points=total,
                    timeframe=window,
                )
            )

        label, count = Counter(e.label.lower() for e in recent).most_common(1)[0]
        if count / total > settings.emotion_consistency_threshold:
            patterns.append(
                PatternResult(
                    type="emotion",
                    pattern="consistent-emotion",
                    confidence=clamp(count / total),
                    frequency=count,
                    description=f"Consistent {label} emotion pattern detected",
                    recommendations=emotion_recommendations(label),
                    data_points=total,
                    timeframe=window,
                )
            )

        moderate_share = len(moderate_negative) / total
        if not high_negative and moderate_share > settings.moderate_negative_threshold:
            patterns.append(
                PatternResult(
                    type="emotion",
                    pattern="moderate-negative-trend",
                    confidence=clamp(moderate_share),
                    frequency=len(moderate_negative),
                    description=(
                        "Moderate negative emotions detected in "
                        f"{round(moderate_share * 100)}% of recent sessions"
                    ),
                    recommendations=[
                        "Monitor for potential stress escalation",
                        "Implement preventive calming strategies",
                        "Consider environmental adjustments",
                    ],
                    data_points=total,
                    timeframe=window,
                )
            )

        logger.debug("Emotion analysis over %d records found %d patterns", total, len(patterns))
        return patterns

    def analyze_sensory_patterns(
        self,
        sensory_inputs: Sequence[SensoryRecord],
        timeframe_days: Optional[int] = None,
    ) -> List[PatternResult]:
        """Report a dominant seeking or avoiding tendency."""
        timeframe = timeframe_days or self._config.time_windows.default_analysis_days
        recent = self._since(sensory_inputs, timeframe)
        if not recent or len(recent) < self._config.pattern_analysis.min_data_points:
            return []

        total = len(recent)
        seeking = sum(1 for s in recent if is_seeking(s.response))
        avoiding = sum(1 for s in recent if is_avoiding(s.response))

        if seeking > avoiding * 2:
            pattern, frequency = "sensory-seeking", seeking
            description = "Strong sensory-seeking pattern identified"
            recommendations = [
                "Provide scheduled sensory breaks",
                "Offer fidget tools and movement opportunities",
                "Consider sensory-rich learning activities",
            ]
        elif avoiding > seeking * 2:
            pattern, frequency = "sensory-avoiding", avoiding
            description = "Strong sensory-avoiding pattern identified"
            recommendations = [
                "Provide quiet, low-stimulation spaces",
                "Use noise-canceling headphones when appropriate",
                "Gradually introduce sensory experiences",
            ]
        else:
            return []

        return [
            PatternResult(
                type="sensory",
                pattern=pattern,
                confidence=clamp(frequency / total),
                frequency=frequency,
                description=description,
                recommendations=recommendations,
                data_points=total,
                timeframe=f"{timeframe} days",
            )
        ]

    # ------------------------------------------------------------------
    # Correlations
    # ------------------------------------------------------------------

    def analyze_environmental_correlations(
        self, sessions: Sequence[SessionRecord]
    ) -> List[CorrelationResult]:
        """Relate noise and lighting to emotional state across sessions."""
        settings = self._config.pattern_analysis
        if len(sessions) < settings.min_data_points:
            return []

        correlations: List[CorrelationResult] = []

        noise_pairs = [
            (session.environmental.noise_level, mean([e.intensity for e in session.emotions]))
            for session in sessions
            if session.emotions
            and session.environmental is not None
            and session.environmental.noise_level is not None
        ]
        if noise_pairs and len(noise_pairs) >= settings.min_data_points:
            r = pearson_correlation([p[0] for p in noise_pairs], [p[1] for p in noise_pairs])
            if abs(r) > settings.correlation_threshold:
                correlations.append(
                    CorrelationResult(
                        factor1="Noise Level",
                        factor2="Emotion Intensity",
                        correlation=r,
                        significance=self._significance(abs(r)),
                        description=(
                            "Higher noise levels correlate with more intense emotions"
                            if r > 0
                            else "Lower noise levels correlate with more intense emotions"
                        ),
                        recommendations=(
                            ["Consider noise reduction strategies", "Provide quiet spaces during intense activities"]
                            if r > 0
                            else ["Monitor for overstimulation in quiet environments"]
                        ),
                    )
                )

        lighting_correlation = self._lighting_correlation(sessions)
        if lighting_correlation is not None:
            correlations.append(lighting_correlation)
        return correlations

    def _lighting_correlation(self, sessions: Sequence[SessionRecord]) -> Optional[CorrelationResult]:
        groups: Dict[str, List[float]] = defaultdict(list)
        for session in sessions:
            lighting = session.environmental.lighting if session.environmental else None
            if lighting and session.emotions:
                positive = sum(1 for e in session.emotions if is_positive(e.label))
                groups[lighting].append(positive / len(session.emotions))

        averages = sorted(
            ((lighting, mean(values)) for lighting, values in groups.items() if len(values) >= LIGHTING_MIN_SESSIONS),
            key=lambda item: item[1],
            reverse=True,
        )
        if len(averages) < 2:
            return None
        (best, best_avg), (worst, worst_avg) = averages[0], averages[-1]
        if best_avg - worst_avg <= LIGHTING_MIN_GAP:
            return None
        return CorrelationResult(
            factor1="Lighting Conditions",
            factor2="Positive Emotions",
            correlation=LIGHTING_CATEGORICAL_CORRELATION,
            significance="moderate",
            description=f"{best} lighting shows highest positive emotion rates ({round(best_avg * 100)}%)",
            recommendations=[
                f"Optimize for {best} lighting when possible",
                f"Minimize exposure to {worst} lighting during challenging activities",
            ],
        )

    def _significance(self, magnitude: float) -> Significance:
        low = self._config.pattern_analysis.correlation_threshold
        if magnitude < low:
            return "low"
        if magnitude < low * 2:
            return "moderate"
        return "high"

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def generate_trigger_alerts(
        self,
        emotions: Sequence[EmotionRecord],
        sensory_inputs: Sequence[SensoryRecord],
        sessions: Sequence[SessionRecord],
        subject_id: str,
    ) -> List[TriggerAlert]:
        """Raise concern, improvement and environmental alerts for one subject."""
        window = self._config.time_windows.recent_data_days
        recent_emotions = self._since(emotions, window)
        recent_sessions = self._since(sessions, window)
        now = self._clock()
        threshold = self.effective_intensity_threshold()

        alerts: List[TriggerAlert] = []

        high_stress = [e for e in recent_emotions if e.intensity >= threshold and is_negative(e.label)]
        if len(high_stress) >= CONCERN_ALERT_MIN_COUNT:
            alerts.append(
                TriggerAlert(
                    id=str(uuid4()),
                    type="concern",
                    severity="high",
                    title="High Stress Pattern Detected",
                    description=(
                        f"{len(high_stress)} high-intensity stress responses recorded "
                        f"in the past {window} days"
                    ),
                    recommendations=[
                        "Schedule a check-in with the student",
                        "Review current stressors and triggers",
                        "Implement additional calming strategies",
                        "Consider environmental modifications",
                    ],
                    timestamp=now,
                    subject_id=subject_id,
                    data_points=len(recent_emotions),
                )
            )

        strong_positive = [
            e for e in recent_emotions if is_positive(e.label) and e.intensity >= STRONG_POSITIVE_INTENSITY
        ]
        if len(strong_positive) >= IMPROVEMENT_MIN_POSITIVE and len(recent_emotions) >= IMPROVEMENT_MIN_RECENT:
            share = safe_ratio(len(strong_positive), len(recent_emotions))
            alerts.append(
                TriggerAlert(
                    id=str(uuid4()),
                    type="improvement",
                    severity="low",
                    title="Positive Progress Noted",
                    description=(
                        "Strong positive emotional responses observed in "
                        f"{round(share * 100)}% of recent sessions"
                    ),
                    recommendations=[
                        "Continue current successful strategies",
                        "Document what is working well",
                        "Consider sharing success with student and family",
                    ],
                    timestamp=now,
                    subject_id=subject_id,
                    data_points=len(recent_emotions),
                )
            )

        for correlation in self.analyze_environmental_correlations(recent_sessions):
            if correlation.significance == "high" and abs(correlation.correlation) > PATTERN_ALERT_MIN_CORRELATION:
                alerts.append(
                    TriggerAlert(
                        id=str(uuid4()),
                        type="pattern",
                        severity="medium",
                        title="Environmental Pattern Identified",
                        description=correlation.description,
                        recommendations=list(correlation.recommendations),
                        timestamp=now,
                        subject_id=subject_id,
                        data_points=len(recent_sessions),
                    )
                )

        if alerts:
            logger.debug("Generated %d trigger alerts", len(alerts))
        return alerts


__all__ = ["PatternAnalysisEngine"]
