"""Enhanced Analysis Engine.

Statistical analysis on top of the rule-based patterns:

- Linear trends with R² significance, per-day rate and 7/30-step forecasts
- Z-score anomaly detection on emotion intensity and daily sensory volume
- Pairwise correlation matrix over six per-session factors, with p-values
- Goal achievement projection and short-term risk assessment
- Confidence explanations for presenting trends

Numeric safety: every ratio, regression coefficient and p-value passes a
finiteness guard in :mod:`sensorycompass.analysis.statistics`, so results
never carry ``nan`` or ``inf``.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional, Sequence

from sensorycompass.analysis.base import ConfiguredEngine
from sensorycompass.analysis.results import (
    AnomalyDetection,
    ConfidenceExplanation,
    CorrelationMatrix,
    Direction,
    Forecast,
    Prediction,
    PredictiveInsight,
    Severity,
    Significance,
    SignificantPair,
    TrendAnalysis,
    TrendPoint,
)
from sensorycompass.analysis.statistics import (
    clamp,
    correlation_p_value,
    finite_or,
    has_variance,
    linear_regression,
    mean,
    pearson_correlation,
    safe_ratio,
    z_scores,
)
from sensorycompass.analysis.vocabulary import (
    is_negative,
    is_positive,
    is_seeking,
    lighting_score,
    sensory_direction,
)
from sensorycompass.models.records import (
    INTENSITY_MAX,
    EmotionRecord,
    GoalRecord,
    SensoryRecord,
    SessionRecord,
)

logger = logging.getLogger(__name__)

CORRELATION_FACTORS: List[str] = [
    "avgEmotionIntensity",
    "positiveEmotionRatio",
    "sensorySeekingRatio",
    "noiseLevel",
    "temperature",
    "lightingQuality",
]

MATRIX_MIN_CORRELATION = 0.3
FULL_DATA_POINTS = 30
FULL_TIMESPAN_DAYS = 21
GOAL_MIN_DATA_POINTS = 3
GOAL_SLOW_PACE_DAYS = 60
GOAL_VERY_SLOW_PACE_DAYS = 90
RISK_CONFIDENCE = 0.8


def _anomaly_severity(z: float) -> Severity:
    if z > 3:
        return "high"
    if z > 2.5:
        return "medium"
    return "low"


def _pair_significance(r: float) -> Significance:
    magnitude = abs(r)
    if magnitude > 0.7:
        return "high"
    if magnitude > 0.5:
        return "moderate"
    return "low"


def _trend_severity(trend: TrendAnalysis) -> Severity:
    if trend.direction == "decreasing" and trend.significance > 0.7:
        return "high"
    if trend.direction == "decreasing" and trend.significance > 0.4:
        return "medium"
    return "low"


class EnhancedAnalysisEngine(ConfiguredEngine):
    """Trend, anomaly, correlation and forecasting analysis."""

    # ------------------------------------------------------------------
    # Trends
    # ------------------------------------------------------------------

    def analyze_trends_with_statistics(
        self,
        points: Sequence[Any],
        metric: str = "Overall Trend",
    ) -> Optional[TrendAnalysis]:
        """Fit a linear trend to ``points`` (objects with ``timestamp`` and ``value``).

        Returns ``None`` below ``min_sample_size`` points.
        """
        settings = self._config.enhanced_analysis
        n = len(points)
        if n == 0 or n < settings.min_sample_size:
            return None

        ordered = sorted(points, key=lambda point: point.timestamp)
        fit = linear_regression([float(point.value) for point in ordered])

        time_span_days = (ordered[-1].timestamp - ordered[0].timestamp).days
        rate = finite_or(fit.slope * (n - 1) / max(time_span_days, 1), 0.0)

        confidence = clamp(
            0.3 * min(1.0, n / FULL_DATA_POINTS)
            + 0.3 * min(1.0, time_span_days / FULL_TIMESPAN_DAYS)
            + 0.4 * fit.r_squared
        )

        direction: Direction
        if abs(rate) < settings.trend_threshold:
            direction = "stable"
        elif rate > 0:
            direction = "increasing"
        else:
            direction = "decreasing"

        return TrendAnalysis(
            metric=metric,
            direction=direction,
            rate=rate,
            significance=fit.r_squared,
            confidence=confidence,
            forecast=Forecast(
                next_7_days=finite_or(fit.last_fitted + fit.slope * 7, 0.0),
                next_30_days=finite_or(fit.last_fitted + fit.slope * 30, 0.0),
                confidence=confidence,
            ),
            data_points=n,
            time_span_days=time_span_days,
        )

    def generate_confidence_explanation(
        self,
        data_points: int,
        time_span_days: float,
        r_squared: float,
        confidence: float,
    ) -> ConfidenceExplanation:
        """Map trend quality figures to a level and message keys."""
        min_sample = self._config.enhanced_analysis.min_sample_size
        factors: List[str] = []
        if data_points < min_sample:
            factors.append(f"insufficientData:{data_points}:{min_sample}")
        if time_span_days < self._config.time_windows.short_term_days:
            factors.append(f"shortTimespan:{time_span_days}:{FULL_TIMESPAN_DAYS}")
        if r_squared < 0.3:
            factors.append(f"weakPattern:{r_squared:.3f}")
        elif r_squared > 0.7:
            factors.append(f"strongPattern:{r_squared:.3f}")
        else:
            factors.append("moderatePattern")

        if confidence >= 0.7:
            return ConfidenceExplanation(
                level="high",
                explanation="excellentData" if r_squared > 0.8 else "reliableInsight",
                factors=factors,
            )
        if confidence >= 0.4:
            return ConfidenceExplanation(level="medium", explanation="emergingTrend", factors=factors)
        return ConfidenceExplanation(level="low", explanation="needMoreData", factors=factors)

    # ------------------------------------------------------------------
    # Anomalies
    # ------------------------------------------------------------------

    def detect_anomalies(
        self,
        emotions: Sequence[EmotionRecord],
        sensory_inputs: Sequence[SensoryRecord],
        sessions: Sequence[SessionRecord] = (),
    ) -> List[AnomalyDetection]:
        """Flag unusual emotion intensities and unusually busy sensory days.

        Sessions are accepted for call compatibility; environmental anomalies
        are not scored.
        """
        threshold = self._config.alert_sensitivity.scale_anomaly(
            self._config.enhanced_analysis.anomaly_threshold
        )
        anomalies: List[AnomalyDetection] = []

        scores = z_scores([e.intensity for e in emotions])
        if scores is not None:
            for emotion, z in zip(emotions, scores):
                if z > threshold:
                    anomalies.append(
                        AnomalyDetection(
                            timestamp=emotion.timestamp,
                            type="emotion",
                            severity=_anomaly_severity(z),
                            description=(
                                f"Unusual {emotion.label} intensity detected "
                                f"({emotion.intensity}/{INTENSITY_MAX})"
                            ),
                            deviation_score=z,
                            recommendations=[
                                "Investigate potential triggers for this emotional spike",
                                "Provide immediate support and coping strategies",
                                "Monitor closely for additional unusual patterns",
                                "Consider environmental or schedule changes",
                            ],
                        )
                    )

        daily = Counter(s.timestamp.astimezone(timezone.utc).date() for s in sensory_inputs)
        days = list(daily)
        day_scores = z_scores([daily[day] for day in days])
        if day_scores is not None:
            for day, z in zip(days, day_scores):
                if z > threshold:
                    anomalies.append(
                        AnomalyDetection(
                            timestamp=datetime.combine(day, time.min, tzinfo=timezone.utc),
                            type="sensory",
                            severity=_anomaly_severity(z),
                            description=f"Unusual sensory activity level detected ({daily[day]} inputs)",
                            deviation_score=z,
                            recommendations=[
                                "Review sensory environment for unusual factors",
                                "Check for changes in routine or schedule",
                                "Provide additional sensory regulation support",
                                "Monitor for illness or other physical factors",
                            ],
                        )
                    )

        anomalies.sort(key=lambda anomaly: anomaly.timestamp, reverse=True)
        return anomalies

    # ------------------------------------------------------------------
    # Correlation matrix
    # ------------------------------------------------------------------

    def generate_correlation_matrix(self, sessions: Sequence[SessionRecord]) -> CorrelationMatrix:
        """Symmetric Pearson matrix over per-session factors."""
        columns: Dict[str, List[float]] = {factor: [] for factor in CORRELATION_FACTORS}
        for session in sessions:
            for factor, value in _session_factors(session).items():
                columns[factor].append(value)

        size = len(CORRELATION_FACTORS)
        n = len(sessions)
        matrix = [[0.0] * size for _ in range(size)]
        pairs: List[SignificantPair] = []

        for i, factor1 in enumerate(CORRELATION_FACTORS):
            matrix[i][i] = 1.0 if has_variance(columns[factor1]) else 0.0
            for j in range(i + 1, size):
                factor2 = CORRELATION_FACTORS[j]
                r = pearson_correlation(columns[factor1], columns[factor2])
                matrix[i][j] = matrix[j][i] = r
                if abs(r) > MATRIX_MIN_CORRELATION and n >= self._config.enhanced_analysis.min_sample_size:
                    pairs.append(
                        SignificantPair(
                            factor1=factor1,
                            factor2=factor2,
                            correlation=r,
                            p_value=correlation_p_value(r, n),
                            significance=_pair_significance(r),
                        )
                    )

        pairs.sort(key=lambda pair: abs(pair.correlation), reverse=True)
        return CorrelationMatrix(factors=list(CORRELATION_FACTORS), matrix=matrix, significant_pairs=pairs)

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    def predict_goal_achievement(self, goal: GoalRecord) -> Optional[PredictiveInsight]:
        """Project days until ``goal`` reaches its target at the current pace."""
        if len(goal.data_points) < GOAL_MIN_DATA_POINTS:
            return None
        trend = self.analyze_trends_with_statistics(goal.data_points, metric=f"Goal: {goal.title}")
        if trend is None:
            return None

        current = max(goal.data_points, key=lambda point: point.timestamp).value
        remaining = goal.target_value - current
        if remaining <= 0:
            estimated_days = 0.0
        elif trend.rate > 0:
            estimated_days = finite_or(remaining / trend.rate, -1.0)
        else:
            estimated_days = -1.0

        if estimated_days > 0:
            description = f"Estimated {math.ceil(estimated_days)} days to achieve goal at current pace"
        elif estimated_days == 0:
            description = "Goal target already reached"
        else:
            description = "Goal may require strategy adjustment based on current trend"

        severity: Severity
        if estimated_days < 0:
            severity = "high"
        elif estimated_days > GOAL_SLOW_PACE_DAYS:
            severity = "medium"
        else:
            severity = "low"

        return PredictiveInsight(
            type="prediction",
            title=f"Goal Achievement Forecast: {goal.title}",
            description=description,
            confidence=trend.significance,
            timeframe="Goal completion forecast",
            prediction=Prediction(value=goal.target_value, trend=trend.direction, accuracy=trend.significance),
            recommendations=_goal_recommendations(estimated_days),
            severity=severity,
        )

    def assess_risks(
        self,
        emotions: Sequence[EmotionRecord],
        sensory_inputs: Sequence[SensoryRecord] = (),
        sessions: Sequence[SessionRecord] = (),
    ) -> List[PredictiveInsight]:
        """Flag accumulated high-intensity distress over the short-term window."""
        window = self._config.time_windows.short_term_days
        sensitivity = self._config.alert_sensitivity
        intensity_threshold = sensitivity.scale_intensity(self._config.pattern_analysis.high_intensity_threshold)
        count_threshold = sensitivity.scale_frequency(self._config.enhanced_analysis.risk_assessment_threshold)

        high_stress = sum(
            1
            for e in self._since(emotions, window)
            if e.intensity >= intensity_threshold and is_negative(e.label)
        )
        if high_stress == 0 or high_stress < count_threshold:
            return []

        logger.debug("Risk threshold met: %d high-stress incidents", high_stress)
        return [
            PredictiveInsight(
                type="risk",
                title="Stress Accumulation Risk",
                description=f"{high_stress} high-stress incidents in the past {window} days",
                confidence=RISK_CONFIDENCE,
                timeframe="Immediate attention needed",
                recommendations=[
                    "Implement immediate stress reduction strategies",
                    "Review and adjust current interventions",
                    "Consider environmental modifications",
                    "Schedule additional support sessions",
                ],
                severity="high",
            )
        ]

    def generate_predictive_insights(
        self,
        emotions: Sequence[EmotionRecord],
        sensory_inputs: Sequence[SensoryRecord],
        sessions: Sequence[SessionRecord],
        goals: Sequence[GoalRecord] = (),
    ) -> List[PredictiveInsight]:
        """Statistical forecasts: emotion and sensory trends, goals, risks."""
        insights: List[PredictiveInsight] = []

        emotion_trend = self.analyze_trends_with_statistics(
            [TrendPoint(timestamp=e.timestamp, value=e.intensity) for e in emotions],
            metric="Emotion Intensity",
        )
        if emotion_trend is not None:
            insights.append(
                PredictiveInsight(
                    type="prediction",
                    title="Emotional Well-being Forecast",
                    description=f"Based on current trends, emotional intensity is {emotion_trend.direction}",
                    confidence=emotion_trend.significance,
                    timeframe="7-day forecast",
                    prediction=Prediction(
                        value=emotion_trend.forecast.next_7_days,
                        trend=emotion_trend.direction,
                        accuracy=emotion_trend.confidence,
                    ),
                    recommendations=_emotion_trend_recommendations(emotion_trend),
                    severity=_trend_severity(emotion_trend),
                )
            )

        sensory_trend = self.analyze_trends_with_statistics(
            [TrendPoint(timestamp=s.timestamp, value=sensory_direction(s.response)) for s in sensory_inputs],
            metric="Sensory Response",
        )
        if sensory_trend is not None:
            insights.append(
                PredictiveInsight(
                    type="prediction",
                    title="Sensory Regulation Forecast",
                    description=f"Sensory seeking/avoiding patterns show {sensory_trend.direction} trend",
                    confidence=sensory_trend.significance,
                    timeframe="14-day forecast",
                    prediction=Prediction(
                        value=sensory_trend.forecast.next_7_days,
                        trend=sensory_trend.direction,
                        accuracy=sensory_trend.confidence,
                    ),
                    recommendations=_sensory_trend_recommendations(sensory_trend),
                    severity=_trend_severity(sensory_trend),
                )
            )

        for goal in goals:
            prediction = self.predict_goal_achievement(goal)
            if prediction is not None:
                insights.append(prediction)

        insights.extend(self.assess_risks(emotions, sensory_inputs, sessions))
        return insights


def _session_factors(session: SessionRecord) -> Dict[str, float]:
    emotions = session.emotions
    sensory = session.sensory_inputs
    environment = session.environmental
    return {
        "avgEmotionIntensity": mean([e.intensity for e in emotions]),
        "positiveEmotionRatio": safe_ratio(sum(1 for e in emotions if is_positive(e.label)), len(emotions)),
        "sensorySeekingRatio": safe_ratio(sum(1 for s in sensory if is_seeking(s.response)), len(sensory)),
        "noiseLevel": finite_or(environment.noise_level, 0.0) if environment else 0.0,
        "temperature": finite_or(environment.temperature, 0.0) if environment else 0.0,
        "lightingQuality": lighting_score(environment.lighting if environment else None),
    }


def _goal_recommendations(estimated_days: float) -> List[str]:
    if estimated_days < 0:
        return [
            "Review and adjust goal strategies",
            "Break goal into smaller milestones",
            "Identify and address barriers",
            "Consider modifying timeline or approach",
        ]
    if estimated_days > GOAL_VERY_SLOW_PACE_DAYS:
        return [
            "Increase intervention frequency",
            "Add additional support strategies",
            "Review goal expectations",
            "Provide more immediate reinforcement",
        ]
    return [
        "Continue current approach",
        "Monitor progress regularly",
        "Celebrate milestones reached",
        "Maintain consistent support",
    ]


def _emotion_trend_recommendations(trend: TrendAnalysis) -> List[str]:
    if trend.direction == "decreasing":
        return [
            "Increase positive reinforcement strategies",
            "Review environmental factors that may be contributing to stress",
            "Consider additional sensory support tools",
            "Schedule more frequent check-ins",
        ]
    if trend.direction == "increasing":
        return [
            "Continue current successful strategies",
            "Document what is working well",
            "Gradually introduce new challenges",
            "Share progress with student and family",
        ]
    return [
        "Monitor for changes in patterns",
        "Maintain current support level",
        "Be prepared to adjust strategies as needed",
    ]


def _sensory_trend_recommendations(trend: TrendAnalysis) -> List[str]:
    # Positive rate means seeking is growing; negative means avoiding is
    if trend.rate > 0:
        return [
            "Provide more structured sensory breaks",
            "Introduce additional sensory tools",
            "Consider sensory diet adjustments",
            "Monitor for overstimulation",
        ]
    if trend.rate < 0:
        return [
            "Reduce environmental stimuli",
            "Provide more quiet spaces",
            "Gradually reintroduce sensory experiences",
            "Focus on calming strategies",
        ]
    return [
        "Maintain current sensory support level",
        "Continue monitoring sensory preferences",
        "Be responsive to daily variations",
    ]


__all__ = ["CORRELATION_FACTORS", "EnhancedAnalysisEngine"]
