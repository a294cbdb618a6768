"""Result types produced by the analysis engines.

Results are frozen dataclasses, but their list fields and the lists the
engines return are ordinary lists. A cache hit hands back the stored object
itself, so callers must treat results as read-only and copy before
changing anything. Each result exposes ``to_dict()`` for JSON output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

PatternType = Literal["emotion", "sensory", "environmental", "correlation"]
Significance = Literal["low", "moderate", "high"]
Severity = Literal["low", "medium", "high"]
Direction = Literal["increasing", "decreasing", "stable"]
AlertType = Literal["concern", "improvement", "pattern"]
AnomalyType = Literal["emotion", "sensory", "environmental"]
InsightType = Literal["prediction", "trend", "recommendation", "risk"]
InsightSource = Literal["statistical", "model"]


@dataclass(frozen=True)
class PatternResult:
    """A behavioral pattern found in a window of records."""

    type: PatternType
    pattern: str
    confidence: float
    frequency: int
    description: str
    data_points: int
    timeframe: str
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "pattern": self.pattern,
            "confidence": self.confidence,
            "frequency": self.frequency,
            "description": self.description,
            "recommendations": list(self.recommendations),
            "data_points": self.data_points,
            "timeframe": self.timeframe,
        }


@dataclass(frozen=True)
class CorrelationResult:
    """Relationship between an environmental factor and an emotional signal."""

    factor1: str
    factor2: str
    correlation: float
    significance: Significance
    description: str
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "factor1": self.factor1,
            "factor2": self.factor2,
            "correlation": self.correlation,
            "significance": self.significance,
            "description": self.description,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class TriggerAlert:
    """Actionable alert raised from recent records.

    ``timestamp`` is when the alert was generated, not when anything was
    observed.
    """

    id: str
    type: AlertType
    severity: Severity
    title: str
    description: str
    recommendations: List[str]
    timestamp: datetime
    subject_id: str
    data_points: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "severity": self.severity,
            "title": self.title,
            "description": self.description,
            "recommendations": list(self.recommendations),
            "timestamp": self.timestamp.isoformat(),
            "subject_id": self.subject_id,
            "data_points": self.data_points,
        }


@dataclass(frozen=True)
class TrendPoint:
    """A single value in a time series submitted for trend analysis."""

    timestamp: datetime
    value: float


@dataclass(frozen=True)
class Forecast:
    next_7_days: float
    next_30_days: float
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "next_7_days": self.next_7_days,
            "next_30_days": self.next_30_days,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class TrendAnalysis:
    """Linear trend over a time series.

    ``rate`` is change per day; ``significance`` is the fit's R².
    """

    metric: str
    direction: Direction
    rate: float
    significance: float
    confidence: float
    forecast: Forecast
    data_points: int
    time_span_days: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric,
            "direction": self.direction,
            "rate": self.rate,
            "significance": self.significance,
            "confidence": self.confidence,
            "forecast": self.forecast.to_dict(),
            "data_points": self.data_points,
            "time_span_days": self.time_span_days,
        }


@dataclass(frozen=True)
class AnomalyDetection:
    """A record or day that deviates sharply from its batch."""

    timestamp: datetime
    type: AnomalyType
    severity: Severity
    description: str
    deviation_score: float
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "type": self.type,
            "severity": self.severity,
            "description": self.description,
            "deviation_score": self.deviation_score,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class SignificantPair:
    factor1: str
    factor2: str
    correlation: float
    p_value: float
    significance: Significance

    def to_dict(self) -> Dict[str, Any]:
        return {
            "factor1": self.factor1,
            "factor2": self.factor2,
            "correlation": self.correlation,
            "p_value": self.p_value,
            "significance": self.significance,
        }


@dataclass(frozen=True)
class CorrelationMatrix:
    """Pairwise Pearson correlations between per-session factors.

    ``matrix[i][j]`` is the correlation between ``factors[i]`` and
    ``factors[j]``; the matrix is symmetric.
    """

    factors: List[str]
    matrix: List[List[float]]
    significant_pairs: List[SignificantPair]

    def value(self, factor1: str, factor2: str) -> float:
        return self.matrix[self.factors.index(factor1)][self.factors.index(factor2)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "factors": list(self.factors),
            "matrix": [list(row) for row in self.matrix],
            "significant_pairs": [pair.to_dict() for pair in self.significant_pairs],
        }


@dataclass(frozen=True)
class Prediction:
    value: float
    trend: Direction
    accuracy: float

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "trend": self.trend, "accuracy": self.accuracy}


@dataclass(frozen=True)
class PredictiveInsight:
    """Forward-looking insight from statistics or an optional model."""

    type: InsightType
    title: str
    description: str
    confidence: float
    timeframe: str
    recommendations: List[str] = field(default_factory=list)
    prediction: Optional[Prediction] = None
    severity: Optional[Severity] = None
    source: InsightSource = "statistical"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "confidence": self.confidence,
            "timeframe": self.timeframe,
            "prediction": self.prediction.to_dict() if self.prediction else None,
            "recommendations": list(self.recommendations),
            "severity": self.severity,
            "source": self.source,
        }


@dataclass(frozen=True)
class ConfidenceExplanation:
    """Human-readable account of how far a trend can be trusted.

    ``explanation`` and ``factors`` are message keys (``factor:arg:arg``) for
    the presentation layer to localize.
    """

    level: Severity
    explanation: str
    factors: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "explanation": self.explanation, "factors": list(self.factors)}


__all__ = [
    "AnomalyDetection",
    "ConfidenceExplanation",
    "CorrelationMatrix",
    "CorrelationResult",
    "Forecast",
    "PatternResult",
    "Prediction",
    "PredictiveInsight",
    "SignificantPair",
    "TrendAnalysis",
    "TrendPoint",
    "TriggerAlert",
]
