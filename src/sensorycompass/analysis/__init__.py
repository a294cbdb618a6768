"""Statistical pattern analysis engines and the caching facade."""

from sensorycompass.analysis.cached import CachedAnalysisEngine
from sensorycompass.analysis.enhanced import EnhancedAnalysisEngine
from sensorycompass.analysis.insights import InsightProvider, enrich_insights
from sensorycompass.analysis.patterns import PatternAnalysisEngine
from sensorycompass.analysis.results import (
    AnomalyDetection,
    ConfidenceExplanation,
    CorrelationMatrix,
    CorrelationResult,
    Forecast,
    PatternResult,
    Prediction,
    PredictiveInsight,
    SignificantPair,
    TrendAnalysis,
    TrendPoint,
    TriggerAlert,
)

__all__ = [
    "AnomalyDetection",
    "CachedAnalysisEngine",
    "ConfidenceExplanation",
    "CorrelationMatrix",
    "CorrelationResult",
    "EnhancedAnalysisEngine",
    "Forecast",
    "InsightProvider",
    "PatternAnalysisEngine",
    "PatternResult",
    "Prediction",
    "PredictiveInsight",
    "SignificantPair",
    "TrendAnalysis",
    "TrendPoint",
    "TriggerAlert",
    "enrich_insights",
]
