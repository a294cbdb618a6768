"""Cached Analysis Facade.

Wraps every engine operation with a content-addressed cache. The key for a
call is built from fingerprints of each input collection, every scalar
argument, the input count, and a hash of the configuration sections that
influence results. A hit returns the stored object itself; a miss computes,
tags the result with the operation name and one ``student-<id>`` tag per
subject found in the inputs, and stores it.

Example:
    >>> engine = CachedAnalysisEngine(ConfigurationProvider())
    >>> first = engine.analyze_emotion_patterns(emotions)
    >>> engine.analyze_emotion_patterns(emotions) is first
    True
    >>> engine.invalidate_student_cache("s-1")
    1
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from sensorycompass.analysis.base import Clock, utcnow
from sensorycompass.analysis.enhanced import EnhancedAnalysisEngine
from sensorycompass.analysis.insights import DEFAULT_INSIGHT_TIMEOUT, InsightProvider, enrich_insights
from sensorycompass.analysis.patterns import PatternAnalysisEngine
from sensorycompass.analysis.results import (
    AnomalyDetection,
    ConfidenceExplanation,
    CorrelationMatrix,
    CorrelationResult,
    PatternResult,
    PredictiveInsight,
    TrendAnalysis,
    TriggerAlert,
)
from sensorycompass.cache.fingerprint import create_key, fingerprint
from sensorycompass.cache.store import CacheStatistics, CacheStore
from sensorycompass.configuration.settings import AnalyticsConfiguration, ConfigurationProvider
from sensorycompass.models.records import (
    EmotionRecord,
    GoalRecord,
    RecordBundle,
    SensoryRecord,
    SessionRecord,
    collect_subject_ids,
)

logger = logging.getLogger(__name__)

EMOTION_PATTERNS = "emotion-patterns"
SENSORY_PATTERNS = "sensory-patterns"
ENV_CORRELATIONS = "env-correlations"
TRIGGER_ALERTS = "trigger-alerts"
PREDICTIVE_INSIGHTS = "predictive-insights"
ANOMALY_DETECTION = "anomaly-detection"
TREND_ANALYSIS = "trend-analysis"
CORRELATION_MATRIX = "correlation-matrix"
CONFIDENCE_EXPLANATION = "confidence-explanation"

OPERATIONS = (
    EMOTION_PATTERNS,
    SENSORY_PATTERNS,
    ENV_CORRELATIONS,
    TRIGGER_ALERTS,
    PREDICTIVE_INSIGHTS,
    ANOMALY_DETECTION,
    TREND_ANALYSIS,
    CORRELATION_MATRIX,
    CONFIDENCE_EXPLANATION,
)

_MISS = object()


def student_tag(subject_id: str) -> str:
    return f"student-{subject_id}"


def config_fingerprint(config: AnalyticsConfiguration) -> str:
    """Hash of the configuration sections that change analysis output."""
    return fingerprint(
        {
            "pattern_analysis": config.pattern_analysis,
            "enhanced_analysis": config.enhanced_analysis,
            "time_windows": config.time_windows,
            "alert_sensitivity": config.alert_sensitivity,
        }
    )


class CachedAnalysisEngine:
    """Caching front for the pattern and enhanced engines.

    A hit returns the stored result object, not a copy. Callers share it and
    must not mutate it.

    Args:
        provider: Shared configuration handle
        store: Cache store; one sized from ``cache.max_size`` is created if omitted
        pattern_engine: Engine override, mainly for tests
        enhanced_engine: Engine override, mainly for tests
        ttl_seconds: Fixed TTL overriding ``cache.ttl_seconds``; 0 disables expiry
        clock: "Now" for the engines created here
    """

    def __init__(
        self,
        provider: Optional[ConfigurationProvider] = None,
        *,
        store: Optional[CacheStore] = None,
        pattern_engine: Optional[PatternAnalysisEngine] = None,
        enhanced_engine: Optional[EnhancedAnalysisEngine] = None,
        ttl_seconds: Optional[float] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._provider = provider or ConfigurationProvider()
        config = self._provider.get_config()
        self._store = store if store is not None else CacheStore(max_entries=config.cache.max_size)
        self._owned_engines: List[Any] = []
        if pattern_engine is None:
            pattern_engine = PatternAnalysisEngine(self._provider, clock=clock)
            self._owned_engines.append(pattern_engine)
        if enhanced_engine is None:
            enhanced_engine = EnhancedAnalysisEngine(self._provider, clock=clock)
            self._owned_engines.append(enhanced_engine)
        self._patterns = pattern_engine
        self._enhanced = enhanced_engine
        self._ttl_override = ttl_seconds
        self._apply_config(config)
        self._unsubscribe: Optional[Callable[[], None]] = self._provider.subscribe(self._on_config_change)

    # ------------------------------------------------------------------
    # Lifecycle and cache management
    # ------------------------------------------------------------------

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def stats(self) -> CacheStatistics:
        return self._store.stats

    @property
    def config_hash(self) -> str:
        return self._config_hash

    @property
    def ttl_seconds(self) -> Optional[float]:
        return self._ttl

    def close(self) -> None:
        """Stop following configuration changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for engine in self._owned_engines:
            engine.close()
        self._owned_engines.clear()

    def invalidate_student_cache(self, subject_id: str) -> int:
        """Drop every cached result derived from ``subject_id``'s records."""
        return self._store.invalidate_by_tag(student_tag(subject_id))

    def invalidate_all_cache(self) -> int:
        """Drop the results of every cached operation."""
        removed = sum(self._store.invalidate_by_tag(operation) for operation in OPERATIONS)
        logger.info("Invalidated all analysis cache entries (%d)", removed)
        return removed

    def invalidate_configuration_cache(self) -> int:
        """Recompute the configuration hash and drop results cached under the old one."""
        self._apply_config(self._provider.get_config())
        return self.invalidate_all_cache()

    def _apply_config(self, config: AnalyticsConfiguration) -> None:
        self._config_hash = config_fingerprint(config)
        ttl = self._ttl_override if self._ttl_override is not None else config.cache.ttl_seconds
        self._ttl: Optional[float] = ttl if ttl and ttl > 0 else None

    def _on_config_change(self, config: AnalyticsConfiguration) -> None:
        self._apply_config(config)
        if config.cache.invalidate_on_config_change:
            self.invalidate_all_cache()

    # ------------------------------------------------------------------
    # Core lookup
    # ------------------------------------------------------------------

    def _cached(
        self,
        operation: str,
        collections: Mapping[str, Sequence[Any]],
        scalars: Mapping[str, Any],
        compute: Callable[[], Any],
        subject_ids: Iterable[str] = (),
    ) -> Any:
        params: Dict[str, Any] = {f"{name}_fingerprint": fingerprint(list(items)) for name, items in collections.items()}
        params.update(scalars)
        params["count"] = sum(len(items) for items in collections.values())
        params["config_hash"] = self._config_hash
        key = create_key(operation, params)

        cached = self._store.get(key, _MISS, max_age=self._ttl)
        if cached is not _MISS:
            logger.debug("Cache hit for %s", operation)
            return cached

        logger.debug("Cache miss for %s", operation)
        result = compute()
        tags = {operation, *(student_tag(subject_id) for subject_id in subject_ids)}
        self._store.set(key, result, tags=tags)
        return result

    # ------------------------------------------------------------------
    # Pattern engine operations
    # ------------------------------------------------------------------

    def analyze_emotion_patterns(
        self,
        emotions: Sequence[EmotionRecord],
        timeframe_days: Optional[int] = None,
    ) -> List[PatternResult]:
        return self._cached(
            EMOTION_PATTERNS,
            {"emotions": emotions},
            {"timeframe_days": timeframe_days},
            lambda: self._patterns.analyze_emotion_patterns(emotions, timeframe_days),
            collect_subject_ids(emotions),
        )

    def analyze_sensory_patterns(
        self,
        sensory_inputs: Sequence[SensoryRecord],
        timeframe_days: Optional[int] = None,
    ) -> List[PatternResult]:
        return self._cached(
            SENSORY_PATTERNS,
            {"sensory_inputs": sensory_inputs},
            {"timeframe_days": timeframe_days},
            lambda: self._patterns.analyze_sensory_patterns(sensory_inputs, timeframe_days),
            collect_subject_ids(sensory_inputs),
        )

    def analyze_environmental_correlations(self, sessions: Sequence[SessionRecord]) -> List[CorrelationResult]:
        return self._cached(
            ENV_CORRELATIONS,
            {"sessions": sessions},
            {},
            lambda: self._patterns.analyze_environmental_correlations(sessions),
            collect_subject_ids(sessions),
        )

    def generate_trigger_alerts(
        self,
        emotions: Sequence[EmotionRecord],
        sensory_inputs: Sequence[SensoryRecord],
        sessions: Sequence[SessionRecord],
        subject_id: str,
    ) -> List[TriggerAlert]:
        return self._cached(
            TRIGGER_ALERTS,
            {"emotions": emotions, "sensory_inputs": sensory_inputs, "sessions": sessions},
            {"subject_id": subject_id},
            lambda: self._patterns.generate_trigger_alerts(emotions, sensory_inputs, sessions, subject_id),
            collect_subject_ids(emotions, sensory_inputs, sessions) | {subject_id},
        )

    # ------------------------------------------------------------------
    # Enhanced engine operations
    # ------------------------------------------------------------------

    def analyze_trends_with_statistics(
        self,
        points: Sequence[Any],
        metric: str = "Overall Trend",
    ) -> Optional[TrendAnalysis]:
        return self._cached(
            TREND_ANALYSIS,
            {"points": points},
            {"metric": metric},
            lambda: self._enhanced.analyze_trends_with_statistics(points, metric),
            collect_subject_ids(points),
        )

    def detect_anomalies(
        self,
        emotions: Sequence[EmotionRecord],
        sensory_inputs: Sequence[SensoryRecord],
        sessions: Sequence[SessionRecord] = (),
    ) -> List[AnomalyDetection]:
        return self._cached(
            ANOMALY_DETECTION,
            {"emotions": emotions, "sensory_inputs": sensory_inputs, "sessions": sessions},
            {},
            lambda: self._enhanced.detect_anomalies(emotions, sensory_inputs, sessions),
            collect_subject_ids(emotions, sensory_inputs, sessions),
        )

    def generate_correlation_matrix(self, sessions: Sequence[SessionRecord]) -> CorrelationMatrix:
        return self._cached(
            CORRELATION_MATRIX,
            {"sessions": sessions},
            {},
            lambda: self._enhanced.generate_correlation_matrix(sessions),
            collect_subject_ids(sessions),
        )

    def generate_predictive_insights(
        self,
        emotions: Sequence[EmotionRecord],
        sensory_inputs: Sequence[SensoryRecord],
        sessions: Sequence[SessionRecord],
        goals: Sequence[GoalRecord] = (),
    ) -> List[PredictiveInsight]:
        return self._cached(
            PREDICTIVE_INSIGHTS,
            {"emotions": emotions, "sensory_inputs": sensory_inputs, "sessions": sessions, "goals": goals},
            {},
            lambda: self._enhanced.generate_predictive_insights(emotions, sensory_inputs, sessions, goals),
            collect_subject_ids(emotions, sensory_inputs, sessions, goals),
        )

    async def agenerate_predictive_insights(
        self,
        emotions: Sequence[EmotionRecord],
        sensory_inputs: Sequence[SensoryRecord],
        sessions: Sequence[SessionRecord],
        goals: Sequence[GoalRecord] = (),
        *,
        provider: Optional[InsightProvider] = None,
        timeout: float = DEFAULT_INSIGHT_TIMEOUT,
    ) -> List[PredictiveInsight]:
        """Cached statistical insights plus an optional model overlay.

        Only the statistical part is cached; model output is fetched fresh.
        """
        statistical = self.generate_predictive_insights(emotions, sensory_inputs, sessions, goals)
        if provider is None:
            return statistical
        bundle = RecordBundle(
            emotions=list(emotions),
            sensory_inputs=list(sensory_inputs),
            sessions=list(sessions),
            goals=list(goals),
        )
        return await enrich_insights(statistical, provider, bundle, timeout=timeout)

    def generate_confidence_explanation(
        self,
        data_points: int,
        time_span_days: float,
        r_squared: float,
        confidence: float,
    ) -> ConfidenceExplanation:
        return self._cached(
            CONFIDENCE_EXPLANATION,
            {},
            {
                "data_points": data_points,
                "time_span_days": time_span_days,
                "r_squared": r_squared,
                "confidence": confidence,
            },
            lambda: self._enhanced.generate_confidence_explanation(
                data_points, time_span_days, r_squared, confidence
            ),
        )


__all__ = [
    "OPERATIONS",
    "CachedAnalysisEngine",
    "config_fingerprint",
    "student_tag",
]
