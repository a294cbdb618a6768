"""Optional model-based enrichment of statistical insights.

The statistical insights are always computed synchronously. A model-backed
:class:`InsightProvider` may add more, but only if it answers within the
timeout; a slow or failing provider is logged and ignored so callers still
get the statistical answer.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from sensorycompass.analysis.results import PredictiveInsight
from sensorycompass.errors import InsightProviderError
from sensorycompass.models.records import RecordBundle

logger = logging.getLogger(__name__)

DEFAULT_INSIGHT_TIMEOUT = 5.0


@runtime_checkable
class InsightProvider(Protocol):
    """Collaborator that produces extra insights from a record bundle."""

    async def generate_insights(self, bundle: RecordBundle) -> Sequence[PredictiveInsight]:
        ...


async def enrich_insights(
    statistical: Sequence[PredictiveInsight],
    provider: Optional[InsightProvider],
    bundle: RecordBundle,
    *,
    timeout: float = DEFAULT_INSIGHT_TIMEOUT,
) -> List[PredictiveInsight]:
    """Append model insights to ``statistical`` when the provider succeeds.

    Model insights are marked ``source="model"``. Any provider failure,
    including a timeout, leaves the statistical insights unchanged.
    """
    insights = list(statistical)
    if provider is None:
        return insights

    try:
        extra = await asyncio.wait_for(provider.generate_insights(bundle), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Insight provider timed out after %.1fs, using statistical insights only", timeout)
        return insights
    except Exception as exc:
        error = InsightProviderError(f"Insight provider failed: {exc}", cause=exc)
        logger.warning("%s; using statistical insights only", error.message)
        return insights

    accepted = 0
    for item in extra or ():
        if isinstance(item, PredictiveInsight):
            insights.append(dataclasses.replace(item, source="model"))
            accepted += 1
        else:
            logger.warning("Ignoring insight of unexpected type %s", type(item).__name__)
    logger.debug("Added %d model insights", accepted)
    return insights


__all__ = ["DEFAULT_INSIGHT_TIMEOUT", "InsightProvider", "enrich_insights"]
