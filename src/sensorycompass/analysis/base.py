"""Configuration plumbing shared by the analysis engines."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, TypeVar

from sensorycompass.configuration.settings import AnalyticsConfiguration, ConfigurationProvider

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
_T = TypeVar("_T")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConfiguredEngine:
    """Holds the latest configuration snapshot from a provider.

    The engine subscribes on construction; :meth:`close` releases the
    subscription. ``clock`` supplies "now" for time-window filtering.
    """

    def __init__(
        self,
        provider: Optional[ConfigurationProvider] = None,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._provider = provider or ConfigurationProvider()
        self._config = self._provider.get_config()
        self._clock = clock
        self._unsubscribe: Optional[Callable[[], None]] = self._provider.subscribe(
            self._on_config_change
        )

    @property
    def config(self) -> AnalyticsConfiguration:
        return self._config

    @property
    def provider(self) -> ConfigurationProvider:
        return self._provider

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_config_change(self, config: AnalyticsConfiguration) -> None:
        logger.debug("%s picked up new configuration", type(self).__name__)
        self._config = config

    def _since(self, records: Iterable[_T], days: float) -> List[_T]:
        """Records whose timestamp falls within the last ``days`` days."""
        cutoff = self._clock() - timedelta(days=days)
        return [record for record in records if record.timestamp >= cutoff]  # type: ignore[attr-defined]


__all__ = ["Clock", "ConfiguredEngine", "utcnow"]
