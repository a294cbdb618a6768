"""Shared record builders and fixtures for the analytics tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Iterable, List, Optional, Sequence

import pytest

from sensorycompass.configuration.settings import ConfigurationProvider
from sensorycompass.models.records import (
    EmotionRecord,
    EnvironmentalSnapshot,
    GoalDataPoint,
    GoalRecord,
    RoomConditions,
    SensoryRecord,
    SessionRecord,
)

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

_ids = count(1)


def fixed_clock(now: datetime = NOW):
    return lambda: now


def days_ago(days: float, *, now: datetime = NOW) -> datetime:
    return now - timedelta(days=days)


def make_emotion(
    label: str = "calm",
    intensity: int = 2,
    *,
    days: float = 0,
    subject_id: Optional[str] = "s-1",
    triggers: Iterable[str] = (),
) -> EmotionRecord:
    return EmotionRecord(
        id=f"e-{next(_ids)}",
        subject_id=subject_id,
        label=label,
        intensity=intensity,
        timestamp=days_ago(days),
        triggers=list(triggers),
    )


def make_sensory(
    response: str = "seeking",
    *,
    days: float = 0,
    modality: str = "auditory",
    subject_id: Optional[str] = "s-1",
    intensity: Optional[int] = None,
) -> SensoryRecord:
    return SensoryRecord(
        id=f"i-{next(_ids)}",
        subject_id=subject_id,
        modality=modality,
        response=response,
        intensity=intensity,
        timestamp=days_ago(days),
    )


def make_session(
    emotions: Sequence[EmotionRecord] = (),
    sensory_inputs: Sequence[SensoryRecord] = (),
    *,
    days: float = 0,
    subject_id: str = "s-1",
    noise_level: Optional[float] = None,
    lighting: Optional[str] = None,
    temperature: Optional[float] = None,
) -> SessionRecord:
    environmental = None
    if noise_level is not None or lighting is not None or temperature is not None:
        environmental = EnvironmentalSnapshot(
            room_conditions=RoomConditions(
                noise_level=noise_level,
                lighting=lighting,
                temperature=temperature,
            )
        )
    return SessionRecord(
        id=f"t-{next(_ids)}",
        subject_id=subject_id,
        timestamp=days_ago(days),
        emotions=list(emotions),
        sensory_inputs=list(sensory_inputs),
        environmental=environmental,
    )


def make_goal(values: List[float], target: float, *, subject_id: str = "s-1", title: str = "Reading") -> GoalRecord:
    """Goal with one data point per day, oldest first, ending today."""
    last = len(values) - 1
    return GoalRecord(
        id=f"g-{next(_ids)}",
        subject_id=subject_id,
        title=title,
        target_value=target,
        data_points=[
            GoalDataPoint(timestamp=days_ago(last - index), value=value)
            for index, value in enumerate(values)
        ],
    )


@pytest.fixture
def provider() -> ConfigurationProvider:
    return ConfigurationProvider()


@pytest.fixture
def clock():
    return fixed_clock()
