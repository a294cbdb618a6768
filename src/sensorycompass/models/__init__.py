"""Observation record models and the validation boundary."""

from sensorycompass.models.records import (
    INTENSITY_MAX,
    INTENSITY_MIN,
    EmotionRecord,
    EnvironmentalSnapshot,
    GoalDataPoint,
    GoalRecord,
    RecordBundle,
    RoomConditions,
    SensoryRecord,
    SessionRecord,
    collect_subject_ids,
    load_records,
    load_records_file,
)

__all__ = [
    "INTENSITY_MAX",
    "INTENSITY_MIN",
    "EmotionRecord",
    "EnvironmentalSnapshot",
    "GoalDataPoint",
    "GoalRecord",
    "RecordBundle",
    "RoomConditions",
    "SensoryRecord",
    "SessionRecord",
    "collect_subject_ids",
    "load_records",
    "load_records_file",
]
