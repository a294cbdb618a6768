"""Observation record models.

Records are owned by the storage collaborator and consumed by value. They
are validated exactly once, when a payload crosses into the analysis core
through :func:`load_records`; the engines downstream assume well-typed,
timezone-aware input and never re-check shapes.

Intensities use a single 1-5 scale everywhere in the package.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from sensorycompass.errors import RecordValidationError


INTENSITY_MIN = 1
INTENSITY_MAX = 5


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _Record(BaseModel):
    """Shared config: immutable after validation, names or aliases accepted."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("timestamp", check_fields=False)
    @classmethod
    def _timestamp_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class EmotionRecord(_Record):
    """A single observed emotion."""

    id: str
    subject_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("subject_id", "subjectId", "studentId"),
    )
    label: str = Field(..., validation_alias=AliasChoices("label", "emotion"))
    intensity: int = Field(..., ge=INTENSITY_MIN, le=INTENSITY_MAX)
    timestamp: datetime
    triggers: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class SensoryRecord(_Record):
    """A single sensory input and the subject's response to it."""

    id: str
    subject_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("subject_id", "subjectId", "studentId"),
    )
    modality: str = Field(
        default="unspecified",
        validation_alias=AliasChoices("modality", "sensoryType", "type"),
    )
    response: str
    intensity: Optional[int] = Field(default=None, ge=INTENSITY_MIN, le=INTENSITY_MAX)
    timestamp: datetime
    notes: Optional[str] = None


class RoomConditions(_Record):
    """Measured or observed room conditions during a session."""

    noise_level: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("noise_level", "noiseLevel"),
    )
    lighting: Optional[str] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None


class EnvironmentalSnapshot(_Record):
    """Environmental context captured alongside a session."""

    room_conditions: Optional[RoomConditions] = Field(
        default=None,
        validation_alias=AliasChoices("room_conditions", "roomConditions"),
    )
    weather: Optional[str] = None
    classroom_activity: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("classroom_activity", "classroomActivity"),
    )

    @property
    def noise_level(self) -> Optional[float]:
        return self.room_conditions.noise_level if self.room_conditions else None

    @property
    def lighting(self) -> Optional[str]:
        return self.room_conditions.lighting if self.room_conditions else None

    @property
    def temperature(self) -> Optional[float]:
        return self.room_conditions.temperature if self.room_conditions else None


class SessionRecord(_Record):
    """A tracking session grouping emotions, sensory inputs and environment."""

    id: str
    subject_id: str = Field(
        ..., validation_alias=AliasChoices("subject_id", "subjectId", "studentId")
    )
    timestamp: datetime
    emotions: List[EmotionRecord] = Field(default_factory=list)
    sensory_inputs: List[SensoryRecord] = Field(
        default_factory=list,
        validation_alias=AliasChoices("sensory_inputs", "sensoryInputs"),
    )
    environmental: Optional[EnvironmentalSnapshot] = Field(
        default=None,
        validation_alias=AliasChoices("environmental", "environmentalData"),
    )


class GoalDataPoint(_Record):
    """One progress measurement for a goal."""

    id: Optional[str] = None
    timestamp: datetime
    value: float


class GoalRecord(_Record):
    """A measurable goal with its progress history."""

    id: str
    subject_id: str = Field(
        ..., validation_alias=AliasChoices("subject_id", "subjectId", "studentId")
    )
    title: str
    target_value: float = Field(
        ..., validation_alias=AliasChoices("target_value", "targetValue")
    )
    data_points: List[GoalDataPoint] = Field(
        default_factory=list,
        validation_alias=AliasChoices("data_points", "dataPoints"),
    )


class RecordBundle(_Record):
    """Everything the storage collaborator hands over for one analysis run."""

    emotions: List[EmotionRecord] = Field(default_factory=list)
    sensory_inputs: List[SensoryRecord] = Field(
        default_factory=list,
        validation_alias=AliasChoices("sensory_inputs", "sensoryInputs"),
    )
    sessions: List[SessionRecord] = Field(
        default_factory=list,
        validation_alias=AliasChoices("sessions", "trackingEntries"),
    )
    goals: List[GoalRecord] = Field(default_factory=list)

    def subject_ids(self) -> List[str]:
        """Distinct subject IDs present anywhere in the bundle, sorted."""
        return sorted(collect_subject_ids(self.emotions, self.sensory_inputs, self.sessions, self.goals))

    def for_subject(self, subject_id: str) -> "RecordBundle":
        """Restrict the bundle to a single subject."""
        return RecordBundle(
            emotions=[e for e in self.emotions if e.subject_id == subject_id],
            sensory_inputs=[s for s in self.sensory_inputs if s.subject_id == subject_id],
            sessions=[t for t in self.sessions if t.subject_id == subject_id],
            goals=[g for g in self.goals if g.subject_id == subject_id],
        )


def collect_subject_ids(*collections: Iterable[Any]) -> set[str]:
    """Gather the distinct non-empty ``subject_id`` values across collections."""
    found: set[str] = set()
    for collection in collections:
        for item in collection:
            subject_id = getattr(item, "subject_id", None)
            if subject_id:
                found.add(subject_id)
    return found


def load_records(payload: Mapping[str, Any]) -> RecordBundle:
    """Validate a raw payload from storage into a :class:`RecordBundle`.

    Raises:
        RecordValidationError: if any record is malformed.
    """
    try:
        return RecordBundle.model_validate(payload)
    except ValidationError as exc:
        raise RecordValidationError(
            f"{exc.error_count()} invalid field(s) in observation records",
            errors=exc.errors(include_url=False),
        ) from exc


def load_records_file(path: Path) -> RecordBundle:
    """Read a JSON export and validate it."""
    if not path.exists():
        raise FileNotFoundError(f"Records file not found at {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RecordValidationError(f"Records file {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise RecordValidationError(f"Records file {path} must contain a JSON object")
    return load_records(payload)
