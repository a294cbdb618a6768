"""Tests for observation record validation at the storage boundary."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from sensorycompass.errors import RecordValidationError
from sensorycompass.models.records import (
    EmotionRecord,
    RecordBundle,
    load_records,
    load_records_file,
)


def _payload() -> dict:
    return {
        "emotions": [
            {
                "id": "e1",
                "studentId": "s-1",
                "emotion": "anxious",
                "intensity": 4,
                "timestamp": "2024-03-01T09:00:00Z",
                "triggers": ["loud noise"],
            }
        ],
        "sensoryInputs": [
            {
                "id": "i1",
                "studentId": "s-2",
                "sensoryType": "auditory",
                "response": "avoiding",
                "timestamp": "2024-03-01T09:05:00+02:00",
            }
        ],
        "trackingEntries": [
            {
                "id": "t1",
                "studentId": "s-1",
                "timestamp": "2024-03-01T09:00:00",
                "emotions": [],
                "sensoryInputs": [],
                "environmentalData": {
                    "roomConditions": {"noiseLevel": 65, "lighting": "fluorescent", "temperature": 21.5},
                    "classroomActivity": "group work",
                },
            }
        ],
        "goals": [
            {
                "id": "g1",
                "studentId": "s-3",
                "title": "Reading",
                "targetValue": 10,
                "dataPoints": [{"timestamp": "2024-03-01T00:00:00Z", "value": 2}],
            }
        ],
    }


class TestLoadRecords:
    """Validation of raw storage payloads."""

    def test_accepts_storage_field_names(self):
        bundle = load_records(_payload())

        emotion = bundle.emotions[0]
        assert emotion.label == "anxious"
        assert emotion.subject_id == "s-1"
        assert bundle.sensory_inputs[0].modality == "auditory"
        assert bundle.sessions[0].environmental.noise_level == 65
        assert bundle.sessions[0].environmental.lighting == "fluorescent"
        assert bundle.sessions[0].environmental.classroom_activity == "group work"
        assert bundle.goals[0].target_value == 10

    def test_timestamps_normalized_to_utc(self):
        bundle = load_records(_payload())

        assert bundle.sensory_inputs[0].timestamp == datetime(2024, 3, 1, 7, 5, tzinfo=timezone.utc)
        # Naive timestamps are read as UTC
        assert bundle.sessions[0].timestamp.tzinfo == timezone.utc

    @pytest.mark.parametrize("intensity", [0, 6])
    def test_rejects_out_of_range_intensity(self, intensity):
        payload = _payload()
        payload["emotions"][0]["intensity"] = intensity

        with pytest.raises(RecordValidationError) as excinfo:
            load_records(payload)
        assert excinfo.value.details["error_count"] == 1

    def test_rejects_missing_required_field(self):
        payload = _payload()
        del payload["emotions"][0]["timestamp"]

        with pytest.raises(RecordValidationError):
            load_records(payload)

    def test_empty_payload_gives_empty_bundle(self):
        bundle = load_records({})
        assert bundle.emotions == []
        assert bundle.sessions == []

    def test_records_are_immutable(self):
        emotion = load_records(_payload()).emotions[0]
        with pytest.raises(Exception):
            emotion.intensity = 5  # type: ignore[misc]


class TestBundleHelpers:
    def test_subject_ids(self):
        assert load_records(_payload()).subject_ids() == ["s-1", "s-2", "s-3"]

    def test_for_subject(self):
        scoped = load_records(_payload()).for_subject("s-1")
        assert len(scoped.emotions) == 1
        assert len(scoped.sessions) == 1
        assert scoped.sensory_inputs == []
        assert scoped.goals == []

    def test_python_field_names_also_accepted(self):
        emotion = EmotionRecord(
            id="e",
            subject_id="s",
            label="calm",
            intensity=2,
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        assert RecordBundle(emotions=[emotion]).subject_ids() == ["s"]


class TestLoadRecordsFile:
    def test_reads_json_export(self, tmp_path: Path):
        path = tmp_path / "records.json"
        path.write_text(json.dumps(_payload()))
        assert len(load_records_file(path).emotions) == 1

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_records_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "records.json"
        path.write_text("{oops")
        with pytest.raises(RecordValidationError):
            load_records_file(path)

    def test_top_level_must_be_object(self, tmp_path: Path):
        path = tmp_path / "records.json"
        path.write_text("[]")
        with pytest.raises(RecordValidationError):
            load_records_file(path)
