"""Tests for deterministic fingerprints and cache keys."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

import pytest

from sensorycompass.cache.fingerprint import canonical_json, create_key, fingerprint
from sensorycompass.errors import SerializationError
from tests.conftest import make_emotion


class Mood(Enum):
    CALM = "calm"


@dataclass
class Reading:
    value: float
    at: datetime


class TestFingerprint:
    """Fingerprint stability and sensitivity."""

    def test_stable_across_calls(self):
        data = {"emotions": [1, 2, 3], "window": 30}
        assert fingerprint(data) == fingerprint(data)

    def test_ignores_key_insertion_order(self):
        first = {"a": 1, "b": {"x": 1, "y": 2}}
        second = {"b": {"y": 2, "x": 1}, "a": 1}
        assert fingerprint(first) == fingerprint(second)

    def test_array_order_matters(self):
        assert fingerprint([1, 2, 3]) != fingerprint([3, 2, 1])

    def test_value_change_changes_fingerprint(self):
        assert fingerprint({"intensity": 4}) != fingerprint({"intensity": 5})

    def test_is_sixteen_hex_characters(self):
        value = fingerprint({"anything": True})
        assert len(value) == 16
        int(value, 16)

    def test_equal_records_share_fingerprint(self):
        emotion = make_emotion("anxious", 4, days=1)
        copy = emotion.model_copy()
        assert fingerprint([emotion]) == fingerprint([copy])

    def test_record_field_change_changes_fingerprint(self):
        emotion = make_emotion("anxious", 4, days=1)
        changed = emotion.model_copy(update={"intensity": 5})
        assert fingerprint([emotion]) != fingerprint([changed])

    def test_sets_are_order_free(self):
        assert fingerprint({"tags": {"b", "a", "c"}}) == fingerprint({"tags": ["a", "b", "c"]})

    def test_dataclass_enum_and_datetime(self):
        at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        text = canonical_json({"reading": Reading(value=1.5, at=at), "mood": Mood.CALM})
        assert text == '{"mood":"calm","reading":{"at":"2024-01-01T00:00:00+00:00","value":1.5}}'


class TestSerializationFailures:
    """Inputs with no canonical form."""

    def test_circular_reference(self):
        data: dict = {}
        data["self"] = data
        with pytest.raises(SerializationError):
            fingerprint(data)

    def test_unsupported_object(self):
        with pytest.raises(SerializationError) as excinfo:
            fingerprint({"handle": object()})
        assert excinfo.value.recoverable is False


class TestCreateKey:
    """Cache key construction."""

    def test_prefix_and_sorted_params(self):
        assert create_key("emotion-patterns", {"timeframe": 30, "count": 4}) == (
            "emotion-patterns:count:4:timeframe:30"
        )

    def test_invariant_to_param_order(self):
        first = create_key("trend-analysis", {"metric": "x", "points_fingerprint": "abc", "count": 2})
        second = create_key("trend-analysis", {"count": 2, "points_fingerprint": "abc", "metric": "x"})
        assert first == second

    def test_nested_params_are_canonical(self):
        first = create_key("p", {"filters": {"b": 1, "a": 2}})
        second = create_key("p", {"filters": {"a": 2, "b": 1}})
        assert first == second

    def test_none_scalar_is_encoded(self):
        assert create_key("p", {"timeframe_days": None}) == "p:timeframe_days:null"

    def test_different_prefix_gives_different_key(self):
        assert create_key("a", {"x": 1}) != create_key("b", {"x": 1})
