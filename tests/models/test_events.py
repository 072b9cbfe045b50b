"""Tests for personal-data event models."""

import math

import pytest

from lifeos.errors import InvalidBatchError, UnknownCategoryError
from lifeos.models.events import KNOWN_CATEGORY_COUNT, DataCategory, Event, is_numeric


class TestDataCategory:
    """Test the closed category set."""

    def test_known_categories(self):
        assert KNOWN_CATEGORY_COUNT == 6
        assert [c.value for c in DataCategory] == [
            "health",
            "finance",
            "productivity",
            "relationships",
            "learning",
            "career",
        ]

    def test_parse_is_case_insensitive(self):
        assert DataCategory.parse("Health") is DataCategory.HEALTH
        assert DataCategory.parse(" finance ") is DataCategory.FINANCE
        assert DataCategory.parse(DataCategory.CAREER) is DataCategory.CAREER

    def test_parse_unknown_category_fails(self):
        with pytest.raises(UnknownCategoryError) as excinfo:
            DataCategory.parse("hobbies")
        assert excinfo.value.category == "hobbies"
        assert isinstance(excinfo.value, InvalidBatchError)

    def test_ordinal_is_stable(self):
        assert DataCategory.HEALTH.ordinal == 0
        assert DataCategory.CAREER.ordinal == 5


class TestEvent:
    """Test Event model."""

    def test_create_minimal_event(self):
        event = Event(event_id="e1", category=DataCategory.HEALTH)
        assert event.source == ""
        assert event.value == {}
        assert event.timestamp == 0

    def test_string_category_is_parsed(self):
        event = Event(event_id="e1", category="finance")
        assert event.category is DataCategory.FINANCE

    def test_event_id_required(self):
        with pytest.raises(ValueError, match="event_id is required"):
            Event(event_id="", category=DataCategory.HEALTH)

    def test_bare_number_maps_to_value_field(self):
        event = Event(event_id="e1", category=DataCategory.HEALTH, value=72)
        assert event.numeric_fields() == {"value": 72.0}

    def test_numeric_fields_skip_categorical(self):
        event = Event(
            event_id="e1",
            category=DataCategory.HEALTH,
            value={"steps": 8000, "mood": "good", "rested": True},
        )
        assert event.numeric_fields() == {"steps": 8000.0}

    def test_is_numeric_excludes_bool(self):
        assert is_numeric(3)
        assert is_numeric(2.5)
        assert not is_numeric(True)
        assert not is_numeric("3")

    def test_non_finite_numbers_are_not_readings(self):
        assert not is_numeric(math.nan)
        assert not is_numeric(math.inf)
        assert not is_numeric(-math.inf)
        event = Event(
            event_id="e1",
            category=DataCategory.HEALTH,
            value={"steps": math.nan, "sleep": 7.5},
        )
        assert event.numeric_fields() == {"sleep": 7.5}
        assert Event(event_id="e2", category=DataCategory.HEALTH, value=math.inf).numeric_fields() == {}

    def test_event_is_immutable(self):
        event = Event(event_id="e1", category=DataCategory.HEALTH)
        with pytest.raises(AttributeError):
            event.source = "fitbit"  # type: ignore[misc]


class TestEventSerialization:
    """Test conversion to and from storage records."""

    def test_from_camel_case_record(self):
        event = Event.from_dict(
            {
                "id": "abc",
                "dataType": "health",
                "source": "fitbit",
                "value": {"steps": 9000},
                "timestamp": 1_700_000_000_000,
            }
        )
        assert event.event_id == "abc"
        assert event.category is DataCategory.HEALTH
        assert event.source == "fitbit"
        assert event.timestamp == 1_700_000_000_000

    def test_from_snake_case_record(self):
        event = Event.from_dict({"event_id": 7, "category": "career", "value": 3})
        assert event.event_id == "7"
        assert event.category is DataCategory.CAREER

    def test_to_dict_uses_storage_keys(self):
        event = Event(
            event_id="abc",
            category=DataCategory.LEARNING,
            source="manual",
            value={"timeSpent": 45},
            timestamp=5,
        )
        assert event.to_dict() == {
            "id": "abc",
            "dataType": "learning",
            "source": "manual",
            "value": {"timeSpent": 45},
            "timestamp": 5,
        }

    @pytest.mark.parametrize(
        "record",
        [
            {"dataType": "health"},
            {"id": "x"},
            {"id": "", "dataType": "health"},
            {"id": "x", "dataType": "health", "value": "lots"},
        ],
    )
    def test_malformed_records_are_rejected(self, record):
        with pytest.raises(InvalidBatchError):
            Event.from_dict(record)

    def test_non_mapping_record_is_rejected(self):
        with pytest.raises(InvalidBatchError):
            Event.from_dict(["id", "health"])  # type: ignore[arg-type]

    def test_unknown_category_record(self):
        with pytest.raises(UnknownCategoryError):
            Event.from_dict({"id": "x", "dataType": "hobbies", "value": 1})
