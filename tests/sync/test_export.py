"""Tests for preference export / import payloads."""

import json
from datetime import datetime

import pytest

from errors import InvalidExportError
from preferences.models import Companion
from sync.export import build_export, export_json, parse_export


@pytest.fixture
def payload(default_profile, sample_events):
    export = build_export(
        default_profile,
        [Companion(name="Sam", email="sam@example.com")],
        sample_events,
        now=datetime(2026, 5, 1, 9, 30),
    )
    return export_json(export)


class TestExport:
    def test_envelope(self, payload):
        data = json.loads(payload)
        assert data["version"] == "1.0"
        assert data["exportedAt"] == "2026-05-01T09:30:00"
        assert data["userId"] == "user-1"
        assert data["preferences"]["dining"]["priceRange"] == {"min": 2, "max": 3, "strength": "moderate"}
        assert data["companions"][0]["name"] == "Sam"
        assert len(data["learningHistory"]) == 4

    def test_pretty_printed(self, payload):
        assert payload.startswith("{\n  ")

    def test_round_trip(self, payload, default_profile):
        parsed = parse_export(payload)
        assert parsed.preferences == default_profile
        assert parsed.learning_history[0].item_attributes == {"cuisine": "thai"}


class TestParseErrors:
    def test_bad_json(self):
        with pytest.raises(InvalidExportError):
            parse_export("{oops")

    def test_not_an_object(self):
        with pytest.raises(InvalidExportError):
            parse_export("[1, 2]")

    def test_unknown_version(self, payload):
        data = json.loads(payload)
        data["version"] = "2.0"
        with pytest.raises(InvalidExportError, match="version"):
            parse_export(data)

    def test_missing_preferences(self, payload):
        data = json.loads(payload)
        del data["preferences"]
        with pytest.raises(InvalidExportError):
            parse_export(data)
