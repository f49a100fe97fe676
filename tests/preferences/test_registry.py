"""Tests for the field registry and category completeness."""

import pytest
from pydantic import ValidationError

from errors import UnknownFieldError
from preferences.defaults import create_default_profile
from preferences.models import TypeChoice
from preferences.registry import (
    FIELD_REGISTRY,
    FieldShape,
    category_completeness,
    fields_for,
    get_field,
)
from shared_types import PreferenceCategory


class TestLookup:
    def test_python_and_wire_names(self):
        assert get_field("dining", "cuisine_types") is get_field("dining", "cuisineTypes")

    def test_metadata_key_uses_wire_name(self):
        assert get_field("dining", "price_range").metadata_key == "dining.priceRange"

    def test_unknown_field(self):
        with pytest.raises(UnknownFieldError) as exc:
            get_field("dining", "favouriteColour")
        assert exc.value.field == "favouriteColour"

    def test_unknown_category(self):
        with pytest.raises(UnknownFieldError):
            get_field("shopping", "stores")

    def test_every_category_registered(self):
        assert set(FIELD_REGISTRY) == set(PreferenceCategory)


class TestShapes:
    def test_declared_shapes(self):
        assert get_field("dining", "priceRange").shape == FieldShape.RANGE
        assert get_field("activities", "physicalIntensity").shape == FieldShape.ORDINAL
        assert get_field("accessibility", "serviceAnimal").shape == FieldShape.UNION

    def test_inferred_shapes(self):
        assert get_field("dining", "cuisineTypes").shape == FieldShape.WEIGHTED_SET
        assert get_field("accommodation", "location").shape == FieldShape.RECORD
        assert get_field("timing", "wakeUpTime").shape == FieldShape.SCALAR

    def test_display_names(self):
        assert get_field("dining", "priceRange").display_name == "Restaurant Price Range"
        assert get_field("timing", "bed_time").display_name == "Bed time"


class TestReadWrite:
    def test_write_coerces_wire_shape(self):
        profile = create_default_profile("u1")
        spec = get_field("dining", "cuisineTypes")
        spec.write(profile, [{"type": "thai", "strength": "strong"}])
        assert profile.dining.cuisine_types == [TypeChoice(type="thai", strength="strong")]

    def test_write_rejects_bad_value(self):
        profile = create_default_profile("u1")
        with pytest.raises(ValidationError):
            get_field("dining", "priceRange").write(profile, {"min": 4, "max": 1})

    def test_dump_is_wire_form(self):
        profile = create_default_profile("u1")
        spec = get_field("activities", "duration")
        assert spec.dump(spec.read(profile)) == {
            "minHours": 1,
            "maxHours": 4,
            "preferredHours": 2,
        }


class TestCompleteness:
    def test_default_dining(self):
        # dietaryRestrictions and specialRequests start empty
        profile = create_default_profile("u1")
        assert len(fields_for("dining")) == 9
        assert category_completeness(profile, "dining") == 78

    def test_filling_a_field_raises_completeness(self):
        profile = create_default_profile("u1")
        before = category_completeness(profile, PreferenceCategory.DINING)
        profile.dining.dietary_restrictions = ["vegetarian"]
        assert category_completeness(profile, PreferenceCategory.DINING) > before

    def test_unknown_category(self):
        with pytest.raises(ValueError):
            category_completeness(create_default_profile("u1"), "shopping")
