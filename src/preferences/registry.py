"""Field registry: typed access to "<category>.<field>" preference paths.

Every mutable field of every category record is registered once, with its
reduction shape and display name. Lookups accept either the Python name
(``cuisine_types``) or the wire name (``cuisineTypes``); metadata keys always
use the wire name so stored profiles stay compatible with the mobile client.
"""

from dataclasses import dataclass
from enum import StrEnum
from functools import cached_property
from typing import Any

from pydantic import BaseModel, TypeAdapter

from errors import UnknownFieldError
from shared_types import PreferenceCategory

from .models import (
    AccessibilityPreferences,
    AccommodationPreferences,
    ActivityPreferences,
    BudgetPreferences,
    DiningPreferences,
    PreferenceProfile,
    SocialPreferences,
    TimingPreferences,
    TransportationPreferences,
    WeightedChoice,
)
from .strength import round_half_up

CATEGORY_MODELS: dict[PreferenceCategory, type[BaseModel]] = {
    PreferenceCategory.DINING: DiningPreferences,
    PreferenceCategory.ACTIVITIES: ActivityPreferences,
    PreferenceCategory.ACCOMMODATION: AccommodationPreferences,
    PreferenceCategory.TRANSPORTATION: TransportationPreferences,
    PreferenceCategory.BUDGET: BudgetPreferences,
    PreferenceCategory.TIMING: TimingPreferences,
    PreferenceCategory.ACCESSIBILITY: AccessibilityPreferences,
    PreferenceCategory.SOCIAL: SocialPreferences,
}


class FieldShape(StrEnum):
    WEIGHTED_SET = "weighted_set"  # list of {choice, strength}
    RANGE = "range"  # {min, max}
    ORDINAL = "ordinal"  # index into a fixed ordered scale
    UNION = "union"  # flags / lists merged by OR
    RECORD = "record"  # nested sub-record
    SCALAR = "scalar"


_SHAPES: dict[tuple[PreferenceCategory, str], FieldShape] = {
    (PreferenceCategory.DINING, "price_range"): FieldShape.RANGE,
    (PreferenceCategory.DINING, "dietary_restrictions"): FieldShape.UNION,
    (PreferenceCategory.ACTIVITIES, "physical_intensity"): FieldShape.ORDINAL,
    (PreferenceCategory.ACTIVITIES, "child_friendly"): FieldShape.UNION,
    (PreferenceCategory.ACTIVITIES, "pet_friendly"): FieldShape.UNION,
    (PreferenceCategory.ACCOMMODATION, "must_have_amenities"): FieldShape.UNION,
    (PreferenceCategory.BUDGET, "daily_budget"): FieldShape.RANGE,
    (PreferenceCategory.TIMING, "pacing_style"): FieldShape.ORDINAL,
    (PreferenceCategory.ACCESSIBILITY, "mobility_requirements"): FieldShape.UNION,
    (PreferenceCategory.ACCESSIBILITY, "sensory_requirements"): FieldShape.UNION,
    (PreferenceCategory.ACCESSIBILITY, "dietary_medical"): FieldShape.UNION,
    (PreferenceCategory.ACCESSIBILITY, "service_animal"): FieldShape.UNION,
}

_DISPLAY_NAMES: dict[tuple[PreferenceCategory, str], str] = {
    (PreferenceCategory.DINING, "cuisine_types"): "Cuisine",
    (PreferenceCategory.DINING, "price_range"): "Restaurant Price Range",
    (PreferenceCategory.DINING, "dietary_restrictions"): "Dietary",
    (PreferenceCategory.ACTIVITIES, "activity_types"): "Activity Type",
    (PreferenceCategory.ACTIVITIES, "physical_intensity"): "Activity Intensity",
    (PreferenceCategory.BUDGET, "daily_budget"): "Daily Budget",
    (PreferenceCategory.TIMING, "pacing_style"): "Pacing Style",
}


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(frozen=True)
class PreferenceField:
    category: PreferenceCategory
    name: str
    shape: FieldShape
    display_name: str

    @property
    def wire_name(self) -> str:
        return _to_camel(self.name)

    @property
    def metadata_key(self) -> str:
        return f"{self.category.value}.{self.wire_name}"

    @cached_property
    def adapter(self) -> TypeAdapter:
        model = CATEGORY_MODELS[self.category]
        return TypeAdapter(model.model_fields[self.name].annotation)

    def read(self, profile: PreferenceProfile) -> Any:
        return getattr(getattr(profile, self.category.value), self.name)

    def validate(self, value: Any) -> Any:
        """Coerce a raw (possibly wire-shaped) value to the field's type."""
        return self.adapter.validate_python(value)

    def write(self, profile: PreferenceProfile, value: Any) -> None:
        setattr(getattr(profile, self.category.value), self.name, self.validate(value))

    def dump(self, value: Any) -> Any:
        """Render a field value in wire form for metadata / conflicts."""
        return self.adapter.dump_python(value, mode="json", by_alias=True)


def _default_shape(annotation) -> FieldShape:
    origin = getattr(annotation, "__origin__", None)
    args = getattr(annotation, "__args__", ())
    if origin is list and args and isinstance(args[0], type) and issubclass(
        args[0], WeightedChoice
    ):
        return FieldShape.WEIGHTED_SET
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return FieldShape.RECORD
    return FieldShape.SCALAR


def _build_registry() -> dict[PreferenceCategory, dict[str, PreferenceField]]:
    registry: dict[PreferenceCategory, dict[str, PreferenceField]] = {}
    for category, model in CATEGORY_MODELS.items():
        fields = {}
        for name, info in model.model_fields.items():
            key = (category, name)
            fields[name] = PreferenceField(
                category=category,
                name=name,
                shape=_SHAPES.get(key) or _default_shape(info.annotation),
                display_name=_DISPLAY_NAMES.get(key) or name.replace("_", " ").capitalize(),
            )
        registry[category] = fields
    return registry


FIELD_REGISTRY = _build_registry()


def get_field(category: PreferenceCategory | str, field: str) -> PreferenceField:
    """Look up a registered field by Python or wire name.

    Raises:
        UnknownFieldError: category or field is not registered.
    """
    try:
        cat = PreferenceCategory(category)
    except ValueError:
        raise UnknownFieldError(str(category), field) from None
    fields = FIELD_REGISTRY[cat]
    if field in fields:
        return fields[field]
    for f in fields.values():
        if f.wire_name == field:
            return f
    raise UnknownFieldError(cat.value, field)


def fields_for(category: PreferenceCategory | str) -> list[PreferenceField]:
    return list(FIELD_REGISTRY[PreferenceCategory(category)].values())


def _is_set(value: Any) -> bool:
    if isinstance(value, (list, dict)):
        return len(value) > 0
    if isinstance(value, BaseModel):
        return any(v is not None for v in value.model_dump().values())
    return value is not None


def category_completeness(profile: PreferenceProfile, category: PreferenceCategory | str) -> int:
    """Percentage (0-100) of a category's fields holding a non-empty value."""
    fields = fields_for(category)
    if not fields:
        return 0
    set_count = sum(1 for f in fields if _is_set(f.read(profile)))
    return round_half_up(set_count / len(fields) * 100)
