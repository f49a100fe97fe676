"""Preference profile models: pydantic, camelCase on the wire."""

import uuid
from datetime import datetime
from typing import Any, ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from shared_types import PreferenceSource, Strength, SyncStatus

INTENSITY_LEVELS = ["sedentary", "light", "moderate", "vigorous", "extreme"]
PACING_ORDER = ["packed", "moderate", "relaxed", "very_relaxed"]

Intensity = Literal["sedentary", "light", "moderate", "vigorous", "extreme"]
Flexibility = Literal["strict", "flexible", "very_flexible"]
ShareLevel = Literal["all", "most", "some", "few"]


class WireModel(BaseModel):
    """Base for every persisted model: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class WeightedChoice(WireModel):
    """A list entry pairing a choice with a strength, e.g. {type: italian, strength: strong}.

    Subclasses name the field that holds the choice via ``choice_field`` so
    the wire shape of each list matches the mobile client.
    """

    choice_field: ClassVar[str] = "type"

    strength: Strength = Strength.MODERATE

    @property
    def choice(self) -> str:
        return getattr(self, self.choice_field)

    @classmethod
    def of(cls, choice: str, strength: Strength | str) -> "WeightedChoice":
        return cls.model_validate({cls.choice_field: choice, "strength": strength})


class TypeChoice(WeightedChoice):
    type: str


class StyleChoice(WeightedChoice):
    choice_field: ClassVar[str] = "style"
    style: str


class SizeChoice(WeightedChoice):
    choice_field: ClassVar[str] = "size"
    size: str


class ModeChoice(WeightedChoice):
    choice_field: ClassVar[str] = "mode"
    mode: str


class TimeChoice(WeightedChoice):
    choice_field: ClassVar[str] = "time"
    time: str


# === Dining ===


class PriceRange(WireModel):
    min: int = Field(ge=1, le=4)
    max: int = Field(ge=1, le=4)
    strength: Strength = Strength.MODERATE

    @model_validator(mode="after")
    def check_order(self):
        if self.min > self.max:
            raise ValueError(f"price range min {self.min} exceeds max {self.max}")
        return self


class TimeRange(WireModel):
    start: str
    end: str


class MealTime(WireModel):
    preferred: bool = False
    time_range: Optional[TimeRange] = None


class PartySize(WireModel):
    typical: int = 2
    max: int = 6


class DiningPreferences(WireModel):
    cuisine_types: list[TypeChoice] = Field(default_factory=list)
    dietary_restrictions: list[str] = Field(default_factory=list)
    dining_styles: list[StyleChoice] = Field(default_factory=list)
    ambiance: list[TypeChoice] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=lambda: PriceRange(min=2, max=3))
    meal_times: dict[str, MealTime] = Field(default_factory=dict)
    party_size: PartySize = Field(default_factory=PartySize)
    reservation_preference: Literal["always", "preferred", "walk_in", "no_preference"] = (
        "preferred"
    )
    special_requests: list[str] = Field(default_factory=list)


# === Activities ===


class IntensityRange(WireModel):
    min: Intensity = "light"
    max: Intensity = "moderate"
    preferred: Intensity = "light"


class DurationRange(WireModel):
    min_hours: float = 1
    max_hours: float = 4
    preferred_hours: float = 2


class IndoorOutdoor(WireModel):
    indoor: Strength = Strength.MODERATE
    outdoor: Strength = Strength.MODERATE


class ActivityPreferences(WireModel):
    activity_types: list[TypeChoice] = Field(default_factory=list)
    physical_intensity: IntensityRange = Field(default_factory=IntensityRange)
    duration: DurationRange = Field(default_factory=DurationRange)
    group_size_preference: list[SizeChoice] = Field(default_factory=list)
    indoor_outdoor: IndoorOutdoor = Field(default_factory=IndoorOutdoor)
    guided_preference: Literal["guided", "self_guided", "either"] = "either"
    advance_booking: Literal["required", "preferred", "spontaneous", "no_preference"] = (
        "preferred"
    )
    crowd_tolerance: Literal["avoid_crowds", "moderate", "dont_mind", "enjoy_crowds"] = (
        "moderate"
    )
    photo_opportunities: Strength = Strength.MODERATE
    child_friendly: bool = False
    pet_friendly: bool = False


# === Accommodation ===


class StarRating(WireModel):
    min: int = Field(default=3, ge=1, le=5)
    preferred: int = Field(default=4, ge=1, le=5)


class LocationPreferences(WireModel):
    central_preference: Strength = Strength.MODERATE
    max_distance_from_center: float = 5
    near_transport: Strength = Strength.MODERATE
    quiet_area: Strength = Strength.SLIGHT


class RoomPreferences(WireModel):
    bed_type: Literal["king", "queen", "double", "twin", "no_preference"] = "no_preference"
    min_square_meters: int = 25
    floor_preference: Literal["low", "high", "no_preference"] = "no_preference"
    view_importance: Strength = Strength.SLIGHT


class AccommodationPreferences(WireModel):
    types: list[TypeChoice] = Field(default_factory=list)
    star_rating: StarRating = Field(default_factory=StarRating)
    must_have_amenities: list[str] = Field(default_factory=list)
    nice_to_have_amenities: list[str] = Field(default_factory=list)
    location: LocationPreferences = Field(default_factory=LocationPreferences)
    room_preferences: RoomPreferences = Field(default_factory=RoomPreferences)
    check_in_out_flexibility: Strength = Strength.MODERATE


# === Transportation ===


class FlightPreferences(WireModel):
    # "class" is a keyword; keep the wire name
    flight_class: Literal["economy", "premium_economy", "business", "first"] = Field(
        default="economy", alias="class"
    )
    seat_preference: Literal["window", "aisle", "middle", "no_preference"] = "no_preference"
    direct_flights_only: bool = False
    max_layovers: int = 1
    max_layover_duration: float = 4
    preferred_airlines: list[str] = Field(default_factory=list)
    avoid_airlines: list[str] = Field(default_factory=list)


class CarRental(WireModel):
    preferred: bool = False
    vehicle_type: Literal[
        "economy", "compact", "midsize", "suv", "luxury", "no_preference"
    ] = "no_preference"
    automatic_only: bool = True


class TransportationPreferences(WireModel):
    local_transport: list[ModeChoice] = Field(default_factory=list)
    max_walking_distance: int = 2000  # meters
    flight_preferences: FlightPreferences = Field(default_factory=FlightPreferences)
    car_rental: CarRental = Field(default_factory=CarRental)


# === Budget ===


class DailyBudget(WireModel):
    min: int = Field(ge=0)
    max: int = Field(ge=0)
    currency: str = "USD"


class CategoryBudget(WireModel):
    percentage: int = Field(ge=0, le=100)
    flexibility: Flexibility = "flexible"


class BudgetPreferences(WireModel):
    overall_level: Literal["budget", "moderate", "comfortable", "luxury", "ultra_luxury"] = (
        "comfortable"
    )
    daily_budget: DailyBudget = Field(default_factory=lambda: DailyBudget(min=150, max=300))
    category_budgets: dict[str, CategoryBudget] = Field(default_factory=dict)
    splurge_categories: list[str] = Field(default_factory=list)
    save_categories: list[str] = Field(default_factory=list)
    deal_sensitivity: Literal["always_look", "nice_to_have", "not_important"] = "nice_to_have"


# === Timing ===


class TimingPreferences(WireModel):
    wake_up_time: str = "08:00"
    bed_time: str = "23:00"
    preferred_activity_times: list[TimeChoice] = Field(default_factory=list)
    pacing_style: Literal["packed", "moderate", "relaxed", "very_relaxed"] = "moderate"
    rest_days_frequency: Literal["never", "occasionally", "every_few_days", "daily_downtime"] = (
        "occasionally"
    )
    spontaneity_level: Literal[
        "fully_planned", "mostly_planned", "flexible", "very_spontaneous"
    ] = "mostly_planned"
    peak_season_tolerance: Literal["avoid", "tolerate", "prefer", "no_preference"] = "tolerate"


# === Accessibility ===


class MobilityRequirements(WireModel):
    wheelchair_accessible: bool = False
    limited_walking: bool = False
    max_stairs: int = 50
    elevator_required: bool = False


class SensoryRequirements(WireModel):
    hearing_accommodations: bool = False
    visual_accommodations: bool = False
    quiet_environments: bool = False


class DietaryMedical(WireModel):
    food_allergies: list[str] = Field(default_factory=list)
    medication_storage: bool = False
    near_medical_facilities: bool = False


class AccessibilityPreferences(WireModel):
    mobility_requirements: MobilityRequirements = Field(default_factory=MobilityRequirements)
    sensory_requirements: SensoryRequirements = Field(default_factory=SensoryRequirements)
    dietary_medical: DietaryMedical = Field(default_factory=DietaryMedical)
    service_animal: bool = False


# === Social ===


class LanguageComfort(WireModel):
    languages: list[str] = Field(default_factory=lambda: ["English"])
    needs_english: bool = True
    translation_tools: bool = True


class CompanionCompatibility(WireModel):
    share_accommodation: bool = True
    share_activities: ShareLevel = "most"
    share_meals: ShareLevel = "most"
    need_alone_time: bool = False


class SocialPreferences(WireModel):
    travel_style: Literal["solo", "couple", "family", "friends", "group", "mixed"] = "couple"
    social_interaction: Literal["very_social", "moderate", "reserved", "prefer_privacy"] = (
        "moderate"
    )
    local_interaction: Literal["immersive", "moderate", "tourist_focused"] = "moderate"
    language_comfort: LanguageComfort = Field(default_factory=LanguageComfort)
    companion_compatibility: CompanionCompatibility = Field(
        default_factory=CompanionCompatibility
    )


# === Profile ===


class PreferenceValue(WireModel):
    """Provenance for one touched field, keyed "<category>.<field>" in profile metadata."""

    value: Any = None
    strength: Strength = Strength.MODERATE
    source: PreferenceSource = PreferenceSource.EXPLICIT
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    last_updated: str = Field(default_factory=lambda: datetime.now().isoformat())
    learned_from: Optional[list[str]] = None


class PreferenceProfile(WireModel):
    id: str = Field(default_factory=lambda: f"pref_{uuid.uuid4().hex[:12]}")
    user_id: str
    version: int = Field(default=1, ge=1)
    last_synced: str = Field(default_factory=lambda: datetime.now().isoformat())
    sync_status: SyncStatus = SyncStatus.SYNCED

    dining: DiningPreferences = Field(default_factory=DiningPreferences)
    activities: ActivityPreferences = Field(default_factory=ActivityPreferences)
    accommodation: AccommodationPreferences = Field(default_factory=AccommodationPreferences)
    transportation: TransportationPreferences = Field(
        default_factory=TransportationPreferences
    )
    budget: BudgetPreferences = Field(default_factory=BudgetPreferences)
    timing: TimingPreferences = Field(default_factory=TimingPreferences)
    accessibility: AccessibilityPreferences = Field(default_factory=AccessibilityPreferences)
    social: SocialPreferences = Field(default_factory=SocialPreferences)

    metadata: dict[str, PreferenceValue] = Field(default_factory=dict)


class Companion(WireModel):
    id: str = Field(default_factory=lambda: f"companion_{uuid.uuid4().hex[:8]}")
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    relationship: Literal["partner", "spouse", "family", "friend", "colleague", "other"] = (
        "friend"
    )
    preferences: Optional[PreferenceProfile] = None
    last_trip_together: Optional[str] = None
    sync_enabled: bool = True

    @property
    def can_merge(self) -> bool:
        return self.sync_enabled and self.preferences is not None
