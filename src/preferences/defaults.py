"""Default preference factory: a permissive, fully populated profile for new users."""

from shared_types import Strength, SyncStatus

from .models import (
    AccessibilityPreferences,
    AccommodationPreferences,
    ActivityPreferences,
    BudgetPreferences,
    CarRental,
    CategoryBudget,
    DailyBudget,
    DiningPreferences,
    DurationRange,
    FlightPreferences,
    IntensityRange,
    LocationPreferences,
    MealTime,
    ModeChoice,
    PartySize,
    PreferenceProfile,
    PriceRange,
    RoomPreferences,
    SizeChoice,
    SocialPreferences,
    StarRating,
    StyleChoice,
    TimeChoice,
    TimeRange,
    TimingPreferences,
    TransportationPreferences,
    TypeChoice,
)


def create_default_profile(user_id: str) -> PreferenceProfile:
    """Build a complete profile at version 1, synced, with no metadata entries."""
    return PreferenceProfile(
        user_id=user_id,
        version=1,
        sync_status=SyncStatus.SYNCED,
        dining=default_dining(),
        activities=default_activities(),
        accommodation=default_accommodation(),
        transportation=default_transportation(),
        budget=default_budget(),
        timing=default_timing(),
        accessibility=AccessibilityPreferences(),
        social=SocialPreferences(),
        metadata={},
    )


def default_dining() -> DiningPreferences:
    return DiningPreferences(
        cuisine_types=[
            TypeChoice(type="italian", strength=Strength.MODERATE),
            TypeChoice(type="japanese", strength=Strength.MODERATE),
            TypeChoice(type="american", strength=Strength.MODERATE),
        ],
        dietary_restrictions=[],
        dining_styles=[StyleChoice(style="casual", strength=Strength.MODERATE)],
        ambiance=[TypeChoice(type="lively", strength=Strength.SLIGHT)],
        price_range=PriceRange(min=2, max=3, strength=Strength.MODERATE),
        meal_times={
            "breakfast": MealTime(preferred=True, time_range=TimeRange(start="07:00", end="09:00")),
            "lunch": MealTime(preferred=True, time_range=TimeRange(start="12:00", end="14:00")),
            "dinner": MealTime(preferred=True, time_range=TimeRange(start="18:00", end="21:00")),
            "brunch": MealTime(preferred=False),
        },
        party_size=PartySize(typical=2, max=6),
        reservation_preference="preferred",
        special_requests=[],
    )


def default_activities() -> ActivityPreferences:
    return ActivityPreferences(
        activity_types=[
            TypeChoice(type="sightseeing", strength=Strength.MODERATE),
            TypeChoice(type="cultural", strength=Strength.MODERATE),
            TypeChoice(type="food_drink", strength=Strength.MODERATE),
        ],
        physical_intensity=IntensityRange(min="light", max="moderate", preferred="light"),
        duration=DurationRange(min_hours=1, max_hours=4, preferred_hours=2),
        group_size_preference=[
            SizeChoice(size="couple", strength=Strength.MODERATE),
            SizeChoice(size="small_group", strength=Strength.SLIGHT),
        ],
    )


def default_accommodation() -> AccommodationPreferences:
    return AccommodationPreferences(
        types=[
            TypeChoice(type="boutique_hotel", strength=Strength.MODERATE),
            TypeChoice(type="vacation_rental", strength=Strength.SLIGHT),
        ],
        star_rating=StarRating(min=3, preferred=4),
        must_have_amenities=["wifi"],
        nice_to_have_amenities=["gym", "restaurant"],
        location=LocationPreferences(),
        room_preferences=RoomPreferences(bed_type="king"),
    )


def default_transportation() -> TransportationPreferences:
    return TransportationPreferences(
        local_transport=[
            ModeChoice(mode="walking", strength=Strength.STRONG),
            ModeChoice(mode="public_transit", strength=Strength.MODERATE),
            ModeChoice(mode="taxi_rideshare", strength=Strength.MODERATE),
        ],
        max_walking_distance=2000,
        flight_preferences=FlightPreferences(flight_class="economy", seat_preference="aisle"),
        car_rental=CarRental(),
    )


def default_budget() -> BudgetPreferences:
    return BudgetPreferences(
        overall_level="comfortable",
        daily_budget=DailyBudget(min=150, max=300, currency="USD"),
        category_budgets={
            "accommodation": CategoryBudget(percentage=35, flexibility="flexible"),
            "dining": CategoryBudget(percentage=25, flexibility="flexible"),
            "activities": CategoryBudget(percentage=20, flexibility="very_flexible"),
            "transportation": CategoryBudget(percentage=15, flexibility="flexible"),
            "shopping": CategoryBudget(percentage=5, flexibility="very_flexible"),
        },
        splurge_categories=["dining"],
        save_categories=["transportation"],
    )


def default_timing() -> TimingPreferences:
    return TimingPreferences(
        preferred_activity_times=[
            TimeChoice(time="morning", strength=Strength.MODERATE),
            TimeChoice(time="afternoon", strength=Strength.MODERATE),
            TimeChoice(time="evening", strength=Strength.STRONG),
        ],
        pacing_style="moderate",
    )
