"""Learning Insight Engine: mine recent behaviour for preference proposals.

Patterns are declared as ``PatternRule``s: among recent events of one type
(optionally with a minimum action value), tally one item attribute; when the
most frequent value reaches the rule's threshold, propose adding it to a
weighted-set field at strong strength.

Insight lifecycle: pending -> accepted | rejected. Both transitions are
terminal. Each mining pass that yields insights replaces every pending
insight with the new set; accepted and rejected insights are kept.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

import structlog

from errors import UnknownFieldError
from observability import metrics
from preferences.models import PreferenceProfile
from preferences.registry import FieldShape, get_field
from shared_types import (
    EventType,
    InsightStatus,
    ItemType,
    PreferenceCategory,
    PreferenceSource,
    Strength,
)

from .models import LearningInsight, PreferenceLearningEvent, SuggestedUpdate

logger = structlog.get_logger().bind(source="learning")


@dataclass(frozen=True)
class PatternRule:
    name: str
    event_type: EventType
    item_type: ItemType
    attribute: str
    category: PreferenceCategory
    field: str
    threshold: int
    confidence: float
    message: str  # formatted with value= and count=
    reason: str
    min_action_value: Optional[float] = None

    def matches(self, event: PreferenceLearningEvent) -> bool:
        if event.event_type != self.event_type or event.item_type != self.item_type:
            return False
        if self.min_action_value is not None:
            return (event.user_action.value or 0) >= self.min_action_value
        return True


def default_rules(
    booking_threshold: int = 3, rating_threshold: int = 2, high_rating: float = 4
) -> list[PatternRule]:
    return [
        PatternRule(
            name="booking_cuisine",
            event_type=EventType.BOOKING,
            item_type=ItemType.RESTAURANT,
            attribute="cuisine",
            category=PreferenceCategory.DINING,
            field="cuisineTypes",
            threshold=booking_threshold,
            confidence=0.8,
            message="You've booked {value} restaurants {count} times recently",
            reason="Based on your recent bookings",
        ),
        PatternRule(
            name="rating_activity_type",
            event_type=EventType.RATING,
            item_type=ItemType.ACTIVITY,
            attribute="type",
            category=PreferenceCategory.ACTIVITIES,
            field="activityTypes",
            threshold=rating_threshold,
            confidence=0.75,
            message="You consistently rate {value} activities highly",
            reason="Based on your ratings",
            min_action_value=high_rating,
        ),
    ]


def _current_entry(profile: Optional[PreferenceProfile], rule: PatternRule, value: str) -> Any:
    if profile is None:
        return None
    spec = get_field(rule.category, rule.field)
    if spec.shape != FieldShape.WEIGHTED_SET:
        return spec.dump(spec.read(profile))
    for entry in spec.read(profile):
        if entry.choice.lower() == value.lower():
            return entry.to_wire()
    return None


class LearningInsightEngine:
    """Records events, mines insights and drives the accept/reject lifecycle.

    ``repository`` is a PreferenceRepository; ``updater`` anything with a
    PreferenceUpdater-compatible ``update_preference``.
    """

    def __init__(
        self,
        repository,
        updater,
        window_days: int = 30,
        rules: Optional[list[PatternRule]] = None,
    ):
        self.repository = repository
        self.updater = updater
        self.window_days = window_days
        self.rules = rules if rules is not None else default_rules()

    def generate_insights(
        self,
        events: list[PreferenceLearningEvent],
        now: Optional[datetime] = None,
        profile: Optional[PreferenceProfile] = None,
    ) -> list[LearningInsight]:
        """Mine events from the trailing window. Pure; nothing is persisted."""
        now = now or datetime.now()
        cutoff = now - timedelta(days=self.window_days)
        recent = []
        for e in events:
            try:
                occurred_at = e.occurred_at
            except (TypeError, ValueError):
                logger.warning("event.bad_timestamp", event_id=e.id, timestamp=e.timestamp)
                continue
            if occurred_at > cutoff:
                recent.append(e)

        insights = []
        for rule in self.rules:
            matching = [
                e for e in recent if rule.matches(e) and e.item_attributes.get(rule.attribute)
            ]
            counts = Counter(str(e.item_attributes[rule.attribute]) for e in matching)
            if not counts:
                continue
            value, count = counts.most_common(1)[0]
            if count < rule.threshold:
                continue
            insights.append(
                LearningInsight(
                    category=rule.category,
                    insight=rule.message.format(value=value, count=count),
                    confidence=rule.confidence,
                    based_on=[
                        e.id for e in matching if str(e.item_attributes[rule.attribute]) == value
                    ],
                    suggested_update=SuggestedUpdate(
                        field=rule.field,
                        current_value=_current_entry(profile, rule, value),
                        suggested_value={"type": value, "strength": Strength.STRONG.value},
                        reason=rule.reason,
                    ),
                    created_at=now.isoformat(),
                )
            )
            logger.info("insight.generated", rule=rule.name, value=value, count=count)
        metrics.counter("insights_generated", len(insights))
        return insights

    @staticmethod
    def retain(
        existing: list[LearningInsight], new: list[LearningInsight]
    ) -> list[LearningInsight]:
        """Processed insights plus the new pending set; stale pending ones are dropped."""
        return [i for i in existing if i.status != InsightStatus.PENDING] + new

    def record_event(
        self, event: PreferenceLearningEvent, now: Optional[datetime] = None
    ) -> list[LearningInsight]:
        """Append event, mine the retained log, persist any new insights.

        Returns the newly generated insights.
        """
        events = self.repository.append_event(event)
        new = self.generate_insights(events, now=now, profile=self.repository.load_profile())
        if new:
            self.repository.save_insights(self.retain(self.repository.load_insights(), new))
        logger.debug("event.recorded", event_type=str(event.event_type), new_insights=len(new))
        return new

    def pending_insights(self) -> list[LearningInsight]:
        return [i for i in self.repository.load_insights() if i.status == InsightStatus.PENDING]

    def _find_pending(self, insights: list[LearningInsight], insight_id: str):
        insight = next((i for i in insights if i.id == insight_id), None)
        if insight is None:
            logger.warning("insight.not_found", insight_id=insight_id)
            return None
        if insight.status != InsightStatus.PENDING:
            logger.warning(
                "insight.not_pending", insight_id=insight_id, status=str(insight.status)
            )
            return None
        return insight

    def _suggested_value(self, insight: LearningInsight, profile: PreferenceProfile) -> Any:
        spec = get_field(insight.category, insight.suggested_update.field)
        suggested = insight.suggested_update.suggested_value
        if spec.shape != FieldShape.WEIGHTED_SET:
            return suggested
        new_entry = spec.validate([suggested])[0]
        entries = list(spec.read(profile))
        for idx, entry in enumerate(entries):
            if entry.choice.lower() == new_entry.choice.lower():
                entries[idx] = new_entry
                break
        else:
            entries.append(new_entry)
        return entries

    def apply_insight(self, insight_id: str) -> bool:
        """Write the suggested update (strong, inferred) and mark the insight accepted."""
        insights = self.repository.load_insights()
        insight = self._find_pending(insights, insight_id)
        if insight is None:
            return False
        profile = self.repository.load_profile()
        if profile is None:
            logger.warning("insight.no_profile", insight_id=insight_id)
            return False
        try:
            value = self._suggested_value(insight, profile)
        except (UnknownFieldError, ValueError) as e:
            logger.warning("insight.invalid_update", insight_id=insight_id, error=str(e))
            return False

        saved = self.updater.update_preference(
            insight.category,
            insight.suggested_update.field,
            value,
            Strength.STRONG,
            PreferenceSource.INFERRED,
            learned_from=insight.based_on,
        )
        if saved is None:
            return False
        insight.status = InsightStatus.ACCEPTED
        self.repository.save_insights(insights)
        logger.info("insight.accepted", insight_id=insight_id)
        return True

    def reject_insight(self, insight_id: str) -> bool:
        insights = self.repository.load_insights()
        insight = self._find_pending(insights, insight_id)
        if insight is None:
            return False
        insight.status = InsightStatus.REJECTED
        self.repository.save_insights(insights)
        logger.info("insight.rejected", insight_id=insight_id)
        return True
