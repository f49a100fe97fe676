"""Conflict Resolution Engine: apply a strategy to a pending conflict."""

import numbers
from typing import Any, Optional

import structlog

from errors import (
    ConflictAlreadyResolvedError,
    ConflictNotFoundError,
    UnsupportedStrategyError,
)
from preferences.models import INTENSITY_LEVELS
from preferences.strength import round_half_up
from shared_types import ConflictStrategy

from .models import MergedPreferences, PreferenceConflict

logger = structlog.get_logger().bind(source="resolver")

SUPPORTED_STRATEGIES = frozenset(
    {
        ConflictStrategy.USER_WINS,
        ConflictStrategy.COMPANION_WINS,
        ConflictStrategy.AVERAGE,
        ConflictStrategy.MANUAL,
    }
)

RESOLVED_BY_USER = "user"


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _average_bound(user_bound: Any, companion_bound: Any) -> Any:
    if companion_bound is None:
        companion_bound = user_bound
    if _is_number(user_bound) and _is_number(companion_bound):
        return round_half_up((user_bound + companion_bound) / 2)
    if user_bound in INTENSITY_LEVELS and companion_bound in INTENSITY_LEVELS:
        mid = (INTENSITY_LEVELS.index(user_bound) + INTENSITY_LEVELS.index(companion_bound)) / 2
        return INTENSITY_LEVELS[round_half_up(mid)]
    return user_bound


def average_values(user_value: Any, companion_value: Any) -> Any:
    """Mean of two conflict values.

    Numbers average to a half-up rounded integer. Ranges (``{min, max}``)
    average per bound, a missing companion bound falling back to the user's;
    any other keys keep the user's value. Anything else resolves to the
    user's value.
    """
    if _is_number(user_value) and _is_number(companion_value):
        return round_half_up((user_value + companion_value) / 2)
    if isinstance(user_value, dict) and "min" in user_value and "max" in user_value:
        companion = companion_value if isinstance(companion_value, dict) else {}
        averaged = dict(user_value)
        for bound in ("min", "max"):
            averaged[bound] = _average_bound(user_value[bound], companion.get(bound))
        return averaged
    return user_value


class ConflictResolver:
    """Resolves conflicts inside a MergedPreferences snapshot."""

    def resolve_value(
        self,
        conflict: PreferenceConflict,
        strategy: ConflictStrategy | str,
        manual_value: Any = None,
    ) -> Any:
        """Compute the resolved value for a strategy without mutating anything.

        Raises:
            UnsupportedStrategyError: strategy has no defined semantics.
            ValueError: manual strategy without a value.
        """
        try:
            strategy = ConflictStrategy(strategy)
        except ValueError:
            raise UnsupportedStrategyError(f"Unknown strategy: {strategy}") from None
        if strategy not in SUPPORTED_STRATEGIES:
            raise UnsupportedStrategyError(f"Strategy not implemented: {strategy.value}")

        if strategy == ConflictStrategy.USER_WINS:
            return conflict.user_value
        if strategy == ConflictStrategy.COMPANION_WINS:
            return conflict.companion_value
        if strategy == ConflictStrategy.AVERAGE:
            return average_values(conflict.user_value, conflict.companion_value)
        if manual_value is None:
            raise ValueError("manual resolution requires a value")
        return manual_value

    def resolve(
        self,
        merged: MergedPreferences,
        conflict_id: str,
        strategy: ConflictStrategy | str,
        manual_value: Any = None,
    ) -> MergedPreferences:
        """Return a copy of merged with the conflict resolved and the count recomputed.

        Re-resolving to the same value is a no-op.

        Raises:
            ConflictNotFoundError: no such conflict id.
            ConflictAlreadyResolvedError: conflict holds a different value.
            UnsupportedStrategyError, ValueError: see ``resolve_value``.
        """
        updated = merged.model_copy(deep=True)
        conflict = updated.find_conflict(conflict_id)
        if conflict is None:
            raise ConflictNotFoundError(conflict_id)

        value = self.resolve_value(conflict, strategy, manual_value)
        if value is None:
            raise ValueError(f"strategy {strategy} produced no value for {conflict_id}")
        if conflict.is_resolved:
            if conflict.resolved_value != value:
                raise ConflictAlreadyResolvedError(conflict_id)
            return updated

        conflict.resolved_value = value
        conflict.resolved_by = RESOLVED_BY_USER
        updated.recount_unresolved()
        logger.info(
            "conflict.resolved",
            conflict_id=conflict_id,
            strategy=str(strategy),
            unresolved=updated.unresolved_conflicts,
        )
        return updated


def unresolved_count(merged: Optional[MergedPreferences]) -> int:
    if merged is None:
        return 0
    return sum(1 for c in merged.conflicts if not c.is_resolved)
