"""Exception hierarchy for the preference engines.

Engines raise these; the sync service catches them and turns them into the
bool / None results its callers expect.
"""


class PreferenceSyncError(Exception):
    """Base class for all preference engine errors."""


class UnknownFieldError(PreferenceSyncError):
    """Category/field pair is not in the field registry."""

    def __init__(self, category: str, field: str):
        super().__init__(f"Unknown preference field: {category}.{field}")
        self.category = category
        self.field = field


class StaleProfileError(PreferenceSyncError):
    """Profile changed in the store since it was read."""

    def __init__(self, expected_version: int | None, stored_version: int | None):
        super().__init__(
            f"Profile version mismatch: expected {expected_version}, stored {stored_version}"
        )
        self.expected_version = expected_version
        self.stored_version = stored_version


class ConflictNotFoundError(PreferenceSyncError):
    """No conflict with the given id in the merged snapshot."""


class ConflictAlreadyResolvedError(PreferenceSyncError):
    """Conflict already holds a different resolved value."""


class UnsupportedStrategyError(PreferenceSyncError):
    """Resolution strategy has no defined semantics."""


class InvalidExportError(PreferenceSyncError):
    """Export payload is malformed or from an unsupported version."""
