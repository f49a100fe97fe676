"""Local sync bookkeeping, export/import and the preference service façade.

Import ``sync.service`` / ``sync.scheduler`` directly; this package init
stays light because the repository depends on ``sync.models``.
"""

from .models import EXPORT_VERSION, PreferenceExport, SyncRecord

__all__ = ["EXPORT_VERSION", "PreferenceExport", "SyncRecord"]
