"""Audit trail for pubdedupe runs.

Main Components
---------------
- AuditLogger: JSONL event log, accepted by every deduplication step
- ManifestWriter: builds ``run.json``
- RunContext: ties both together for one CLI or API run
"""

from pubdedupe.audit.context import RunContext
from pubdedupe.audit.helpers import generate_run_id
from pubdedupe.audit.logger import EVENT_LEVELS, AuditLogger
from pubdedupe.audit.manifest import MANIFEST_FILE, ManifestWriter
from pubdedupe.audit.models import BatchStats, InputFile, LogEvent, Manifest

__all__ = [
    "EVENT_LEVELS",
    "MANIFEST_FILE",
    "AuditLogger",
    "BatchStats",
    "InputFile",
    "LogEvent",
    "Manifest",
    "ManifestWriter",
    "RunContext",
    "generate_run_id",
]
