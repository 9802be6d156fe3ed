"""Shared data types for pubdedupe.

This package contains the record type, the source priority ranking and
identifier helpers consumed across the pipeline.

Domain-specific types live closer to their consumers:
- Pair verdicts → pubdedupe.decision.models
- Review groups → pubdedupe.clustering.models
- Audit types → pubdedupe.audit.models
"""

from pubdedupe.models.identifiers import (
    PUBDEDUPE_NAMESPACE,
    calculate_record_digest,
    calculate_record_id,
    validate_record_id_format,
)
from pubdedupe.models.records import (
    CORE_FIELDS,
    PriorityFunc,
    Record,
    RecordError,
    SourcePriority,
)

__all__ = [
    # Record models
    "CORE_FIELDS",
    "Record",
    "RecordError",
    "SourcePriority",
    "PriorityFunc",
    # Identifiers
    "PUBDEDUPE_NAMESPACE",
    "calculate_record_digest",
    "calculate_record_id",
    "validate_record_id_format",
]
