"""Completeness checks used to gate work-item status transitions.

Pure functions over plain values: no session, no clock. The workflow engine
calls them; tests exercise them directly.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..models import QCStatus, WorkItemStatus, WorkItemType

# Work-item types that must carry the TBP/Magazine fields before QA
TBP_GATED_TYPES: frozenset[WorkItemType] = frozenset({
    WorkItemType.TX_BOOK_PREVIEW_LEAD,
    WorkItemType.SPONSORED_EDITORIAL_REVIEW,
})

# Statuses that require the TBP/Magazine fields to be complete
TBP_GATED_STATUSES: frozenset[WorkItemStatus] = frozenset({
    WorkItemStatus.NEEDS_QA,
    WorkItemStatus.DONE,
})

# Field name -> error message, in reporting order
TBP_REQUIRED_FIELDS: dict[str, str] = {
    "tbp_graphics_location": "Graphics location is required for TBP/Magazine items",
    "tbp_publish_date": "Publish date is required for TBP/Magazine items",
    "tbp_article_link": "Article link is required for TBP/Magazine items",
    "tbp_tx_tie": "Texas tie/connection is required for TBP/Magazine items",
}


@dataclass
class TbpCompleteness:
    valid: bool
    missing_fields: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class QaCompleteness:
    valid: bool
    passed: int
    total: int
    failed: int


def type_requires_tbp_gating(work_item_type: WorkItemType | str) -> bool:
    """Whether items of this type must pass the TBP/Magazine field gate."""
    try:
        return WorkItemType(work_item_type) in TBP_GATED_TYPES
    except ValueError:
        return False


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def tbp_fields_complete(fields: Mapping[str, Any]) -> TbpCompleteness:
    """Check that all four TBP/Magazine fields are present.

    Every missing field is reported, not just the first one.
    """
    missing = [name for name in TBP_REQUIRED_FIELDS if _is_blank(fields.get(name))]
    return TbpCompleteness(
        valid=not missing,
        missing_fields=missing,
        errors=[TBP_REQUIRED_FIELDS[name] for name in missing],
    )


def qa_checklist_complete(statuses: Iterable[QCStatus | str]) -> QaCompleteness:
    """Summarise QC checkpoint statuses.

    Valid only when there is at least one checkpoint and all of them passed.
    SKIPPED counts towards the total but not towards passed.
    """
    normalized = [QCStatus(s) for s in statuses]
    total = len(normalized)
    passed = sum(1 for s in normalized if s == QCStatus.PASSED)
    failed = sum(1 for s in normalized if s == QCStatus.FAILED)
    return QaCompleteness(
        valid=total > 0 and passed == total,
        passed=passed,
        total=total,
        failed=failed,
    )
