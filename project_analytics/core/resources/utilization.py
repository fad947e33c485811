from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from project_analytics.core.config.engine_config import DEFAULT_CONFIG, EngineConfig
from project_analytics.core.errors import InvalidInputError
from project_analytics.core.model import ResourceAssignment, UtilizationRecord, UtilizationStatus
from project_analytics.core.validate.validate_inputs import check_assignments, ensure_valid

logger = logging.getLogger(__name__)


@dataclass
class _ResourceTotals:
    resource_id: str
    resource_type: str
    resource_name: Optional[str] = None
    hours: float = 0.0
    project_ids: list[str] = field(default_factory=list)


def analyze_utilization(
    assignments: Sequence[ResourceAssignment],
    monthly_capacity_hours: Optional[float] = None,
    window: Optional[tuple[date, date]] = None,
    config: Optional[EngineConfig] = None,
    file: Optional[str] = None,
) -> list[UtilizationRecord]:
    """Planned hours per resource against a monthly capacity.

    Reports over-commitment; it never moves work around. Most-loaded
    resources come first.
    """
    cfg = config or DEFAULT_CONFIG
    capacity = cfg.monthly_capacity_hours if monthly_capacity_hours is None else monthly_capacity_hours

    errors = check_assignments(assignments, file)
    if not (math.isfinite(capacity) and capacity > 0):
        errors.append(
            InvalidInputError(
                code="E_INVALID_CAPACITY",
                message=f"monthly capacity must be > 0, got {capacity}",
                file=file,
                path="monthly_capacity_hours",
            )
        )
    if window is not None and window[1] < window[0]:
        errors.append(
            InvalidInputError(
                code="E_INVALID_WINDOW",
                message=f"window end {window[1]} is before window start {window[0]}",
                file=file,
                path="window",
            )
        )
    ensure_valid(errors)

    totals: dict[tuple[str, str], _ResourceTotals] = {}
    for a in assignments:
        if window is not None and not _overlaps(a, window):
            continue
        key = (a.resource_type, a.resource_id)
        t = totals.get(key)
        if t is None:
            t = totals[key] = _ResourceTotals(resource_id=a.resource_id, resource_type=a.resource_type)
        t.hours += a.planned_hours
        if t.resource_name is None and a.resource_name:
            t.resource_name = a.resource_name
        if a.project_id and a.project_id not in t.project_ids:
            t.project_ids.append(a.project_id)

    records = [
        _record(t, capacity, cfg.busy_threshold_percent)
        for t in totals.values()
    ]
    # Stable sort keeps first-seen order among equally loaded resources.
    records.sort(key=lambda r: r.utilization_percent, reverse=True)

    logger.debug(
        "utilization: %d resources against %.1f h/month, %d overallocated",
        len(records),
        capacity,
        sum(1 for r in records if r.is_overallocated),
    )
    return records


def _record(t: _ResourceTotals, capacity: float, busy_threshold: float) -> UtilizationRecord:
    percent = t.hours / capacity * 100
    over = t.hours > capacity
    status: UtilizationStatus
    if over:
        status = "overallocated"
    elif percent >= busy_threshold:
        status = "busy"
    else:
        status = "available"
    return UtilizationRecord(
        resource_id=t.resource_id,
        resource_type=t.resource_type,
        total_planned_hours=t.hours,
        utilization_percent=percent,
        is_overallocated=over,
        status=status,
        resource_name=t.resource_name,
        project_ids=tuple(t.project_ids),
    )


def _overlaps(a: ResourceAssignment, window: tuple[date, date]) -> bool:
    # Undated assignments cannot be placed in time; count them everywhere.
    start, end = window
    if a.start_date is not None and a.start_date > end:
        return False
    if a.end_date is not None and a.end_date < start:
        return False
    return True
