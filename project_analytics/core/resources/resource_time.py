from __future__ import annotations

import logging
from typing import Optional, Sequence

from project_analytics.core.model import ResourceAssignment, ResourceTimeSummary
from project_analytics.core.validate.validate_inputs import check_assignments, ensure_valid

logger = logging.getLogger(__name__)


def summarize_resource_time(
    assignments: Sequence[ResourceAssignment],
    project_id: Optional[str] = None,
    file: Optional[str] = None,
) -> ResourceTimeSummary:
    """Total planned vs actual hours and cost for one project.

    With project_id set, assignments tagged with another project are left
    out; untagged ones belong to the snapshot's own project and are kept.
    Variance percentages are 0 when nothing was planned.
    """
    ensure_valid(check_assignments(assignments, file))

    picked = [a for a in assignments if project_id is None or a.project_id in (None, project_id)]
    planned_hours = sum(a.planned_hours for a in picked)
    actual_hours = sum(a.actual_hours for a in picked)
    planned_cost = sum(a.planned_cost for a in picked)
    actual_cost = sum(a.actual_cost for a in picked)

    time_variance = _variance_percent(actual_hours, planned_hours)
    cost_variance = _variance_percent(actual_cost, planned_cost)
    logger.debug(
        "resource time for %s: %d assignments, time %+.1f%%, cost %+.1f%%",
        project_id or "<all>",
        len(picked),
        time_variance,
        cost_variance,
    )
    return ResourceTimeSummary(
        resource_count=len(picked),
        planned_hours=planned_hours,
        actual_hours=actual_hours,
        planned_cost=planned_cost,
        actual_cost=actual_cost,
        time_variance_percent=time_variance,
        cost_variance_percent=cost_variance,
        is_time_over=time_variance > 0,
        is_cost_over=cost_variance > 0,
        project_id=project_id,
    )


def _variance_percent(actual: float, planned: float) -> float:
    if planned > 0:
        return (actual - planned) / planned * 100
    return 0.0
