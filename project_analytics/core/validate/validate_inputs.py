from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

from project_analytics.core.errors import InvalidInputError
from project_analytics.core.model import CostItem, Phase, Project, ResourceAssignment


# Boundary checks shared by every analyzer. Business-rule soundness is the
# caller's job; we only reject values no computation can make sense of.


def check_phases(phases: Sequence[Phase], file: Optional[str] = None) -> list[InvalidInputError]:
    errors: list[InvalidInputError] = []
    for i, p in enumerate(phases):
        base = f"phases[{i}]"
        errors += _non_negative(p.phase_budget, f"{base}.phase_budget", file)
        errors += _non_negative(p.actual_spent, f"{base}.actual_spent", file)
        errors += _percent(p.percent_complete, f"{base}.percent_complete", file)
        if p.planned_start and p.planned_end and p.planned_end < p.planned_start:
            errors.append(
                InvalidInputError(
                    code="E_NEGATIVE_DURATION",
                    message=f"planned_end {p.planned_end} is before planned_start {p.planned_start}",
                    file=file,
                    path=f"{base}.planned_end",
                )
            )
    return errors


def check_project(project: Project, file: Optional[str] = None) -> list[InvalidInputError]:
    errors: list[InvalidInputError] = []
    for name in (
        "original_budget",
        "approved_budget",
        "current_budget",
        "contingency_amount",
        "committed_amount",
        "actual_spent",
    ):
        value = getattr(project, name)
        if value is not None:
            errors += _non_negative(value, f"project.{name}", file)
    return errors


def check_cost_items(items: Sequence[CostItem], file: Optional[str] = None) -> list[InvalidInputError]:
    errors: list[InvalidInputError] = []
    for i, item in enumerate(items):
        base = f"cost_items[{i}]"
        errors += _non_negative(item.budgeted_amount, f"{base}.budgeted_amount", file)
        errors += _non_negative(item.committed_amount, f"{base}.committed_amount", file)
        errors += _non_negative(item.actual_spent, f"{base}.actual_spent", file)
    return errors


def check_assignments(
    assignments: Sequence[ResourceAssignment], file: Optional[str] = None
) -> list[InvalidInputError]:
    errors: list[InvalidInputError] = []
    for i, a in enumerate(assignments):
        base = f"resource_assignments[{i}]"
        errors += _non_negative(a.planned_hours, f"{base}.planned_hours", file)
        errors += _non_negative(a.actual_hours, f"{base}.actual_hours", file)
        errors += _non_negative(a.planned_cost, f"{base}.planned_cost", file)
        errors += _non_negative(a.actual_cost, f"{base}.actual_cost", file)
    return errors


def ensure_valid(errors: Iterable[InvalidInputError]) -> None:
    """Raise the first error (in path order), if any."""
    ordered = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    if ordered:
        raise ordered[0]


def _non_negative(value: float, path: str, file: Optional[str]) -> list[InvalidInputError]:
    if not math.isfinite(value):
        return _not_finite(value, path, file)
    if not value >= 0:
        return [
            InvalidInputError(
                code="E_NEGATIVE_AMOUNT",
                message=f"must be >= 0, got {value}",
                file=file,
                path=path,
            )
        ]
    return []


def _percent(value: float, path: str, file: Optional[str]) -> list[InvalidInputError]:
    if not math.isfinite(value):
        return _not_finite(value, path, file)
    if not 0 <= value <= 100:
        return [
            InvalidInputError(
                code="E_PERCENT_OUT_OF_RANGE",
                message=f"must be within [0, 100], got {value}",
                file=file,
                path=path,
            )
        ]
    return []


def _not_finite(value: float, path: str, file: Optional[str]) -> list[InvalidInputError]:
    return [
        InvalidInputError(
            code="E_INVALID_TYPE",
            message=f"must be a finite number, got {value}",
            file=file,
            path=path,
        )
    ]
