from __future__ import annotations

import math
from collections import Counter
from datetime import date, datetime
from typing import Any, Iterable, Optional, cast

from project_analytics.core.errors import CycleDetected, InvalidInputError
from project_analytics.core.model import (
    CostItem,
    Phase,
    PhaseStatus,
    Project,
    ProjectSnapshot,
    ResourceAssignment,
)
from project_analytics.core.schedule.phase_graph import PhaseGraph
from project_analytics.core.validate.validate_inputs import (
    check_assignments,
    check_cost_items,
    check_phases,
    check_project,
)


ALLOWED_PHASE_STATUSES: set[str] = {"pending", "in_progress", "completed", "delayed"}

_MISSING = object()


class _FieldReader:
    """Pulls typed fields out of one raw mapping, recording errors as it goes."""

    def __init__(self, raw: dict[str, Any], base: str, file: Optional[str], errors: list[InvalidInputError]):
        self.raw = raw
        self.base = base
        self.file = file
        self.errors = errors

    def error(self, code: str, key: str, message: str) -> None:
        self.errors.append(
            InvalidInputError(code=code, message=message, file=self.file, path=f"{self.base}.{key}")
        )

    def string(self, key: str, required: bool = False) -> Optional[str]:
        v = self.raw.get(key)
        if v is None:
            if required:
                self.error("E_REQUIRED_FIELD", key, f"{key} is required and must be a non-empty string")
            return None
        # Numeric ids are common in exports; accept them as strings.
        # 1 and 1.0 must name the same phase.
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str) or (required and not v.strip()):
            self.error("E_INVALID_TYPE", key, f"{key} must be a non-empty string")
            return None
        return v

    def number(self, key: str, default: Any = 0.0) -> Any:
        v = self.raw.get(key, _MISSING)
        if v is _MISSING or v is None:
            return default
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            self.error("E_INVALID_TYPE", key, f"{key} must be a number")
            return default
        if not math.isfinite(v):
            self.error("E_INVALID_TYPE", key, f"{key} must be a finite number, got {v}")
            return default
        return float(v)

    def flag(self, key: str) -> bool:
        v = self.raw.get(key)
        if v is None:
            return False
        if not isinstance(v, bool):
            self.error("E_INVALID_TYPE", key, f"{key} must be a boolean")
            return False
        return v

    def day(self, key: str) -> Optional[date]:
        v = self.raw.get(key)
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, date):
            return v
        if isinstance(v, str):
            try:
                return date.fromisoformat(v.strip()[:10])
            except ValueError:
                pass
        self.error("E_INVALID_DATE", key, f"{key} must be an ISO date (YYYY-MM-DD), got {v!r}")
        return None


def validate_snapshot(
    snapshot: dict[str, Any],
) -> tuple[Optional[ProjectSnapshot], list[InvalidInputError]]:
    """Validate a loaded snapshot and build the model records.

    Returns (snapshot, errors). Snapshot is None when errors exist.
    """

    file = cast(Optional[str], snapshot.get("__file__"))
    errors: list[InvalidInputError] = []

    raw_project = snapshot.get("project")
    project: Optional[Project] = None
    if not isinstance(raw_project, dict):
        errors.append(
            InvalidInputError(
                code="E_REQUIRED_FIELD",
                message="project is required and must be an object",
                file=file,
                path="project",
            )
        )
    else:
        project = _build_project(raw_project, file, errors)

    phases: list[Phase] = _each_object(snapshot, "phases", file, errors, _build_phase)
    cost_items: list[CostItem] = _each_object(snapshot, "cost_items", file, errors, _build_cost_item)
    assignments: list[ResourceAssignment] = _each_object(
        snapshot, "resource_assignments", file, errors, _build_assignment
    )

    if project is not None:
        errors += check_project(project, file)
    errors += check_phases(phases, file)
    errors += check_cost_items(cost_items, file)
    errors += check_assignments(assignments, file)

    # Referential integrity checks.
    counts = Counter(p.id for p in phases)
    for i, p in enumerate(phases):
        if p.id and counts[p.id] > 1:
            errors.append(
                InvalidInputError(
                    code="E_DUPLICATE_ID",
                    message=f"duplicate phase id: {p.id}",
                    file=file,
                    path=f"phases[{i}].id",
                )
            )
        if p.depends_on_phase_id is not None and p.depends_on_phase_id not in counts:
            errors.append(
                InvalidInputError(
                    code="E_UNKNOWN_DEPENDENCY",
                    message=f"depends_on_phase_id references unknown phase: {p.depends_on_phase_id}",
                    file=file,
                    path=f"phases[{i}].depends_on_phase_id",
                )
            )

    if not errors:
        try:
            PhaseGraph(phases, file=file).detect_cycle()
        except CycleDetected as e:
            errors.append(InvalidInputError(code=e.code, message=e.message, file=e.file, path=e.path))

    if errors or project is None:
        return None, _sorted(errors)

    return (
        ProjectSnapshot(
            project=project,
            phases=tuple(phases),
            cost_items=tuple(cost_items),
            resource_assignments=tuple(assignments),
            source_file=file,
        ),
        [],
    )


def summarize_snapshot(snapshot: ProjectSnapshot) -> str:
    counts = Counter([p.status for p in snapshot.phases])
    ordered: list[str] = ["pending", "in_progress", "completed", "delayed"]
    parts = [f"{s}={counts.get(s, 0)}" for s in ordered]
    name = snapshot.project.name or snapshot.project.id or "<unnamed>"
    return (
        f"OK: project {name}: {len(snapshot.phases)} phases ("
        + ", ".join(parts)
        + f"), {len(snapshot.cost_items)} cost items, "
        + f"{len(snapshot.resource_assignments)} resource assignments"
    )


def _each_object(snapshot, key, file, errors, build) -> list[Any]:
    raw_list = snapshot.get(key)
    if raw_list is None:
        return []
    if not isinstance(raw_list, list):
        errors.append(
            InvalidInputError(
                code="E_INVALID_TYPE",
                message=f"{key} must be an array",
                file=file,
                path=key,
            )
        )
        return []

    bad = [i for i, raw in enumerate(raw_list) if not isinstance(raw, dict)]
    for i in bad:
        errors.append(
            InvalidInputError(
                code="E_INVALID_TYPE",
                message=f"{key} entries must be objects",
                file=file,
                path=f"{key}[{i}]",
            )
        )
    if bad:
        # Field paths below are index based; do not build a misaligned list.
        return []
    return [build(_FieldReader(raw, f"{key}[{i}]", file, errors)) for i, raw in enumerate(raw_list)]


def _build_project(raw: dict[str, Any], file: Optional[str], errors: list[InvalidInputError]) -> Project:
    r = _FieldReader(raw, "project", file, errors)
    return Project(
        id=r.string("id") or "",
        name=r.string("name") or "",
        original_budget=r.number("original_budget"),
        approved_budget=r.number("approved_budget", None),
        current_budget=r.number("current_budget", None),
        contingency_amount=r.number("contingency_amount"),
        committed_amount=r.number("committed_amount"),
        actual_spent=r.number("actual_spent"),
        planned_start_date=r.day("planned_start_date"),
        planned_end_date=r.day("planned_end_date"),
    )


def _build_phase(r: _FieldReader) -> Phase:
    pid = r.string("id", required=True) or ""

    status = r.raw.get("status") or "pending"
    if not isinstance(status, str) or status not in ALLOWED_PHASE_STATUSES:
        r.error("E_INVALID_ENUM", "status", f"status must be one of {sorted(ALLOWED_PHASE_STATUSES)}")
        status = "pending"

    return Phase(
        id=pid,
        name=r.string("name") or "",
        planned_start=r.day("planned_start"),
        planned_end=r.day("planned_end"),
        depends_on_phase_id=_predecessor(r),
        phase_budget=r.number("phase_budget"),
        actual_spent=r.number("actual_spent"),
        percent_complete=r.number("percent_complete"),
        status=cast(PhaseStatus, status),
        is_milestone=r.flag("is_milestone"),
        milestone_date=r.day("milestone_date"),
    )


def _predecessor(r: _FieldReader) -> Optional[str]:
    v = r.raw.get("depends_on_phase_id")
    if isinstance(v, list):
        if len(v) > 1:
            r.error(
                "E_MULTIPLE_PREDECESSORS",
                "depends_on_phase_id",
                f"a phase may depend on at most one phase, got {len(v)}",
            )
            return None
        if not v:
            return None
        return _FieldReader({"depends_on_phase_id": v[0]}, r.base, r.file, r.errors).string(
            "depends_on_phase_id"
        )
    return r.string("depends_on_phase_id")


def _build_cost_item(r: _FieldReader) -> CostItem:
    category = r.string("category", required=True) or ""
    return CostItem(
        category=category,
        budgeted_amount=r.number("budgeted_amount"),
        committed_amount=r.number("committed_amount"),
        actual_spent=r.number("actual_spent"),
        phase_id=r.string("phase_id"),
        description=r.string("description"),
    )


def _build_assignment(r: _FieldReader) -> ResourceAssignment:
    rid = r.string("resource_id", required=True) or ""
    rtype = r.string("resource_type", required=True) or ""
    return ResourceAssignment(
        resource_id=rid,
        resource_type=rtype,
        planned_hours=r.number("planned_hours"),
        project_id=r.string("project_id"),
        resource_name=r.string("resource_name"),
        start_date=r.day("start_date"),
        end_date=r.day("end_date"),
        actual_hours=r.number("actual_hours"),
        planned_cost=r.number("planned_cost"),
        actual_cost=r.number("actual_cost"),
    )


def _sorted(errors: Iterable[InvalidInputError]) -> list[InvalidInputError]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            e.path or "",
            e.code,
        ),
    )
