from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Optional


PhaseStatus = Literal["pending", "in_progress", "completed", "delayed"]
IndexStatus = Literal["on_track", "at_risk", "behind"]
UtilizationStatus = Literal["available", "busy", "overallocated"]

GENERAL_BUCKET = "general"


# ---------------------------------------------------------------------------
# Inputs (owned by the caller, read-only to the engine)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Phase:
    id: str
    name: str = ""
    planned_start: Optional[date] = None
    planned_end: Optional[date] = None
    depends_on_phase_id: Optional[str] = None
    phase_budget: float = 0.0
    actual_spent: float = 0.0
    percent_complete: float = 0.0
    status: PhaseStatus = "pending"
    is_milestone: bool = False
    milestone_date: Optional[date] = None


@dataclass(frozen=True)
class Project:
    id: str = ""
    name: str = ""
    original_budget: float = 0.0
    approved_budget: Optional[float] = None
    current_budget: Optional[float] = None
    contingency_amount: float = 0.0
    committed_amount: float = 0.0
    actual_spent: float = 0.0
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None

    @property
    def budget_at_completion(self) -> float:
        # An unset or zero current budget falls back to the original one.
        return self.current_budget or self.original_budget


@dataclass(frozen=True)
class CostItem:
    category: str
    budgeted_amount: float = 0.0
    committed_amount: float = 0.0
    actual_spent: float = 0.0
    phase_id: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class ResourceAssignment:
    resource_id: str
    resource_type: str
    planned_hours: float
    project_id: Optional[str] = None
    resource_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    actual_hours: float = 0.0
    planned_cost: float = 0.0
    actual_cost: float = 0.0


@dataclass(frozen=True)
class ProjectSnapshot:
    project: Project
    phases: tuple[Phase, ...] = ()
    cost_items: tuple[CostItem, ...] = ()
    resource_assignments: tuple[ResourceAssignment, ...] = ()
    source_file: Optional[str] = None


# ---------------------------------------------------------------------------
# Derived results (recomputed on every call, never mutated)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PhaseSchedule:
    phase_id: str
    duration: int
    earliest_start: int
    earliest_finish: int
    latest_start: int
    latest_finish: int
    slack: int
    is_critical: bool


@dataclass(frozen=True)
class CriticalPathResult:
    schedules: tuple[PhaseSchedule, ...]
    project_duration: int
    critical_path: tuple[str, ...]
    critical_chains: tuple[tuple[str, ...], ...]
    average_slack: float

    def schedule_for(self, phase_id: str) -> PhaseSchedule:
        for s in self.schedules:
            if s.phase_id == phase_id:
                return s
        raise KeyError(phase_id)


@dataclass(frozen=True)
class ScheduleRisk:
    planned_end: date
    days_remaining: int
    is_at_risk: bool


@dataclass(frozen=True)
class EVMSnapshot:
    bac: float
    pv: float
    ev: float
    ac: float
    sv: float
    cv: float
    spi: float
    cpi: float
    eac: float
    etc: float
    vac: float
    tcpi: float
    percent_complete: float
    percent_scheduled: float


@dataclass(frozen=True)
class EVMAssessment:
    schedule_status: IndexStatus
    cost_status: IndexStatus
    tcpi_difficult: bool


@dataclass(frozen=True)
class CategoryTotals:
    budgeted: float
    committed: float
    spent: float
    variance: float  # budgeted - spent; positive when under budget


@dataclass(frozen=True)
class CostRollup:
    by_category: dict[str, CategoryTotals] = field(default_factory=dict)
    by_phase: dict[str, CategoryTotals] = field(default_factory=dict)


@dataclass(frozen=True)
class BudgetSummary:
    budget: float
    spent: float
    committed: float
    remaining: float
    spent_percent: float
    contingency: float
    total_with_contingency: float
    is_over_budget: bool


@dataclass(frozen=True)
class UtilizationRecord:
    resource_id: str
    resource_type: str
    total_planned_hours: float
    utilization_percent: float
    is_overallocated: bool
    status: UtilizationStatus
    resource_name: Optional[str] = None
    project_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResourceTimeSummary:
    """Planned vs actual hours and labour cost across assignments."""

    resource_count: int
    planned_hours: float
    actual_hours: float
    planned_cost: float
    actual_cost: float
    time_variance_percent: float
    cost_variance_percent: float
    is_time_over: bool
    is_cost_over: bool
    project_id: Optional[str] = None
