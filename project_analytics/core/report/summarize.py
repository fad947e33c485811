from __future__ import annotations

from typing import Optional

from project_analytics.core.model import (
    BudgetSummary,
    CostRollup,
    CriticalPathResult,
    EVMAssessment,
    EVMSnapshot,
    ResourceTimeSummary,
    ScheduleRisk,
    UtilizationRecord,
)


def summarize_schedule(result: CriticalPathResult, risk: Optional[ScheduleRisk] = None) -> str:
    lines = [
        f"Project duration: {result.project_duration} days",
        f"Critical phases: {len(result.critical_path)}",
        f"Average slack: {result.average_slack:.1f} days",
    ]
    for i, chain in enumerate(result.critical_chains, start=1):
        lines.append(f"Chain {i}: " + " -> ".join(chain))
    if risk is not None:
        flag = " (AT RISK)" if risk.is_at_risk else ""
        lines.append(f"Planned end: {risk.planned_end.isoformat()}, {risk.days_remaining} days remaining{flag}")
    lines.append("")
    lines.append(f"{'phase':<20} {'dur':>5} {'ES':>5} {'EF':>5} {'LS':>5} {'LF':>5} {'slack':>6}")
    for s in result.schedules:
        mark = " *" if s.is_critical else ""
        lines.append(
            f"{s.phase_id:<20} {s.duration:>5} {s.earliest_start:>5} {s.earliest_finish:>5} "
            f"{s.latest_start:>5} {s.latest_finish:>5} {s.slack:>6}{mark}"
        )
    return "\n".join(lines)


def summarize_earned_value(snapshot: EVMSnapshot, assessment: EVMAssessment) -> str:
    s = snapshot
    lines = [
        f"BAC {s.bac:,.2f}  PV {s.pv:,.2f}  EV {s.ev:,.2f}  AC {s.ac:,.2f}",
        f"SV {s.sv:,.2f}  CV {s.cv:,.2f}",
        f"SPI {s.spi:.3f} ({assessment.schedule_status})  CPI {s.cpi:.3f} ({assessment.cost_status})",
        f"EAC {s.eac:,.2f}  ETC {s.etc:,.2f}  VAC {s.vac:,.2f}",
        f"TCPI {s.tcpi:.3f}" + (" (difficult to recover on current budget)" if assessment.tcpi_difficult else ""),
        f"Complete {s.percent_complete:.1f}%  Scheduled {s.percent_scheduled:.1f}%",
    ]
    return "\n".join(lines)


def summarize_costs(rollup: CostRollup, budget: Optional[BudgetSummary] = None) -> str:
    lines: list[str] = []
    if budget is not None:
        lines.append(
            f"Budget {budget.budget:,.2f}  Spent {budget.spent:,.2f} ({budget.spent_percent:.1f}%)  "
            f"Committed {budget.committed:,.2f}  Remaining {budget.remaining:,.2f}"
            + ("  OVER BUDGET" if budget.is_over_budget else "")
        )
    for title, groups in (("Category", rollup.by_category), ("Phase", rollup.by_phase)):
        lines.append("")
        lines.append(f"{title:<20} {'budgeted':>12} {'committed':>12} {'spent':>12} {'variance':>12}")
        for name, t in groups.items():
            lines.append(
                f"{name:<20} {t.budgeted:>12,.2f} {t.committed:>12,.2f} {t.spent:>12,.2f} {t.variance:>12,.2f}"
            )
    return "\n".join(lines).lstrip("\n")


def summarize_utilization(records: list[UtilizationRecord], time: Optional[ResourceTimeSummary] = None) -> str:
    if not records:
        return "No resource assignments"
    lines: list[str] = []
    if time is not None:
        lines.append(
            f"Time {time.actual_hours:,.1f}h / {time.planned_hours:,.1f}h ({time.time_variance_percent:+.1f}%)  "
            f"Cost {time.actual_cost:,.2f} / {time.planned_cost:,.2f} ({time.cost_variance_percent:+.1f}%)"
        )
        lines.append("")
    lines += [f"{'resource':<24} {'type':<12} {'hours':>8} {'util%':>7}  status"]
    for r in records:
        label = r.resource_name or r.resource_id
        lines.append(
            f"{label:<24} {r.resource_type:<12} {r.total_planned_hours:>8.1f} "
            f"{r.utilization_percent:>7.1f}  {r.status}"
        )
    return "\n".join(lines)
