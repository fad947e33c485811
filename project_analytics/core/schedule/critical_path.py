from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional, Sequence

from project_analytics.core.config.engine_config import DEFAULT_CONFIG, EngineConfig
from project_analytics.core.model import CriticalPathResult, Phase, PhaseSchedule, ScheduleRisk
from project_analytics.core.schedule.phase_graph import PhaseGraph

logger = logging.getLogger(__name__)


def analyze_critical_path(
    phases: Sequence[Phase],
    config: Optional[EngineConfig] = None,
    file: Optional[str] = None,
) -> CriticalPathResult:
    """Run the CPM forward and backward passes over a phase list.

    Day offsets are relative to project start (day 0). Raises CycleDetected
    before any pass runs if the dependency graph is cyclic; there is no
    partial result.
    """
    cfg = config or DEFAULT_CONFIG
    graph = PhaseGraph(phases, default_duration_days=cfg.default_duration_days, file=file)
    order = graph.detect_cycle()

    if not order:
        return CriticalPathResult(
            schedules=(),
            project_duration=0,
            critical_path=(),
            critical_chains=(),
            average_slack=0.0,
        )

    durations: dict[str, int] = {pid: graph.duration(graph.get(pid)) for pid in order}

    # Forward pass: predecessors always precede their successors in `order`.
    es: dict[str, int] = {}
    ef: dict[str, int] = {}
    for pid in order:
        pred = graph.predecessor_of(pid)
        es[pid] = ef[pred] if pred is not None else 0
        ef[pid] = es[pid] + durations[pid]

    project_duration = max(ef.values())

    # Backward pass.
    ls: dict[str, int] = {}
    lf: dict[str, int] = {}
    for pid in reversed(order):
        successors = graph.successors_of(pid)
        lf[pid] = min(ls[s] for s in successors) if successors else project_duration
        ls[pid] = lf[pid] - durations[pid]

    schedules = tuple(
        PhaseSchedule(
            phase_id=p.id,
            duration=durations[p.id],
            earliest_start=es[p.id],
            earliest_finish=ef[p.id],
            latest_start=ls[p.id],
            latest_finish=lf[p.id],
            slack=ls[p.id] - es[p.id],
            is_critical=ls[p.id] == es[p.id],
        )
        for p in graph.phases
    )
    critical = {s.phase_id for s in schedules if s.is_critical}
    chains = _critical_chains(graph, critical)
    average_slack = sum(s.slack for s in schedules) / len(schedules)

    logger.debug(
        "critical path: %d phases, duration=%d days, %d critical in %d chain(s)",
        len(schedules),
        project_duration,
        len(critical),
        len(chains),
    )

    return CriticalPathResult(
        schedules=schedules,
        project_duration=project_duration,
        critical_path=tuple(s.phase_id for s in schedules if s.is_critical),
        critical_chains=chains,
        average_slack=average_slack,
    )


def _critical_chains(graph: PhaseGraph, critical: set[str]) -> tuple[tuple[str, ...], ...]:
    """Every maximal root-to-end run of critical phases.

    Independent roots give disjoint chains. Equal-length branches are both
    critical, so they share the prefix up to the branch point.
    """
    chains: list[tuple[str, ...]] = []
    starts = [
        p.id
        for p in graph.phases
        if p.id in critical and (p.depends_on_phase_id is None or p.depends_on_phase_id not in critical)
    ]
    for start in starts:
        stack: list[tuple[str, ...]] = [(start,)]
        while stack:
            chain = stack.pop()
            nxt = [s for s in graph.successors_of(chain[-1]) if s in critical]
            if not nxt:
                chains.append(chain)
                continue
            # Reversed so chains come out in input order.
            for s in reversed(nxt):
                stack.append(chain + (s,))
    return tuple(chains)


def assess_schedule_risk(
    result: CriticalPathResult,
    today: date,
    project_start: Optional[date] = None,
    project_end: Optional[date] = None,
    buffer_ratio: float = DEFAULT_CONFIG.schedule_risk_buffer_ratio,
) -> ScheduleRisk:
    """Compare the calendar time left against the critical-path length.

    Without a planned end date, the end is derived from the project start
    (or today) plus the critical-path duration. The project is at risk when
    fewer days remain than `buffer_ratio` of its duration.
    """
    if project_end is not None:
        planned_end = project_end
    else:
        planned_end = (project_start or today) + timedelta(days=result.project_duration)
    days_remaining = (planned_end - today).days
    return ScheduleRisk(
        planned_end=planned_end,
        days_remaining=days_remaining,
        is_at_risk=days_remaining < result.project_duration * buffer_ratio,
    )
