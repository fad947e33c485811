from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from project_analytics.core.config.engine_config import DEFAULT_CONFIG, EngineConfig
from project_analytics.core.model import EVMAssessment, EVMSnapshot, IndexStatus, Phase, Project
from project_analytics.core.validate.validate_inputs import check_phases, check_project, ensure_valid

logger = logging.getLogger(__name__)


# Performance indices:
# - SPI/CPI >= on_track_index          -> on_track
# - at_risk_index <= SPI/CPI < on_track -> at_risk
# - below at_risk_index                -> behind
# - TCPI above tcpi_difficult_threshold is hard to recover on current budget


def calculate_earned_value(
    project: Project,
    phases: Sequence[Phase],
    as_of: date,
    file: Optional[str] = None,
) -> EVMSnapshot:
    """Compute the EVM metric set for one project as of a given day.

    `as_of` stands in for "now" so the result is a pure function of its inputs.
    Ratios with no denominator yet (no planned value, no spend, nothing left to
    spend) default to 1.0, meaning neither ahead nor behind.
    """
    ensure_valid(check_project(project, file) + check_phases(phases, file))

    bac = project.budget_at_completion
    pc = percent_complete(phases)
    ps = percent_scheduled(project.planned_start_date, project.planned_end_date, as_of)

    ev = pc / 100 * bac
    pv = ps / 100 * bac
    ac = project.actual_spent

    sv = ev - pv
    cv = ev - ac
    spi = ev / pv if pv > 0 else 1.0
    cpi = ev / ac if ac > 0 else 1.0

    eac = bac / cpi if cpi > 0 else bac
    etc = eac - ac
    vac = bac - eac

    remaining = bac - ac
    tcpi = (bac - ev) / remaining if remaining > 0 else 1.0

    logger.debug(
        "evm as of %s: bac=%.2f complete=%.1f%% scheduled=%.1f%% spi=%.3f cpi=%.3f",
        as_of,
        bac,
        pc,
        ps,
        spi,
        cpi,
    )

    return EVMSnapshot(
        bac=bac,
        pv=pv,
        ev=ev,
        ac=ac,
        sv=sv,
        cv=cv,
        spi=spi,
        cpi=cpi,
        eac=eac,
        etc=etc,
        vac=vac,
        tcpi=tcpi,
        percent_complete=pc,
        percent_scheduled=ps,
    )


def percent_complete(phases: Sequence[Phase]) -> float:
    """Budget-weighted mean of phase progress.

    Falls back to equal weights when no phase carries a budget.
    """
    if not phases:
        return 0.0
    total_budget = sum(p.phase_budget for p in phases)
    if total_budget <= 0:
        logger.debug("no phase budgets; weighting %d phases equally", len(phases))
        return sum(p.percent_complete for p in phases) / len(phases)
    return sum(p.percent_complete * p.phase_budget for p in phases) / total_budget


def percent_scheduled(start: Optional[date], end: Optional[date], as_of: date) -> float:
    """Share of the planned window elapsed at `as_of`, clamped to [0, 100]."""
    if start is None or end is None:
        return 0.0
    window = (end - start).days
    if window <= 0:
        return 100.0 if as_of >= end else 0.0
    elapsed = (as_of - start).days
    return min(100.0, max(0.0, elapsed / window * 100))


def classify_index(value: float, config: Optional[EngineConfig] = None) -> IndexStatus:
    cfg = config or DEFAULT_CONFIG
    if value >= cfg.on_track_index:
        return "on_track"
    if value >= cfg.at_risk_index:
        return "at_risk"
    return "behind"


def assess_earned_value(snapshot: EVMSnapshot, config: Optional[EngineConfig] = None) -> EVMAssessment:
    cfg = config or DEFAULT_CONFIG
    return EVMAssessment(
        schedule_status=classify_index(snapshot.spi, cfg),
        cost_status=classify_index(snapshot.cpi, cfg),
        tcpi_difficult=snapshot.tcpi > cfg.tcpi_difficult_threshold,
    )
