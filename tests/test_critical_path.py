from datetime import date, timedelta

import pytest

from project_analytics.core.config.engine_config import merged_config
from project_analytics.core.errors import CycleDetected
from project_analytics.core.model import Phase
from project_analytics.core.schedule.critical_path import analyze_critical_path, assess_schedule_risk

START = date(2026, 1, 1)


def _phase(pid: str, days: int, dep: str | None = None, **kw) -> Phase:
    return Phase(
        id=pid,
        planned_start=START,
        planned_end=START + timedelta(days=days),
        depends_on_phase_id=dep,
        **kw,
    )


def test_linear_chain():
    result = analyze_critical_path([_phase("A", 7), _phase("B", 5, "A"), _phase("C", 3, "B")])

    assert [s.earliest_finish for s in result.schedules] == [7, 12, 15]
    assert [s.earliest_start for s in result.schedules] == [0, 7, 12]
    assert all(s.slack == 0 for s in result.schedules)
    assert result.critical_path == ("A", "B", "C")
    assert result.critical_chains == (("A", "B", "C"),)
    assert result.project_duration == 15
    assert result.average_slack == 0


def test_branching_without_merge_picks_longer_branch():
    result = analyze_critical_path([_phase("A", 3), _phase("B", 5, "A"), _phase("C", 10, "A")])

    assert set(result.critical_path) == {"A", "C"}
    b = result.schedule_for("B")
    assert b.slack == 5
    assert b.is_critical is False
    assert (b.earliest_start, b.earliest_finish, b.latest_start, b.latest_finish) == (3, 8, 8, 13)
    assert result.project_duration == 13
    assert result.critical_chains == (("A", "C"),)


def test_cycle_raises_without_partial_result():
    phases = [Phase(id="X", depends_on_phase_id="Y"), Phase(id="Y", depends_on_phase_id="X")]
    with pytest.raises(CycleDetected) as exc:
        analyze_critical_path(phases)
    assert exc.value.code == "E_CYCLE_DETECTED"


def test_empty_phase_list_is_an_empty_result():
    result = analyze_critical_path([])
    assert result.schedules == ()
    assert result.project_duration == 0
    assert result.critical_path == ()
    assert result.critical_chains == ()


def test_results_keep_input_order():
    # Successor listed first; output still mirrors input order.
    result = analyze_critical_path([_phase("B", 5, "A"), _phase("A", 7)])
    assert [s.phase_id for s in result.schedules] == ["B", "A"]
    assert result.schedule_for("B").earliest_start == 7


def test_independent_roots_give_disjoint_chains():
    phases = [
        _phase("A", 4),
        _phase("B", 6, "A"),
        _phase("X", 2),
        _phase("Y", 8, "X"),
        _phase("Z", 3),
    ]
    result = analyze_critical_path(phases)

    assert result.project_duration == 10
    assert result.critical_chains == (("A", "B"), ("X", "Y"))
    assert result.schedule_for("Z").slack == 7


def test_equal_branches_are_both_critical():
    result = analyze_critical_path([_phase("A", 2), _phase("B", 4, "A"), _phase("C", 4, "A")])
    assert result.critical_path == ("A", "B", "C")
    assert result.critical_chains == (("A", "B"), ("A", "C"))


def test_dateless_phases_use_default_duration():
    result = analyze_critical_path([Phase(id="A"), Phase(id="B", depends_on_phase_id="A")])
    assert result.project_duration == 14

    cfg = merged_config({"default_duration_days": 2})
    result = analyze_critical_path([Phase(id="A"), Phase(id="B", depends_on_phase_id="A")], cfg)
    assert result.project_duration == 4


def test_milestone_takes_no_time():
    result = analyze_critical_path([_phase("A", 5), _phase("M", 30, "A", is_milestone=True)])
    m = result.schedule_for("M")
    assert m.duration == 0
    assert m.earliest_start == m.earliest_finish == 5
    assert result.project_duration == 5


def test_average_slack():
    result = analyze_critical_path([_phase("A", 3), _phase("B", 5, "A"), _phase("C", 10, "A")])
    assert result.average_slack == pytest.approx(5 / 3)


def test_analysis_is_idempotent():
    phases = [_phase("A", 3), _phase("B", 5, "A"), _phase("C", 10, "A"), _phase("D", 1)]
    assert analyze_critical_path(phases) == analyze_critical_path(phases)


def test_schedule_risk_uses_planned_end():
    result = analyze_critical_path([_phase("A", 10), _phase("B", 10, "A")])
    risk = assess_schedule_risk(result, today=date(2026, 1, 18), project_end=date(2026, 1, 21))
    assert risk.days_remaining == 3
    assert risk.is_at_risk is True  # 3 < 20 * 0.2

    risk = assess_schedule_risk(result, today=date(2026, 1, 5), project_end=date(2026, 1, 21))
    assert risk.days_remaining == 16
    assert risk.is_at_risk is False


def test_schedule_risk_derives_end_from_start():
    result = analyze_critical_path([_phase("A", 10)])
    risk = assess_schedule_risk(result, today=date(2026, 1, 3), project_start=date(2026, 1, 1))
    assert risk.planned_end == date(2026, 1, 11)
    assert risk.days_remaining == 8
