import logging
from datetime import date

from project_analytics.core.errors import CycleDetected, InvalidInputError
from project_analytics.core.model import Phase
from project_analytics.core.schedule.phase_graph import PhaseGraph


def _phase(pid: str, dep: str | None = None, days: int | None = None, **kw) -> Phase:
    start = end = None
    if days is not None:
        start = date(2026, 1, 1)
        end = date.fromordinal(start.toordinal() + days)
    return Phase(id=pid, depends_on_phase_id=dep, planned_start=start, planned_end=end, **kw)


def test_duration_from_dates_and_defaults():
    g = PhaseGraph([_phase("A", days=10), _phase("B"), _phase("C", days=0)])
    assert g.duration(g.get("A")) == 10
    assert g.duration(g.get("B")) == 7  # no dates
    assert g.duration(g.get("C")) == 1  # same-day phases still take a day


def test_default_duration_is_configurable():
    g = PhaseGraph([_phase("A")], default_duration_days=3)
    assert g.duration(g.get("A")) == 3


def test_default_duration_is_logged(caplog):
    g = PhaseGraph([_phase("A")], default_duration_days=3)
    with caplog.at_level(logging.DEBUG, logger="project_analytics"):
        g.duration(g.get("A"))
    assert "phase A has no planned dates; using 3 days" in caplog.text


def test_milestone_has_zero_duration():
    g = PhaseGraph([_phase("M", days=5, is_milestone=True)])
    assert g.duration(g.get("M")) == 0


def test_roots_terminals_and_successors():
    g = PhaseGraph([_phase("A"), _phase("B", "A"), _phase("C", "A"), _phase("D", "C"), _phase("E")])
    assert [p.id for p in g.root_phases()] == ["A", "E"]
    assert [p.id for p in g.terminal_phases()] == ["B", "D", "E"]
    assert g.successors_of("A") == ["B", "C"]
    assert g.successors_of("D") == []
    assert g.predecessor_of("D") == "C"


def test_topological_order_puts_predecessors_first():
    # Input lists successors before their predecessors.
    g = PhaseGraph([_phase("C", "B"), _phase("B", "A"), _phase("A"), _phase("X")])
    order = g.detect_cycle()
    assert order == ["A", "B", "C", "X"]


def test_two_phase_cycle_is_detected():
    g = PhaseGraph([_phase("X", "Y"), _phase("Y", "X")])
    try:
        g.detect_cycle()
        assert False, "expected CycleDetected"
    except CycleDetected as e:
        assert e.code == "E_CYCLE_DETECTED"
        assert e.phase_id in {"X", "Y"}
        assert set(e.cycle) == {"X", "Y"}
        assert e.cycle[0] == e.cycle[-1]


def test_cycle_behind_a_valid_chain_is_detected():
    # R is a proper root; the cycle P -> Q -> S -> P hangs off nothing.
    g = PhaseGraph([_phase("R"), _phase("T", "R"), _phase("P", "S"), _phase("Q", "P"), _phase("S", "Q")])
    try:
        g.detect_cycle()
        assert False, "expected CycleDetected"
    except CycleDetected as e:
        assert set(e.cycle) == {"P", "Q", "S"}
        assert "dependency cycle detected" in e.message


def test_self_dependency_is_a_cycle():
    g = PhaseGraph([_phase("A", "A")])
    try:
        g.detect_cycle()
        assert False, "expected CycleDetected"
    except CycleDetected as e:
        assert e.cycle == ("A", "A")
        assert e.path == "phases[0].depends_on_phase_id"


def test_unknown_predecessor_is_rejected():
    try:
        PhaseGraph([_phase("A"), _phase("B", "ghost")])
        assert False, "expected InvalidInputError"
    except InvalidInputError as e:
        assert e.code == "E_UNKNOWN_DEPENDENCY"
        assert e.path == "phases[1].depends_on_phase_id"


def test_duplicate_ids_are_rejected():
    try:
        PhaseGraph([_phase("A"), _phase("A")])
        assert False, "expected InvalidInputError"
    except InvalidInputError as e:
        assert e.code == "E_DUPLICATE_ID"


def test_negative_duration_is_rejected():
    p = Phase(id="A", planned_start=date(2026, 2, 1), planned_end=date(2026, 1, 1))
    try:
        PhaseGraph([p])
        assert False, "expected InvalidInputError"
    except InvalidInputError as e:
        assert e.code == "E_NEGATIVE_DURATION"
