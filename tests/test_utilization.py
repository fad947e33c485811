from datetime import date

import pytest

from project_analytics.core.config.engine_config import merged_config
from project_analytics.core.errors import InvalidInputError
from project_analytics.core.model import ResourceAssignment
from project_analytics.core.resources.utilization import analyze_utilization


def _assign(rid: str, hours: float, rtype: str = "staff", project: str = "P1", **kw) -> ResourceAssignment:
    return ResourceAssignment(resource_id=rid, resource_type=rtype, planned_hours=hours, project_id=project, **kw)


def test_overallocation_boundary():
    records = analyze_utilization([_assign("exact", 160), _assign("over", 161)])
    by_id = {r.resource_id: r for r in records}
    assert by_id["exact"].is_overallocated is False
    assert by_id["exact"].utilization_percent == pytest.approx(100)
    assert by_id["over"].is_overallocated is True
    assert by_id["over"].status == "overallocated"


def test_hours_are_summed_across_projects():
    records = analyze_utilization(
        [
            _assign("tech-1", 120, project="P1", resource_name="Lead technician"),
            _assign("tech-1", 50, project="P2"),
            _assign("crane-1", 80, rtype="equipment"),
        ]
    )
    assert [r.resource_id for r in records] == ["tech-1", "crane-1"]
    tech = records[0]
    assert tech.total_planned_hours == 170
    assert tech.utilization_percent == pytest.approx(106.25)
    assert tech.project_ids == ("P1", "P2")
    assert tech.resource_name == "Lead technician"


def test_same_id_different_type_are_separate_resources():
    records = analyze_utilization([_assign("r1", 100, "staff"), _assign("r1", 100, "equipment")])
    assert len(records) == 2
    assert all(not r.is_overallocated for r in records)


def test_sorted_by_utilization_descending():
    records = analyze_utilization([_assign("a", 10), _assign("b", 150), _assign("c", 90), _assign("d", 90)])
    assert [r.resource_id for r in records] == ["b", "c", "d", "a"]


def test_status_bands():
    records = analyze_utilization([_assign("busy", 128), _assign("free", 127)])
    by_id = {r.resource_id: r for r in records}
    assert by_id["busy"].status == "busy"  # 80%
    assert by_id["free"].status == "available"


def test_capacity_override_and_config():
    records = analyze_utilization([_assign("a", 100)], monthly_capacity_hours=80)
    assert records[0].utilization_percent == pytest.approx(125)
    assert records[0].is_overallocated is True

    cfg = merged_config({"monthly_capacity_hours": 200})
    records = analyze_utilization([_assign("a", 100)], config=cfg)
    assert records[0].utilization_percent == pytest.approx(50)


def test_time_window_filter():
    assignments = [
        _assign("a", 40, start_date=date(2026, 1, 5), end_date=date(2026, 1, 20)),
        _assign("a", 60, start_date=date(2026, 2, 2), end_date=date(2026, 2, 27)),
        _assign("a", 10),  # undated
    ]
    records = analyze_utilization(assignments, window=(date(2026, 1, 1), date(2026, 1, 31)))
    assert records[0].total_planned_hours == 50


def test_empty_assignments():
    assert analyze_utilization([]) == []


def test_non_positive_capacity_is_rejected():
    try:
        analyze_utilization([_assign("a", 1)], monthly_capacity_hours=0)
        assert False, "expected InvalidInputError"
    except InvalidInputError as e:
        assert e.code == "E_INVALID_CAPACITY"


def test_negative_hours_are_rejected():
    try:
        analyze_utilization([_assign("a", -5)])
        assert False, "expected InvalidInputError"
    except InvalidInputError as e:
        assert e.code == "E_NEGATIVE_AMOUNT"


def test_analysis_is_idempotent():
    assignments = [_assign("a", 100), _assign("b", 170), _assign("a", 20)]
    assert analyze_utilization(assignments) == analyze_utilization(assignments)


def test_nan_capacity_is_rejected():
    try:
        analyze_utilization([_assign("a", 1)], monthly_capacity_hours=float("nan"))
        assert False, "expected InvalidInputError"
    except InvalidInputError as e:
        assert e.code == "E_INVALID_CAPACITY"
