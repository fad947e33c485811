from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, NoReturn, Optional

import typer

from project_analytics.core.config.engine_config import EngineConfig, EngineConfigError, load_and_merge
from project_analytics.core.costs.budget_summary import summarize_budget
from project_analytics.core.costs.cost_rollup import rollup_costs
from project_analytics.core.errors import AnalyticsError, InvalidInputError, SnapshotLoadError
from project_analytics.core.evm.earned_value import assess_earned_value, calculate_earned_value
from project_analytics.core.io.load_snapshot import load_snapshot
from project_analytics.core.model import ProjectSnapshot
from project_analytics.core.report.serialize import to_jsonable
from project_analytics.core.report.summarize import (
    summarize_costs,
    summarize_earned_value,
    summarize_schedule,
    summarize_utilization,
)
from project_analytics.core.resources.resource_time import summarize_resource_time
from project_analytics.core.resources.utilization import analyze_utilization
from project_analytics.core.schedule.critical_path import analyze_critical_path, assess_schedule_risk
from project_analytics.core.validate.validate_snapshot import summarize_snapshot, validate_snapshot

app = typer.Typer(add_completion=False, no_args_is_help=True)

TOOL = "project-analytics"
CONFIG_ENVVAR = "PROJECT_ANALYTICS_CONFIG"

FORMAT_HELP = "Output format: text|json"
CONFIG_HELP = f"YAML file overriding engine defaults (env: {CONFIG_ENVVAR})"


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine decisions to stderr"),
) -> None:
    """Project schedule and earned-value analytics CLI."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("project_analytics").setLevel(level)


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a project snapshot (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
) -> None:
    """Validate a project snapshot file."""
    _check_format("validate", format)
    snapshot = _load_or_exit("validate", path, format)

    if format == "text":
        typer.echo(summarize_snapshot(snapshot))
        return
    _emit_json(
        "validate",
        ok=True,
        exit_code=0,
        errors=[],
        result={
            "phase_count": len(snapshot.phases),
            "cost_item_count": len(snapshot.cost_items),
            "resource_assignment_count": len(snapshot.resource_assignments),
        },
    )


@app.command("schedule")
def schedule(
    path: str = typer.Argument(..., help="Path to a project snapshot (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
    config: Optional[str] = typer.Option(None, "--config", envvar=CONFIG_ENVVAR, help=CONFIG_HELP),
    today: Optional[str] = typer.Option(None, "--today", help="Reference date for schedule risk (YYYY-MM-DD)"),
) -> None:
    """Critical path, slack per phase and schedule risk."""
    _check_format("schedule", format)
    snapshot = _load_or_exit("schedule", path, format)
    cfg = _config_or_exit("schedule", config, format)
    ref = _date_or_exit("schedule", "today", today, format) or date.today()

    try:
        result = analyze_critical_path(snapshot.phases, cfg, file=snapshot.source_file)
    except AnalyticsError as e:
        _fail("schedule", [e], format, exit_code=2)
    risk = assess_schedule_risk(
        result,
        today=ref,
        project_start=snapshot.project.planned_start_date,
        project_end=snapshot.project.planned_end_date,
        buffer_ratio=cfg.schedule_risk_buffer_ratio,
    )

    if format == "text":
        typer.echo(summarize_schedule(result, risk))
        return
    _emit_json("schedule", ok=True, exit_code=0, errors=[], result={"critical_path": result, "risk": risk})


@app.command("evm")
def evm(
    path: str = typer.Argument(..., help="Path to a project snapshot (.yaml/.yml/.json)"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Status date (YYYY-MM-DD); defaults to today"),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
    config: Optional[str] = typer.Option(None, "--config", envvar=CONFIG_ENVVAR, help=CONFIG_HELP),
) -> None:
    """Earned value metrics (PV/EV/AC, SPI/CPI, EAC/ETC/VAC, TCPI)."""
    _check_format("evm", format)
    snapshot = _load_or_exit("evm", path, format)
    cfg = _config_or_exit("evm", config, format)
    ref = _date_or_exit("evm", "as_of", as_of, format) or date.today()

    try:
        snap = calculate_earned_value(snapshot.project, snapshot.phases, ref, file=snapshot.source_file)
    except AnalyticsError as e:
        _fail("evm", [e], format, exit_code=2)
    assessment = assess_earned_value(snap, cfg)

    if format == "text":
        typer.echo(summarize_earned_value(snap, assessment))
        return
    _emit_json(
        "evm",
        ok=True,
        exit_code=0,
        errors=[],
        result={"as_of": ref, "metrics": snap, "assessment": assessment},
    )


@app.command("costs")
def costs(
    path: str = typer.Argument(..., help="Path to a project snapshot (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
) -> None:
    """Cost ledger totals by category and phase, plus the budget summary."""
    _check_format("costs", format)
    snapshot = _load_or_exit("costs", path, format)

    try:
        rollup = rollup_costs(snapshot.cost_items, file=snapshot.source_file)
        budget = summarize_budget(snapshot.project, file=snapshot.source_file)
    except AnalyticsError as e:
        _fail("costs", [e], format, exit_code=2)

    if format == "text":
        typer.echo(summarize_costs(rollup, budget))
        return
    _emit_json("costs", ok=True, exit_code=0, errors=[], result={"rollup": rollup, "budget": budget})


@app.command("utilization")
def utilization(
    path: str = typer.Argument(..., help="Path to a project snapshot (.yaml/.yml/.json)"),
    capacity_hours: Optional[float] = typer.Option(
        None, "--capacity-hours", help="Monthly capacity per resource (default from config: 160)"
    ),
    window_start: Optional[str] = typer.Option(None, "--window-start", help="Only count work from this date"),
    window_end: Optional[str] = typer.Option(None, "--window-end", help="Only count work up to this date"),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
    config: Optional[str] = typer.Option(None, "--config", envvar=CONFIG_ENVVAR, help=CONFIG_HELP),
) -> None:
    """Planned hours per resource, overallocation and planned vs actual time."""
    _check_format("utilization", format)
    snapshot = _load_or_exit("utilization", path, format)
    cfg = _config_or_exit("utilization", config, format)
    start = _date_or_exit("utilization", "window_start", window_start, format)
    end = _date_or_exit("utilization", "window_end", window_end, format)
    if (start is None) != (end is None):
        _fail(
            "utilization",
            [
                InvalidInputError(
                    code="E_UTILIZATION_PARTIAL_WINDOW",
                    message="--window-start and --window-end must be given together",
                    path="window",
                )
            ],
            format,
            exit_code=2,
        )
    window = (start, end) if start is not None and end is not None else None

    try:
        records = analyze_utilization(
            snapshot.resource_assignments,
            monthly_capacity_hours=capacity_hours,
            window=window,
            config=cfg,
            file=snapshot.source_file,
        )
        time = summarize_resource_time(
            snapshot.resource_assignments, project_id=snapshot.project.id or None, file=snapshot.source_file
        )
    except AnalyticsError as e:
        _fail("utilization", [e], format, exit_code=2)

    if format == "text":
        typer.echo(summarize_utilization(records, time))
        return
    _emit_json("utilization", ok=True, exit_code=0, errors=[], result={"resources": records, "time_summary": time})


@app.command("report")
def report(
    path: str = typer.Argument(..., help="Path to a project snapshot (.yaml/.yml/.json)"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Status date (YYYY-MM-DD); defaults to today"),
    config: Optional[str] = typer.Option(None, "--config", envvar=CONFIG_ENVVAR, help=CONFIG_HELP),
) -> None:
    """Every analysis for one snapshot as a single JSON document."""
    snapshot = _load_or_exit("report", path, "json")
    cfg = _config_or_exit("report", config, "json")
    ref = _date_or_exit("report", "as_of", as_of, "json") or date.today()
    file = snapshot.source_file

    try:
        schedule_result = analyze_critical_path(snapshot.phases, cfg, file=file)
        snap = calculate_earned_value(snapshot.project, snapshot.phases, ref, file=file)
        result: dict[str, Any] = {
            "project": snapshot.project,
            "as_of": ref,
            "schedule": {
                "critical_path": schedule_result,
                "risk": assess_schedule_risk(
                    schedule_result,
                    today=ref,
                    project_start=snapshot.project.planned_start_date,
                    project_end=snapshot.project.planned_end_date,
                    buffer_ratio=cfg.schedule_risk_buffer_ratio,
                ),
            },
            "earned_value": {"metrics": snap, "assessment": assess_earned_value(snap, cfg)},
            "costs": {
                "rollup": rollup_costs(snapshot.cost_items, file=file),
                "budget": summarize_budget(snapshot.project, file=file),
            },
            "utilization": analyze_utilization(snapshot.resource_assignments, config=cfg, file=file),
            "resource_time": summarize_resource_time(
                snapshot.resource_assignments, project_id=snapshot.project.id or None, file=file
            ),
        }
    except AnalyticsError as e:
        _fail("report", [e], "json", exit_code=2)

    _emit_json("report", ok=True, exit_code=0, errors=[], result=result)


def _check_format(command: str, format: str) -> None:
    if format not in ("text", "json"):
        err = InvalidInputError(
            code=f"E_{command.upper()}_UNKNOWN_FORMAT",
            message=f"unknown format: {format} (choose one of: text, json)",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)


def _load_or_exit(command: str, path: str, format: str) -> ProjectSnapshot:
    try:
        raw = load_snapshot(path)
    except SnapshotLoadError as e:
        _fail(command, [e], format, exit_code=1)

    snapshot, errors = validate_snapshot(raw)
    if errors or snapshot is None:
        _fail(command, list(errors), format, exit_code=2)
    return snapshot


def _config_or_exit(command: str, config_file: Optional[str], format: str) -> EngineConfig:
    try:
        return load_and_merge(config_file)
    except FileNotFoundError:
        _fail(
            command,
            [
                SnapshotLoadError(
                    code="E_CONFIG_FILE_NOT_FOUND",
                    message=f"config file not found: {config_file}",
                    file=None,
                    path="config",
                )
            ],
            format,
            exit_code=1,
        )
    except EngineConfigError as e:
        _fail(
            command,
            [
                InvalidInputError(
                    code="E_CONFIG_FILE_INVALID",
                    message=str(e),
                    file=config_file,
                    path="config",
                )
            ],
            format,
            exit_code=2,
        )


def _date_or_exit(command: str, option: str, value: Optional[str], format: str) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        _fail(
            command,
            [
                InvalidInputError(
                    code="E_INVALID_DATE",
                    message=f"{option} must be an ISO date (YYYY-MM-DD), got {value!r}",
                    file=None,
                    path=option,
                )
            ],
            format,
            exit_code=2,
        )


def _to_item(e: AnalyticsError) -> dict:
    source = "load" if isinstance(e, SnapshotLoadError) else "validate"
    if e.code == "E_CYCLE_DETECTED":
        source = "schedule"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _emit_json(
    command: str,
    ok: bool,
    *,
    exit_code: int,
    errors: list[AnalyticsError],
    result: Any,
) -> NoReturn:
    payload = {
        "tool": TOOL,
        "command": command,
        "ok": ok,
        "error_count": len(errors),
        "errors": [_to_item(e) for e in errors],
        "result": to_jsonable(result),
    }
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    raise typer.Exit(code=exit_code)


def _fail(command: str, errors: list[AnalyticsError], format: str, exit_code: int) -> NoReturn:
    if format == "json":
        _emit_json(command, False, exit_code=exit_code, errors=errors, result=None)
    _print_errors(errors)
    raise typer.Exit(code=exit_code)


def _print_errors(errors: list[AnalyticsError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="project-analytics")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
