from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from project_analytics.core.errors import SnapshotLoadError

logger = logging.getLogger(__name__)


def load_snapshot(path: str) -> dict[str, Any]:
    """Load a YAML/JSON project snapshot.

    Returns a dict with keys: project, phases, cost_items, resource_assignments.
    Does not coerce types; validate_snapshot owns shape checking.
    """

    p = Path(path)
    if not p.exists():
        raise SnapshotLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise SnapshotLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message="supported formats are .yaml/.yml and .json",
            file=str(p),
        )

    try:
        raw_text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix == ".json":
            data = json.loads(raw_text)
        else:
            data = yaml.safe_load(raw_text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        code = "E_JSON_PARSE" if suffix == ".json" else "E_YAML_PARSE"
        raise SnapshotLoadError(code=code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        raise SnapshotLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object",
            file=str(p),
        )

    # Normalize: keep only expected keys; missing lists mean "none recorded".
    normalized: dict[str, Any] = {
        "project": data.get("project"),
        "phases": data.get("phases", []),
        "cost_items": data.get("cost_items", []),
        "resource_assignments": data.get("resource_assignments", []),
    }
    normalized["__file__"] = str(p)
    logger.debug("loaded snapshot %s (%s)", p, suffix.lstrip("."))
    return normalized
