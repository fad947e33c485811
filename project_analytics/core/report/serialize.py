from __future__ import annotations

import dataclasses
from datetime import date
from typing import Any


def to_jsonable(obj: Any) -> Any:
    """Convert result records into plain JSON-compatible values.

    Dataclasses become dicts, tuples become lists, dates become ISO strings.
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, date):
        return obj.isoformat()
    return obj
