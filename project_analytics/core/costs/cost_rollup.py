from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from project_analytics.core.model import GENERAL_BUCKET, CategoryTotals, CostItem, CostRollup
from project_analytics.core.validate.validate_inputs import check_cost_items, ensure_valid

logger = logging.getLogger(__name__)


def rollup_by_category(items: Sequence[CostItem], file: Optional[str] = None) -> dict[str, CategoryTotals]:
    """Budgeted/committed/spent totals per cost category, in first-seen order."""
    ensure_valid(check_cost_items(items, file))
    return _group(items, lambda item: item.category)


def rollup_by_phase(items: Sequence[CostItem], file: Optional[str] = None) -> dict[str, CategoryTotals]:
    """Same totals per phase; items without a phase land in the "general" bucket."""
    ensure_valid(check_cost_items(items, file))
    return _group(items, lambda item: item.phase_id or GENERAL_BUCKET)


def rollup_costs(items: Sequence[CostItem], file: Optional[str] = None) -> CostRollup:
    rollup = CostRollup(
        by_category=rollup_by_category(items, file),
        by_phase=rollup_by_phase(items, file),
    )
    logger.debug(
        "rolled up %d cost items into %d categories, %d phase buckets",
        len(items),
        len(rollup.by_category),
        len(rollup.by_phase),
    )
    return rollup


def _group(items: Sequence[CostItem], key: Callable[[CostItem], str]) -> dict[str, CategoryTotals]:
    sums: dict[str, list[float]] = {}
    for item in items:
        acc = sums.setdefault(key(item), [0.0, 0.0, 0.0])
        acc[0] += item.budgeted_amount
        acc[1] += item.committed_amount
        acc[2] += item.actual_spent
    return {
        k: CategoryTotals(budgeted=b, committed=c, spent=s, variance=b - s)
        for k, (b, c, s) in sums.items()
    }
