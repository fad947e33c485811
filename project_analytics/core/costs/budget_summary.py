from __future__ import annotations

from typing import Optional

from project_analytics.core.model import BudgetSummary, Project
from project_analytics.core.validate.validate_inputs import check_project, ensure_valid


def summarize_budget(project: Project, file: Optional[str] = None) -> BudgetSummary:
    """Headline budget figures for a project.

    Remaining budget subtracts both spend and open commitments; a negative
    remainder means the project is over budget.
    """
    ensure_valid(check_project(project, file))

    budget = project.budget_at_completion
    spent = project.actual_spent
    committed = project.committed_amount
    remaining = budget - spent - committed
    return BudgetSummary(
        budget=budget,
        spent=spent,
        committed=committed,
        remaining=remaining,
        spent_percent=spent / budget * 100 if budget > 0 else 0.0,
        contingency=project.contingency_amount,
        total_with_contingency=budget + project.contingency_amount,
        is_over_budget=remaining < 0,
    )
