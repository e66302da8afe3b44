"""Size and token budget with progressive loading."""

from contextpack.budget.manager import BudgetManager
from contextpack.budget.types import (
    Admission,
    BudgetLimits,
    BudgetMode,
    BudgetPhase,
    BudgetSnapshot,
    Decision,
)

__all__ = [
    "Admission",
    "BudgetLimits",
    "BudgetManager",
    "BudgetMode",
    "BudgetPhase",
    "BudgetSnapshot",
    "Decision",
]
