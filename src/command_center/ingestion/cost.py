"""Fixed/variable cost classification for budget line items."""

from __future__ import annotations

from typing import Dict, Iterable, Sequence

import numpy as np

from command_center.core.enums import CostBehavior
from .config import (
    FIXED_COST_MIN_SAMPLES_ANNUAL,
    FIXED_COST_MIN_SAMPLES_LINE_ITEM,
    FIXED_COST_TOLERANCE,
)
from .models import BudgetLine


def classify_cost_behavior(
    monthly_values: Sequence[float],
    min_samples: int = FIXED_COST_MIN_SAMPLES_LINE_ITEM,
    tolerance: float = FIXED_COST_TOLERANCE,
) -> CostBehavior:
    """Classify a line item as fixed or variable from its monthly values.

    Zero months are ignored ("no charge that month"). The item is fixed when
    at least ``min_samples`` months are non-zero and each of them lies within
    ``tolerance`` (relative) of their mean.

    Args:
        monthly_values: Twelve monthly amounts, any unit.
        min_samples: Minimum number of non-zero months; see
            FIXED_COST_MIN_SAMPLES_LINE_ITEM and FIXED_COST_MIN_SAMPLES_ANNUAL.
        tolerance: Maximum relative deviation from the mean.

    Examples:
        >>> classify_cost_behavior([1500] * 12)
        <CostBehavior.FIXED: 'fixed'>
        >>> classify_cost_behavior([100] * 11 + [300])
        <CostBehavior.VARIABLE: 'variable'>
    """
    values = np.asarray(monthly_values, dtype=float)
    non_zero = values[values != 0]
    if non_zero.size < min_samples or non_zero.size == 0:
        return CostBehavior.VARIABLE
    mean = non_zero.mean()
    if mean == 0:
        return CostBehavior.VARIABLE
    deviations = np.abs(non_zero - mean) / abs(mean)
    return CostBehavior.FIXED if bool(np.all(deviations < tolerance)) else CostBehavior.VARIABLE


def summarize_cost_behavior(
    lines: Iterable[BudgetLine], min_samples: int = FIXED_COST_MIN_SAMPLES_ANNUAL
) -> Dict[str, int]:
    """Re-cost budget lines and total their annual amounts by behavior.

    Returns cents keyed by ``CostBehavior`` value, both keys always present.
    """
    totals = {CostBehavior.FIXED.value: 0, CostBehavior.VARIABLE.value: 0}
    for line in lines:
        behavior = classify_cost_behavior(line.monthly_cents, min_samples=min_samples)
        totals[behavior.value] += line.annual_total_cents
    return totals


__all__ = ["classify_cost_behavior", "summarize_cost_behavior"]
