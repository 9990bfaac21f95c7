"""Tests for the fixed/variable cost classifier."""

import pytest

from command_center.core.enums import CostBehavior, Section
from command_center.ingestion.config import (
    FIXED_COST_MIN_SAMPLES_ANNUAL,
    FIXED_COST_MIN_SAMPLES_LINE_ITEM,
)
from command_center.ingestion.cost import classify_cost_behavior, summarize_cost_behavior
from command_center.ingestion.models import BudgetLine


def _line(name, months, behavior=CostBehavior.VARIABLE):
    return BudgetLine(
        name=name,
        category="General",
        section=Section.FIXED_EXPENSES,
        monthly_cents=tuple(months),
        annual_total_cents=sum(months),
        cost_behavior=behavior,
    )


class TestClassifyCostBehavior:
    def test_equal_months_are_fixed(self):
        assert classify_cost_behavior([1500] * 12) == CostBehavior.FIXED

    def test_one_outlier_is_variable(self):
        """Eleven equal months plus one at three times the mean is variable."""
        assert classify_cost_behavior([100] * 11 + [300]) == CostBehavior.VARIABLE

    def test_all_zero_is_variable(self):
        assert classify_cost_behavior([0] * 12) == CostBehavior.VARIABLE

    def test_zero_months_do_not_disqualify(self):
        quarterly = [0, 0, 900, 0, 0, 900, 0, 0, 900, 0, 0, 900]
        assert classify_cost_behavior(quarterly) == CostBehavior.FIXED

    def test_within_tolerance(self):
        assert classify_cost_behavior([1000, 1040] * 6) == CostBehavior.FIXED
        assert classify_cost_behavior([1000, 1120] * 6) == CostBehavior.VARIABLE

    @pytest.mark.parametrize(
        "non_zero_months,min_samples,expected",
        [
            (1, FIXED_COST_MIN_SAMPLES_LINE_ITEM, CostBehavior.VARIABLE),
            (2, FIXED_COST_MIN_SAMPLES_LINE_ITEM, CostBehavior.FIXED),
            (4, FIXED_COST_MIN_SAMPLES_ANNUAL, CostBehavior.VARIABLE),
            (6, FIXED_COST_MIN_SAMPLES_ANNUAL, CostBehavior.FIXED),
        ],
    )
    def test_min_samples_threshold(self, non_zero_months, min_samples, expected):
        months = [2000] * non_zero_months + [0] * (12 - non_zero_months)
        assert classify_cost_behavior(months, min_samples=min_samples) == expected

    def test_negative_constant_values_are_fixed(self):
        assert classify_cost_behavior([-500] * 12) == CostBehavior.FIXED

    def test_values_cancelling_to_zero_mean_are_variable(self):
        assert classify_cost_behavior([100, -100] * 6) == CostBehavior.VARIABLE


class TestSummarizeCostBehavior:
    def test_annual_threshold_recosts_lines(self):
        """A line fixed at parse time can be variable under the annual threshold."""
        lines = [
            _line("Liability Insurance", [2000] * 12, CostBehavior.FIXED),
            _line("Pilot Training", [0, 0, 1500, 0, 0, 0, 0, 0, 1500, 0, 0, 0], CostBehavior.FIXED),
        ]
        totals = summarize_cost_behavior(lines)
        assert totals == {"fixed": 24000, "variable": 3000}

    def test_line_item_threshold(self):
        lines = [_line("Pilot Training", [0, 0, 1500, 0, 0, 0, 0, 0, 1500, 0, 0, 0])]
        totals = summarize_cost_behavior(lines, min_samples=FIXED_COST_MIN_SAMPLES_LINE_ITEM)
        assert totals == {"fixed": 3000, "variable": 0}

    def test_empty(self):
        assert summarize_cost_behavior([]) == {"fixed": 0, "variable": 0}
