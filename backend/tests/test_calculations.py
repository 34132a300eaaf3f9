"""
test_calculations.py — Unit tests for the estimate calculation functions.

Tests cover:
  - estimated_total / actual_total: multiplier identity for blank or zero values
  - profitability: three-way policy and half-away rounding
  - recalculate_row / touches_calculation
  - section_total, project_totals: aggregation, empty estimates, idempotence
  - validate_providers / check_providers: 100% rule, junk percentages

All tests are pure unit tests; no database or external services required.
"""

import pytest

from app.services.calculations import (
    ProjectMetrics,
    actual_total,
    check_providers,
    estimated_total,
    percentage_of,
    profitability,
    project_totals,
    providers_total,
    recalculate_row,
    section_total,
    touches_calculation,
    validate_providers,
)


# ===========================================================================
# Row calculator
# ===========================================================================

class TestRowTotals:
    """estimated_total and actual_total over raw text fields."""

    def test_estimated_total_is_qty_times_price(self):
        assert estimated_total({"qty": "3", "priceEst": "1,500"}) == 4500

    def test_missing_fields_read_as_zero(self):
        assert estimated_total({}) == 0
        assert actual_total({}) == 0

    def test_actual_total_applies_multipliers(self):
        row = {"qty": "2", "priceAct": "50", "discount": "2", "factor": "3", "cr": "1"}
        assert actual_total(row) == 2 * 2 * 3 * 1 * 50

    @pytest.mark.parametrize("multiplier", ["", "0", None, "abc"])
    def test_blank_or_zero_multiplier_is_identity(self, multiplier):
        base = {"qty": "4", "priceAct": "25"}
        neutral = {**base, "discount": "1", "factor": "1", "cr": "1"}
        degraded = {**base, "discount": multiplier, "factor": multiplier, "cr": multiplier}
        assert actual_total(degraded) == actual_total(neutral) == 100

    def test_accepts_objects_with_attributes(self):
        class Row:
            qty = "5"
            priceEst = "10"

        assert estimated_total(Row()) == 50


class TestProfitability:
    """Signed whole-percent margin with the -100 / 0 edge policy."""

    def test_no_cost_is_full_margin(self):
        assert profitability(500, 0) == 100

    def test_nothing_booked_is_zero(self):
        assert profitability(0, 0) == 0

    def test_cost_without_revenue_is_minus_100(self):
        assert profitability(0, 250) == -100

    def test_loss_is_negative(self):
        assert profitability(500, 750) == -50

    def test_ties_round_away_from_zero(self):
        """1/8 = 12.5% exactly in binary floating point."""
        assert profitability(8, 7) == 13
        assert profitability(8, 9) == -13


class TestRecalculateRow:
    """recalculate_row copies the row and refreshes the three derived fields."""

    def test_reference_scenario(self, priced_row):
        row = recalculate_row(priced_row)
        assert row["totalEst"] == 200
        assert row["totalAct"] == 160
        assert row["profitability"] == 20

    def test_input_row_not_mutated(self, priced_row):
        recalculate_row(priced_row)
        assert "totalEst" not in priced_row

    def test_raw_fields_preserved(self, priced_row):
        row = recalculate_row(priced_row)
        assert row["service"] == "Camera crew"
        assert row["providers"] == []

    @pytest.mark.parametrize("fields,expected", [
        (["qty"], True),
        (["priceAct", "service"], True),
        (["cr"], True),
        (["service", "description", "duration", "unit"], False),
        (["providers"], False),
        ([], False),
    ])
    def test_touches_calculation(self, fields, expected):
        assert touches_calculation(fields) is expected


# ===========================================================================
# Section & project aggregation
# ===========================================================================

class TestAggregation:
    """section_total and project_totals."""

    def test_section_total_sums_actuals_only(self):
        rows = [{"totalEst": 1000, "totalAct": 300}, {"totalEst": 50, "totalAct": 20}]
        assert section_total(rows) == 320

    def test_single_loss_making_row(self):
        metrics = project_totals({"production": {"rows": [{"totalEst": 500, "totalAct": 750}]}})
        assert metrics == ProjectMetrics(
            total_project_cost=500,
            total_expenses=750,
            net_profit=-250,
            profitability=-50,
            final_profit=-250,
        )

    def test_no_rows_anywhere_is_all_zero(self):
        empty = ProjectMetrics(0, 0, 0, 0, 0)
        assert project_totals({}) == empty
        assert project_totals({"production": {"rows": []}, "pre-production": {"rows": []}}) == empty

    def test_expenses_without_revenue(self):
        metrics = project_totals({"extra-expenses": {"rows": [{"totalEst": 0, "totalAct": 90}]}})
        assert metrics.profitability == -100
        assert metrics.net_profit == -90

    def test_sums_across_sections(self):
        sections = {
            "production": {"rows": [{"totalEst": 200, "totalAct": 160}]},
            "equipment-rental": {"rows": [{"totalEst": 300, "totalAct": 250}]},
        }
        metrics = project_totals(sections)
        assert metrics.total_project_cost == 500
        assert metrics.total_expenses == 410
        assert metrics.net_profit == 90
        assert metrics.profitability == 18

    def test_order_independent(self):
        a = {"totalEst": 120, "totalAct": 100}
        b = {"totalEst": 80, "totalAct": 95}
        forward = project_totals({"production": {"rows": [a, b]}})
        backward = project_totals({"production": {"rows": [b, a]}})
        assert forward == backward

    def test_recomputation_is_idempotent(self):
        sections = {"production": {"rows": [{"totalEst": 333, "totalAct": 111}]}}
        first = project_totals(sections)
        second = project_totals(sections)
        assert first == second
        assert first.as_dict() == second.as_dict()

    def test_final_profit_mirrors_net_profit(self):
        metrics = project_totals({"production": {"rows": [{"totalEst": 900, "totalAct": 400}]}})
        assert metrics.final_profit == metrics.net_profit == 500

    def test_metric_key_styles(self):
        metrics = ProjectMetrics(1, 2, 3, 4, 5)
        assert metrics.as_dict() == {
            "totalProjectCost": 1,
            "totalExpenses": 2,
            "netProfit": 3,
            "profitability": 4,
            "finalProfit": 5,
        }
        assert set(metrics.as_columns()) == {
            "total_project_cost", "total_expenses", "net_profit", "profitability", "final_profit",
        }


# ===========================================================================
# Provider percentages
# ===========================================================================

class TestProviders:
    """validate_providers / check_providers."""

    def test_empty_list_is_valid(self):
        assert validate_providers([]) is True
        assert validate_providers(None) is True

    def test_exact_hundred_is_valid(self):
        assert validate_providers([{"percentage": 60}, {"percentage": 40}]) is True

    def test_short_of_hundred_is_invalid(self):
        assert validate_providers([{"percentage": 60}, {"percentage": 30}]) is False

    def test_missing_percentage_counts_as_zero(self):
        providers = [{"name": "A", "percentage": 100}, {"name": "B"}]
        assert validate_providers(providers) is True
        assert providers_total(providers) == 100

    @pytest.mark.parametrize("raw,expected", [
        ("40", 40),
        ("40abc", 40),
        (" 25", 25),
        ("abc", 0),
        ("", 0),
        (None, 0),
        (33.9, 33),
    ])
    def test_percentage_parsing(self, raw, expected):
        assert percentage_of({"percentage": raw}) == expected

    def test_check_reports_message_and_total(self):
        result = check_providers([{"percentage": 70}, {"percentage": 20}])
        assert result.valid is False
        assert result.total == 90
        assert result.message == "Total percentage must equal 100%"

    def test_check_valid_has_no_message(self):
        result = check_providers([{"percentage": "100"}])
        assert result.valid is True
        assert result.message == ""
