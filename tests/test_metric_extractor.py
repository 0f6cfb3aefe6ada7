"""Tests for metric extraction and fallback resolution."""
from datetime import date

import pytest

from fundscore.analysis.fallback_resolver import apply_fallbacks, fallback_roe, resolve_fallback_value
from fundscore.analysis.metric_extractor import (
    calculate_cagr,
    calculate_stability,
    extract_average_metrics,
)
from fundscore.schemas.analysis import AverageMetrics
from fundscore.schemas.statements import (
    BalanceSheet,
    CashflowStatement,
    FallbackData,
    FinancialStatementsInput,
    IncomeStatement,
)

from conftest import make_statements


def _extract(payload: dict, likely_bank: bool = False) -> AverageMetrics:
    data = FinancialStatementsInput.model_validate(payload)
    return extract_average_metrics(
        data.income_statements, data.balance_sheets, data.cashflow_statements, likely_bank=likely_bank
    )


def _single_period(income: dict, balance: dict, cashflow: dict | None = None, periods: int = 2):
    return (
        [IncomeStatement(**income)] * periods,
        [BalanceSheet(**balance)] * periods,
        [CashflowStatement(**(cashflow or {}))] * periods,
    )


# ============================================================
# EXTRACTION
# ============================================================

class TestExtraction:

    def test_no_periods_returns_neutral_defaults(self):
        metrics = extract_average_metrics([], [], [])
        assert metrics == AverageMetrics()
        assert metrics.current_ratio == 1
        assert metrics.interest_coverage == 5
        assert metrics.revenue_stability == 0.5
        assert not metrics.is_available("roe")

    def test_periods_limited_by_shortest_statement(self):
        payload = make_statements(years=5)
        payload["cashflowStatements"] = payload["cashflowStatements"][:3]
        assert _extract(payload).valid_periods == 3

    def test_strong_company_ratios(self):
        metrics = _extract(make_statements())
        assert metrics.valid_periods == 5
        assert metrics.roe == pytest.approx(0.22)
        assert metrics.net_margin == pytest.approx(0.12)
        assert metrics.current_ratio == pytest.approx(2.1)
        assert metrics.debt_to_equity == pytest.approx(0.4)
        assert metrics.interest_coverage == pytest.approx(20)
        assert metrics.free_cash_flow_margin == pytest.approx(0.13)
        assert metrics.cash_conversion_ratio == pytest.approx(1.5)
        assert metrics.revenue_growth == pytest.approx(0.08)
        assert metrics.margin_stability == pytest.approx(1.0)
        assert metrics.revenue_stability > 0.8
        assert metrics.sources["roe"] == "measured"

    def test_implausible_values_replaced_by_proxies(self):
        income, balance, cashflow = _single_period(
            {"total_revenue": 500, "net_income": 100},
            {"total_assets": 1000, "total_liab": 995, "total_stockholder_equity": 5},
        )
        metrics = extract_average_metrics(income, balance, cashflow)
        # ROE 2000% -> ROA; D/E 199x -> min(2 x debt-to-assets, 10)
        assert metrics.roe == pytest.approx(0.1)
        assert metrics.debt_to_equity == pytest.approx(1.99)

    def test_implausibly_small_equity_skips_roe(self):
        income, balance, cashflow = _single_period(
            {"total_revenue": 500, "net_income": 100},
            {"total_assets": 1000, "total_liab": 999.5, "total_stockholder_equity": 0.5},
        )
        metrics = extract_average_metrics(income, balance, cashflow)
        assert not metrics.is_available("roe")
        assert metrics.roe == 0

    def test_zero_divisors_never_raise(self):
        income, balance, cashflow = _single_period(
            {"total_revenue": 0, "net_income": 10, "interest_expense": 0},
            {"total_assets": 0, "total_current_liabilities": 0, "total_current_assets": 50},
            {"operating_cash_flow": 5},
        )
        metrics = extract_average_metrics(income, balance, cashflow)
        assert metrics.valid_periods == 0
        assert metrics.current_ratio == 1

    def test_bank_interest_coverage_formula(self):
        income, balance, cashflow = _single_period(
            {"total_revenue": 1000, "net_income": 200, "income_before_tax": 300, "interest_expense": -100, "ebit": 5},
            {"total_assets": 10000, "total_stockholder_equity": 1000},
        )
        assert extract_average_metrics(income, balance, cashflow, likely_bank=True).interest_coverage == pytest.approx(4.0)
        assert extract_average_metrics(income, balance, cashflow).interest_coverage == pytest.approx(0.05)

    def test_averages_only_periods_where_metric_is_valid(self):
        income = [IncomeStatement(total_revenue=100, net_income=10), IncomeStatement(total_revenue=100, net_income=30)]
        balance = [
            BalanceSheet(total_assets=100, total_current_assets=40, total_current_liabilities=20),
            BalanceSheet(total_assets=100),
        ]
        metrics = extract_average_metrics(income, balance, [CashflowStatement(), CashflowStatement()])
        assert metrics.current_ratio == pytest.approx(2.0)
        assert metrics.net_margin == pytest.approx(0.2)


class TestSeries:

    def test_cagr_uses_oldest_and_newest_positive(self):
        assert calculate_cagr([100, None, 121]) == pytest.approx(0.10)
        assert calculate_cagr([-5, 100, 110]) == pytest.approx(0.10)

    def test_cagr_needs_two_points(self):
        assert calculate_cagr([100]) is None
        assert calculate_cagr([None, -1, 50]) is None

    def test_cagr_is_bounded(self):
        assert calculate_cagr([1, 1000]) == 5.0

    def test_stability(self):
        assert calculate_stability([10, 10, 10]) == 1.0
        assert calculate_stability([1, 100]) < 0.1
        assert calculate_stability([0, 0]) == 0.0

    def test_stability_needs_two_points(self):
        assert calculate_stability([5]) is None
        assert calculate_stability([None, 5]) is None


# ============================================================
# FALLBACK RESOLUTION
# ============================================================

class TestFallbackValues:

    def test_scalar(self):
        assert resolve_fallback_value(0.1) == 0.1
        assert resolve_fallback_value(None) is None

    def test_series_average_skips_gaps(self):
        assert resolve_fallback_value([0.1, None, 0.3]) == pytest.approx(0.2)
        assert resolve_fallback_value([None, None]) is None

    def test_completed_years_only_with_as_of(self):
        values, years = [0.1, 0.2, 0.9], [2022, 2023, 2024]
        assert resolve_fallback_value(values, years, date(2024, 6, 30)) == pytest.approx(0.15)
        assert resolve_fallback_value(values, years) == pytest.approx(0.4)

    def test_misaligned_years_ignored(self):
        assert resolve_fallback_value([0.1, 0.3], [2020], date(2021, 1, 1)) == pytest.approx(0.2)


class TestApplyFallbacks:

    def test_fills_unmeasured_metrics(self):
        fallback = FallbackData.model_validate({"roe": 0.12, "currentRatio": 1.8, "revenueCagr5y": [0.05, 0.07]})
        metrics = apply_fallbacks(AverageMetrics(), fallback)
        assert metrics.roe == 0.12
        assert metrics.current_ratio == 1.8
        assert metrics.revenue_growth == pytest.approx(0.06)
        assert metrics.sources["roe"] == "fallback"

    def test_measured_values_are_kept(self):
        measured = AverageMetrics(roe=0.2, sources={"roe": "measured"})
        assert apply_fallbacks(measured, FallbackData(roe=0.12)).roe == 0.2

    def test_measured_zero_is_replaced(self):
        measured = AverageMetrics(roa=0, sources={"roa": "measured"})
        assert apply_fallbacks(measured, FallbackData(roa=0.04)).roa == 0.04

    def test_holding_override_for_small_roe(self):
        measured = AverageMetrics(roe=0.004, sources={"roe": "measured"})
        fallback = FallbackData(roe=0.12)
        assert apply_fallbacks(measured, fallback, is_holding=True).roe == 0.12
        assert apply_fallbacks(measured, fallback, is_holding=False).roe == 0.004

    def test_generic_pass_uses_same_named_indicators(self):
        fallback = FallbackData.model_validate({"cashRatio": 0.5, "interest_coverage": "7"})
        metrics = apply_fallbacks(AverageMetrics(), fallback)
        assert metrics.cash_ratio == 0.5
        assert metrics.interest_coverage == 7.0

    def test_does_not_modify_input(self):
        original = AverageMetrics()
        apply_fallbacks(original, FallbackData(roe=0.3))
        assert original.roe == 0
        assert original.sources == {}

    def test_fallback_roe_helper(self):
        fallback = FallbackData(roe=[0.1, 0.2], years=[2023, 2024])
        assert fallback_roe(fallback, date(2024, 3, 1)) == pytest.approx(0.1)
        assert fallback_roe(None) is None
