"""
Metric extraction from multi-period statements.

For periods = min(len(income), len(balance), len(cashflow)), each ratio is computed per
period only when its preconditions hold (positive assets, plausible equity, positive
revenue, liabilities below 10x assets) and averaged over the periods where it was valid.
Every ratio has a sanity bound; an out-of-bound value is replaced by a conservative
proxy and never averaged raw.

Growth (CAGR) and stability (1 - coefficient of variation) are computed separately
from the ordered series and never take part in the per-period averaging.
"""
import logging
from collections.abc import Callable, Sequence

import numpy as np

from fundscore.analysis.grading import clamp
from fundscore.analysis.numeric import first_number, safe_div
from fundscore.schemas.analysis import AverageMetrics, METRIC_FIELDS, MetricSource
from fundscore.schemas.statements import BalanceSheet, CashflowStatement, IncomeStatement

logger = logging.getLogger(__name__)

# (low, high) inclusive bounds per ratio.
SANITY_BOUNDS: dict[str, tuple[float, float]] = {
    "roe": (-10.0, 10.0),
    "roa": (-1.0, 1.0),
    "gross_margin": (-2.0, 1.0),
    "operating_margin": (-2.0, 1.0),
    "net_margin": (-2.0, 2.0),
    "current_ratio": (0.0, 50.0),
    "quick_ratio": (0.0, 50.0),
    "cash_ratio": (0.0, 50.0),
    "working_capital_ratio": (-1.0, 1.0),
    "asset_turnover": (0.0, 20.0),
    "receivables_turnover": (0.0, 365.0),
    "inventory_turnover": (0.0, 365.0),
    "debt_to_equity": (0.0, 100.0),
    "interest_coverage": (-1000.0, 1000.0),
    "bank_interest_coverage": (-50.0, 50.0),
    "operating_cash_flow_margin": (-5.0, 5.0),
    "free_cash_flow_margin": (-5.0, 5.0),
    "cash_conversion_ratio": (-20.0, 20.0),
    "growth": (-0.95, 5.0),
}

MIN_EQUITY_SHARE_OF_ASSETS = 0.001
MAX_LIABILITIES_TO_ASSETS = 10.0

GROWTH_FIELDS = ("revenue_growth", "net_income_growth")
STABILITY_FIELDS = ("revenue_stability", "margin_stability", "cash_flow_stability")


def reported_operating_result(row: IncomeStatement) -> float | None:
    """Reported operating income, else EBIT, else gross profit minus operating expenses."""
    if row.operating_income is not None:
        return row.operating_income
    if row.ebit is not None:
        return row.ebit
    if row.gross_profit is not None and row.total_operating_expenses is not None:
        return row.gross_profit - row.total_operating_expenses
    return None


def recomputed_operating_result(row: IncomeStatement) -> float | None:
    """EBIT, else gross profit minus operating expenses, else reported operating income."""
    if row.ebit is not None:
        return row.ebit
    if row.gross_profit is not None and row.total_operating_expenses is not None:
        return row.gross_profit - row.total_operating_expenses
    return row.operating_income


def non_operating_result(row: IncomeStatement, operating: float | None) -> float | None:
    """Result below the operating line: other income net, else pretax or net income minus operating."""
    if row.total_other_income_expense_net is not None:
        return row.total_other_income_expense_net
    if operating is None:
        return None
    if row.income_before_tax is not None:
        return row.income_before_tax - operating
    if row.net_income is not None:
        return row.net_income - operating
    return None


def gross_profit_of(row: IncomeStatement) -> float | None:
    if row.gross_profit is not None:
        return row.gross_profit
    if row.total_revenue is not None and row.cost_of_revenue is not None:
        return row.total_revenue - abs(row.cost_of_revenue)
    return None


def free_cash_flow_of(row: CashflowStatement) -> float | None:
    if row.free_cash_flow is not None:
        return row.free_cash_flow
    if row.operating_cash_flow is not None and row.capital_expenditures is not None:
        return row.operating_cash_flow - abs(row.capital_expenditures)
    return None


def calculate_cagr(chronological: Sequence[float | None]) -> float | None:
    """CAGR between the oldest and newest positive values; None with fewer than two."""
    positive = [(i, v) for i, v in enumerate(chronological) if v is not None and v > 0]
    if len(positive) < 2:
        return None
    (first_idx, first_value), (last_idx, last_value) = positive[0], positive[-1]
    years = last_idx - first_idx
    if years <= 0:
        return None
    growth = (last_value / first_value) ** (1 / years) - 1
    low, high = SANITY_BOUNDS["growth"]
    return clamp(growth, low, high)


def calculate_stability(values: Sequence[float | None]) -> float | None:
    """1 - coefficient of variation clamped to [0, 1]; None with fewer than two points."""
    points = np.array([v for v in values if v is not None], dtype=float)
    if len(points) < 2:
        return None
    mean = abs(float(np.mean(points)))
    if mean == 0:
        return 0.0
    cv = float(np.std(points)) / mean
    return clamp(1 - cv, 0, 1)


class _Accumulator:
    __slots__ = ("total", "count")

    def __init__(self):
        self.total = 0.0
        self.count = 0

    def add(self, value: float | None):
        if value is not None:
            self.total += value
            self.count += 1

    def mean(self) -> float | None:
        return self.total / self.count if self.count else None


class MetricExtractor:
    def __init__(self, likely_bank: bool = False):
        self.likely_bank = likely_bank

    def extract(
        self,
        income: Sequence[IncomeStatement],
        balance: Sequence[BalanceSheet],
        cashflow: Sequence[CashflowStatement],
    ) -> AverageMetrics:
        periods = min(len(income), len(balance), len(cashflow))
        if periods == 0:
            logger.debug("No complete periods; returning neutral metrics")
            return AverageMetrics()

        sums = {name: _Accumulator() for name in METRIC_FIELDS if name not in GROWTH_FIELDS + STABILITY_FIELDS}
        valid_periods = 0

        for i in range(periods):
            if self._accumulate_period(income[i], balance[i], cashflow[i], sums):
                valid_periods += 1

        values: dict[str, float] = {}
        sources: dict[str, MetricSource] = {}
        defaults = AverageMetrics()
        for name, acc in sums.items():
            mean = acc.mean()
            if mean is None:
                values[name] = getattr(defaults, name)
                sources[name] = "default"
            else:
                values[name] = mean
                sources[name] = "measured"

        # Series run oldest -> newest.
        rows = list(reversed(range(periods)))
        revenues = [income[i].total_revenue for i in rows]
        net_incomes = [income[i].net_income for i in rows]
        margins = [
            safe_div(income[i].net_income, income[i].total_revenue)
            if income[i].total_revenue and income[i].total_revenue > 0 else None
            for i in rows
        ]
        operating_cash = [cashflow[i].operating_cash_flow for i in rows]

        series_metrics = {
            "revenue_growth": calculate_cagr(revenues),
            "net_income_growth": calculate_cagr(net_incomes),
            "revenue_stability": calculate_stability([v for v in revenues if v is not None and v > 0]),
            "margin_stability": calculate_stability(margins),
            "cash_flow_stability": calculate_stability(operating_cash),
        }
        for name, value in series_metrics.items():
            if value is None:
                values[name] = getattr(defaults, name)
                sources[name] = "default"
            else:
                values[name] = value
                sources[name] = "measured"

        return AverageMetrics(**values, valid_periods=valid_periods, sources=sources)

    def _accumulate_period(
        self,
        inc: IncomeStatement,
        bal: BalanceSheet,
        cf: CashflowStatement,
        sums: dict[str, _Accumulator],
    ) -> bool:
        revenue = inc.total_revenue
        net_income = inc.net_income
        assets = bal.total_assets
        equity = bal.total_stockholder_equity
        liabilities = bal.total_liab
        if liabilities is None and assets is not None and equity is not None:
            liabilities = assets - equity

        has_assets = assets is not None and assets > 0
        has_revenue = revenue is not None and revenue > 0
        equity_ok = has_assets and equity is not None and equity > 0 and equity > MIN_EQUITY_SHARE_OF_ASSETS * assets
        leverage_ok = (
            has_assets and liabilities is not None and 0 <= liabilities < MAX_LIABILITIES_TO_ASSETS * assets
        )
        if not (has_assets or has_revenue):
            return False

        roa = None
        if has_assets:
            roa = self._bounded("roa", safe_div(net_income, assets), lambda v: clamp(v, -0.5, 0.5))
            sums["roa"].add(roa)
        if equity_ok:
            sums["roe"].add(self._bounded("roe", safe_div(net_income, equity), lambda v: roa))

        if has_revenue:
            gross = gross_profit_of(inc)
            sums["gross_margin"].add(self._bounded("gross_margin", safe_div(gross, revenue), _clamp_unit))
            operating = reported_operating_result(inc)
            sums["operating_margin"].add(self._bounded("operating_margin", safe_div(operating, revenue), _clamp_unit))
            sums["net_margin"].add(self._bounded("net_margin", safe_div(net_income, revenue), _clamp_unit))

        self._accumulate_liquidity(bal, has_assets, sums)

        if has_assets and has_revenue:
            sums["asset_turnover"].add(self._bounded("asset_turnover", revenue / assets, lambda v: 1.0))
        if has_revenue and bal.net_receivables is not None and bal.net_receivables > 0:
            sums["receivables_turnover"].add(
                self._bounded("receivables_turnover", revenue / bal.net_receivables, lambda v: 12.0)
            )
        if bal.inventory is not None and bal.inventory > 0:
            cost = abs(inc.cost_of_revenue) if inc.cost_of_revenue is not None else None
            if cost is None and has_revenue:
                gross = gross_profit_of(inc)
                cost = revenue - gross if gross is not None else revenue
            if cost is not None:
                sums["inventory_turnover"].add(
                    self._bounded("inventory_turnover", cost / bal.inventory, lambda v: 12.0)
                )

        debt_to_assets = None
        if leverage_ok:
            debt_to_assets = liabilities / assets
            sums["debt_to_assets"].add(debt_to_assets)
        if leverage_ok and equity_ok:
            sums["debt_to_equity"].add(
                self._bounded("debt_to_equity", liabilities / equity, lambda v: min(2 * debt_to_assets, 10.0))
            )

        sums["interest_coverage"].add(self._interest_coverage(inc))

        operating_cash = cf.operating_cash_flow
        if has_revenue:
            sums["operating_cash_flow_margin"].add(
                self._bounded("operating_cash_flow_margin", safe_div(operating_cash, revenue), _clamp_unit)
            )
            sums["free_cash_flow_margin"].add(
                self._bounded("free_cash_flow_margin", safe_div(free_cash_flow_of(cf), revenue), _clamp_unit)
            )
        if net_income is not None and net_income > 0 and operating_cash is not None:
            sums["cash_conversion_ratio"].add(
                self._bounded("cash_conversion_ratio", operating_cash / net_income, lambda v: clamp(v, -3.0, 3.0))
            )
        return True

    def _accumulate_liquidity(self, bal: BalanceSheet, has_assets: bool, sums: dict[str, _Accumulator]):
        current_assets = bal.total_current_assets
        current_liabilities = bal.total_current_liabilities
        if current_assets is None or current_liabilities is None:
            return
        if current_liabilities > 0 and current_assets >= 0:
            current_ratio = self._bounded("current_ratio", current_assets / current_liabilities, lambda v: 10.0)
            sums["current_ratio"].add(current_ratio)
            quick_assets = current_assets - (bal.inventory or 0)
            sums["quick_ratio"].add(
                self._bounded("quick_ratio", quick_assets / current_liabilities, lambda v: min(current_ratio, 10.0))
            )
            cash = first_number(bal.cash)
            if cash is not None:
                liquid = cash + (bal.short_term_investments or 0)
                sums["cash_ratio"].add(self._bounded("cash_ratio", liquid / current_liabilities, lambda v: 10.0))
        if has_assets:
            sums["working_capital_ratio"].add(
                self._bounded(
                    "working_capital_ratio",
                    (current_assets - current_liabilities) / bal.total_assets,
                    lambda v: clamp(v, -1.0, 1.0),
                )
            )

    def _interest_coverage(self, inc: IncomeStatement) -> float | None:
        if inc.interest_expense is None or inc.interest_expense == 0:
            return None
        interest = abs(inc.interest_expense)
        if self.likely_bank:
            # Funding cost is the bank's main expense: coverage of pretax profit plus interest.
            if inc.income_before_tax is None:
                return None
            coverage = (inc.income_before_tax + interest) / interest
            return self._bounded("bank_interest_coverage", coverage, lambda v: clamp(v, -50.0, 50.0))
        operating = first_number(inc.ebit, inc.operating_income)
        if operating is None:
            return None
        return self._bounded("interest_coverage", operating / interest, lambda v: clamp(v, -1000.0, 1000.0))

    @staticmethod
    def _bounded(name: str, value: float | None, proxy: Callable[[float], float | None]) -> float | None:
        if value is None:
            return None
        low, high = SANITY_BOUNDS[name]
        if low <= value <= high:
            return value
        substitute = proxy(value)
        logger.debug(f"Implausible {name}={value:.4g}; substituting {substitute}")
        return substitute


def _clamp_unit(value: float) -> float:
    return clamp(value, -1.0, 1.0)


def extract_average_metrics(
    income: Sequence[IncomeStatement],
    balance: Sequence[BalanceSheet],
    cashflow: Sequence[CashflowStatement],
    likely_bank: bool = False,
) -> AverageMetrics:
    return MetricExtractor(likely_bank=likely_bank).extract(income, balance, cashflow)
