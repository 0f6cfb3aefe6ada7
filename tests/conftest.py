"""Builders for statement payloads and engine contexts shared by the test modules."""
import pytest

from fundscore.schemas.analysis import (
    AverageMetrics,
    DataValidation,
    METRIC_FIELDS,
    SectorContext,
    SizeContext,
)
from fundscore.analysis.sector_benchmarks import get_sector_benchmarks
from fundscore.analysis.rules import RuleContext


# ============================================================
# STATEMENT PAYLOADS (camelCase, most recent period first)
# ============================================================

DEFAULT_COMPANY = {
    "ticker": "WEGE3",
    "name": "Test Industrial SA",
    "sector": "Industrials",
    "industry": "Machinery",
    "marketCap": 50_000_000_000,
}


def make_period(
    revenue: float,
    net_margin: float = 0.12,
    roe: float = 0.22,
    debt_to_equity: float = 0.4,
    current_ratio: float = 2.1,
    operating_margin: float = 0.20,
    ocf_margin: float = 0.18,
    capex_ratio: float = 0.05,
    interest_ratio: float = 0.01,
    other_ratio: float = -0.01,
    inventory_share: float = 0.05,
) -> tuple[dict, dict, dict]:
    """One fiscal period as (income, balance, cashflow) rows with internally consistent figures."""
    net_income = revenue * net_margin
    equity = net_income / roe if net_income > 0 and roe > 0 else revenue * 0.5
    liabilities = equity * debt_to_equity
    assets = equity + liabilities
    current_assets = assets * 0.4
    operating_income = revenue * operating_margin
    pretax = operating_income + revenue * other_ratio

    income = {
        "totalRevenue": revenue,
        "costOfRevenue": revenue * 0.6,
        "grossProfit": revenue * 0.4,
        "totalOperatingExpenses": revenue * 0.4 - operating_income,
        "operatingIncome": operating_income,
        "ebit": operating_income,
        "interestExpense": -revenue * interest_ratio,
        "totalOtherIncomeExpenseNet": revenue * other_ratio,
        "incomeBeforeTax": pretax,
        "incomeTaxExpense": pretax - net_income,
        "netIncome": net_income,
    }
    balance = {
        "totalAssets": assets,
        "totalLiab": liabilities,
        "totalStockholderEquity": equity,
        "totalCurrentAssets": current_assets,
        "totalCurrentLiabilities": current_assets / current_ratio,
        "cash": assets * 0.1,
        "netReceivables": assets * 0.08,
        "inventory": assets * inventory_share,
    }
    cashflow = {
        "operatingCashFlow": revenue * ocf_margin,
        "capitalExpenditures": -revenue * capex_ratio,
    }
    return income, balance, cashflow


def make_statements(
    years: int = 5,
    base_revenue: float = 10_000.0,
    growth: float = 0.08,
    company: dict | None = None,
    fallback_data: dict | None = None,
    **period_kwargs,
) -> dict:
    """Multi-year payload; revenue compounds at `growth` from the oldest year."""
    periods = [make_period(base_revenue * (1 + growth) ** year, **period_kwargs) for year in range(years)]
    periods.reverse()
    payload = {
        "incomeStatements": [p[0] for p in periods],
        "balanceSheets": [p[1] for p in periods],
        "cashflowStatements": [p[2] for p in periods],
        "company": dict(DEFAULT_COMPANY) if company is None else company,
    }
    if fallback_data is not None:
        payload["fallbackData"] = fallback_data
    return payload


def make_strategy(score: float = 80, eligible: bool = True, upside: float | None = None, fair_value: float | None = None) -> dict:
    return {"isEligible": eligible, "score": score, "upside": upside, "fairValue": fair_value, "reasoning": "test"}


def make_strategies(score: float = 80, **overrides) -> dict:
    names = ("graham", "dividendYield", "lowPE", "magicFormula", "fcd", "gordon", "fundamentalist", "barsi")
    strategies = {name: make_strategy(score) for name in names}
    strategies.update(overrides)
    return strategies


# ============================================================
# RULE CONTEXTS
# ============================================================

def measured_metrics(**values) -> AverageMetrics:
    """AverageMetrics with every field marked as measured unless listed in `unavailable`."""
    unavailable = set(values.pop("unavailable", ()))
    sources = {name: ("default" if name in unavailable else "measured") for name in METRIC_FIELDS}
    return AverageMetrics(**values, sources=sources)


def make_context(
    metrics: AverageMetrics | None = None,
    sector: SectorContext | None = None,
    size: SizeContext | None = None,
    validation: DataValidation | None = None,
    foreign: bool = False,
    **kwargs,
) -> RuleContext:
    sector = sector or SectorContext()
    size = size or SizeContext(category="MEDIUM", volatility_tolerance="MEDIUM", growth_expectation="MEDIUM")
    validation = validation or DataValidation(
        has_valid_current_assets=True,
        has_valid_current_liabilities=True,
        has_valid_inventory=True,
        has_valid_receivables=True,
    )
    return RuleContext(
        metrics=metrics or measured_metrics(),
        benchmarks=get_sector_benchmarks(sector, size, foreign_listed=foreign),
        sector=sector,
        size=size,
        validation=validation,
        **kwargs,
    )


FINANCIAL_SECTOR = SectorContext(
    type="FINANCIAL", volatility_tolerance="MEDIUM", margin_expectation="MEDIUM", cash_intensive=True
)


@pytest.fixture
def strong_statements() -> dict:
    return make_statements()
