from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from fundscore.analysis.numeric import to_number


class StatementRow(BaseModel):
    """One fiscal period of a statement. Every field is an optional number."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_number(cls, value):
        return to_number(value)


class IncomeStatement(StatementRow):
    total_revenue: float | None = None
    cost_of_revenue: float | None = None
    gross_profit: float | None = None
    total_operating_expenses: float | None = None
    operating_income: float | None = None
    ebit: float | None = None
    interest_expense: float | None = None
    interest_income: float | None = None
    net_interest_income: float | None = None
    total_other_income_expense_net: float | None = None
    income_before_tax: float | None = None
    income_tax_expense: float | None = None
    net_income: float | None = None


class BalanceSheet(StatementRow):
    total_assets: float | None = None
    total_liab: float | None = None
    total_stockholder_equity: float | None = None
    total_current_assets: float | None = None
    total_current_liabilities: float | None = None
    cash: float | None = None
    short_term_investments: float | None = None
    net_receivables: float | None = None
    inventory: float | None = None
    long_term_debt: float | None = None
    short_long_term_debt: float | None = None


class CashflowStatement(StatementRow):
    operating_cash_flow: float | None = None
    capital_expenditures: float | None = None
    free_cash_flow: float | None = None
    dividends_paid: float | None = None


class CompanyInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    ticker: str | None = None
    name: str | None = None
    sector: str | None = None
    industry: str | None = None
    market_cap: float | None = None
    is_holding: bool | None = None

    @field_validator("ticker", "name", "sector", "industry", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("market_cap", mode="before")
    @classmethod
    def _coerce_market_cap(cls, value):
        return to_number(value)

    @field_validator("is_holding", mode="before")
    @classmethod
    def _coerce_flag(cls, value):
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes", "sim")
        number = to_number(value)
        return bool(number) if number is not None else None


FallbackValue = float | list[float | None] | None


def _coerce_fallback(value) -> FallbackValue:
    if isinstance(value, (list, tuple)):
        return [to_number(item) for item in value]
    return to_number(value)


class FallbackData(BaseModel):
    """Secondary indicators (scalar or per-year series) used when a ratio cannot be computed.

    Extra keys are kept and take part in the generic fill pass when they match a metric name.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    roe: FallbackValue = None
    roa: FallbackValue = None
    net_margin: FallbackValue = None
    gross_margin: FallbackValue = None
    ebitda_margin: FallbackValue = None
    current_ratio: FallbackValue = None
    quick_ratio: FallbackValue = None
    liabilities_to_assets: FallbackValue = None
    asset_turnover: FallbackValue = None
    revenue_cagr_5y: FallbackValue = Field(default=None, alias="revenueCagr5y")
    earnings_cagr_5y: FallbackValue = Field(default=None, alias="earningsCagr5y")
    years: list[int] = []

    @field_validator(
        "roe", "roa", "net_margin", "gross_margin", "ebitda_margin", "current_ratio",
        "quick_ratio", "liabilities_to_assets", "asset_turnover", "revenue_cagr_5y",
        "earnings_cagr_5y", mode="before",
    )
    @classmethod
    def _coerce_values(cls, value):
        return _coerce_fallback(value)

    @field_validator("years", mode="before")
    @classmethod
    def _coerce_years(cls, value):
        if not isinstance(value, (list, tuple)):
            return []
        years = []
        for item in value:
            number = to_number(item)
            years.append(int(number) if number is not None else 0)
        return years

    def raw_value(self, name: str) -> FallbackValue:
        """Field or extra value by snake_case name, coerced the same way as declared fields."""
        if name in type(self).model_fields:
            return getattr(self, name)
        extras = self.model_extra or {}
        if name in extras:
            return _coerce_fallback(extras[name])
        camel = to_camel(name)
        if camel in extras:
            return _coerce_fallback(extras[camel])
        return None


def _rows(value) -> list:
    """Keep only mapping-like rows; anything else becomes an empty period."""
    if not isinstance(value, (list, tuple)):
        return []
    return [row if isinstance(row, (Mapping, BaseModel)) else {} for row in value]


class FinancialStatementsInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    income_statements: list[IncomeStatement] = []
    balance_sheets: list[BalanceSheet] = []
    cashflow_statements: list[CashflowStatement] = []
    company: CompanyInfo | None = None
    fallback_data: FallbackData | None = None

    @field_validator("income_statements", "balance_sheets", "cashflow_statements", mode="before")
    @classmethod
    def _coerce_rows(cls, value):
        return _rows(value)

    @field_validator("company", "fallback_data", mode="before")
    @classmethod
    def _coerce_optional_mapping(cls, value):
        if isinstance(value, (Mapping, BaseModel)):
            return value
        return None
