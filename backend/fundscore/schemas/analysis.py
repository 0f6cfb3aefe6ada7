from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

SectorType = Literal["FINANCIAL", "TECH", "CYCLICAL", "DEFENSIVE", "UTILITY", "COMMODITY", "OTHER"]
Level = Literal["LOW", "MEDIUM", "HIGH"]
SizeCategory = Literal["MICRO", "SMALL", "MEDIUM", "LARGE", "MEGA"]
RiskLevel = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
CompanyStrength = Literal["WEAK", "MODERATE", "STRONG", "VERY_STRONG"]
MetricSource = Literal["measured", "fallback", "default"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SectorContext(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    type: SectorType = "OTHER"
    volatility_tolerance: Level = "MEDIUM"
    margin_expectation: Level = "MEDIUM"
    cash_intensive: bool = False


class SizeContext(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    category: SizeCategory = "SMALL"
    volatility_tolerance: Level = "HIGH"
    growth_expectation: Level = "MEDIUM"


class SectorBenchmarks(_CamelModel):
    """Rule thresholds for one company; ratios as decimals (0.15 = 15%)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    min_roe: float
    good_roe: float
    excellent_roe: float
    min_roa: float
    good_roa: float
    min_net_margin: float
    good_net_margin: float
    min_current_ratio: float
    good_current_ratio: float
    min_quick_ratio: float
    good_debt_to_equity: float
    max_debt_to_equity: float
    min_interest_coverage: float
    good_interest_coverage: float
    min_asset_turnover: float
    good_asset_turnover: float
    min_revenue_growth: float
    good_revenue_growth: float


class DataValidation(_CamelModel):
    """Which balance-sheet families can be trusted over the most recent periods."""

    has_valid_current_assets: bool = False
    has_valid_current_liabilities: bool = False
    has_valid_inventory: bool = False
    has_valid_receivables: bool = False
    is_service_company: bool = False
    is_bank_or_financial: bool = False

    @property
    def has_valid_liquidity(self) -> bool:
        return self.has_valid_current_assets and self.has_valid_current_liabilities


class AverageMetrics(_CamelModel):
    """Period-averaged ratios. Defaults are the neutral values used when nothing can be computed."""

    roe: float = 0
    roa: float = 0
    gross_margin: float = 0
    operating_margin: float = 0
    net_margin: float = 0
    current_ratio: float = 1
    quick_ratio: float = 1
    cash_ratio: float = 0.2
    working_capital_ratio: float = 0
    asset_turnover: float = 0.5
    receivables_turnover: float = 6
    inventory_turnover: float = 6
    debt_to_assets: float = 0.5
    debt_to_equity: float = 1
    interest_coverage: float = 5
    revenue_growth: float = 0
    net_income_growth: float = 0
    operating_cash_flow_margin: float = 0
    free_cash_flow_margin: float = 0
    cash_conversion_ratio: float = 1
    revenue_stability: float = 0.5
    margin_stability: float = 0.5
    cash_flow_stability: float = 0.5
    valid_periods: int = 0
    sources: dict[str, MetricSource] = {}

    def is_available(self, name: str) -> bool:
        return self.sources.get(name, "default") != "default"


METRIC_FIELDS: tuple[str, ...] = tuple(
    name for name in AverageMetrics.model_fields if name not in ("valid_periods", "sources")
)


class AnalysisResult(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    score_adjustment: int = 0
    red_flags: list[str] = []
    positive_signals: list[str] = []
    contextual_factors: list[str] = []


class StatementsAnalysis(_CamelModel):
    score: int = 50
    red_flags: list[str] = []
    positive_signals: list[str] = []
    risk_level: RiskLevel = "MEDIUM"
    company_strength: CompanyStrength = "MODERATE"
    contextual_factors: list[str] = []
