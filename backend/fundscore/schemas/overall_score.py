from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from fundscore.analysis.numeric import to_number
from fundscore.schemas.analysis import StatementsAnalysis
from fundscore.schemas.statements import FinancialStatementsInput

TRUTHY_STRINGS = {"true", "1", "yes", "y", "sim", "s"}


def to_flag(value) -> bool:
    """Loose boolean: null and unknown text are False, numbers follow their sign."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    number = to_number(value)
    return bool(number)


def _mapping_or(value, default):
    return value if isinstance(value, (Mapping, BaseModel)) else default


class StrategyAnalysis(BaseModel):
    """Result of one external valuation strategy. Upside is in percent (15 = 15%)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    is_eligible: bool = False
    score: float = 0
    fair_value: float | None = None
    upside: float | None = None
    reasoning: str = ""

    @field_validator("is_eligible", mode="before")
    @classmethod
    def _coerce_eligible(cls, value):
        return to_flag(value)

    @field_validator("score", mode="before")
    @classmethod
    def _coerce_score(cls, value):
        number = to_number(value)
        return 0.0 if number is None else max(0.0, min(100.0, number))

    @field_validator("fair_value", "upside", mode="before")
    @classmethod
    def _coerce_optional(cls, value):
        return to_number(value)

    @field_validator("reasoning", mode="before")
    @classmethod
    def _coerce_reasoning(cls, value):
        return "" if value is None else str(value)


class StrategySet(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    graham: StrategyAnalysis | None = None
    dividend_yield: StrategyAnalysis | None = None
    low_pe: StrategyAnalysis | None = Field(default=None, alias="lowPE")
    magic_formula: StrategyAnalysis | None = None
    fcd: StrategyAnalysis | None = None
    gordon: StrategyAnalysis | None = None
    fundamentalist: StrategyAnalysis | None = None
    barsi: StrategyAnalysis | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_strategy(cls, value):
        return _mapping_or(value, None)


class FinancialData(BaseModel):
    """Point-in-time indicators. Ratios as decimals (0.15 = 15%)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    roe: float | None = None
    current_ratio: float | None = None
    net_debt_to_equity: float | None = None
    net_margin: float | None = None
    eps: float | None = None
    payout: float | None = None
    sentiment_score: float | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_number(cls, value):
        return to_number(value)


class ActiveFlag(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    reason: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return None if value is None else str(value)

    @field_validator("reason", mode="before")
    @classmethod
    def _coerce_reason(cls, value):
        return "" if value is None else str(value)


class OverallScoreInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    strategies: StrategySet = StrategySet()
    financial_data: FinancialData = FinancialData()
    current_price: float | None = None
    statements_data: FinancialStatementsInput | None = None
    include_breakdown: bool | None = None
    active_flag: ActiveFlag | None = None
    ticker: str | None = None

    @field_validator("current_price", mode="before")
    @classmethod
    def _coerce_price(cls, value):
        return to_number(value)

    @field_validator("strategies", "financial_data", mode="before")
    @classmethod
    def _coerce_block(cls, value):
        return _mapping_or(value, {})

    @field_validator("statements_data", mode="before")
    @classmethod
    def _coerce_statements(cls, value):
        return _mapping_or(value, None)

    @field_validator("active_flag", mode="before")
    @classmethod
    def _coerce_active_flag(cls, value):
        # Any truthy non-object raises the flag without a reason.
        if value is None or isinstance(value, (Mapping, BaseModel)):
            return value
        return {} if to_flag(value) else None

    @field_validator("include_breakdown", mode="before")
    @classmethod
    def _coerce_breakdown(cls, value):
        return None if value is None else to_flag(value)

    @field_validator("ticker", mode="before")
    @classmethod
    def _coerce_ticker(cls, value):
        return value if isinstance(value, str) else None


class ScoreContribution(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    score: float = 0  # score entering the weighted sum, after price penalties
    weight: float = 0
    points: float = 0
    eligible: bool = False
    description: str = ""


class OverallScore(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    score: int = 0
    grade: str = "F"
    classification: str = "Very Weak"
    strengths: list[str] = []
    weaknesses: list[str] = []
    recommendation: str = "STRONG SELL"  # STRONG BUY, BUY, HOLD, SELL, STRONG SELL
    statements_analysis: StatementsAnalysis | None = None
    contributions: list[ScoreContribution] | None = None
    raw_score: float | None = None
