"""Shared inputs and result builder for the statement rule families."""
from pydantic import BaseModel, ConfigDict

from fundscore.schemas.analysis import (
    AnalysisResult,
    AverageMetrics,
    DataValidation,
    SectorBenchmarks,
    SectorContext,
    SizeContext,
)
from fundscore.schemas.statements import IncomeStatement

SECTOR_LABELS = {
    "FINANCIAL": "financial",
    "TECH": "technology",
    "CYCLICAL": "cyclical",
    "DEFENSIVE": "defensive",
    "UTILITY": "utility",
    "COMMODITY": "commodity",
    "OTHER": "its",
}


class RuleContext(BaseModel):
    """Everything a rule family may read. Rules never modify it."""

    model_config = ConfigDict(frozen=True)

    metrics: AverageMetrics
    benchmarks: SectorBenchmarks
    sector: SectorContext
    size: SizeContext
    validation: DataValidation
    income_statements: tuple[IncomeStatement, ...] = ()
    is_holding: bool = False
    likely_bank: bool = False
    fallback_roe: float | None = None

    @property
    def is_financial(self) -> bool:
        return self.sector.type == "FINANCIAL" or self.validation.is_bank_or_financial

    @property
    def sector_label(self) -> str:
        return SECTOR_LABELS.get(self.sector.type, "its")


class Findings(BaseModel):
    """Mutable collector local to one rule call; frozen into an AnalysisResult at the end."""

    adjustment: int = 0
    red_flags: list[str] = []
    positive_signals: list[str] = []
    contextual_factors: list[str] = []

    def positive(self, message: str, points: int = 0):
        self.adjustment += points
        self.positive_signals.append(message)

    def flag(self, message: str, points: int):
        self.adjustment += points
        self.red_flags.append(message)

    def note(self, message: str, points: int = 0):
        self.adjustment += points
        self.contextual_factors.append(message)

    def result(self) -> AnalysisResult:
        return AnalysisResult(
            score_adjustment=self.adjustment,
            red_flags=list(self.red_flags),
            positive_signals=list(self.positive_signals),
            contextual_factors=list(self.contextual_factors),
        )


def pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def times(value: float) -> str:
    return f"{value:.2f}x"
