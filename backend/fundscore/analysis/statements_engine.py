"""
Financial statement health scoring.

Pipeline:
  1. validate balance-sheet families and classify the company (sector, size, listing, holding, bank)
  2. extract period-averaged metrics, then fill gaps from fallback indicators
  3. resolve benchmarks (listing -> sector -> size)
  4. run the seven rule families in a fixed order; that order decides which
     flags and signals survive truncation
  5. reconcile contradictions, then score:
     - per family clamp(100 + adjustment, 0, 100), weighted (weights sum to 1.0)
     - alert-ratio + contradiction penalty, applied once
     - direct income-composition penalty
     - combined-pattern caps
  6. classify risk level and company strength

The engine is pure: no clock reads, no I/O, inputs are never modified.
"""
import logging
from collections.abc import Callable, Mapping
from datetime import date

from fundscore.analysis.company_context import (
    DEFAULT_SECTOR_CONTEXT,
    get_sector_context,
    get_size_context,
    is_foreign_listed,
    is_holding_company,
    is_likely_bank_ticker,
)
from fundscore.analysis.company_strength import classify_company_strength
from fundscore.analysis.data_validator import validate_statements
from fundscore.analysis.fallback_resolver import apply_fallbacks, fallback_roe
from fundscore.analysis.grading import clamp
from fundscore.analysis.metric_extractor import extract_average_metrics
from fundscore.analysis.reconciliation import (
    FALLING_PROFIT_TRIGGERS,
    HIGH_DEBT_TRIGGERS,
    LOW_MARGIN_TRIGGERS,
    has_flag,
    reconcile_signals,
)
from fundscore.analysis.rules import (
    RuleContext,
    evaluate_cash_flow,
    evaluate_efficiency,
    evaluate_growth,
    evaluate_income_composition,
    evaluate_liquidity,
    evaluate_profitability,
    evaluate_stability,
    recomputed_operating_margin,
)
from fundscore.analysis.sector_benchmarks import get_sector_benchmarks
from fundscore.schemas.analysis import AnalysisResult, RiskLevel, StatementsAnalysis
from fundscore.schemas.statements import FinancialStatementsInput

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA_MESSAGE = "Insufficient historical data for a full statement analysis"
LIMITED_HISTORY_NOTE = "Limited history: analysis based on partial data"
MIN_PERIODS = 2

RULE_FAMILIES: list[tuple[str, float, Callable[[RuleContext], AnalysisResult]]] = [
    ("profitability", 0.25, evaluate_profitability),
    ("liquidity", 0.18, evaluate_liquidity),
    ("efficiency", 0.18, evaluate_efficiency),
    ("stability", 0.15, evaluate_stability),
    ("cash_flow", 0.10, evaluate_cash_flow),
    ("growth", 0.04, evaluate_growth),
    ("income_composition", 0.10, evaluate_income_composition),
]

# (min alert ratio, min red flags, penalty); first match only.
ALERT_RATIO_TIERS: list[tuple[float, int, int]] = [
    (0.85, 6, 30),
    (0.75, 5, 25),
    (0.65, 4, 20),
    (0.50, 3, 15),
]
# (min removed signals, penalty)
CONTRADICTION_TIERS: list[tuple[int, int]] = [(5, 20), (3, 15), (1, 10)]
# (max raw income-composition adjustment, penalty)
INCOME_COMPOSITION_TIERS: list[tuple[int, int]] = [(-300, 25), (-50, 15)]

LOW_PROFITABILITY_TRIGGERS = ("low roe", "low return on assets", "low net margin", "negative net margin")
UNSTABLE_TRIGGERS = ("unstable margins", "volatile revenue", "revenue variability")

CRITICAL_FLAG_MARKERS = (
    "recurring losses",
    "negative net margin",
    "negative operating cash flow",
    "extreme leverage",
    "high leverage",
    "negative working capital",
    "non-operating results",
    "low interest coverage",
    "falling profits",
)

MAX_RED_FLAGS = 8
MAX_POSITIVE_SIGNALS = 6
MAX_CONTEXTUAL_FACTORS = 3


def insufficient_data_analysis() -> StatementsAnalysis:
    return StatementsAnalysis(
        score=50,
        red_flags=[INSUFFICIENT_DATA_MESSAGE],
        positive_signals=[],
        risk_level="MEDIUM",
        company_strength="MODERATE",
        contextual_factors=[LIMITED_HISTORY_NOTE],
    )


def _coerce_input(data) -> FinancialStatementsInput:
    if isinstance(data, FinancialStatementsInput):
        return data
    if isinstance(data, Mapping):
        return FinancialStatementsInput.model_validate(dict(data))
    return FinancialStatementsInput()


def alert_ratio_penalty(red_flag_count: int, positive_signal_count: int) -> int:
    total = red_flag_count + positive_signal_count
    if total == 0:
        return 0
    ratio = red_flag_count / total
    for min_ratio, min_flags, penalty in ALERT_RATIO_TIERS:
        if ratio >= min_ratio and red_flag_count >= min_flags:
            return penalty
    return 0


def contradiction_penalty(removed_count: int) -> int:
    for min_removed, penalty in CONTRADICTION_TIERS:
        if removed_count >= min_removed:
            return penalty
    return 0


def income_composition_penalty(raw_adjustment: int) -> int:
    for max_adjustment, penalty in INCOME_COMPOSITION_TIERS:
        if raw_adjustment <= max_adjustment:
            return penalty
    return 0


def apply_pattern_caps(score: int, red_flags: list[str]) -> int:
    """Lower the score to the cap of each matching pattern, in sequence."""
    falling_profits = has_flag(red_flags, FALLING_PROFIT_TRIGGERS)
    caps: list[tuple[bool, int]] = [
        (falling_profits and has_flag(red_flags, HIGH_DEBT_TRIGGERS)
         and has_flag(red_flags, LOW_PROFITABILITY_TRIGGERS), 40),
        (falling_profits and has_flag(red_flags, LOW_MARGIN_TRIGGERS)
         and has_flag(red_flags, UNSTABLE_TRIGGERS), 45),
        (len(red_flags) >= 6, 50),
        (len(red_flags) >= 8, 35),
    ]
    for applies, cap in caps:
        if applies and score > cap:
            score = cap
    return score


def classify_risk(score: int, red_flags: list[str]) -> RiskLevel:
    critical = sum(1 for flag in red_flags if any(marker in flag.lower() for marker in CRITICAL_FLAG_MARKERS))
    if score < 30 or critical >= 3:
        return "CRITICAL"
    if score < 50 or critical >= 2:
        return "HIGH"
    if score < 70 or len(red_flags) >= 4:
        return "MEDIUM"
    return "LOW"


def score_rule_families(ctx: RuleContext) -> StatementsAnalysis:
    """Run the rule families against a prepared context and normalize the result."""
    red_flags: list[str] = []
    positive_signals: list[str] = []
    contextual_factors: list[str] = []
    weighted = 0.0
    income_composition_raw = 0

    for name, weight, evaluate in RULE_FAMILIES:
        result = evaluate(ctx)
        red_flags.extend(result.red_flags)
        positive_signals.extend(result.positive_signals)
        contextual_factors.extend(result.contextual_factors)
        weighted += clamp(100 + result.score_adjustment, 0, 100) * weight
        if name == "income_composition":
            income_composition_raw = result.score_adjustment

    reconciled = reconcile_signals(red_flags, positive_signals, ctx.metrics, recomputed_operating_margin(ctx))

    score = round(clamp(weighted, 0, 100))
    penalty = alert_ratio_penalty(len(red_flags), len(reconciled.positive_signals))
    penalty += contradiction_penalty(reconciled.removed_count)
    score = max(0, score - penalty)
    score = max(0, score - income_composition_penalty(income_composition_raw))
    score = apply_pattern_caps(score, red_flags)

    risk_level = classify_risk(score, red_flags)
    strength = classify_company_strength(ctx.metrics, ctx.benchmarks, ctx.validation, financial=ctx.is_financial)

    return StatementsAnalysis(
        score=score,
        red_flags=red_flags[:MAX_RED_FLAGS],
        positive_signals=reconciled.positive_signals[:MAX_POSITIVE_SIGNALS],
        risk_level=risk_level,
        company_strength=strength,
        contextual_factors=contextual_factors[:MAX_CONTEXTUAL_FACTORS],
    )


def analyze_financial_statements(
    data: FinancialStatementsInput | Mapping,
    as_of: date | None = None,
) -> StatementsAnalysis:
    """Score a company's financial health from its multi-period statements.

    `as_of` decides which fallback years count as completed fiscal years; with
    None every year counts.
    """
    statements = _coerce_input(data)
    income = statements.income_statements
    balance = statements.balance_sheets
    cashflow = statements.cashflow_statements
    periods = min(len(income), len(balance), len(cashflow))
    if periods < MIN_PERIODS:
        logger.debug(f"Insufficient statement history ({periods} complete periods)")
        return insufficient_data_analysis()

    company = statements.company
    ticker = company.ticker if company else None
    sector = get_sector_context(company.sector, company.industry) if company else DEFAULT_SECTOR_CONTEXT
    size = get_size_context(company.market_cap if company else None)
    foreign = is_foreign_listed(ticker)
    holding = is_holding_company(company)

    validation = validate_statements(balance, sector, company)
    likely_bank = is_likely_bank_ticker(ticker) or validation.is_bank_or_financial

    metrics = extract_average_metrics(income, balance, cashflow, likely_bank=likely_bank)
    metrics = apply_fallbacks(metrics, statements.fallback_data, is_holding=holding, as_of=as_of)
    benchmarks = get_sector_benchmarks(sector, size, foreign_listed=foreign)

    ctx = RuleContext(
        metrics=metrics,
        benchmarks=benchmarks,
        sector=sector,
        size=size,
        validation=validation,
        income_statements=tuple(income[:periods]),
        is_holding=holding,
        likely_bank=likely_bank,
        fallback_roe=fallback_roe(statements.fallback_data, as_of),
    )
    analysis = score_rule_families(ctx)
    logger.info(
        f"Statement analysis {ticker or '<unknown>'}: score={analysis.score} "
        f"risk={analysis.risk_level} strength={analysis.company_strength}"
    )
    return analysis
