"""
Overall score: blends valuation strategies with the statement health score.

final = round(sum(score_i * weight_i) / sum(weight_i)) over the included contributions,
then flat post-hoc penalties (net debt, net margin, statement risk, deterioration flag)
and the grade mapping.

Weight tables:
- domestic vs foreign-listed (BDR) companies
- with a sentiment sub-score every weight is scaled by 0.9 and sentiment takes 0.10
- dividend strategies (yield, Gordon, Barsi) only count for companies with EPS > 0
  and payout > 30%; otherwise their weight is spread over graham, low P/E, magic
  formula, fundamentalist and statements in proportion to their base weights

Graham, DCF and Barsi scores are cut progressively when the upside to fair value
is below 20%, and the cut score is what enters the weighted sum.
"""
import logging
from collections.abc import Mapping
from datetime import date

from fundscore.analysis.company_context import is_foreign_listed
from fundscore.analysis.grading import clamp, grade_score
from fundscore.analysis.statements_engine import analyze_financial_statements
from fundscore.schemas.analysis import StatementsAnalysis
from fundscore.schemas.overall_score import (
    FinancialData,
    OverallScore,
    OverallScoreInput,
    ScoreContribution,
    StrategyAnalysis,
)

logger = logging.getLogger(__name__)

DOMESTIC_WEIGHTS: dict[str, float] = {
    "graham": 0.08,
    "dividend_yield": 0.08,
    "low_pe": 0.15,
    "magic_formula": 0.13,
    "fcd": 0.15,
    "gordon": 0.01,
    "fundamentalist": 0.10,
    "barsi": 0.05,
    "statements": 0.25,
}

FOREIGN_WEIGHTS: dict[str, float] = {
    "graham": 0.10,
    "dividend_yield": 0.04,
    "low_pe": 0.15,
    "magic_formula": 0.18,
    "fcd": 0.18,
    "gordon": 0.01,
    "fundamentalist": 0.14,
    "barsi": 0.0,
    "statements": 0.20,
}

SENTIMENT_WEIGHT = 0.10
SENTIMENT_SCALE = 1 - SENTIMENT_WEIGHT

DIVIDEND_STRATEGIES = ("dividend_yield", "gordon", "barsi")
REDISTRIBUTION_TARGETS = ("graham", "low_pe", "magic_formula", "fundamentalist", "statements")
PRICE_PENALIZED_STRATEGIES = ("graham", "fcd", "barsi")
MIN_DIVIDEND_PAYOUT = 0.30

# (upside below, score multiplier)
UPSIDE_PENALTY_TIERS: list[tuple[float, float]] = [(5, 0.50), (10, 0.75), (15, 0.90), (20, 0.95)]

# (net debt / equity above, penalty)
DOMESTIC_DEBT_PENALTIES: list[tuple[float, int]] = [(3.0, 12), (2.0, 8), (1.5, 4), (1.0, 1)]
FOREIGN_DEBT_PENALTIES: list[tuple[float, int]] = [(4.0, 8), (3.0, 5), (2.0, 2), (1.5, 1)]
# (net margin below, penalty)
DOMESTIC_MARGIN_PENALTIES: list[tuple[float, int]] = [(-0.10, 18), (0.0, 12), (0.02, 6), (0.05, 1)]
FOREIGN_MARGIN_PENALTIES: list[tuple[float, int]] = [(-0.10, 12), (0.0, 8), (0.02, 3), (0.04, 1)]

# risk level -> (statement score cap before weighting, post-hoc penalty, final cap)
RISK_ADJUSTMENTS: dict[str, tuple[int, int, int]] = {
    "CRITICAL": (20, 15, 50),
    "HIGH": (40, 8, 70),
}
ACTIVE_FLAG_PENALTY = 20

MAX_STRENGTHS = 5
MAX_WEAKNESSES = 5
STATEMENT_ITEMS_SHOWN = 3

STRATEGY_LABELS: dict[str, str] = {
    "graham": "Graham",
    "dividend_yield": "Dividend Yield",
    "low_pe": "Low P/E",
    "magic_formula": "Magic Formula",
    "fcd": "Discounted Cash Flow",
    "gordon": "Gordon",
    "fundamentalist": "Fundamentalist",
    "barsi": "Barsi",
    "statements": "Financial Statements",
    "sentiment": "Market Sentiment",
}

# name -> (strength when eligible and score >= 80, weakness when score < 60)
STRATEGY_VERDICTS: dict[str, tuple[str, str]] = {
    "graham": ("Solid fundamentals (Graham)", "Weak fundamentals"),
    "dividend_yield": ("Sustainable dividends", "Dividends at risk"),
    "low_pe": ("Good value opportunity", "Possible value trap"),
    "magic_formula": ("Excellent operating quality", "Questionable operating quality"),
    "gordon": ("Excellent for passive income (Gordon)", "Inconsistent dividends"),
    "fundamentalist": ("Strong fundamentalist profile", "Fundamentalist criteria not met"),
    "barsi": ("Perennial dividend payer (Barsi)", "Does not fit the perennial dividend profile"),
}

DIVIDEND_EXCLUSION_NOTE = "Dividend strategies not applicable: no positive earnings with payout above 30%"


def upside_multiplier(upside: float | None) -> float:
    if upside is None:
        return 1.0
    for limit, multiplier in UPSIDE_PENALTY_TIERS:
        if upside < limit:
            return multiplier
    return 1.0


def _tiered_above(value: float | None, tiers: list[tuple[float, int]]) -> int:
    if value is None:
        return 0
    for limit, penalty in tiers:
        if value > limit:
            return penalty
    return 0


def _tiered_below(value: float | None, tiers: list[tuple[float, int]]) -> int:
    if value is None:
        return 0
    for limit, penalty in tiers:
        if value < limit:
            return penalty
    return 0


def pays_sustainable_dividends(financial: FinancialData) -> bool:
    return (
        financial.eps is not None
        and financial.eps > 0
        and financial.payout is not None
        and financial.payout > MIN_DIVIDEND_PAYOUT
    )


def resolve_weights(foreign_listed: bool, dividends_apply: bool, has_sentiment: bool) -> dict[str, float]:
    """Active weight per contribution; sums to 1.0."""
    weights = dict(FOREIGN_WEIGHTS if foreign_listed else DOMESTIC_WEIGHTS)

    if not dividends_apply:
        unused = sum(weights[name] for name in DIVIDEND_STRATEGIES)
        base = sum(weights[name] for name in REDISTRIBUTION_TARGETS)
        factor = 1 + unused / base
        for name in REDISTRIBUTION_TARGETS:
            weights[name] *= factor
        for name in DIVIDEND_STRATEGIES:
            weights[name] = 0.0

    if has_sentiment:
        weights = {name: weight * SENTIMENT_SCALE for name, weight in weights.items()}
        weights["sentiment"] = SENTIMENT_WEIGHT
    return weights


class _Notes:
    """Ordered, de-duplicated strengths and weaknesses."""

    def __init__(self):
        self.strengths: list[str] = []
        self.weaknesses: list[str] = []

    def strength(self, text: str):
        if text not in self.strengths:
            self.strengths.append(text)

    def weakness(self, text: str):
        if text not in self.weaknesses:
            self.weaknesses.append(text)


class OverallScoreAggregator:
    def calculate(self, data: OverallScoreInput, as_of: date | None = None) -> OverallScore:
        financial = data.financial_data
        strategies = data.strategies
        ticker = data.ticker
        if not ticker and data.statements_data and data.statements_data.company:
            ticker = data.statements_data.company.ticker

        foreign = is_foreign_listed(ticker)
        has_sentiment = financial.sentiment_score is not None
        dividends_apply = pays_sustainable_dividends(financial)
        weights = resolve_weights(foreign, dividends_apply, has_sentiment)
        notes = _Notes()

        contributions: list[ScoreContribution] = []
        total = 0.0
        total_weight = 0.0

        for name in STRATEGY_LABELS:
            if name in ("statements", "sentiment"):
                continue
            strategy: StrategyAnalysis | None = getattr(strategies, name)
            if strategy is None:
                continue
            if name in DIVIDEND_STRATEGIES and not dividends_apply:
                contributions.append(ScoreContribution(
                    name=STRATEGY_LABELS[name],
                    score=strategy.score,
                    eligible=False,
                    description="Excluded: the company does not pay sustainable dividends",
                ))
                continue

            used = strategy.score
            description = f"{STRATEGY_LABELS[name]} score {strategy.score:.0f}"
            if name in PRICE_PENALIZED_STRATEGIES:
                multiplier = upside_multiplier(strategy.upside)
                if multiplier < 1:
                    used = strategy.score * multiplier
                    description += f", cut {1 - multiplier:.0%} for {strategy.upside:.1f}% upside"

            weight = weights[name]
            total += used * weight
            total_weight += weight
            contributions.append(ScoreContribution(
                name=STRATEGY_LABELS[name],
                score=round(used, 2),
                weight=round(weight, 4),
                points=round(used * weight, 2),
                eligible=strategy.is_eligible,
                description=description,
            ))
            self._strategy_notes(name, strategy, notes)

        if not dividends_apply:
            notes.weakness(DIVIDEND_EXCLUSION_NOTE)

        statements: StatementsAnalysis | None = None
        if data.statements_data is not None:
            statements = analyze_financial_statements(data.statements_data, as_of=as_of)
            used = statements.score
            if statements.risk_level in RISK_ADJUSTMENTS:
                used = min(used, RISK_ADJUSTMENTS[statements.risk_level][0])
            weight = weights["statements"]
            total += used * weight
            total_weight += weight
            contributions.append(ScoreContribution(
                name=STRATEGY_LABELS["statements"],
                score=used,
                weight=round(weight, 4),
                points=round(used * weight, 2),
                eligible=True,
                description=f"Statement health {statements.score} ({statements.risk_level} risk)",
            ))
            self._statement_notes(statements, notes)

        if has_sentiment:
            sentiment = clamp(financial.sentiment_score)
            weight = weights["sentiment"]
            total += sentiment * weight
            total_weight += weight
            contributions.append(ScoreContribution(
                name=STRATEGY_LABELS["sentiment"],
                score=sentiment,
                weight=round(weight, 4),
                points=round(sentiment * weight, 2),
                eligible=True,
                description=f"Sentiment sub-score {sentiment:.0f}",
            ))
            if sentiment >= 70:
                notes.strength("Positive market sentiment")
            elif sentiment < 40:
                notes.weakness("Negative market sentiment")

        raw_score = total / total_weight if total_weight > 0 else 0.0
        score = round(raw_score)

        self._indicator_notes(financial, notes)

        score -= _tiered_above(
            financial.net_debt_to_equity, FOREIGN_DEBT_PENALTIES if foreign else DOMESTIC_DEBT_PENALTIES
        )
        score -= _tiered_below(
            financial.net_margin, FOREIGN_MARGIN_PENALTIES if foreign else DOMESTIC_MARGIN_PENALTIES
        )
        if statements is not None and statements.risk_level in RISK_ADJUSTMENTS:
            _, penalty, cap = RISK_ADJUSTMENTS[statements.risk_level]
            score = min(score - penalty, cap)
        if data.active_flag is not None:
            score = max(0, score - ACTIVE_FLAG_PENALTY)
            reason = data.active_flag.reason or "recent filings"
            notes.weakness(f"Fundamentals deterioration flagged: {reason}")

        score = int(clamp(score))
        grade, classification, recommendation = grade_score(score)
        logger.info(
            f"Overall score {ticker or '<unknown>'}: {score} ({grade}) "
            f"raw={raw_score:.2f} foreign={foreign} dividends={dividends_apply}"
        )

        include_breakdown = bool(data.include_breakdown)
        return OverallScore(
            score=score,
            grade=grade,
            classification=classification,
            strengths=notes.strengths[:MAX_STRENGTHS],
            weaknesses=notes.weaknesses[:MAX_WEAKNESSES],
            recommendation=recommendation,
            statements_analysis=statements,
            contributions=sorted(contributions, key=lambda c: c.points, reverse=True) if include_breakdown else None,
            raw_score=raw_score if include_breakdown else None,
        )

    @staticmethod
    def _strategy_notes(name: str, strategy: StrategyAnalysis, notes: _Notes):
        if name in STRATEGY_VERDICTS:
            strong, weak = STRATEGY_VERDICTS[name]
            if strategy.is_eligible and strategy.score >= 80:
                notes.strength(strong)
            elif strategy.score < 60:
                notes.weakness(weak)

        upside = strategy.upside
        if upside is None:
            return
        if name == "graham" and upside < -20:
            notes.weakness("Price well above fair value (Graham)")
        elif name == "fcd":
            if upside > 20:
                notes.strength("High appreciation potential")
            elif upside < 10:
                notes.weakness("Little margin of safety at the current price (DCF)")
        elif name == "gordon" and upside < 0:
            notes.weakness("Price above dividend-based fair value")

    @staticmethod
    def _statement_notes(statements: StatementsAnalysis, notes: _Notes):
        if statements.risk_level == "CRITICAL":
            notes.weakness("Financial statements indicate critical risk")
        elif statements.risk_level == "HIGH":
            notes.weakness("Financial statements indicate high risk")
        elif statements.risk_level == "LOW" and statements.score >= 80:
            notes.strength("Healthy financial statements")

        if statements.company_strength == "VERY_STRONG":
            notes.strength("Very robust company financially")
        elif statements.company_strength == "STRONG":
            notes.strength("Financially robust company")
        elif statements.company_strength == "WEAK":
            notes.weakness("Financially fragile company")

        for flag in statements.red_flags[:STATEMENT_ITEMS_SHOWN]:
            notes.weakness(flag)
        for signal in statements.positive_signals[:STATEMENT_ITEMS_SHOWN]:
            notes.strength(signal)

    @staticmethod
    def _indicator_notes(financial: FinancialData, notes: _Notes):
        if financial.roe is not None:
            if financial.roe >= 0.15:
                notes.strength("High ROE")
            elif financial.roe < 0.05:
                notes.weakness("Very low ROE")
        if financial.current_ratio is not None:
            if financial.current_ratio >= 1.5:
                notes.strength("Good liquidity")
            elif financial.current_ratio < 1.0:
                notes.weakness("Low liquidity")
        if financial.net_debt_to_equity is None:
            notes.strength("Controlled debt (no net debt reported, benefit of the doubt)")
        elif financial.net_debt_to_equity <= 0.5:
            notes.strength("Controlled debt")
        elif financial.net_debt_to_equity > 2.0:
            notes.weakness("High debt")
        if financial.net_margin is not None:
            if financial.net_margin >= 0.10:
                notes.strength("Good profit margin")
            elif financial.net_margin < 0.02:
                notes.weakness("Low profit margin")


def calculate_overall_score(data: OverallScoreInput | Mapping, as_of: date | None = None) -> OverallScore:
    if not isinstance(data, OverallScoreInput):
        data = OverallScoreInput.model_validate(dict(data) if isinstance(data, Mapping) else {})
    return OverallScoreAggregator().calculate(data, as_of=as_of)
