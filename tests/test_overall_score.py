"""Tests for the overall score aggregator."""
from itertools import product

import pytest

from fundscore.analysis.grading import score_to_grade, score_to_signal
from fundscore.analysis.overall_score import (
    DIVIDEND_EXCLUSION_NOTE,
    DIVIDEND_STRATEGIES,
    OverallScoreAggregator,
    calculate_overall_score,
    resolve_weights,
    upside_multiplier,
)
from fundscore.schemas.overall_score import OverallScoreInput

from conftest import make_statements, make_strategies, make_strategy

PAYS_DIVIDENDS = {"eps": 2.5, "payout": 0.5}


def _score(financial: dict | None = None, **fields):
    payload = {"strategies": make_strategies(), "financialData": dict(PAYS_DIVIDENDS)}
    if financial:
        payload["financialData"].update(financial)
    payload.update(fields)
    return calculate_overall_score(payload)


# ============================================================
# WEIGHTS
# ============================================================

@pytest.mark.parametrize("foreign,dividends,sentiment", list(product([False, True], repeat=3)))
def test_weights_sum_to_one(foreign, dividends, sentiment):
    assert sum(resolve_weights(foreign, dividends, sentiment).values()) == pytest.approx(1.0)


def test_dividend_weight_redistributed():
    weights = resolve_weights(False, False, False)
    assert all(weights[name] == 0 for name in DIVIDEND_STRATEGIES)
    assert weights["fcd"] == pytest.approx(0.15)
    assert weights["statements"] == pytest.approx(0.25 * (1 + 0.14 / 0.71))


def test_sentiment_takes_ten_percent():
    weights = resolve_weights(False, True, True)
    assert weights["sentiment"] == 0.10
    assert weights["statements"] == pytest.approx(0.25 * 0.9)


@pytest.mark.parametrize("upside,multiplier", [
    (None, 1.0), (-50, 0.5), (3, 0.5), (5, 0.75), (9.9, 0.75), (12, 0.9), (19, 0.95), (20, 1.0), (80, 1.0),
])
def test_upside_multiplier(upside, multiplier):
    assert upside_multiplier(upside) == multiplier


# ============================================================
# AGGREGATION
# ============================================================

class TestAggregation:

    def test_uniform_strategies(self):
        result = _score(include_breakdown=True)
        assert result.raw_score == pytest.approx(80)
        assert result.score == 80
        assert result.grade == score_to_grade(80)
        assert result.recommendation == score_to_signal(80)
        assert result.statements_analysis is None

    def test_only_present_strategies_count(self):
        result = calculate_overall_score({
            "strategies": {"graham": make_strategy(90), "lowPE": make_strategy(60)},
            "financialData": PAYS_DIVIDENDS,
        })
        assert result.score == round((90 * 0.08 + 60 * 0.15) / 0.23)

    def test_low_upside_cuts_graham(self):
        strategies = make_strategies(graham=make_strategy(80, upside=3))
        result = _score(strategies=strategies, include_breakdown=True)
        assert result.raw_score == pytest.approx((80 * 0.75 - 40 * 0.08) / 0.75)
        graham = next(c for c in result.contributions if c.name == "Graham")
        assert graham.score == 40
        assert "cut 50%" in graham.description

    def test_upside_does_not_cut_other_strategies(self):
        strategies = make_strategies(lowPE=make_strategy(80, upside=1))
        assert _score(strategies=strategies).score == 80

    def test_dividend_strategies_excluded_without_payout(self):
        result = calculate_overall_score({
            "strategies": make_strategies(dividendYield=make_strategy(10), gordon=make_strategy(10)),
            "financialData": {"eps": -1, "payout": 0.5},
            "includeBreakdown": True,
        })
        assert result.score == 80
        assert DIVIDEND_EXCLUSION_NOTE in result.weaknesses
        excluded = [c for c in result.contributions if c.name in ("Dividend Yield", "Gordon", "Barsi")]
        assert len(excluded) == 3
        assert all(c.weight == 0 and not c.eligible for c in excluded)

    def test_sentiment(self):
        result = _score({"sentimentScore": 50}, include_breakdown=True)
        assert result.raw_score == pytest.approx((80 * 0.675 + 50 * 0.10) / 0.775)
        assert result.score == 76

    def test_breakdown_only_when_requested(self):
        result = _score()
        assert result.contributions is None
        assert result.raw_score is None

    def test_breakdown_sorted_by_points(self):
        result = _score(include_breakdown=True)
        points = [c.points for c in result.contributions]
        assert points == sorted(points, reverse=True)

    def test_strategy_score_is_clamped(self):
        result = _score(strategies={"graham": make_strategy(150)})
        assert result.score == 100


# ============================================================
# POST-HOC PENALTIES
# ============================================================

class TestPenalties:

    def test_domestic_net_debt(self):
        assert _score({"netDebtToEquity": 3.5}).score == 68
        assert _score({"netDebtToEquity": 1.2}).score == 79
        assert _score({"netDebtToEquity": 0.3}).score == 80

    def test_foreign_net_debt_is_softer(self):
        assert _score({"netDebtToEquity": 3.5}, ticker="AAPL34").score == 75

    def test_net_margin(self):
        assert _score({"netMargin": -0.05}).score == 68
        assert _score({"netMargin": -0.15}).score == 62
        assert _score({"netMargin": -0.05}, ticker="AAPL34").score == 72

    def test_active_flag(self):
        result = _score(active_flag={"id": "q3", "reason": "margin compression"})
        assert result.score == 60
        assert "Fundamentals deterioration flagged: margin compression" in result.weaknesses

    def test_score_never_negative(self):
        strategies = make_strategies(score=5)
        result = _score({"netDebtToEquity": 5, "netMargin": -0.5}, strategies=strategies, active_flag={})
        assert result.score == 0
        assert result.grade == "F"

    def test_active_flag_with_null_fields(self):
        result = _score(activeFlag={"id": None, "reason": None})
        assert result.score == 60
        assert "Fundamentals deterioration flagged: recent filings" in result.weaknesses

    def test_active_flag_non_string_fields(self):
        result = _score(activeFlag={"id": 42, "reason": 7})
        assert result.score == 60
        assert "Fundamentals deterioration flagged: 7" in result.weaknesses

    @pytest.mark.parametrize("flag,expected", [(True, 60), ("yes", 60), (False, 80), (0, 80), ("", 80)])
    def test_active_flag_scalar(self, flag, expected):
        assert _score(activeFlag=flag).score == expected


# ============================================================
# LOOSE INPUT
# ============================================================

class TestLooseInput:

    @pytest.mark.parametrize("value,expected", [
        (None, False), ("true", True), ("SIM", True), ("no", False), (1, True), (0, False), ("abc", False), ([], False),
    ])
    def test_eligibility_is_coerced(self, value, expected):
        data = OverallScoreInput.model_validate({"strategies": {"graham": make_strategy(eligible=value)}})
        assert data.strategies.graham.is_eligible is expected

    def test_null_eligibility_does_not_raise(self):
        strategies = make_strategies()
        strategies["graham"]["isEligible"] = None
        result = _score(strategies=strategies, include_breakdown=True)
        graham = next(c for c in result.contributions if c.name == "Graham")
        assert graham.eligible is False

    def test_non_object_blocks(self):
        result = calculate_overall_score({
            "strategies": {"graham": "x", "lowPE": 3},
            "financialData": "nope",
            "statementsData": 12,
            "ticker": 99,
        })
        assert 0 <= result.score <= 100
        assert result.statements_analysis is None


# ============================================================
# STATEMENTS CONTRIBUTION
# ============================================================

class TestStatementsContribution:

    def test_healthy_statements(self):
        result = _score(strategies=make_strategies(score=70), statements_data=make_statements())
        assert result.statements_analysis is not None
        assert result.statements_analysis.risk_level == "LOW"
        assert result.score >= 70
        assert result.strengths[0] == "Healthy financial statements"

    def test_critical_statements_cap_the_score(self):
        weak = make_statements(
            growth=-0.10, net_margin=-0.10, operating_margin=-0.05,
            ocf_margin=-0.05, debt_to_equity=3.0, current_ratio=0.7,
        )
        result = _score(statements_data=weak, include_breakdown=True)
        assert result.statements_analysis.risk_level == "CRITICAL"
        assert result.score <= 50
        assert "Financial statements indicate critical risk" in result.weaknesses
        statements = next(c for c in result.contributions if c.name == "Financial Statements")
        assert statements.score <= 20

    def test_ticker_taken_from_statements_company(self):
        # One period only: the statement score stays at the neutral 50.
        foreign = _score(
            {"netDebtToEquity": 3.5},
            strategies=make_strategies(score=70),
            statements_data=make_statements(years=1, company={"ticker": "AAPL34"}),
        )
        domestic = _score(
            {"netDebtToEquity": 3.5},
            strategies=make_strategies(score=70),
            statements_data=make_statements(years=1, company={"ticker": "WEGE3"}),
        )
        assert foreign.statements_analysis.score == 50
        assert foreign.score == 66 - 5
        assert domestic.score == 65 - 12


# ============================================================
# INPUT HANDLING
# ============================================================

def test_aggregator_accepts_model():
    data = OverallScoreInput.model_validate({"strategies": make_strategies(), "financialData": PAYS_DIVIDENDS})
    assert OverallScoreAggregator().calculate(data).score == 80


def test_unusable_input_scores_zero():
    result = calculate_overall_score("garbage")
    assert result.score == 0
    assert result.recommendation == "STRONG SELL"
