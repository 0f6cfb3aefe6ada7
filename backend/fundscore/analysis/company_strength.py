"""
Company strength: an additive 0-100 scale independent of the rule adjustments.

Profitability (ROE) up to 40, liquidity up to 25, leverage up to 20 and
stability up to 15 points.
"""
from fundscore.schemas.analysis import (
    AverageMetrics,
    CompanyStrength,
    DataValidation,
    SectorBenchmarks,
)

STRENGTH_THRESHOLDS: list[tuple[int, CompanyStrength]] = [
    (80, "VERY_STRONG"),
    (60, "STRONG"),
    (40, "MODERATE"),
]


def _profitability_points(m: AverageMetrics, b: SectorBenchmarks) -> int:
    if m.roe >= b.excellent_roe:
        return 40
    if m.roe >= b.good_roe:
        return 30
    if m.roe >= b.min_roe:
        return 15
    return 5


def _liquidity_points(m: AverageMetrics, b: SectorBenchmarks, v: DataValidation, financial: bool) -> int:
    if financial or not v.has_valid_liquidity or not m.is_available("current_ratio"):
        return 5
    if m.is_available("quick_ratio"):
        if m.current_ratio >= b.good_current_ratio and m.quick_ratio >= 1.0:
            return 25
        if m.current_ratio >= b.min_current_ratio and m.quick_ratio >= b.min_quick_ratio:
            return 15
        if m.current_ratio < b.min_current_ratio:
            return -10
        return 5
    if m.current_ratio >= b.good_current_ratio:
        return 20
    if m.current_ratio >= b.min_current_ratio:
        return 10
    return -10


def _leverage_points(m: AverageMetrics, b: SectorBenchmarks, financial: bool) -> int:
    de = m.debt_to_equity
    if financial:
        if de < 8:
            return 20
        if de <= 15:
            return 12
        if de <= 20:
            return 5
        return -15
    if de <= b.good_debt_to_equity:
        return 20
    if de <= 1.0:
        return 15
    if de <= b.max_debt_to_equity:
        return 8
    return -15


def _stability_points(m: AverageMetrics) -> int:
    if m.is_available("margin_stability"):
        if m.revenue_stability >= 0.8 and m.margin_stability >= 0.7:
            return 15
        if m.revenue_stability >= 0.6 and m.margin_stability >= 0.5:
            return 10
        return 5
    if m.revenue_stability >= 0.8:
        return 12
    if m.revenue_stability >= 0.6:
        return 8
    return 4


def strength_points(
    metrics: AverageMetrics,
    benchmarks: SectorBenchmarks,
    validation: DataValidation,
    financial: bool = False,
) -> int:
    return (
        _profitability_points(metrics, benchmarks)
        + _liquidity_points(metrics, benchmarks, validation, financial)
        + _leverage_points(metrics, benchmarks, financial)
        + _stability_points(metrics)
    )


def classify_company_strength(
    metrics: AverageMetrics,
    benchmarks: SectorBenchmarks,
    validation: DataValidation,
    financial: bool = False,
) -> CompanyStrength:
    points = strength_points(metrics, benchmarks, validation, financial)
    for threshold, strength in STRENGTH_THRESHOLDS:
        if points >= threshold:
            return strength
    return "WEAK"
