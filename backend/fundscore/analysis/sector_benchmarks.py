"""
Sector, listing and size aware rule thresholds.

Resolution order matters; each step may overwrite fields set by the previous one:
  1. listing origin: domestic base table, fully replaced by the foreign (BDR) table
  2. sector: bank constants for FINANCIAL, else margin-expectation adjustments
  3. size: the two revenue-growth thresholds
"""
import logging

from fundscore.schemas.analysis import SectorBenchmarks, SectorContext, SizeContext

logger = logging.getLogger(__name__)

# Domestic listings. Ratios are decimals; coverage/turnover are multiples.
DOMESTIC_BENCHMARKS: dict[str, float] = {
    "min_roe": 0.08, "good_roe": 0.15, "excellent_roe": 0.25,
    "min_roa": 0.03, "good_roa": 0.08,
    "min_net_margin": 0.03, "good_net_margin": 0.10,
    "min_current_ratio": 1.0, "good_current_ratio": 1.5,
    "min_quick_ratio": 0.7,
    "good_debt_to_equity": 0.5, "max_debt_to_equity": 2.0,
    "min_interest_coverage": 2.0, "good_interest_coverage": 5.0,
    "min_asset_turnover": 0.3, "good_asset_turnover": 1.0,
    "min_revenue_growth": -0.05, "good_revenue_growth": 0.08,
}

# Foreign companies listed through depositary receipts: looser thresholds.
FOREIGN_BENCHMARKS: dict[str, float] = {
    "min_roe": 0.06, "good_roe": 0.12, "excellent_roe": 0.20,
    "min_roa": 0.02, "good_roa": 0.06,
    "min_net_margin": 0.02, "good_net_margin": 0.08,
    "min_current_ratio": 0.9, "good_current_ratio": 1.3,
    "min_quick_ratio": 0.6,
    "good_debt_to_equity": 0.6, "max_debt_to_equity": 2.5,
    "min_interest_coverage": 1.5, "good_interest_coverage": 4.0,
    "min_asset_turnover": 0.25, "good_asset_turnover": 0.8,
    "min_revenue_growth": -0.08, "good_revenue_growth": 0.06,
}

# Banks and insurers, regardless of listing origin. Asset turnover is ~10x lower.
FINANCIAL_OVERRIDES: dict[str, float] = {
    "min_roe": 0.10, "good_roe": 0.15, "excellent_roe": 0.20,
    "min_roa": 0.008, "good_roa": 0.015,
    "min_net_margin": 0.08, "good_net_margin": 0.15,
    "min_current_ratio": 0.8, "good_current_ratio": 1.0,
    "min_quick_ratio": 0.5,
    "good_debt_to_equity": 8.0, "max_debt_to_equity": 15.0,
    "min_asset_turnover": 0.03, "good_asset_turnover": 0.10,
}

HIGH_MARGIN_OVERRIDES: dict[str, float] = {
    "min_roe": 0.10, "good_roe": 0.18, "excellent_roe": 0.30,
    "min_net_margin": 0.05, "good_net_margin": 0.15,
}

LOW_MARGIN_OVERRIDES: dict[str, float] = {
    "min_roe": 0.06, "good_roe": 0.12,
    "min_net_margin": 0.02, "good_net_margin": 0.06,
    "max_debt_to_equity": 2.5,
}

SIZE_GROWTH_OVERRIDES: dict[str, dict[str, float]] = {
    "MEGA": {"min_revenue_growth": -0.08, "good_revenue_growth": 0.05},
    "LARGE": {"min_revenue_growth": -0.08, "good_revenue_growth": 0.05},
    "MEDIUM": {},
    "SMALL": {"min_revenue_growth": -0.03, "good_revenue_growth": 0.12},
    "MICRO": {"min_revenue_growth": -0.03, "good_revenue_growth": 0.12},
}


def get_sector_benchmarks(
    sector_context: SectorContext,
    size_context: SizeContext,
    foreign_listed: bool = False,
) -> SectorBenchmarks:
    """Return the thresholds for a company, applying listing -> sector -> size in order."""
    values = dict(FOREIGN_BENCHMARKS if foreign_listed else DOMESTIC_BENCHMARKS)

    if sector_context.type == "FINANCIAL":
        values.update(FINANCIAL_OVERRIDES)
    elif sector_context.margin_expectation == "HIGH":
        values.update(HIGH_MARGIN_OVERRIDES)
    elif sector_context.margin_expectation == "LOW":
        values.update(LOW_MARGIN_OVERRIDES)

    values.update(SIZE_GROWTH_OVERRIDES.get(size_context.category, {}))

    source = "foreign" if foreign_listed else "domestic"
    logger.debug(
        f"Benchmarks ({source}, {sector_context.type}, {size_context.category}): "
        f"ROE min {values['min_roe']:.0%} / good {values['good_roe']:.0%}"
    )
    return SectorBenchmarks(**values)
