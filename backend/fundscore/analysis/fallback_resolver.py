"""
Fill metrics that could not be computed from the statements with externally supplied indicators.

Fallback values may be scalars or per-year series. A series is averaged over its
non-empty entries; when an `as_of` date is injected and `years` lines up with the
series, only completed fiscal years (year < as_of.year) take part.
"""
import logging
import math
from datetime import date

from fundscore.analysis.numeric import is_missing
from fundscore.schemas.analysis import AverageMetrics, METRIC_FIELDS
from fundscore.schemas.statements import FallbackData, FallbackValue

logger = logging.getLogger(__name__)

# metric field -> fallback indicator
NAMED_FALLBACKS: dict[str, str] = {
    "roe": "roe",
    "roa": "roa",
    "net_margin": "net_margin",
    "gross_margin": "gross_margin",
    "operating_margin": "ebitda_margin",
    "current_ratio": "current_ratio",
    "quick_ratio": "quick_ratio",
    "debt_to_assets": "liabilities_to_assets",
    "asset_turnover": "asset_turnover",
    "revenue_growth": "revenue_cagr_5y",
    "net_income_growth": "earnings_cagr_5y",
}

# Below this absolute ROE a holding's consolidated figure is treated as not meaningful.
HOLDING_ROE_FLOOR = 0.01


def resolve_fallback_value(value: FallbackValue, years: list[int] | None = None, as_of: date | None = None) -> float | None:
    """Scalar as is; series averaged over non-empty (and, with as_of, completed-year) entries."""
    if value is None:
        return None
    if not isinstance(value, list):
        return None if math.isnan(value) else value

    entries = list(value)
    if as_of is not None and years and len(years) == len(entries):
        entries = [v for v, year in zip(entries, years) if year < as_of.year]
    numbers = [v for v in entries if v is not None and not math.isnan(v)]
    if not numbers:
        return None
    return sum(numbers) / len(numbers)


def _needs_fallback(metrics: AverageMetrics, name: str) -> bool:
    return is_missing(getattr(metrics, name)) or not metrics.is_available(name)


def apply_fallbacks(
    metrics: AverageMetrics,
    fallback: FallbackData | None,
    is_holding: bool = False,
    as_of: date | None = None,
) -> AverageMetrics:
    """Return a copy of `metrics` with missing values replaced from `fallback`."""
    if fallback is None:
        return metrics

    updates: dict[str, float] = {}

    def lookup(key: str) -> float | None:
        return resolve_fallback_value(fallback.raw_value(key), fallback.years, as_of)

    for name, key in NAMED_FALLBACKS.items():
        value = lookup(key)
        if value is None:
            continue
        if _needs_fallback(metrics, name):
            updates[name] = value
        elif name == "roe" and is_holding and abs(metrics.roe) < HOLDING_ROE_FLOOR:
            logger.debug(f"Holding ROE override: computed {metrics.roe:.4f} -> fallback {value:.4f}")
            updates[name] = value

    # Generic pass: same-named indicators for anything still missing.
    for name in METRIC_FIELDS:
        if name in updates or not _needs_fallback(metrics, name):
            continue
        value = lookup(name)
        if value is not None:
            updates[name] = value

    if not updates:
        return metrics

    logger.debug(f"Fallback substitutions: {sorted(updates)}")
    sources = dict(metrics.sources)
    sources.update({name: "fallback" for name in updates})
    return metrics.model_copy(update={**updates, "sources": sources})


def fallback_roe(fallback: FallbackData | None, as_of: date | None = None) -> float | None:
    if fallback is None:
        return None
    return resolve_fallback_value(fallback.roe, fallback.years, as_of)
