"""
Contradiction reconciliation between red flags and positive signals.

Red flags always win: a positive signal contradicted by an active flag is dropped,
and the number of drops feeds the engine's contradiction penalty. Matching is
case-insensitive substring containment on both sides.
"""
import logging
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from fundscore.schemas.analysis import AverageMetrics

logger = logging.getLogger(__name__)


class RuleGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    triggers: tuple[str, ...]
    targets: tuple[str, ...]


HIGH_DEBT_TRIGGERS = ("high leverage", "extreme leverage")
FALLING_PROFIT_TRIGGERS = ("falling profits", "not reaching the bottom line")
LOW_MARGIN_TRIGGERS = ("low net margin", "negative net margin", "thin operating margin", "operating loss")

RULE_GROUPS: list[RuleGroup] = [
    RuleGroup(
        name="high_leverage",
        triggers=HIGH_DEBT_TRIGGERS,
        targets=("low leverage", "conservative leverage", "healthy working capital", "comfortable interest"),
    ),
    RuleGroup(
        name="liquidity",
        triggers=("weak liquidity", "low quick ratio", "negative working capital"),
        targets=("strong short-term liquidity", "solid quick ratio", "healthy working capital"),
    ),
    RuleGroup(
        name="losses",
        triggers=("recurring losses", "negative net margin", "operating loss"),
        targets=("growing profits", "strong net margin", "roe", "profit growing faster", "very profitable operation",
                 "healthy operating margin"),
    ),
    RuleGroup(
        name="negative_cash",
        triggers=("negative operating cash flow", "negative free cash flow", "poor conversion"),
        targets=("operating cash generation", "strong free cash flow", "positive free cash flow", "cash conversion",
                 "conversion of profit into cash"),
    ),
    RuleGroup(name="falling_revenue", triggers=("falling revenue",), targets=("revenue growth", "stable revenue")),
    RuleGroup(
        name="falling_profits",
        triggers=FALLING_PROFIT_TRIGGERS,
        targets=("growing profits", "profit growing faster"),
    ),
    RuleGroup(
        name="non_operating_dependency",
        triggers=("non-operating results",),
        targets=("driven by core operations", "very profitable operation", "healthy operating margin"),
    ),
    RuleGroup(name="unstable_margins", triggers=("unstable margins",), targets=("consistent margins",)),
    RuleGroup(
        name="low_roe",
        triggers=("low roe", "low return on assets"),
        targets=("strong net margin", "efficient asset turnover"),
    ),
]

CASH_SIGNAL_TARGETS = ("cash", "dividend")
VALUE_GENERATION_TARGETS = ("roe", "return on assets", "use of assets", "growing", "profitable", "margin")


class ReconciliationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    positive_signals: list[str]
    removed_count: int


def _matches(text: str, needles: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(needle in lowered for needle in needles)


def has_flag(red_flags: Sequence[str], triggers: Sequence[str]) -> bool:
    return any(_matches(flag, triggers) for flag in red_flags)


def reconcile_signals(
    red_flags: Sequence[str],
    positive_signals: Sequence[str],
    metrics: AverageMetrics,
    operating_margin: float | None = None,
) -> ReconciliationResult:
    """Drop positive signals contradicted by red flags or by the metrics themselves.

    `operating_margin` is the margin the efficiency rules actually scored; the
    reported average is used when it is not given.
    """
    if operating_margin is None:
        operating_margin = metrics.operating_margin
    targets: list[str] = []
    for group in RULE_GROUPS:
        if has_flag(red_flags, group.triggers):
            targets.extend(group.targets)

    if metrics.debt_to_equity > 2.0 and metrics.interest_coverage >= 8:
        targets.append("easy interest")
    if operating_margin >= 0.15 and metrics.net_margin < 0.05:
        targets.append("very profitable operation")

    falling_profits = has_flag(red_flags, FALLING_PROFIT_TRIGGERS)
    if falling_profits and has_flag(red_flags, HIGH_DEBT_TRIGGERS):
        targets.extend(CASH_SIGNAL_TARGETS)
    if falling_profits and has_flag(red_flags, LOW_MARGIN_TRIGGERS):
        targets.extend(VALUE_GENERATION_TARGETS)

    if not targets:
        return ReconciliationResult(positive_signals=list(positive_signals), removed_count=0)

    kept = [signal for signal in positive_signals if not _matches(signal, targets)]
    removed = len(positive_signals) - len(kept)
    if removed:
        logger.debug(f"Reconciliation removed {removed} contradicted positive signal(s)")
    return ReconciliationResult(positive_signals=kept, removed_count=removed)
