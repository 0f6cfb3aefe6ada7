"""Stability: revenue and margin consistency, plus the recurring-loss override."""
from fundscore.analysis.rules.base import Findings, RuleContext
from fundscore.schemas.analysis import AnalysisResult

RECENT_PERIODS = 3
LOSS_PERIODS_FOR_PENALTY = 2
RECURRING_LOSS_PENALTY = -40


def evaluate_stability(ctx: RuleContext) -> AnalysisResult:
    findings = Findings()
    m = ctx.metrics

    if m.revenue_stability >= 0.8:
        findings.positive(f"Stable revenue (stability {m.revenue_stability:.2f})", 8)
    elif m.revenue_stability < 0.5:
        if ctx.is_financial:
            findings.flag(
                f"Revenue variability (stability {m.revenue_stability:.2f}), common for financial institutions", -5
            )
        else:
            findings.flag(f"Volatile revenue (stability {m.revenue_stability:.2f})", -10)

    if m.margin_stability >= 0.7:
        findings.positive(f"Consistent margins (stability {m.margin_stability:.2f})", 6)
    elif m.margin_stability < 0.4:
        findings.flag(f"Unstable margins (stability {m.margin_stability:.2f})", -8)

    recent = list(ctx.income_statements[:RECENT_PERIODS])
    losses = sum(1 for row in recent if row.net_income is not None and row.net_income < 0)
    if losses >= LOSS_PERIODS_FOR_PENALTY:
        findings.flag(f"Recurring losses: {losses} of the last {len(recent)} periods", RECURRING_LOSS_PENALTY)

    return findings.result()
