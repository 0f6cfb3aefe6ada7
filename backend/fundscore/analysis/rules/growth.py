from fundscore.analysis.rules.base import Findings, RuleContext, pct
from fundscore.schemas.analysis import AnalysisResult


def evaluate_growth(ctx: RuleContext) -> AnalysisResult:
    findings = Findings()
    m, b = ctx.metrics, ctx.benchmarks
    revenue_known = m.is_available("revenue_growth")
    profit_known = m.is_available("net_income_growth")

    if revenue_known:
        if m.revenue_growth >= b.good_revenue_growth:
            findings.positive(f"Consistent revenue growth (CAGR {pct(m.revenue_growth)})", 6)
        elif m.revenue_growth < b.min_revenue_growth:
            findings.flag(f"Falling revenue (CAGR {pct(m.revenue_growth)})", -10)

    if profit_known:
        if m.net_income_growth >= 0.10:
            findings.positive(f"Growing profits (CAGR {pct(m.net_income_growth)})", 6)
        elif m.net_income_growth < -0.10:
            findings.flag(f"Falling profits (CAGR {pct(m.net_income_growth)})", -10)

    if revenue_known and profit_known:
        if 0 < m.revenue_growth < m.net_income_growth:
            findings.positive("Profit growing faster than revenue", 4)
        elif m.revenue_growth > 0.05 and m.net_income_growth < 0:
            findings.flag("Revenue growth not reaching the bottom line", -6)

    return findings.result()
