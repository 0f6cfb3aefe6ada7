"""Efficiency: asset turnover, operating margin and working-capital turnovers."""
from fundscore.analysis.grading import clamp
from fundscore.analysis.metric_extractor import recomputed_operating_result
from fundscore.analysis.numeric import safe_div
from fundscore.analysis.rules.base import Findings, RuleContext, pct, times
from fundscore.schemas.analysis import AnalysisResult


def recomputed_operating_margin(ctx: RuleContext) -> float | None:
    """Average of EBIT-first operating margins; the extracted average when no period qualifies."""
    margins = []
    for row in ctx.income_statements:
        if row.total_revenue is None or row.total_revenue <= 0:
            continue
        margin = safe_div(recomputed_operating_result(row), row.total_revenue)
        if margin is not None:
            margins.append(clamp(margin, -1.0, 1.0))
    if margins:
        return sum(margins) / len(margins)
    if ctx.metrics.is_available("operating_margin"):
        return ctx.metrics.operating_margin
    return None


def evaluate_efficiency(ctx: RuleContext) -> AnalysisResult:
    findings = Findings()
    m, b, v = ctx.metrics, ctx.benchmarks, ctx.validation

    if m.asset_turnover >= b.good_asset_turnover:
        findings.positive(f"Efficient asset turnover ({times(m.asset_turnover)})", 8)
    elif m.asset_turnover < b.min_asset_turnover:
        findings.flag(f"Low asset turnover ({times(m.asset_turnover)})", -8)

    if ctx.is_financial:
        findings.note("Operating margin not meaningful for a financial institution")
    else:
        margin = recomputed_operating_margin(ctx)
        if margin is not None:
            if margin >= 0.15:
                findings.positive(f"Very profitable operation (operating margin {pct(margin)})", 8)
            elif margin >= 0.08:
                findings.positive(f"Healthy operating margin of {pct(margin)}", 4)
            elif margin < 0:
                findings.flag(f"Operating loss (operating margin {pct(margin)})", -12)
            elif margin < 0.03:
                findings.flag(f"Thin operating margin of {pct(margin)}", -5)

    if ctx.is_financial:
        findings.note("Receivables and inventory turnover do not apply to financial institutions")
        return findings.result()

    if not v.has_valid_receivables:
        findings.note("Receivables data unreliable; collection speed not evaluated")
    elif m.is_available("receivables_turnover"):
        if m.receivables_turnover >= 8:
            findings.positive(f"Fast receivables collection ({times(m.receivables_turnover)})", 4)
        elif m.receivables_turnover < 4:
            findings.flag(f"Slow receivables collection ({times(m.receivables_turnover)})", -6)

    if v.is_service_company:
        findings.note("Service company without inventory; inventory turnover not evaluated")
    elif not v.has_valid_inventory:
        findings.note("Inventory data unreliable; inventory turnover not evaluated")
    elif m.is_available("inventory_turnover"):
        if m.inventory_turnover >= 6:
            findings.positive(f"Efficient inventory management ({times(m.inventory_turnover)})", 4)
        elif m.inventory_turnover < 2:
            findings.flag(f"Slow-moving inventory ({times(m.inventory_turnover)})", -6)

    return findings.result()
