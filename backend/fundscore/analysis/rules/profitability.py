"""
Profitability: ROE, ROA and net margin against sector benchmarks.

Also explains the "operating loss, healthy net profit" pattern by decomposing the
latest period below the operating line. That explanation is informative only:
it never adds or removes points.
"""
from fundscore.analysis.metric_extractor import reported_operating_result
from fundscore.analysis.rules.base import Findings, RuleContext, pct
from fundscore.schemas.analysis import AnalysisResult

# Share of the operating-to-net gap a cause must explain to be cited.
MIN_CAUSE_SHARE = 0.5
TAX_BENEFIT_PROXY_RATE = 0.25


def evaluate_profitability(ctx: RuleContext) -> AnalysisResult:
    findings = Findings()
    m, b = ctx.metrics, ctx.benchmarks

    holding_roe_ok = ctx.is_holding and ctx.fallback_roe is not None and ctx.fallback_roe >= b.min_roe
    if m.roe >= b.excellent_roe:
        findings.positive(f"Excellent ROE of {pct(m.roe)} for a {ctx.sector_label} company", 15)
    elif m.roe >= b.good_roe:
        findings.positive(f"Good ROE of {pct(m.roe)}", 8)
    elif holding_roe_ok and (m.roe < b.min_roe or m.sources.get("roe") == "fallback"):
        findings.positive(
            f"Holding structure: ROE of {pct(ctx.fallback_roe)} driven by equity-method income from subsidiaries"
        )
    elif m.roe < b.min_roe:
        findings.flag(f"Low ROE of {pct(m.roe)} (sector minimum {pct(b.min_roe)})", -20)

    if m.roa >= b.good_roa:
        findings.positive(f"Efficient use of assets (ROA {pct(m.roa)})", 10)
    elif m.roa < b.min_roa:
        findings.flag(f"Low return on assets (ROA {pct(m.roa)})", -15)

    _evaluate_net_margin(ctx, findings)

    if m.operating_margin < 0 and m.net_margin > 0.05:
        for message in explain_operating_gap(ctx):
            findings.positive(message)

    return findings.result()


def _evaluate_net_margin(ctx: RuleContext, findings: Findings):
    m, b = ctx.metrics, ctx.benchmarks
    if ctx.is_financial:
        if not m.is_available("net_margin"):
            findings.positive("Net margin not measurable for a financial institution; profitability read through ROE")
        elif m.net_margin < 0:
            findings.flag(f"Negative net margin of {pct(m.net_margin)}", -18)
        elif m.net_margin < b.min_net_margin:
            findings.flag(f"Low net margin of {pct(m.net_margin)} for a financial institution", -10)
        elif m.net_margin >= b.good_net_margin:
            findings.positive(f"Strong net margin of {pct(m.net_margin)}", 12)
        return

    if m.net_margin >= b.good_net_margin:
        findings.positive(f"Strong net margin of {pct(m.net_margin)}", 12)
    elif m.net_margin < 0:
        findings.flag(f"Negative net margin of {pct(m.net_margin)}", -18)
    elif m.net_margin < b.min_net_margin:
        findings.flag(f"Low net margin of {pct(m.net_margin)} (sector minimum {pct(b.min_net_margin)})", -18)


def explain_operating_gap(ctx: RuleContext) -> list[str]:
    """Attribute the latest period's net-minus-operating gap to the causes covering at least half of it."""
    if not ctx.income_statements:
        return []
    latest = ctx.income_statements[0]
    operating = reported_operating_result(latest)
    if operating is None or latest.net_income is None:
        return []
    gap = latest.net_income - operating
    if gap <= 0:
        return []

    causes: list[tuple[str, float]] = []
    if latest.interest_income is not None and latest.interest_income > 0:
        causes.append(("interest income", latest.interest_income))
    if latest.total_other_income_expense_net is not None and latest.total_other_income_expense_net > 0:
        causes.append(("other non-operating income", latest.total_other_income_expense_net))
    if latest.net_interest_income is not None and latest.net_interest_income > 0:
        causes.append(("a positive net financial result", latest.net_interest_income))
    tax = latest.income_tax_expense
    pretax = latest.income_before_tax
    if tax is not None and tax < 0:
        causes.append(("a tax benefit", -tax))
    elif tax is None and pretax is not None and latest.net_income > pretax:
        causes.append(("a likely tax benefit", abs(pretax) * TAX_BENEFIT_PROXY_RATE))

    messages = [
        f"Net profit above the operating result explained by {label} ({amount / gap:.0%} of the gap)"
        for label, amount in causes
        if amount >= MIN_CAUSE_SHARE * gap
    ]
    if not messages:
        messages.append("Net profit above the operating result explained by items below the operating line")
    return messages
