from fundscore.analysis.rules.base import Findings, RuleContext, pct, times
from fundscore.schemas.analysis import AnalysisResult


def evaluate_cash_flow(ctx: RuleContext) -> AnalysisResult:
    findings = Findings()
    m = ctx.metrics

    ocf = m.operating_cash_flow_margin
    if ocf >= 0.15:
        findings.positive(f"Strong operating cash generation ({pct(ocf)} of revenue)", 8)
    elif ocf >= 0.08:
        findings.positive(f"Positive operating cash generation ({pct(ocf)} of revenue)", 4)
    elif ocf < 0:
        findings.flag(f"Negative operating cash flow ({pct(ocf)} of revenue)", -15)

    fcf = m.free_cash_flow_margin
    if fcf >= 0.10:
        findings.positive(f"Strong free cash flow ({pct(fcf)} of revenue)", 8)
    elif fcf >= 0.03:
        findings.positive(f"Positive free cash flow ({pct(fcf)} of revenue)", 4)
    elif fcf < 0:
        findings.flag(f"Negative free cash flow ({pct(fcf)} of revenue)", -10)

    # Only measured when net income was positive.
    if m.is_available("cash_conversion_ratio"):
        conversion = m.cash_conversion_ratio
        if conversion >= 1.2:
            findings.positive(f"Excellent conversion of profit into cash ({times(conversion)})", 8)
        elif conversion >= 0.8:
            findings.positive(f"Good cash conversion ({times(conversion)})", 4)
        elif conversion < 0.5:
            if ctx.is_financial:
                findings.flag(
                    f"Low cash conversion ({times(conversion)}), often distorted by funding flows at financial institutions",
                    -3,
                )
            else:
                findings.flag(f"Poor conversion of profit into cash ({times(conversion)})", -10)

    return findings.result()
