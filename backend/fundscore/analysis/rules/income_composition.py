"""
Income composition: whether profit comes from the core operation.

A profitable period is problematic when the result below the operating line
exceeds half of net income. With most recent periods problematic the penalty is
heavy enough to dominate the family; the engine also reads the raw adjustment
to apply a direct score penalty.
"""
from fundscore.analysis.metric_extractor import non_operating_result, reported_operating_result
from fundscore.analysis.rules.base import Findings, RuleContext
from fundscore.schemas.analysis import AnalysisResult

RECENT_PERIODS = 3
NON_OPERATING_SHARE_LIMIT = 0.5
MAJORITY_PENALTY = -300
PARTIAL_PENALTY = -60
CORE_OPERATIONS_BONUS = 10


def evaluate_income_composition(ctx: RuleContext) -> AnalysisResult:
    findings = Findings()

    if ctx.is_financial:
        findings.note("Income composition not evaluated for financial institutions")
        return findings.result()
    if ctx.is_holding:
        findings.positive("Equity-method income from subsidiaries expected for a holding company")
        return findings.result()

    qualifying = 0
    problematic = 0
    operating_loss_periods = 0
    for row in ctx.income_statements[:RECENT_PERIODS]:
        if row.net_income is None or row.net_income <= 0:
            continue
        operating = reported_operating_result(row)
        non_operating = non_operating_result(row, operating)
        if operating is None or non_operating is None:
            continue
        qualifying += 1
        if non_operating > NON_OPERATING_SHARE_LIMIT * row.net_income:
            problematic += 1
            if operating <= 0:
                operating_loss_periods += 1

    if problematic and qualifying >= 2 and problematic * 2 > qualifying:
        if operating_loss_periods:
            message = (
                f"Profits depend on non-operating results while the core operation loses money "
                f"({problematic} of {qualifying} periods)"
            )
        else:
            message = f"Profits depend on non-operating results ({problematic} of {qualifying} periods)"
        findings.flag(message, MAJORITY_PENALTY)
    elif problematic:
        findings.flag(
            f"Partial dependency on non-operating results ({problematic} of {qualifying} periods)", PARTIAL_PENALTY
        )
    elif qualifying >= 2:
        findings.positive("Profits driven by core operations", CORE_OPERATIONS_BONUS)

    return findings.result()
