"""
Liquidity and leverage.

Current/quick/working-capital checks run only when the validator trusts the
current-assets and current-liabilities families, and never for financial
institutions. Leverage and interest coverage have separate bank scales.
"""
from fundscore.analysis.rules.base import Findings, RuleContext, pct, times
from fundscore.schemas.analysis import AnalysisResult

HEALTHY_WORKING_CAPITAL = 0.15
LOW_WORKING_CAPITAL = 0.05
NEGATIVE_WORKING_CAPITAL = -0.05

# Bank leverage buckets (debt-to-equity).
BANK_EXTREME_LEVERAGE = 20.0
BANK_HIGH_LEVERAGE = 15.0
BANK_TYPICAL_LEVERAGE = 8.0

EASY_INTEREST_COVERAGE = 8.0
BANK_NEAR_ZERO_COVERAGE = 0.1
BANK_GOOD_COVERAGE = 1.5
BANK_MIN_COVERAGE = 1.0


def evaluate_liquidity(ctx: RuleContext) -> AnalysisResult:
    findings = Findings()

    if ctx.is_financial:
        findings.note("Liquidity ratios do not apply to financial institutions")
    elif not ctx.validation.has_valid_liquidity:
        findings.note("Current assets/liabilities unreliable; liquidity not evaluated")
    else:
        _evaluate_short_term(ctx, findings)

    if ctx.is_financial:
        _evaluate_bank_leverage(ctx, findings)
    else:
        _evaluate_leverage(ctx, findings)

    if ctx.metrics.is_available("interest_coverage"):
        if ctx.likely_bank or ctx.validation.is_bank_or_financial:
            _evaluate_bank_interest_coverage(ctx, findings)
        else:
            _evaluate_interest_coverage(ctx, findings)

    return findings.result()


def _evaluate_short_term(ctx: RuleContext, findings: Findings):
    m, b = ctx.metrics, ctx.benchmarks

    if m.current_ratio >= b.good_current_ratio:
        findings.positive(f"Strong short-term liquidity (current ratio {m.current_ratio:.2f})", 10)
    elif m.current_ratio < b.min_current_ratio:
        findings.flag(f"Weak liquidity (current ratio {m.current_ratio:.2f})", -15)

    if m.quick_ratio >= 1.0:
        findings.positive(f"Solid quick ratio of {m.quick_ratio:.2f}", 5)
    elif m.quick_ratio < b.min_quick_ratio:
        findings.flag(f"Low quick ratio of {m.quick_ratio:.2f}", -10)

    wc = m.working_capital_ratio
    if wc >= HEALTHY_WORKING_CAPITAL:
        findings.positive(f"Healthy working capital ({pct(wc)} of assets)", 5)
    elif wc < NEGATIVE_WORKING_CAPITAL:
        findings.flag(f"Negative working capital ({pct(wc)} of assets)", -12)
    elif wc < LOW_WORKING_CAPITAL:
        findings.note(f"Working capital mildly low ({pct(wc)} of assets)", -5)


def _evaluate_bank_leverage(ctx: RuleContext, findings: Findings):
    de = ctx.metrics.debt_to_equity
    if de > BANK_EXTREME_LEVERAGE:
        findings.flag(f"Extreme leverage for a financial institution ({times(de)} equity)", -20)
    elif de > BANK_HIGH_LEVERAGE:
        findings.flag(f"High leverage even for a financial institution ({times(de)} equity)", -10)
    elif de >= BANK_TYPICAL_LEVERAGE:
        findings.note(f"Leverage of {times(de)} equity, typical for a financial institution")
    else:
        findings.positive(f"Conservative leverage for a financial institution ({times(de)} equity)", 5)


def _evaluate_leverage(ctx: RuleContext, findings: Findings):
    de, b = ctx.metrics.debt_to_equity, ctx.benchmarks
    if de > b.max_debt_to_equity:
        findings.flag(f"High leverage: debt-to-equity of {de:.2f}", -15)
    elif de < b.good_debt_to_equity:
        findings.positive(f"Low leverage (debt-to-equity {de:.2f})", 8)


def _evaluate_bank_interest_coverage(ctx: RuleContext, findings: Findings):
    coverage = ctx.metrics.interest_coverage
    if abs(coverage) < BANK_NEAR_ZERO_COVERAGE:
        findings.note("Interest coverage near zero: funding costs are a bank's core expense")
    elif coverage >= BANK_GOOD_COVERAGE:
        findings.positive(f"Earnings cover funding costs ({times(coverage)})", 3)
    elif coverage < BANK_MIN_COVERAGE:
        findings.flag(f"Funding costs exceed pre-interest earnings ({times(coverage)})", -5)


def _evaluate_interest_coverage(ctx: RuleContext, findings: Findings):
    coverage, b = ctx.metrics.interest_coverage, ctx.benchmarks
    if coverage >= EASY_INTEREST_COVERAGE:
        findings.positive(f"Easy interest payments (coverage {times(coverage)})", 8)
    elif coverage >= b.good_interest_coverage:
        findings.positive(f"Comfortable interest coverage ({times(coverage)})", 4)
    elif coverage < b.min_interest_coverage:
        findings.flag(f"Low interest coverage ({times(coverage)})", -15)
