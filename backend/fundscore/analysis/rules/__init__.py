from fundscore.analysis.rules.base import Findings, RuleContext
from fundscore.analysis.rules.cash_flow import evaluate_cash_flow
from fundscore.analysis.rules.efficiency import evaluate_efficiency, recomputed_operating_margin
from fundscore.analysis.rules.growth import evaluate_growth
from fundscore.analysis.rules.income_composition import evaluate_income_composition
from fundscore.analysis.rules.liquidity import evaluate_liquidity
from fundscore.analysis.rules.profitability import evaluate_profitability
from fundscore.analysis.rules.stability import evaluate_stability

__all__ = [
    "Findings",
    "RuleContext",
    "evaluate_cash_flow",
    "evaluate_efficiency",
    "evaluate_growth",
    "evaluate_income_composition",
    "evaluate_liquidity",
    "evaluate_profitability",
    "evaluate_stability",
    "recomputed_operating_margin",
]
