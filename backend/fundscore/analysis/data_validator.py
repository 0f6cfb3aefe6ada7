"""
Balance-sheet data quality checks.

A field family is trusted when at least 60% of the most recent (up to 3) periods
carry a plausible value. Rules that depend on an untrusted family are skipped
and explain the skip instead of issuing a verdict.
"""
import logging
from collections.abc import Callable, Sequence

from fundscore.schemas.analysis import DataValidation, SectorContext
from fundscore.schemas.statements import BalanceSheet, CompanyInfo

logger = logging.getLogger(__name__)

CHECKED_PERIODS = 3
MIN_VALID_SHARE = 0.6

# Any-match keywords over sector/industry text for banks and insurers.
FINANCIAL_KEYWORDS: tuple[str, ...] = (
    "bank", "banco", "banking", "bancos", "insurance", "seguros", "seguradora",
    "financial services", "intermediários financeiros", "intermediarios financeiros",
    "previdência", "previdencia", "capitalização", "capitalizacao", "crédito", "credit",
)


def _current_item_plausible(value: float | None, total_assets: float | None) -> bool:
    if value is None or not total_assets or total_assets <= 0:
        return False
    return 0 < value < 2 * total_assets


def _non_negative_item_plausible(value: float | None, total_assets: float | None) -> bool:
    if value is None:
        return False
    if total_assets and total_assets > 0 and value > total_assets:
        return False
    return value >= 0


def _family_valid(balances: Sequence[BalanceSheet], check: Callable[[BalanceSheet], bool]) -> bool:
    if not balances:
        return False
    valid = sum(1 for balance in balances if check(balance))
    return valid / len(balances) >= MIN_VALID_SHARE


def is_financial_company(sector_context: SectorContext, company: CompanyInfo | None) -> bool:
    if sector_context.type == "FINANCIAL":
        return True
    if company is None:
        return False
    text = f"{company.sector or ''} {company.industry or ''}".lower()
    return any(keyword in text for keyword in FINANCIAL_KEYWORDS)


def validate_statements(
    balance_sheets: Sequence[BalanceSheet],
    sector_context: SectorContext,
    company: CompanyInfo | None = None,
) -> DataValidation:
    recent = list(balance_sheets[:CHECKED_PERIODS])

    current_assets_ok = _family_valid(
        recent, lambda b: _current_item_plausible(b.total_current_assets, b.total_assets)
    )
    current_liabilities_ok = _family_valid(
        recent, lambda b: _current_item_plausible(b.total_current_liabilities, b.total_assets)
    )
    inventory_ok = _family_valid(recent, lambda b: _non_negative_item_plausible(b.inventory, b.total_assets))
    receivables_ok = _family_valid(recent, lambda b: _non_negative_item_plausible(b.net_receivables, b.total_assets))

    service_company = bool(recent) and all(b.inventory is not None and b.inventory == 0 for b in recent)

    validation = DataValidation(
        has_valid_current_assets=current_assets_ok,
        has_valid_current_liabilities=current_liabilities_ok,
        has_valid_inventory=inventory_ok and not service_company,
        has_valid_receivables=receivables_ok,
        is_service_company=service_company,
        is_bank_or_financial=is_financial_company(sector_context, company),
    )
    logger.debug(f"Data validation over {len(recent)} periods: {validation.model_dump()}")
    return validation
