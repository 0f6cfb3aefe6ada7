from datetime import date

from fundscore.api.validation import validate_ticker
from fundscore.schemas.statements import FinancialStatementsInput


def get_as_of() -> date:
    """Reference date for completed fiscal years. The engine itself never reads the clock."""
    return date.today()


def normalize_company_ticker(statements: FinancialStatementsInput | None) -> FinancialStatementsInput | None:
    """Validate the ticker carried in the company block, if any."""
    if statements is None or statements.company is None or statements.company.ticker is None:
        return statements
    ticker = validate_ticker(statements.company.ticker, field="company.ticker")
    company = statements.company.model_copy(update={"ticker": ticker})
    return statements.model_copy(update={"company": company})
