from datetime import date

from fastapi import APIRouter, Depends

from fundscore.analysis.statements_engine import analyze_financial_statements
from fundscore.api.dependencies import get_as_of, normalize_company_ticker
from fundscore.schemas.analysis import StatementsAnalysis
from fundscore.schemas.statements import FinancialStatementsInput

router = APIRouter(prefix="/statements", tags=["statements"])


@router.post("/analyze", response_model=StatementsAnalysis, response_model_by_alias=True)
def analyze_statements(
    body: FinancialStatementsInput,
    as_of: date = Depends(get_as_of),
):
    body = normalize_company_ticker(body)
    return analyze_financial_statements(body, as_of=as_of)
