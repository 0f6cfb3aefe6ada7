from datetime import date

from fastapi import APIRouter, Depends

from fundscore.analysis.overall_score import calculate_overall_score
from fundscore.api.dependencies import get_as_of, normalize_company_ticker
from fundscore.api.validation import validate_ticker
from fundscore.config import Settings, get_settings
from fundscore.schemas.overall_score import OverallScore, OverallScoreInput

router = APIRouter(prefix="/score", tags=["overall-score"])


@router.post(
    "/overall",
    response_model=OverallScore,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
def overall_score(
    body: OverallScoreInput,
    as_of: date = Depends(get_as_of),
    settings: Settings = Depends(get_settings),
):
    updates = {"statements_data": normalize_company_ticker(body.statements_data)}
    if body.ticker is not None:
        updates["ticker"] = validate_ticker(body.ticker)
    if body.include_breakdown is None:
        updates["include_breakdown"] = settings.include_breakdown_by_default
    return calculate_overall_score(body.model_copy(update=updates), as_of=as_of)
