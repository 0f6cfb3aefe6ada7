"""API request validation utilities."""
import re
from fastapi import HTTPException

# B3 tickers with an optional exchange suffix, BDRs and ETFs.
# Examples: PETR4, ITUB4.SA, AAPL34, IVVB11
TICKER_PATTERN = re.compile(r"^[A-Z0-9\-]{1,10}(\.SA)?$")


def validate_ticker(ticker: str, field: str = "ticker") -> str:
    """Validate and normalize a ticker symbol.

    Args:
        ticker: Raw ticker string from the request body
        field: Body location reported in the error detail

    Returns:
        Validated ticker (uppercase, stripped, suffix kept)

    Raises:
        HTTPException: 400 if the ticker is empty or malformed
    """
    if not ticker or not ticker.strip():
        raise HTTPException(status_code=400, detail=f"{field}: ticker cannot be empty")

    ticker = ticker.upper().strip()
    if not TICKER_PATTERN.match(ticker):
        raise HTTPException(
            status_code=400,
            detail=f"{field}: invalid ticker format '{ticker}'. Use 1-10 alphanumeric characters, optionally ending in .SA.",
        )

    return ticker
