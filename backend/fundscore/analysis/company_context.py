"""
Company classification tables: sector context, size context, foreign listing (BDR),
holding structure and the likely-bank allow-list.

All tables are ordered data. Sector keywords are matched first-match-wins against
the lower-cased sector and industry text; the other lists use any-match semantics.
"""
import re

from fundscore.schemas.analysis import SectorContext, SizeContext
from fundscore.schemas.statements import CompanyInfo

# (sector keywords, industry keywords, context), evaluated top-down.
SECTOR_RULES: list[tuple[tuple[str, ...], tuple[str, ...], SectorContext]] = [
    (
        ("financial", "financeiro", "bank", "banco"),
        ("insurance", "seguros", "seguradora", "bank", "banco", "intermediários financeiros"),
        SectorContext(type="FINANCIAL", volatility_tolerance="MEDIUM", margin_expectation="MEDIUM", cash_intensive=True),
    ),
    (
        ("technology", "tecnologia", "software", "communication"),
        ("tech", "internet", "software", "semiconductor"),
        SectorContext(type="TECH", volatility_tolerance="HIGH", margin_expectation="HIGH", cash_intensive=False),
    ),
    (
        ("utilities", "utilidade pública", "utilidade publica"),
        ("energia elétrica", "energia eletrica", "saneamento", "water", "electric"),
        SectorContext(type="UTILITY", volatility_tolerance="LOW", margin_expectation="MEDIUM", cash_intensive=True),
    ),
    (
        ("consumer cyclical", "consumo cíclico", "consumo ciclico", "retail", "varejo", "automotive", "construction", "construção"),
        ("retail", "varejo", "construction", "construção", "automotive", "auto parts"),
        SectorContext(type="CYCLICAL", volatility_tolerance="HIGH", margin_expectation="MEDIUM", cash_intensive=False),
    ),
    (
        ("healthcare", "saúde", "saude", "consumer defensive", "consumo não cíclico", "consumo nao ciclico"),
        ("food", "alimentos", "pharmaceutical", "farmacêutico", "farmaceutico", "beverages", "bebidas"),
        SectorContext(type="DEFENSIVE", volatility_tolerance="LOW", margin_expectation="MEDIUM", cash_intensive=False),
    ),
    (
        ("basic materials", "materiais básicos", "materiais basicos", "materials", "energy", "petróleo", "petroleo"),
        ("mining", "mineração", "mineracao", "oil", "petróleo", "petroleo", "steel", "siderurgia", "pulp", "papel e celulose"),
        SectorContext(type="COMMODITY", volatility_tolerance="HIGH", margin_expectation="LOW", cash_intensive=False),
    ),
]

DEFAULT_SECTOR_CONTEXT = SectorContext()

# (minimum market cap exclusive, context), evaluated top-down.
SIZE_BANDS: list[tuple[float, SizeContext]] = [
    (100_000_000_000, SizeContext(category="MEGA", volatility_tolerance="LOW", growth_expectation="LOW")),
    (20_000_000_000, SizeContext(category="LARGE", volatility_tolerance="LOW", growth_expectation="MEDIUM")),
    (5_000_000_000, SizeContext(category="MEDIUM", volatility_tolerance="MEDIUM", growth_expectation="MEDIUM")),
    (1_000_000_000, SizeContext(category="SMALL", volatility_tolerance="HIGH", growth_expectation="HIGH")),
]
MICRO_SIZE_CONTEXT = SizeContext(category="MICRO", volatility_tolerance="HIGH", growth_expectation="HIGH")
UNKNOWN_SIZE_CONTEXT = SizeContext(category="SMALL", volatility_tolerance="HIGH", growth_expectation="MEDIUM")

# Depositary receipts: four-letter root plus one of the BDR series digits.
BDR_PATTERN = re.compile(r"^[A-Z0-9]{4}(32|33|34|35|39)$")
INTERNATIONAL_ETFS = frozenset({"IVVB11", "SPXI11"})

HOLDING_KEYWORDS: tuple[str, ...] = ("holding", "participações", "participacoes")

LIKELY_BANK_TICKERS = frozenset({
    "ITUB3", "ITUB4", "BBDC3", "BBDC4", "BBAS3", "SANB3", "SANB4", "SANB11",
    "BPAC3", "BPAC5", "BPAC11", "ABCB4", "BRSR3", "BRSR5", "BRSR6", "BMGB4",
    "BPAN4", "BRBI11", "BEES3", "BEES4", "BAZA3", "BMEB3", "BMEB4", "BNBR3",
    "BGIP3", "BGIP4", "BSLI3", "BSLI4", "BRIV3", "BRIV4", "PINE3", "PINE4",
    "MODL11", "BIDI11", "INBR32", "ITSA3", "ITSA4",
})


def normalize_ticker(ticker: str | None) -> str:
    if not ticker:
        return ""
    normalized = ticker.strip().upper()
    if normalized.endswith(".SA"):
        normalized = normalized[:-3]
    return normalized


def get_sector_context(sector: str | None, industry: str | None) -> SectorContext:
    sector_lower = (sector or "").lower()
    industry_lower = (industry or "").lower()
    for sector_keywords, industry_keywords, context in SECTOR_RULES:
        if any(k in sector_lower for k in sector_keywords) or any(k in industry_lower for k in industry_keywords):
            return context
    return DEFAULT_SECTOR_CONTEXT


def get_size_context(market_cap: float | None) -> SizeContext:
    if not market_cap or market_cap <= 0:
        return UNKNOWN_SIZE_CONTEXT
    for threshold, context in SIZE_BANDS:
        if market_cap > threshold:
            return context
    return MICRO_SIZE_CONTEXT


def is_foreign_listed(ticker: str | None) -> bool:
    normalized = normalize_ticker(ticker)
    if not normalized:
        return False
    return normalized in INTERNATIONAL_ETFS or bool(BDR_PATTERN.match(normalized))


def is_holding_company(company: CompanyInfo | None) -> bool:
    if company is None:
        return False
    if company.is_holding is not None:
        return company.is_holding
    text = f"{company.name or ''} {company.industry or ''}".lower()
    return any(keyword in text for keyword in HOLDING_KEYWORDS)


def is_likely_bank_ticker(ticker: str | None) -> bool:
    return normalize_ticker(ticker) in LIKELY_BANK_TICKERS
