"""Reference data for pricing: countries, base prices, services, limits."""

from decimal import Decimal

from vatpricing.engine.types import ServiceType

DEFAULT_CURRENCY = "EUR"
DEFAULT_RULE_PRIORITY = 100
MIN_RULE_PRIORITY = 1
MAX_RULE_PRIORITY = 1000
MAX_EXPRESSION_LENGTH = 2000
# Parenthesis and unary sign nesting
MAX_EXPRESSION_DEPTH = 50
MIN_TRANSACTION_VOLUME = 1

# code -> (name, currency)
COUNTRIES: dict[str, tuple[str, str]] = {
    "GB": ("United Kingdom", "GBP"),
    "DE": ("Germany", "EUR"),
    "FR": ("France", "EUR"),
    "IT": ("Italy", "EUR"),
    "ES": ("Spain", "EUR"),
    "NL": ("Netherlands", "EUR"),
    "BE": ("Belgium", "EUR"),
    "SE": ("Sweden", "SEK"),
    "DK": ("Denmark", "DKK"),
    "PL": ("Poland", "PLN"),
    "IE": ("Ireland", "EUR"),
    "AT": ("Austria", "EUR"),
    "FI": ("Finland", "EUR"),
    "US": ("United States", "USD"),
}

BASE_PRICES: dict[ServiceType, Decimal] = {
    ServiceType.STANDARD_FILING: Decimal("100"),
    ServiceType.COMPLEX_FILING: Decimal("200"),
    ServiceType.PRIORITY_SERVICE: Decimal("300"),
}

ADDITIONAL_SERVICES: dict[str, str] = {
    "TaxConsultancy": "Tax Consultancy",
    "HistoricalDataProcessing": "Historical Data Processing",
    "ReconciliationServices": "Reconciliation Services",
}

# Binding names supplied by every calculation
BASE_PRICE = "basePrice"
TRANSACTION_VOLUME = "transactionVolume"
SERVICE_TYPE = "serviceType"
FILING_FREQUENCY = "filingFrequency"
COUNTRY_CODE = "countryCode"
COUNTRIES_COUNT = "countriesCount"
ADDITIONAL_SERVICES_COUNT = "additionalServicesCount"
ADDITIONAL_SERVICES_LIST = "additionalServices"
CURRENCY_CODE = "currencyCode"
GROSS_TOTAL = "grossTotal"

CALCULATION_INPUTS = frozenset(
    {
        BASE_PRICE,
        TRANSACTION_VOLUME,
        SERVICE_TYPE,
        FILING_FREQUENCY,
        COUNTRY_CODE,
        COUNTRIES_COUNT,
        ADDITIONAL_SERVICES_COUNT,
        ADDITIONAL_SERVICES_LIST,
        CURRENCY_CODE,
        GROSS_TOTAL,
    }
)


def country_name(country_code: str) -> str:
    """Display name for a country code, falling back to the code itself."""
    return COUNTRIES.get(country_code, (country_code, DEFAULT_CURRENCY))[0]
