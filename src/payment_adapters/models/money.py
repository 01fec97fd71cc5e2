"""Amount and currency normalization.

Amounts travel through the framework as integer minor units of their
currency (cents for USD, whole krónur for ISK, fils for KWD). Each adapter
declares how its processor wants them rendered; the helpers here do the
conversion in both directions.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from payment_adapters.models.exceptions import InvalidAmount, UnsupportedCurrency


class MoneyFormat(str, Enum):
    """How a processor expects amounts on the wire."""

    CENTS = "cents"  # integer minor units, e.g. "1204"
    DOLLARS = "dollars"  # decimal major units, e.g. "12.04"


CURRENCIES_WITHOUT_FRACTIONS = frozenset(
    {
        "BIF", "BYR", "CLP", "CVE", "DJF", "GNF", "ISK", "JPY", "KMF",
        "KRW", "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
    }
)

THREE_DECIMAL_CURRENCIES = frozenset({"BHD", "JOD", "KWD", "OMR", "TND"})

# ISO 4217 numeric codes for the currencies our processors accept
NUMERIC_CURRENCY_CODES: dict[str, str] = {
    "AUD": "036",
    "BHD": "048",
    "BRL": "986",
    "CAD": "124",
    "CHF": "756",
    "CLP": "152",
    "CNY": "156",
    "CZK": "203",
    "DKK": "208",
    "EUR": "978",
    "GBP": "826",
    "HKD": "344",
    "HUF": "348",
    "ILS": "376",
    "INR": "356",
    "ISK": "352",
    "JOD": "400",
    "JPY": "392",
    "KRW": "410",
    "KWD": "414",
    "MXN": "484",
    "NOK": "578",
    "NZD": "554",
    "OMR": "512",
    "PLN": "985",
    "SEK": "752",
    "SGD": "702",
    "TND": "788",
    "USD": "840",
    "VND": "704",
    "ZAR": "710",
}

_ALPHA_BY_NUMERIC = {numeric: alpha for alpha, numeric in NUMERIC_CURRENCY_CODES.items()}


def is_currency_code(value: str | None) -> bool:
    """Return True for a well-formed alpha (``USD``) or known numeric (``840``) code."""
    if not value:
        return False
    if len(value) == 3 and value.isalpha() and value.isupper():
        return True
    return value in _ALPHA_BY_NUMERIC


def normalize_currency(code: str | None) -> str | None:
    """
    Normalize a currency code to its ISO 4217 alpha form.

    Accepts alpha codes in any case and known numeric codes. ``None`` and
    empty strings pass through as ``None``.

    Raises:
        UnsupportedCurrency: If the code is neither alpha nor a known numeric code
    """
    if not code:
        return None
    if code in _ALPHA_BY_NUMERIC:
        return _ALPHA_BY_NUMERIC[code]
    upper = code.upper()
    if len(upper) == 3 and upper.isalpha():
        return upper
    raise UnsupportedCurrency(f"Unrecognized currency code: {code}")


def numeric_currency_code(alpha: str) -> str:
    """Return the ISO 4217 numeric code for an alpha code."""
    try:
        return NUMERIC_CURRENCY_CODES[alpha.upper()]
    except KeyError:
        raise UnsupportedCurrency(f"No numeric code known for currency: {alpha}") from None


def alpha_currency_code(numeric: str) -> str:
    """Return the ISO 4217 alpha code for a numeric code."""
    try:
        return _ALPHA_BY_NUMERIC[numeric]
    except KeyError:
        raise UnsupportedCurrency(f"Unknown numeric currency code: {numeric}") from None


def currency_exponent(currency: str) -> int:
    """Number of minor-unit digits for a currency."""
    currency = currency.upper()
    if currency in CURRENCIES_WITHOUT_FRACTIONS:
        return 0
    if currency in THREE_DECIMAL_CURRENCIES:
        return 3
    return 2


def to_major_units(amount: int, currency: str) -> Decimal:
    """Convert minor units to a Decimal in major units (1204 USD -> 12.04)."""
    exponent = currency_exponent(currency)
    return (Decimal(amount) / (Decimal(10) ** exponent)).quantize(
        Decimal(1).scaleb(-exponent)
    )


def from_major_units(value: Decimal | str | float | int, currency: str) -> int:
    """
    Convert a processor's major-unit amount back to integer minor units.

    Raises:
        InvalidAmount: If the value is not a number
    """
    exponent = currency_exponent(currency)
    try:
        major = Decimal(str(value))
    except InvalidOperation:
        raise InvalidAmount(f"Not a decimal amount: {value!r}") from None
    minor = (major * (Decimal(10) ** exponent)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(minor)


def localized_amount(amount: int, currency: str, money_format: MoneyFormat) -> str:
    """Render minor units in the processor's declared money format."""
    if money_format == MoneyFormat.CENTS:
        return str(amount)
    return str(to_major_units(amount, currency))


@dataclass(frozen=True)
class Money:
    """
    An amount in integer minor units together with its ISO 4217 currency.

    Money is always non-negative; operations that allow "no amount"
    (full refunds) use None instead of a Money.
    """

    amount: int
    currency: str

    def __post_init__(self) -> None:
        """Validate amount and normalize the currency code."""
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise InvalidAmount(
                f"amount must be an integer number of minor units, got {self.amount!r}"
            )
        if self.amount < 0:
            raise InvalidAmount("amount cannot be negative")

        currency = normalize_currency(self.currency)
        if currency is None:
            raise UnsupportedCurrency("currency is required")
        object.__setattr__(self, "currency", currency)

    @property
    def major_units(self) -> Decimal:
        return to_major_units(self.amount, self.currency)

    def render(self, money_format: MoneyFormat) -> str:
        return localized_amount(self.amount, self.currency, money_format)
