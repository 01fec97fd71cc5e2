"""Payment instruments accepted by the operation contract."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CreditCard:
    """
    Raw card details for a single operation call (PCI scope).

    Never persisted by the framework. The number and verification value are
    excluded from repr so that an instrument logged by accident does not
    leak card data.
    """

    number: str = field(repr=False)
    month: int
    year: int
    verification_value: str | None = field(default=None, repr=False)
    first_name: str | None = None
    last_name: str | None = None

    def __post_init__(self) -> None:
        """Validate card fields."""
        number = str(self.number).replace(" ", "")
        if not number.isdigit():
            raise ValueError("card number must be numeric")
        if len(number) < 12 or len(number) > 19:
            raise ValueError("card number must be 12-19 digits")
        object.__setattr__(self, "number", number)

        month = int(self.month)
        if month < 1 or month > 12:
            raise ValueError("month must be between 1 and 12")
        object.__setattr__(self, "month", month)

        year = int(self.year)
        if year < 100:
            year += 2000
        object.__setattr__(self, "year", year)

        if self.verification_value is not None:
            cvv = str(self.verification_value)
            if not cvv.isdigit() or len(cvv) not in (3, 4):
                raise ValueError("verification value must be 3 or 4 digits")
            object.__setattr__(self, "verification_value", cvv)

    @property
    def last_four(self) -> str:
        return self.number[-4:]

    @property
    def name(self) -> str | None:
        parts = [part for part in (self.first_name, self.last_name) if part]
        return " ".join(parts) or None

    @property
    def brand(self) -> str:
        """
        Card brand from the IIN prefix (simplified lookup).

        Returns:
            Card brand name (visa, master, american_express, discover, unknown)
        """
        number = self.number
        if number.startswith("4"):
            return "visa"
        elif number.startswith(("51", "52", "53", "54", "55")) or 2221 <= int(number[:4]) <= 2720:
            return "master"
        elif number.startswith(("34", "37")):
            return "american_express"
        elif number.startswith(("6011", "644", "645", "646", "647", "648", "649", "65")):
            return "discover"
        else:
            return "unknown"

    def two_digit_year(self) -> str:
        return f"{self.year % 100:02d}"

    def two_digit_month(self) -> str:
        return f"{self.month:02d}"

    def expiry(self, layout: str = "YYMM") -> str:
        """
        Render the expiry date.

        Args:
            layout: "YYMM" (e.g. "3502") or "MM/YYYY" (e.g. "02/2035")
        """
        if layout == "YYMM":
            return self.two_digit_year() + self.two_digit_month()
        if layout == "MM/YYYY":
            return f"{self.two_digit_month()}/{self.year}"
        raise ValueError(f"Unknown expiry layout: {layout}")

    def sensitive_values(self) -> tuple[str, ...]:
        """Literals that must never appear in a logged transcript."""
        values = [self.number]
        if self.verification_value:
            values.append(self.verification_value)
        return tuple(values)


@dataclass(frozen=True)
class StoredToken:
    """Reference to a card previously vaulted with the processor via store()."""

    token: str
    source: str | None = None

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("stored token cannot be empty")

    def sensitive_values(self) -> tuple[str, ...]:
        return ()


PaymentInstrument = CreditCard | StoredToken
