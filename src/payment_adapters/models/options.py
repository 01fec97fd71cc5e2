"""Operation options: the per-call configuration bag."""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from payment_adapters.models.money import normalize_currency

RECOGNIZED_KEYS = frozenset(
    {
        "order_id",
        "currency",
        "billing_address",
        "shipping_address",
        "description",
        "apply_3d_secure",
    }
)

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Address:
    """Billing or shipping address."""

    name: str | None = None
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    country: str | None = None
    phone: str | None = None

    @classmethod
    def from_mapping(cls, data: "Mapping[str, Any] | Address | None") -> "Address | None":
        """Build an Address from a caller dict (``phone_number`` takes precedence over ``phone``)."""
        if data is None or isinstance(data, Address):
            return data
        return cls(
            name=data.get("name"),
            address1=data.get("address1"),
            address2=data.get("address2"),
            city=data.get("city"),
            state=data.get("state"),
            zip=data.get("zip"),
            country=data.get("country"),
            phone=data.get("phone_number") or data.get("phone"),
        )

    def split_name(self) -> tuple[str | None, str | None]:
        if not self.name:
            return None, None
        first, _, last = self.name.strip().partition(" ")
        return first or None, last.strip() or None


@dataclass(frozen=True)
class OperationOptions:
    """
    Recognized options for one operation call.

    Anything a caller passes that is not a recognized key is kept opaque:
    mapping values become extension bags (e.g. ``passenger_itinerary_data``)
    that only adapters declaring them will render, scalar values land in
    ``extra`` where processor-specific adapters may read them.
    """

    order_id: str | None = None
    currency: str | None = None
    billing_address: Address | None = None
    shipping_address: Address | None = None
    description: str | None = None
    apply_3d_secure: bool = False
    extensions: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", normalize_currency(self.currency))
        object.__setattr__(self, "extensions", MappingProxyType(dict(self.extensions)))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @classmethod
    def from_mapping(
        cls, options: "Mapping[str, Any] | OperationOptions | None"
    ) -> "OperationOptions":
        """
        Build options from a caller-supplied dict.

        Args:
            options: Caller options, an existing OperationOptions, or None

        Returns:
            OperationOptions instance
        """
        if options is None:
            return cls()
        if isinstance(options, OperationOptions):
            return options

        extensions: dict[str, Mapping[str, Any]] = {}
        extra: dict[str, Any] = {}
        for key, value in options.items():
            if key in RECOGNIZED_KEYS:
                continue
            if isinstance(value, Mapping):
                extensions[key] = value
            else:
                extra[key] = value

        order_id = options.get("order_id")
        apply_3ds = options.get("apply_3d_secure", False)
        return cls(
            order_id=str(order_id) if order_id is not None else None,
            currency=options.get("currency"),
            billing_address=Address.from_mapping(options.get("billing_address")),
            shipping_address=Address.from_mapping(options.get("shipping_address")),
            description=options.get("description"),
            apply_3d_secure=str(apply_3ds).lower() in _TRUTHY,
            extensions=extensions,
            extra=extra,
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Look up an opaque processor-specific option."""
        return self.extra.get(key, default)

    def extension(self, name: str) -> Mapping[str, Any] | None:
        return self.extensions.get(name)

    def merge(self, **changes: Any) -> "OperationOptions":
        """Return a copy with recognized fields replaced and extra keys added."""
        recognized = {key: value for key, value in changes.items() if key in RECOGNIZED_KEYS}
        extra = {key: value for key, value in changes.items() if key not in RECOGNIZED_KEYS}
        for key in ("billing_address", "shipping_address"):
            if key in recognized:
                recognized[key] = Address.from_mapping(recognized[key])
        return replace(self, **recognized, extra={**self.extra, **extra})
