"""
Authorization token codec.

A successful purchase/authorize/store returns an opaque token that later
capture/refund/void calls hand back. The token carries everything those
calls need (processor transaction id, currency, processor-specific fields)
so that the framework never needs a database.

Two formats are understood:

- v2 (written by encode): ``v2;transaction_id=<id>;currency=USD;<key>=<value>``.
  Every value is percent-encoded, so ids containing ``|``, ``;`` or ``=``
  round-trip unchanged.
- legacy (read for backward compatibility, written only by encode_legacy):
  pipe-delimited positional slots with the currency last, e.g.
  ``dateandtime|batch|transaction|rrn|authcode|transtype|amount|currency``.

Decoding never raises. A token missing trailing fields decodes with those
fields as None; callers fall back to the option currency, then to the
processor default.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from urllib.parse import quote, unquote

import structlog

from payment_adapters.models.exceptions import UnsupportedCurrency
from payment_adapters.models.money import is_currency_code, normalize_currency

logger = structlog.get_logger(__name__)

DELIMITER = "|"
VERSION = "v2"
_FIELD_SEPARATOR = ";"
_PREFIX = VERSION + _FIELD_SEPARATOR


@dataclass(frozen=True)
class TokenSchema:
    """
    Positional layout of a processor's legacy tokens.

    Attributes:
        legacy_layout: Field names of the slots preceding the currency slot.
            The first field absorbs any surplus slots, so it is the one that
            may contain the delimiter itself.
        identifier: Which layout field is the processor transaction id.
    """

    legacy_layout: tuple[str, ...] = ("transaction_id",)
    identifier: str = "transaction_id"

    def __post_init__(self) -> None:
        if not self.legacy_layout:
            raise ValueError("legacy_layout cannot be empty")
        if self.identifier not in self.legacy_layout:
            raise ValueError(f"identifier {self.identifier!r} must be part of legacy_layout")
        if "currency" in self.legacy_layout:
            raise ValueError("currency is always the trailing slot and cannot be in legacy_layout")


DEFAULT_SCHEMA = TokenSchema()


@dataclass(frozen=True)
class AuthorizationToken:
    """Decoded contents of an authorization token."""

    transaction_id: str
    currency: str | None = None
    extra: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", normalize_currency(self.currency))
        cleaned = {key: value for key, value in self.extra.items() if value is not None}
        object.__setattr__(self, "extra", MappingProxyType(cleaned))

    @property
    def is_empty(self) -> bool:
        return not self.transaction_id

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.extra.get(key, default)

    def resolve_currency(self, explicit: str | None, default: str) -> str:
        """
        Pick the currency for a follow-up call.

        Explicit per-call currency wins, then the currency recorded in the
        token, then the processor default.
        """
        return normalize_currency(explicit) or self.currency or default

    def encode(self) -> str:
        return encode(self.transaction_id, self.currency, **self.extra)


def encode(transaction_id: str, currency: str | None = None, **extra: str | None) -> str:
    """
    Encode token fields into a v2 token string.

    Args:
        transaction_id: Processor-assigned transaction id
        currency: ISO 4217 code (alpha or numeric), or None
        **extra: Processor-specific fields; None values are omitted

    Returns:
        Opaque token string
    """
    fields = [f"transaction_id={quote(str(transaction_id), safe='')}"]
    currency = normalize_currency(currency)
    if currency:
        fields.append(f"currency={currency}")
    for key, value in extra.items():
        if value is None:
            continue
        fields.append(f"{quote(key, safe='')}={quote(str(value), safe='')}")
    return _PREFIX + _FIELD_SEPARATOR.join(fields)


def encode_legacy(token: AuthorizationToken, schema: TokenSchema = DEFAULT_SCHEMA) -> str:
    """
    Encode a token in the pipe-delimited legacy layout.

    Only non-identifier fields must be free of the delimiter for the result
    to decode back to the same token.
    """
    slots = []
    for name in schema.legacy_layout:
        if name == schema.identifier:
            slots.append(token.transaction_id)
        else:
            slots.append(token.get(name) or "")
    if token.currency:
        slots.append(token.currency)
    return DELIMITER.join(slots)


def decode(token: str | None, schema: TokenSchema = DEFAULT_SCHEMA) -> AuthorizationToken:
    """
    Decode a token string, tolerating legacy and truncated tokens.

    Args:
        token: Token from a previous response (may be None or empty)
        schema: Legacy layout of the issuing processor

    Returns:
        AuthorizationToken; an unusable token decodes to an empty transaction id
    """
    if not token:
        return AuthorizationToken(transaction_id="")
    if token.startswith(_PREFIX):
        return _decode_tagged(token[len(_PREFIX):])
    return _decode_legacy(token, schema)


def _decode_tagged(payload: str) -> AuthorizationToken:
    fields: dict[str, str] = {}
    for item in payload.split(_FIELD_SEPARATOR):
        key, sep, value = item.partition("=")
        if not sep:
            continue
        fields[unquote(key)] = unquote(value)

    transaction_id = fields.pop("transaction_id", "")
    currency = fields.pop("currency", None)
    if currency is not None and not is_currency_code(currency.upper()):
        logger.warning("authorization_token_bad_currency", currency=currency)
        currency = None
    return AuthorizationToken(transaction_id=transaction_id, currency=currency, extra=fields)


def _decode_legacy(token: str, schema: TokenSchema) -> AuthorizationToken:
    layout = schema.legacy_layout
    parts = token.split(DELIMITER)

    # A slot beyond the layout is always the currency slot
    currency = None
    if len(parts) > len(layout):
        currency = _legacy_currency(parts.pop())

    values: list[str | None]
    if len(parts) > len(layout):
        head = len(parts) - (len(layout) - 1)
        values = [DELIMITER.join(parts[:head]), *parts[head:]]
    else:
        values = [*parts, *([None] * (len(layout) - len(parts)))]

    fields = {name: (value or None) for name, value in zip(layout, values)}
    transaction_id = fields.pop(schema.identifier) or ""
    return AuthorizationToken(transaction_id=transaction_id, currency=currency, extra=fields)


def _legacy_currency(slot: str) -> str | None:
    if not slot:
        return None
    try:
        return normalize_currency(slot)
    except UnsupportedCurrency:
        logger.warning("authorization_token_bad_currency", currency=slot)
        return None
