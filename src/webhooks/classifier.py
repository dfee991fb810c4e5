"""Classify activity webhooks into tracked native / token transfers.

Decision table:
  eventType=erc20_transfer + tracked, non-zero contract  → token transfer
  eventType=transaction                                  → native transfer
  anything else (or untracked contract)                  → Ignored

Raw amounts (decimal or 0x-hex, below 2**256) are persisted as canonical
decimal strings; ``human_value`` (6 places) is only for notification text.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_TOKEN_ADDRESS = ZERO_ADDRESS

EVENT_ERC20_TRANSFER = "erc20_transfer"
EVENT_NATIVE_TRANSACTION = "transaction"

_SIX_PLACES = Decimal("0.000001")
_UINT256_LIMIT = 2**256


class WebhookPayload(BaseModel):
    """Activity webhook body with every field filled in.

    Missing or empty fields fall back to sentinels, so downstream code never
    sees ``None``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event_type: str = Field(default="unknown", alias="eventType")
    transaction_hash: str = Field(default="", alias="transactionHash")
    network: str = "unknown"
    from_address: str = Field(default="unknown", alias="from")
    to_address: str = Field(default="unknown", alias="to")
    value: str = "0"
    contract_address: str = Field(default="", alias="contractAddress")

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            return {}

        def pick(*keys: str, default: str) -> str:
            for key in keys:
                raw = data.get(key)
                if raw is not None and raw != "":
                    return str(raw).strip()
            return default

        return {
            "eventType": pick("eventType", default="unknown"),
            "transactionHash": pick("transactionHash", default=""),
            "network": pick("network", default="unknown"),
            "from": pick("from", default="unknown"),
            "to": pick("to", default="unknown"),
            "value": pick("value", "valueString", default="0"),
            # Token transfers without contractAddress are keyed by "to"
            "contractAddress": pick("contractAddress", "to", default=""),
        }


@dataclass(frozen=True)
class TrackedToken:
    address: str
    symbol: str
    name: str
    decimals: int


class TokenTable:
    """Case-insensitive ``address -> TrackedToken`` lookup plus the native asset."""

    def __init__(self, tokens: list[TrackedToken], native: TrackedToken) -> None:
        self._tokens = {t.address.lower(): t for t in tokens}
        self.native = native

    def get(self, address: str) -> TrackedToken | None:
        return self._tokens.get(address.strip().lower())

    def __len__(self) -> int:
        return len(self._tokens)

    @classmethod
    def from_settings(cls, settings: Any) -> TokenTable:
        tokens = [
            TrackedToken(
                address=address,
                symbol=entry.symbol,
                name=entry.name or entry.symbol,
                decimals=entry.decimals,
            )
            for address, entry in settings.tracked_tokens.items()
        ]
        native = TrackedToken(
            address=NATIVE_TOKEN_ADDRESS,
            symbol=settings.native_symbol,
            name=settings.native_name,
            decimals=settings.native_decimals,
        )
        return cls(tokens, native)


@dataclass(frozen=True)
class ClassifiedEvent:
    """A transfer of a tracked asset."""

    event_type: str
    network: str
    transaction_hash: str
    from_address: str
    to_address: str
    token: TrackedToken
    raw_value: str
    human_value: str

    @property
    def is_native(self) -> bool:
        return self.event_type == EVENT_NATIVE_TRANSACTION

    @property
    def observed_addresses(self) -> list[str]:
        """Lower-cased from/to addresses usable for config matching."""
        seen: list[str] = []
        for addr in (self.from_address, self.to_address):
            addr = addr.lower()
            if addr != "unknown" and addr not in seen:
                seen.append(addr)
        return seen


@dataclass(frozen=True)
class Ignored:
    """Received, well-formed, but not something we track."""

    event_type: str
    network: str
    reason: str


def parse_payload(data: Any) -> WebhookPayload:
    return WebhookPayload.model_validate(data)


def format_amount(raw_value: str, decimals: int) -> str:
    """Scale a raw integer amount by ``decimals`` and render 6 decimal places."""
    with localcontext() as ctx:
        # uint256 amounts exceed the default 28-digit precision
        ctx.prec = 100
        scaled = Decimal(raw_value).scaleb(-decimals)
        return f"{scaled.quantize(_SIX_PLACES, rounding=ROUND_HALF_UP):f}"


def _normalize_raw(value: str) -> str | None:
    """Decimal string for a uint256 amount given in decimal or 0x-hex, else None."""
    digits, base = value, 10
    if value[:2].lower() == "0x":
        digits, base = value[2:], 16
    if not digits or not digits.isascii() or not digits.isalnum():
        return None
    # 78 decimal digits / 64 hex digits hold any uint256
    if len(digits.lstrip("0")) > (78 if base == 10 else 64):
        return None
    try:
        amount = int(digits, base)
    except ValueError:
        return None
    if amount >= _UINT256_LIMIT:
        return None
    return str(amount)


def classify(payload: WebhookPayload, tokens: TokenTable) -> ClassifiedEvent | Ignored:
    """Map a parsed payload to a tracked transfer or ``Ignored``."""
    if payload.event_type == EVENT_ERC20_TRANSFER:
        contract = payload.contract_address.lower()
        token = tokens.get(contract) if contract and contract != ZERO_ADDRESS else None
        if token is None:
            return Ignored(payload.event_type, payload.network, "untracked_token")
    elif payload.event_type == EVENT_NATIVE_TRANSACTION:
        token = tokens.native
    else:
        return Ignored(payload.event_type, payload.network, "unsupported_event_type")

    raw_value = _normalize_raw(payload.value)
    if raw_value is None:
        return Ignored(payload.event_type, payload.network, "malformed_value")
    # Without a hash there is no idempotency key
    if not payload.transaction_hash:
        return Ignored(payload.event_type, payload.network, "missing_transaction_hash")

    return ClassifiedEvent(
        event_type=payload.event_type,
        network=payload.network,
        transaction_hash=payload.transaction_hash.lower(),
        from_address=payload.from_address,
        to_address=payload.to_address,
        token=token,
        raw_value=raw_value,
        human_value=format_amount(raw_value, token.decimals),
    )
