"""Webhook signature verification: HMAC-SHA256 hex digests.

Senders sign the raw request body with the shared secret and put the hex
digest in ``x-coinbase-signature`` (or ``x-webhook-signature``). The digest
must be computed over the same bytes the sender signed, so callers should
pass the raw body whenever they have it.

Comparison is always ``hmac.compare_digest`` over the decoded digest bytes.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from src.webhooks.exceptions import InvalidSignatureError, MissingSignatureError

SIGNATURE_HEADERS = ("x-coinbase-signature", "x-webhook-signature")


@dataclass
class ProcessedWebhook:
    """Normalized result of applying the signature policy to a body."""

    data: Any
    verified: bool
    processed: bool = True
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


def _body_bytes(body: Any) -> bytes:
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    # Same output as JSON.stringify: compact separators, non-ASCII kept
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def generate_expected_signature(body: Any, secret: str) -> str:
    """Return the hex HMAC-SHA256 the sender should have produced for ``body``."""
    return hmac.new(secret.encode("utf-8"), _body_bytes(body), hashlib.sha256).hexdigest()


def verify_webhook_signature(signature: str, body: Any, secret: str) -> bool:
    """Check ``signature`` (hex) against the HMAC-SHA256 of ``body``.

    Never raises: malformed hex, wrong digest length or a non-string
    signature all come back as ``False``.
    """
    try:
        provided = bytes.fromhex(signature.strip())
        expected = hmac.new(
            secret.encode("utf-8"), _body_bytes(body), hashlib.sha256
        ).digest()
    except (AttributeError, TypeError, ValueError) as e:
        logger.debug(f"[WEBHOOK] Signature decode failed: {e}")
        return False

    if not provided:
        return False
    return hmac.compare_digest(provided, expected)


def process_webhook(
    body: Any,
    signature: str | None,
    secret: str,
    require_signature: bool = False,
) -> ProcessedWebhook:
    """Apply the signature policy to an inbound body.

    Raises:
        MissingSignatureError: ``require_signature`` and no signature sent.
        InvalidSignatureError: a signature was sent and does not verify, or
            one is required but there is no secret to check it against.
    """
    if require_signature and not signature:
        raise MissingSignatureError("Webhook signature required but not provided")

    if not signature:
        return ProcessedWebhook(data=body, verified=False)

    if not secret:
        if require_signature:
            raise InvalidSignatureError("Webhook signature cannot be checked: no secret configured")
        logger.warning("[WEBHOOK] Signature present but WEBHOOK_SECRET is empty, not verified")
        return ProcessedWebhook(data=body, verified=False)

    if not verify_webhook_signature(signature, body, secret):
        raise InvalidSignatureError("Invalid webhook signature")

    return ProcessedWebhook(data=body, verified=True)


def extract_webhook_signature(headers: Mapping[str, str]) -> str | None:
    """Pull the signature out of request headers, ``None`` if absent.

    Header names are matched case-insensitively; an empty header value counts
    as absent.
    """
    lowered = {str(k).lower(): v for k, v in headers.items()}
    for name in SIGNATURE_HEADERS:
        value = lowered.get(name)
        if value:
            return value
    return None
