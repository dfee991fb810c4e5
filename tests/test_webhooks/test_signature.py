"""Tests for webhook HMAC verification and signature policy."""

import hashlib
import hmac
import json

import pytest

from src.webhooks.exceptions import InvalidSignatureError, MissingSignatureError
from src.webhooks.signature import (
    extract_webhook_signature,
    generate_expected_signature,
    process_webhook,
    verify_webhook_signature,
)

SECRET = "whsec_test_secret"
BODY = b'{"eventType":"transaction","value":"1000000000000000000"}'


def _sign(body: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def _flip_bit(data: bytes, index: int) -> bytes:
    mutated = bytearray(data)
    mutated[index] ^= 0x01
    return bytes(mutated)


class TestVerify:
    def test_valid_signature(self):
        assert verify_webhook_signature(_sign(BODY), BODY, SECRET) is True

    def test_uppercase_hex_accepted(self):
        assert verify_webhook_signature(_sign(BODY).upper(), BODY, SECRET) is True

    def test_str_body_hashes_utf8_bytes(self):
        text = BODY.decode()
        assert verify_webhook_signature(_sign(BODY), text, SECRET) is True

    def test_dict_body_uses_compact_json(self):
        payload = {"eventType": "transaction", "value": "1000000000000000000"}
        assert verify_webhook_signature(_sign(BODY), payload, SECRET) is True

    def test_dict_body_keeps_non_ascii(self):
        payload = {"name": "Ünïcode"}
        raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode()
        assert verify_webhook_signature(_sign(raw), payload, SECRET) is True

    @pytest.mark.parametrize("bit", [0, 7, 31])
    def test_single_bit_flip_in_signature_fails(self, bit):
        digest = bytes.fromhex(_sign(BODY))
        mutated = _flip_bit(digest, bit).hex()
        assert verify_webhook_signature(mutated, BODY, SECRET) is False

    @pytest.mark.parametrize("index", [0, 10, len(BODY) - 1])
    def test_single_bit_flip_in_body_fails(self, index):
        assert verify_webhook_signature(_sign(BODY), _flip_bit(BODY, index), SECRET) is False

    def test_wrong_secret_fails(self):
        assert verify_webhook_signature(_sign(BODY, "other"), BODY, SECRET) is False

    @pytest.mark.parametrize(
        "signature",
        ["not-hex", "abc", "", "00" * 16, "zz" * 32],
    )
    def test_malformed_signature_returns_false(self, signature):
        assert verify_webhook_signature(signature, BODY, SECRET) is False

    def test_non_string_signature_returns_false(self):
        assert verify_webhook_signature(None, BODY, SECRET) is False  # type: ignore[arg-type]

    def test_generate_expected_signature_matches(self):
        assert generate_expected_signature(BODY, SECRET) == _sign(BODY)


class TestProcessWebhook:
    def test_required_and_missing_raises(self):
        with pytest.raises(MissingSignatureError):
            process_webhook(BODY, None, SECRET, require_signature=True)

    def test_invalid_signature_raises(self):
        with pytest.raises(InvalidSignatureError):
            process_webhook(BODY, "00" * 32, SECRET, require_signature=False)

    def test_valid_signature_verified(self):
        result = process_webhook(BODY, _sign(BODY), SECRET, require_signature=True)
        assert result.processed is True
        assert result.verified is True
        assert result.data == BODY

    def test_optional_and_missing_passes_unverified(self):
        result = process_webhook(BODY, None, SECRET, require_signature=False)
        assert result.processed is True
        assert result.verified is False

    def test_signature_without_secret_not_verified(self):
        result = process_webhook(BODY, _sign(BODY), "", require_signature=False)
        assert result.verified is False

    def test_required_without_secret_raises(self):
        with pytest.raises(InvalidSignatureError):
            process_webhook(BODY, _sign(BODY), "", require_signature=True)


class TestExtract:
    def test_coinbase_header(self):
        assert extract_webhook_signature({"x-coinbase-signature": "abc"}) == "abc"

    def test_generic_header(self):
        assert extract_webhook_signature({"x-webhook-signature": "def"}) == "def"

    def test_coinbase_header_wins(self):
        headers = {"x-webhook-signature": "def", "x-coinbase-signature": "abc"}
        assert extract_webhook_signature(headers) == "abc"

    def test_case_insensitive_names(self):
        assert extract_webhook_signature({"X-Coinbase-Signature": "abc"}) == "abc"

    def test_missing_returns_none(self):
        assert extract_webhook_signature({"content-type": "application/json"}) is None

    def test_empty_value_is_absent(self):
        assert extract_webhook_signature({"x-coinbase-signature": ""}) is None
