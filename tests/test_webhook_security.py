"""Tests for webhook signatures and admin token resolution."""

from partypallet.auth import parse_admin_keys, resolve_actor
from partypallet.webhook_security import (
    compute_hmac_sha512,
    create_webhook_signature,
    verify_paystack_signature,
)

SECRET = "sk_test_secret"
BODY = b'{"event":"charge.success","data":{"reference":"party_pallet_1_abc"}}'


class TestPaystackSignature:
    def test_signature_is_hex_sha512(self):
        signature = compute_hmac_sha512(SECRET, BODY)
        assert len(signature) == 128
        assert signature == create_webhook_signature(SECRET, BODY)

    def test_valid_signature(self):
        assert verify_paystack_signature(SECRET, BODY, compute_hmac_sha512(SECRET, BODY))

    def test_tampered_body_is_rejected(self):
        signature = compute_hmac_sha512(SECRET, BODY)
        assert not verify_paystack_signature(SECRET, BODY.replace(b"abc", b"abd"), signature)

    def test_wrong_secret_is_rejected(self):
        assert not verify_paystack_signature(SECRET, BODY, compute_hmac_sha512("other", BODY))

    def test_missing_secret_or_signature(self):
        assert not verify_paystack_signature(None, BODY, compute_hmac_sha512(SECRET, BODY))
        assert not verify_paystack_signature(SECRET, BODY, None)


class TestAdminKeys:
    def test_parse_pairs(self):
        keys = parse_admin_keys("ife:token-one, tunde:token-two")
        assert keys == {"token-one": "ife", "token-two": "tunde"}

    def test_malformed_entries_are_skipped(self):
        assert parse_admin_keys("no-separator,:empty-actor,ok:token") == {"token": "ok"}

    def test_resolve_actor(self):
        keys = {"token-one": "ife"}
        assert resolve_actor("token-one", keys).id == "ife"
        assert resolve_actor("token-two", keys) is None
