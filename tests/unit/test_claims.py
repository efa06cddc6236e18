"""
Unit tests for unverified token claims decoding.
"""

import time

from fittrack_client.auth_token.claims import (
    decode_claims,
    is_token_expired,
    is_token_expiring_soon,
    remaining_seconds,
    token_expiry,
)
from tests.fixtures.token_fixtures import (
    HOUR,
    MALFORMED_TOKEN,
    SEGMENTLESS_TOKEN,
    make_token,
)


class TestDecodeClaims:
    def test_decodes_payload_segment(self):
        token = make_token(claims={"role": "admin"})

        claims = decode_claims(token)

        assert claims is not None
        assert claims["email"] == "athlete@example.com"
        assert claims["role"] == "admin"

    def test_malformed_payload_returns_none(self):
        assert decode_claims(MALFORMED_TOKEN) is None

    def test_token_without_segments_returns_none(self):
        assert decode_claims(SEGMENTLESS_TOKEN) is None

    def test_empty_token_returns_none(self):
        assert decode_claims(None) is None
        assert decode_claims("") is None

    def test_non_object_payload_returns_none(self):
        # base64url("[1, 2]")
        assert decode_claims("h.WzEsIDJd.s") is None


class TestExpiry:
    def test_token_expiry_from_exp_claim(self):
        now = 1_700_000_000
        token = make_token(expires_in=120, now=now)

        expiry = token_expiry(token)

        assert expiry is not None
        assert expiry.timestamp() == now + 120

    def test_missing_exp_has_no_expiry(self):
        token = make_token(expires_in=None)

        assert token_expiry(token) is None
        assert remaining_seconds(token) is None

    def test_non_numeric_exp_has_no_expiry(self):
        token = make_token(expires_in=None, claims={"exp": "tomorrow"})

        assert token_expiry(token) is None

    def test_remaining_seconds_uses_given_now(self):
        now = 1_700_000_000
        token = make_token(expires_in=90, now=now)

        assert remaining_seconds(token, now=now) == 90


class TestExpiryChecks:
    def test_already_expired_token(self):
        token = make_token(expires_in=None, claims={"exp": int(time.time()) - 10})

        assert is_token_expired(token) is True
        assert is_token_expiring_soon(token) is True

    def test_valid_token_is_not_expired(self):
        token = make_token(expires_in=HOUR)

        assert is_token_expired(token) is False

    def test_malformed_token_fails_safe_for_both_checks(self):
        assert is_token_expired(MALFORMED_TOKEN) is True
        assert is_token_expiring_soon(MALFORMED_TOKEN) is True

    def test_missing_token_counts_as_expired(self):
        assert is_token_expired(None) is True
        assert is_token_expiring_soon(None) is True

    def test_expiring_soon_below_one_day(self):
        assert is_token_expiring_soon(make_token(expires_in=23 * HOUR)) is True

    def test_not_expiring_soon_above_one_day(self):
        assert is_token_expiring_soon(make_token(expires_in=25 * HOUR)) is False

    def test_custom_threshold(self):
        token = make_token(expires_in=30 * 60)

        assert is_token_expiring_soon(token, threshold_seconds=60) is False
        assert is_token_expiring_soon(token, threshold_seconds=HOUR) is True
