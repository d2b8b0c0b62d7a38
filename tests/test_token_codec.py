"""Tests for session credential signing and verification."""

from datetime import timedelta

import jwt
import pytest

from sessiongate.services.rejections import RejectionKind
from sessiongate.services.token_codec import TokenCodec
from tests.conftest import MEMBER_ID, T0, TEST_SECRET, FrozenClock


class TestIssueAndVerify:
    def test_round_trip_yields_subject(self, codec):
        result = codec.verify(codec.issue(MEMBER_ID))

        assert result.ok
        assert result.failure is None
        assert result.claims.subject_id == MEMBER_ID
        assert result.claims.issued_at == T0
        assert result.claims.expires_at == T0 + timedelta(days=7)

    def test_valid_until_just_before_expiry(self, codec, clock):
        credential = codec.issue(MEMBER_ID)
        clock.advance(days=7, microseconds=-1)

        assert codec.verify(credential).ok

    def test_expired_exactly_at_ttl(self, codec, clock):
        credential = codec.issue(MEMBER_ID)
        clock.advance(days=7)

        result = codec.verify(credential)
        assert not result.ok
        assert result.failure is RejectionKind.EXPIRED_CREDENTIAL

    def test_expired_after_ttl(self, codec, clock):
        credential = codec.issue(MEMBER_ID)
        clock.advance(days=30)

        assert codec.verify(credential).failure is RejectionKind.EXPIRED_CREDENTIAL

    def test_credentials_issued_in_same_instant_differ(self, codec):
        """Revoking one must never revoke its twin."""
        assert codec.issue(MEMBER_ID) != codec.issue(MEMBER_ID)

    def test_issued_at_keeps_microseconds(self, codec, clock):
        clock.advance(microseconds=123457)
        claims = codec.verify(codec.issue(MEMBER_ID)).claims
        assert claims.issued_at == clock.now

    def test_mint_returns_signed_claims(self, codec):
        credential, claims = codec.mint(MEMBER_ID)
        assert codec.verify(credential).claims == claims


class TestMalformedCredentials:
    @pytest.mark.parametrize("credential", ["", "garbage", "a.b.c", "invalid.token.here"])
    def test_garbage_is_malformed(self, codec, credential):
        assert codec.verify(credential).failure is RejectionKind.MALFORMED_CREDENTIAL

    def test_tampered_signature_is_malformed(self, codec):
        header, payload, signature = codec.issue(MEMBER_ID).split(".")
        first = "A" if signature[0] != "A" else "B"
        tampered = f"{header}.{payload}.{first}{signature[1:]}"

        assert codec.verify(tampered).failure is RejectionKind.MALFORMED_CREDENTIAL

    def test_foreign_secret_is_malformed(self, codec, clock):
        other = TokenCodec("another-secret-" + "1" * 40, clock=clock)
        assert codec.verify(other.issue(MEMBER_ID)).failure is RejectionKind.MALFORMED_CREDENTIAL

    def test_tampered_expired_credential_reports_malformed(self, codec, clock):
        """Signature is checked before any time field is looked at."""
        other = TokenCodec("another-secret-" + "1" * 40, clock=clock)
        credential = other.issue(MEMBER_ID)
        clock.advance(days=60)

        assert codec.verify(credential).failure is RejectionKind.MALFORMED_CREDENTIAL

    def test_missing_claims_are_malformed(self, codec):
        credential = jwt.encode({"sub": MEMBER_ID, "type": "session"}, TEST_SECRET, algorithm="HS256")
        assert codec.verify(credential).failure is RejectionKind.MALFORMED_CREDENTIAL

    def test_wrong_token_type_is_malformed(self, codec):
        payload = {
            "sub": MEMBER_ID,
            "iat": T0.timestamp(),
            "exp": (T0 + timedelta(days=1)).timestamp(),
            "jti": "abc",
            "type": "refresh",
        }
        credential = jwt.encode(payload, TEST_SECRET, algorithm="HS256")
        assert codec.verify(credential).failure is RejectionKind.MALFORMED_CREDENTIAL

    def test_unsigned_token_is_malformed(self, codec):
        payload = {
            "sub": MEMBER_ID,
            "iat": T0.timestamp(),
            "exp": (T0 + timedelta(days=1)).timestamp(),
            "jti": "abc",
            "type": "session",
        }
        credential = jwt.encode(payload, None, algorithm="none")
        assert codec.verify(credential).failure is RejectionKind.MALFORMED_CREDENTIAL


class TestPeek:
    def test_peek_ignores_expiry(self, codec, clock):
        credential = codec.issue(MEMBER_ID)
        clock.advance(days=8)

        claims = codec.peek(credential)
        assert claims is not None
        assert claims.subject_id == MEMBER_ID

    def test_peek_rejects_bad_signature(self, codec):
        assert codec.peek("not-a-token") is None


class TestConstruction:
    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenCodec("")

    def test_non_positive_ttl_rejected(self):
        with pytest.raises(ValueError):
            TokenCodec(TEST_SECRET, ttl=timedelta(0))

    def test_custom_ttl(self):
        clock = FrozenClock()
        codec = TokenCodec(TEST_SECRET, ttl=timedelta(minutes=5), clock=clock)
        credential = codec.issue(MEMBER_ID)

        clock.advance(minutes=4)
        assert codec.verify(credential).ok
        clock.advance(minutes=1)
        assert codec.verify(credential).failure is RejectionKind.EXPIRED_CREDENTIAL
