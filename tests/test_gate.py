"""Unit tests for auth/gate.py -- bearer parsing, authenticate, authorize."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from auth.errors import Forbidden, InvalidToken, Unauthorized
from auth.gate import authenticate, authorize, parse_bearer
from auth.models import AccessClaims
from auth.tokens import TokenCodec


def _claims(role: str) -> AccessClaims:
    now = datetime.now(timezone.utc)
    return AccessClaims(user_id="user-1", role=role, issued_at=now, expires_at=now + timedelta(minutes=15))


@pytest.mark.parametrize(
    "header,expected",
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer abc", "abc"),
        ("BEARER   abc  ", "abc"),
        ("Basic dXNlcjpwYXNz", None),
        ("Bearer", None),
        ("Bearer   ", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_bearer(header, expected) -> None:
    assert parse_bearer(header) == expected


class TestAuthenticate:
    def test_valid_token(self, codec: TokenCodec) -> None:
        token, _ = codec.issue("user-1", "admin")
        claims = authenticate(codec, token)
        assert claims.user_id == "user-1"
        assert claims.role == "admin"

    @pytest.mark.parametrize("credential", [None, ""])
    def test_missing_credential(self, codec: TokenCodec, credential) -> None:
        with pytest.raises(Unauthorized):
            authenticate(codec, credential)

    def test_invalid_token_becomes_unauthorized(self, codec: TokenCodec) -> None:
        with pytest.raises(Unauthorized) as excinfo:
            authenticate(codec, "garbage")
        assert isinstance(excinfo.value.__cause__, InvalidToken)

    def test_expired_token(self, codec: TokenCodec) -> None:
        token, _ = codec.issue("user-1", "user", timedelta(seconds=-1))
        with pytest.raises(Unauthorized):
            authenticate(codec, token)


class TestAuthorize:
    def test_allowed_role(self) -> None:
        claims = _claims("admin")
        assert authorize(claims, {"admin"}) is claims

    def test_any_of_several_roles(self) -> None:
        authorize(_claims("editor"), ["admin", "editor"])

    def test_disallowed_role_is_forbidden(self) -> None:
        with pytest.raises(Forbidden):
            authorize(_claims("user"), {"admin"})

    def test_empty_role_is_forbidden(self) -> None:
        """Refreshed tokens carry role "" and never pass a role check."""
        with pytest.raises(Forbidden):
            authorize(_claims(""), {"admin", "user"})

    def test_empty_allow_set_admits_nobody(self) -> None:
        with pytest.raises(Forbidden):
            authorize(_claims("admin"), set())

    @pytest.mark.parametrize("claims", [None, {"role": "admin"}, "admin"])
    def test_missing_claims_fail_closed(self, claims) -> None:
        with pytest.raises(Unauthorized):
            authorize(claims, {"admin"})
