from datetime import timedelta

import pytest
from fastapi import Request

from shared.security import create_access_token, user_id_or_ip, verify_access_token, verify_api_key


def test_token_round_trip():
    token = create_access_token({"sub": "buyer-1"})

    assert verify_access_token(token)["sub"] == "buyer-1"


def test_expired_or_garbage_tokens_are_rejected():
    expired = create_access_token({"sub": "buyer-1"}, expires_delta=timedelta(seconds=-1))

    assert verify_access_token(expired) is None
    assert verify_access_token("not-a-jwt") is None


def test_internal_api_key():
    assert verify_api_key("test-internal-key") is True
    assert verify_api_key("wrong") is False
    assert verify_api_key("") is False


def _request(authorization: str | None = None) -> Request:
    headers = [(b"authorization", authorization.encode())] if authorization else []
    return Request({"type": "http", "headers": headers, "client": ("10.0.0.7", 51234)})


def test_rate_limit_key_follows_the_token_subject():
    token = create_access_token({"sub": "buyer-1"})

    assert user_id_or_ip(_request(f"Bearer {token}")) == "user:buyer-1"
    assert user_id_or_ip(_request(f"bearer {token}")) == "user:buyer-1"


@pytest.mark.parametrize("authorization", [None, "Bearer not-a-jwt", "Basic dXNlcjpwdw==", "Bearer "])
def test_rate_limit_key_falls_back_to_client_address(authorization):
    assert user_id_or_ip(_request(authorization)) == "ip:10.0.0.7"
