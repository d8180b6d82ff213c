import httpx
import pytest
from openai import APIStatusError, AuthenticationError, RateLimitError

from hwhelper.infrastructure.resilience.rate_limit import is_rate_limit_error

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def make_response(status_code: int) -> httpx.Response:
    return httpx.Response(status_code, request=REQUEST)


class StatusOnly(Exception):
    def __init__(self, **attrs):
        super().__init__("error")
        for key, value in attrs.items():
            setattr(self, key, value)


def test_openai_rate_limit_error_is_rate_limited():
    error = RateLimitError("Rate limit exceeded", response=make_response(429), body=None)
    assert is_rate_limit_error(error)


def test_openai_quota_body_is_rate_limited():
    body = {"message": "You exceeded your current quota", "type": "insufficient_quota", "code": "insufficient_quota"}
    error = APIStatusError("quota", response=make_response(400), body=body)
    assert is_rate_limit_error(error)


def test_openai_authentication_error_is_not_rate_limited():
    error = AuthenticationError("Invalid API key", response=make_response(401), body=None)
    assert not is_rate_limit_error(error)


@pytest.mark.parametrize("attrs", [
    {"status": 429},
    {"status_code": 429},
    {"code": "insufficient_quota"},
    {"error": {"type": "insufficient_quota"}},
    {"body": {"error": {"code": "insufficient_quota"}}},
])
def test_rate_limit_signatures(attrs):
    assert is_rate_limit_error(StatusOnly(**attrs))


@pytest.mark.parametrize("error", [
    ValueError("bad input"),
    StatusOnly(status=500),
    StatusOnly(status_code="429"),
    StatusOnly(error={"type": "invalid_request_error"}),
    StatusOnly(error="insufficient_quota text"),
    StatusOnly(type={"unhashable": True}),
])
def test_other_failures_are_not_rate_limited(error):
    assert not is_rate_limit_error(error)
