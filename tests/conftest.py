"""Pytest configuration and fixtures."""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from src.config.settings import Settings


@pytest.fixture
def settings():
    """Provide settings fixture."""
    return Settings(_env_file=None, recaptcha_secret="S", recaptcha_site_key="site-key")


class FakeSiteverify:
    """Stand-in for the siteverify endpoint that records what it receives."""

    def __init__(self, reply=None, status_code=200, raw=None, error=None):
        self.reply = reply if reply is not None else {"success": True}
        self.status_code = status_code
        self.raw = raw
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(f"{self.error.__name__} raised", request=request)
        if self.raw is not None:
            return httpx.Response(self.status_code, content=self.raw)
        return httpx.Response(self.status_code, content=json.dumps(self.reply).encode())

    @property
    def last_form(self) -> dict[str, list[str]]:
        return parse_qs(self.requests[-1].content.decode(), keep_blank_values=True)


@pytest.fixture
def siteverify():
    """Accepting siteverify stub; adjust attributes per test."""
    return FakeSiteverify()
