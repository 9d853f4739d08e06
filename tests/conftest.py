"""
Pytest Fixtures for Odoo Dashboard RPC Tests

Provides canned XML-RPC response bodies and an httpx.MockTransport-based
fake Odoo endpoint, so no test needs network access.
"""

from collections.abc import Callable

import httpx
import pytest


def response_body(value_xml: str) -> bytes:
    """Wrap a `<value>` payload into a methodResponse envelope."""
    return (
        '<?xml version="1.0"?><methodResponse><params><param>'
        f"<value>{value_xml}</value>"
        "</param></params></methodResponse>"
    ).encode()


def fault_body(code: int, message: str) -> bytes:
    """Build a fault envelope."""
    return (
        '<?xml version="1.0"?><methodResponse><fault><value><struct>'
        f"<member><name>faultCode</name><value><int>{code}</int></value></member>"
        f"<member><name>faultString</name><value><string>{message}</string></value></member>"
        "</struct></value></fault></methodResponse>"
    ).encode()


class FakeOdoo:
    """
    Scripted endpoint behind httpx.MockTransport.

    Responses are consumed in order; every request is recorded.
    """

    def __init__(self, responses: list[httpx.Response | Exception] | None = None):
        self.responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    def queue(self, *responses: httpx.Response | Exception) -> "FakeOdoo":
        self.responses.extend(responses)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(500, content=b"no scripted response")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]


@pytest.fixture
def fake_odoo() -> FakeOdoo:
    """Provide an empty scripted endpoint."""
    return FakeOdoo()


@pytest.fixture
def ok() -> Callable[[str], httpx.Response]:
    """Factory for HTTP 200 responses carrying a return value."""

    def _ok(value_xml: str) -> httpx.Response:
        return httpx.Response(200, content=response_body(value_xml))

    return _ok


@pytest.fixture
def fault() -> Callable[..., httpx.Response]:
    """Factory for responses carrying a fault envelope."""

    def _fault(code: int, message: str, status_code: int = 200) -> httpx.Response:
        return httpx.Response(status_code, content=fault_body(code, message))

    return _fault


@pytest.fixture
def envelope() -> Callable[[str], bytes]:
    """Factory for raw methodResponse bodies."""
    return response_body
