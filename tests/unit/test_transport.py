"""
Unit tests for the relay transport chain.

Run with: pytest tests/unit/test_transport.py -v -m unit
"""

import asyncio
import time
from urllib.parse import quote

import httpx
import pytest

from odoo_dashboard.odoo.exceptions import (
    OdooServerError,
    OdooTimeoutError,
    OdooTransportExhaustedError,
)
from odoo_dashboard.odoo.fault import contains_fault
from odoo_dashboard.odoo.transport import (
    ALLORIGINS_RELAY,
    CORSPROXY_RELAY,
    TransportChain,
    build_strategies,
    direct,
    relay,
)

pytestmark = [pytest.mark.unit, pytest.mark.odoo]

TARGET = "https://erp.example.com/xmlrpc/2/object"
BODY = b'<?xml version="1.0"?><methodCall><methodName>x</methodName><params></params></methodCall>'


class TestStrategies:
    """Tests for relay URL rewriting."""

    def test_direct_is_identity(self):
        assert direct(TARGET) == TARGET

    def test_relay_encodes_target(self):
        strategy = relay("https://relay.example.net/?url={url}")

        assert strategy(TARGET) == f"https://relay.example.net/?url={quote(TARGET, safe='')}"

    def test_relay_template_requires_placeholder(self):
        with pytest.raises(ValueError):
            relay("https://relay.example.net/")

    def test_build_strategies_known_names(self):
        strategies = build_strategies(["direct", "AllOrigins", " corsproxy "])

        assert strategies[0] is direct
        assert strategies[1](TARGET) == ALLORIGINS_RELAY.format(url=quote(TARGET, safe=""))
        assert strategies[2](TARGET) == CORSPROXY_RELAY.format(url=quote(TARGET, safe=""))

    def test_build_strategies_custom_template(self):
        [strategy] = build_strategies(["https://mine.example.org/fwd/{url}"])

        assert strategy(TARGET).startswith("https://mine.example.org/fwd/https%3A%2F%2F")

    def test_template_with_other_braces(self):
        strategy = relay("https://relay.example.net/{token}/?u={url}&x={}")

        assert strategy(TARGET) == (
            f"https://relay.example.net/{{token}}/?u={quote(TARGET, safe='')}&x={{}}"
        )

    def test_chain_requires_a_strategy(self):
        with pytest.raises(ValueError):
            TransportChain([])

    def test_strategies_are_frozen(self):
        strategies = [direct]
        chain = TransportChain(strategies)
        strategies.append(relay(CORSPROXY_RELAY))

        assert chain.strategies == (direct,)


class TestTransportChain:
    """Tests for sequential relay fallback."""

    async def test_first_success_wins(self, fake_odoo, ok):
        fake_odoo.queue(ok("<int>1</int>"), ok("<int>2</int>"))
        chain = TransportChain([direct, relay(CORSPROXY_RELAY)], transport=fake_odoo.transport)

        body = await chain.post(TARGET, BODY)

        assert b"<int>1</int>" in body
        assert fake_odoo.urls == [TARGET]

    async def test_request_shape(self, fake_odoo, ok):
        fake_odoo.queue(ok("<int>1</int>"))
        chain = TransportChain(transport=fake_odoo.transport)

        await chain.post(TARGET, BODY)

        [request] = fake_odoo.requests
        assert request.method == "POST"
        assert request.headers["content-type"] == "text/xml"
        assert request.content == BODY

    async def test_falls_through_on_error_status(self, fake_odoo, ok):
        fake_odoo.queue(httpx.Response(403, content=b"Forbidden"), ok("<int>2</int>"))
        chain = TransportChain(
            [relay(ALLORIGINS_RELAY), direct], transport=fake_odoo.transport
        )

        body = await chain.post(TARGET, BODY)

        assert b"<int>2</int>" in body
        assert fake_odoo.urls[0].startswith("https://api.allorigins.win/raw?url=")
        assert fake_odoo.urls[1] == TARGET

    async def test_falls_through_on_empty_body(self, fake_odoo, ok):
        fake_odoo.queue(httpx.Response(200, content=b""), ok("<int>3</int>"))
        chain = TransportChain([direct, direct], transport=fake_odoo.transport)

        body = await chain.post(TARGET, BODY)

        assert b"<int>3</int>" in body
        assert len(fake_odoo.requests) == 2

    async def test_falls_through_on_network_error(self, fake_odoo, ok):
        fake_odoo.queue(httpx.ConnectError("refused"), ok("<int>4</int>"))
        chain = TransportChain([direct, direct], transport=fake_odoo.transport)

        body = await chain.post(TARGET, BODY)

        assert b"<int>4</int>" in body

    async def test_same_body_sent_to_every_relay(self, fake_odoo, ok):
        fake_odoo.queue(httpx.Response(502), ok("<int>1</int>"))
        chain = TransportChain([direct, relay(CORSPROXY_RELAY)], transport=fake_odoo.transport)

        await chain.post(TARGET, BODY)

        assert [r.content for r in fake_odoo.requests] == [BODY, BODY]

    async def test_fault_on_error_status_short_circuits(self, fake_odoo, fault, ok):
        """A fault body is authoritative even behind a non-2xx status."""
        fake_odoo.queue(fault(4, "AccessError: nope", status_code=500), ok("<int>1</int>"))
        chain = TransportChain([direct, direct], transport=fake_odoo.transport)

        body = await chain.post(TARGET, BODY, is_authoritative=contains_fault)

        assert b"AccessError" in body
        assert len(fake_odoo.requests) == 1

    async def test_error_status_without_fault_check_falls_through(self, fake_odoo, fault, ok):
        fake_odoo.queue(fault(4, "AccessError: nope", status_code=500), ok("<int>1</int>"))
        chain = TransportChain([direct, direct], transport=fake_odoo.transport)

        body = await chain.post(TARGET, BODY)

        assert b"<int>1</int>" in body

    async def test_exhaustion_reports_last_error(self, fake_odoo):
        fake_odoo.queue(httpx.ConnectError("refused"), httpx.Response(500))
        chain = TransportChain([direct, relay(CORSPROXY_RELAY)], transport=fake_odoo.transport)

        with pytest.raises(OdooTransportExhaustedError) as exc_info:
            await chain.post(TARGET, BODY)

        error = exc_info.value
        assert len(error.attempts) == 2
        assert isinstance(error.last_error, OdooServerError)
        assert error.last_error.details["status_code"] == 500
        assert "HTTP 500" in error.message
        assert error.is_retryable is True

    async def test_each_strategy_tried_once(self, fake_odoo):
        chain = TransportChain([direct, direct, direct], transport=fake_odoo.transport)

        with pytest.raises(OdooTransportExhaustedError):
            await chain.post(TARGET, BODY)

        assert len(fake_odoo.requests) == 3

    async def test_timeout_is_mapped(self, fake_odoo):
        fake_odoo.queue(httpx.ReadTimeout("slow"))
        chain = TransportChain(transport=fake_odoo.transport)

        with pytest.raises(OdooTransportExhaustedError) as exc_info:
            await chain.post(TARGET, BODY)

        assert isinstance(exc_info.value.last_error, OdooTimeoutError)

    async def test_slow_attempt_is_bounded(self, ok):
        """A stalled relay is abandoned after the attempt timeout."""
        calls = []

        async def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            if len(calls) == 1:
                await asyncio.sleep(5)
            return ok("<int>1</int>")

        chain = TransportChain(
            [direct, relay(CORSPROXY_RELAY)],
            timeout=0.05,
            transport=httpx.MockTransport(handler),
        )

        started = time.monotonic()
        body = await chain.post(TARGET, BODY)

        assert b"<int>1</int>" in body
        assert len(calls) == 2
        assert time.monotonic() - started < 2

    async def test_stalled_attempt_within_deadline(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, content=b"late")

        chain = TransportChain(transport=httpx.MockTransport(handler))

        with pytest.raises(OdooTransportExhaustedError) as exc_info:
            await chain.post(TARGET, BODY, deadline=time.monotonic() + 0.05)

        assert isinstance(exc_info.value.last_error, OdooTimeoutError)

    async def test_expired_deadline_starts_no_attempt(self, fake_odoo, ok):
        fake_odoo.queue(ok("<int>1</int>"))
        chain = TransportChain(transport=fake_odoo.transport)

        with pytest.raises(OdooTransportExhaustedError) as exc_info:
            await chain.post(TARGET, BODY, deadline=time.monotonic() - 1)

        assert fake_odoo.requests == []
        assert isinstance(exc_info.value.last_error, OdooTimeoutError)

    async def test_deadline_caps_attempt_timeout(self):
        chain = TransportChain(timeout=30.0)

        assert chain._attempt_timeout(None) == 30.0
        assert chain._attempt_timeout(time.monotonic() + 5) <= 5
