"""
Relay Transport Chain

Delivers an XML-RPC request body to a target URL, trying an ordered list of
relay strategies until one of them gets a usable answer.

A strategy is a pure function rewriting the target URL: `direct` leaves it
untouched, `relay(template)` wraps it into a third-party CORS relay URL.
Strategies are attempted one after another, each exactly once per request.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Iterable, Sequence
from urllib.parse import quote

import httpx

from .exceptions import (
    OdooError,
    OdooServerError,
    OdooTimeoutError,
    OdooTransportExhaustedError,
    map_connection_error,
)

logger = logging.getLogger(__name__)

RelayStrategy = Callable[[str], str]

ALLORIGINS_RELAY = "https://api.allorigins.win/raw?url={url}"
CORSPROXY_RELAY = "https://corsproxy.io/?url={url}"

KNOWN_RELAYS = {
    "allorigins": ALLORIGINS_RELAY,
    "corsproxy": CORSPROXY_RELAY,
}

DEFAULT_TIMEOUT = 30.0

REQUEST_HEADERS = {"Content-Type": "text/xml"}


def direct(url: str) -> str:
    """Identity strategy: talk to the target itself."""
    return url


def relay(template: str) -> RelayStrategy:
    """
    Build a strategy that wraps the target URL into a relay URL.

    The template must contain a `{url}` placeholder; the target is
    percent-encoded before substitution.
    """
    if "{url}" not in template:
        raise ValueError(f"Relay template must contain '{{url}}': {template}")

    def strategy(url: str) -> str:
        return template.replace("{url}", quote(url, safe=""))

    strategy.__name__ = f"relay({template})"
    return strategy


def build_strategies(names: Iterable[str]) -> list[RelayStrategy]:
    """
    Turn configuration entries into relay strategies.

    Entries are "direct", a known relay name ("allorigins", "corsproxy") or
    a URL template with a `{url}` placeholder.
    """
    strategies = []
    for name in names:
        key = name.strip()
        if key.lower() == "direct":
            strategies.append(direct)
        elif key.lower() in KNOWN_RELAYS:
            strategies.append(relay(KNOWN_RELAYS[key.lower()]))
        else:
            strategies.append(relay(key))
    return strategies


class TransportChain:
    """
    Ordered, read-only list of relay strategies plus the HTTP plumbing to
    try them.

    No state is shared between `post` calls: each call opens its own
    httpx.AsyncClient, so concurrent calls are independent.
    """

    def __init__(
        self,
        strategies: Sequence[RelayStrategy] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.strategies: tuple[RelayStrategy, ...] = tuple(
            strategies if strategies is not None else (direct,)
        )
        if not self.strategies:
            raise ValueError("TransportChain needs at least one relay strategy")
        self.timeout = timeout
        self._transport = transport

    async def post(
        self,
        url: str,
        body: bytes,
        *,
        deadline: float | None = None,
        is_authoritative: Callable[[bytes], bool] | None = None,
    ) -> bytes:
        """
        POST body to url through the first strategy that succeeds.

        Args:
            url: Absolute target URL
            body: Request body, sent unchanged through every strategy
            deadline: Absolute time.monotonic() instant after which no
                further attempt is started
            is_authoritative: Predicate over a failed attempt's body; when it
                holds, that body is returned instead of trying the next relay

        Returns:
            Raw response body

        Raises:
            OdooTransportExhaustedError: no strategy produced a usable answer
        """
        failures: list[OdooError] = []

        async with httpx.AsyncClient(transport=self._transport) as client:
            for index, strategy in enumerate(self.strategies):
                attempt_timeout = self._attempt_timeout(deadline)
                if attempt_timeout is None:
                    failures.append(
                        OdooTimeoutError(
                            f"Deadline exceeded before relay {index} could be tried",
                            relay_index=index,
                        )
                    )
                    break

                target = strategy(url)
                logger.debug(f"Relay {index}: POST {_redact(target)}")

                try:
                    # httpx timeouts apply per phase; bound the whole attempt
                    response = await asyncio.wait_for(
                        client.post(
                            target,
                            content=body,
                            headers=REQUEST_HEADERS,
                            timeout=attempt_timeout,
                        ),
                        attempt_timeout,
                    )
                except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError) as e:
                    error = map_connection_error(e)
                    error.details["relay_index"] = index
                    failures.append(error)
                    logger.warning(f"Relay {index} failed, trying next: {error.message}")
                    continue

                content = response.content
                if response.is_success and content:
                    return content

                if content and is_authoritative is not None and is_authoritative(content):
                    logger.debug(f"Relay {index} returned a fault with HTTP {response.status_code}")
                    return content

                if not response.is_success:
                    error = OdooServerError(
                        f"HTTP {response.status_code}",
                        status_code=response.status_code,
                        relay_index=index,
                    )
                else:
                    error = OdooServerError("Empty response body", relay_index=index)
                failures.append(error)
                logger.warning(f"Relay {index} failed, trying next: {error.message}")

        last_error = failures[-1] if failures else None
        detail = last_error.message if last_error else "no relay attempted"
        raise OdooTransportExhaustedError(
            f"Could not reach Odoo through any relay: {detail}",
            last_error=last_error,
            attempts=failures,
            url=url,
        )

    def _attempt_timeout(self, deadline: float | None) -> float | None:
        if deadline is None:
            return self.timeout
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return None
        return min(self.timeout, remaining)


def _redact(url: str) -> str:
    return url.split("?", 1)[0]
