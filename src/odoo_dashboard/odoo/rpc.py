"""
XML-RPC Client

Builds method-call envelopes, ships them through the relay transport chain
and decodes the response into an RpcResult.
"""

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from xml.etree import ElementTree  # nosec B405 - responses come from the configured Odoo endpoint

from .codec import encode_value, escape
from .exceptions import OdooInvalidResponseError
from .fault import RpcResult, contains_fault, parse_response
from .transport import TransportChain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RpcRequest:
    """A single method call: name plus ordered parameters."""

    method: str
    params: tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.method:
            raise ValueError("RPC method name must not be empty")
        object.__setattr__(self, "params", tuple(self.params))

    def to_xml(self) -> str:
        """
        Render the `<methodCall>` envelope.

        The XML declaration must be the first byte of the body.
        """
        params = "".join(
            f"<param><value>{encode_value(param)}</value></param>" for param in self.params
        )
        return (
            '<?xml version="1.0"?>'
            f"<methodCall><methodName>{escape(self.method)}</methodName>"
            f"<params>{params}</params></methodCall>"
        )


class RpcClient:
    """
    Remote procedure calls against `{endpoint}/xmlrpc/2/{service}`.

    Stateless apart from read-only configuration; safe to share between
    concurrent tasks.
    """

    def __init__(
        self,
        endpoint: str,
        chain: TransportChain | None = None,
        strict_numbers: bool = False,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.chain = chain or TransportChain()
        self.strict_numbers = strict_numbers

    def service_url(self, service: str) -> str:
        return f"{self.endpoint}/xmlrpc/2/{service}"

    async def call(
        self,
        service: str,
        method: str,
        params: Sequence[Any] = (),
        *,
        timeout: float | None = None,
    ) -> RpcResult:
        """
        Call `method` on an XML-RPC service.

        Args:
            service: Service path segment ("common", "object", ...)
            method: Remote method name
            params: Positional parameters, each an RpcValue
            timeout: Overall time budget in seconds across all relay attempts

        Returns:
            RpcResult holding either the decoded value or the remote fault

        Raises:
            OdooTransportExhaustedError: no relay delivered the request
            OdooInvalidResponseError: response is not well-formed XML
            OdooNoPayloadError: response has neither fault nor value
        """
        request = RpcRequest(method, tuple(params))
        deadline = time.monotonic() + timeout if timeout is not None else None

        logger.debug(f"XML-RPC call {service}.{method}")
        body = await self.chain.post(
            self.service_url(service),
            request.to_xml().encode("utf-8"),
            deadline=deadline,
            is_authoritative=contains_fault,
        )

        return self.decode(body)

    def decode(self, body: bytes) -> RpcResult:
        """Parse a raw response body into an RpcResult."""
        try:
            root = ElementTree.fromstring(body)  # nosec B314
        except ElementTree.ParseError as e:
            raise OdooInvalidResponseError(
                f"Response is not valid XML: {e}",
                body_preview=body[:200].decode("utf-8", errors="replace"),
            ) from e

        return parse_response(root, self.strict_numbers)
