"""
XML-RPC response envelopes: return values and faults.
"""

from dataclasses import dataclass
from typing import Any
from xml.etree import ElementTree  # nosec B405 - responses come from the configured Odoo endpoint

from .codec import RpcValue, decode_value
from .exceptions import OdooNoPayloadError, map_odoo_fault

UNKNOWN_FAULT_MESSAGE = "Unknown remote error"


@dataclass(frozen=True)
class RpcFault:
    """Fault envelope decoded from a response."""

    code: int
    message: str


@dataclass(frozen=True)
class RpcResult:
    """
    Outcome of one RPC call: either a value or a remote fault.

    Exactly one of `value` / `fault` is meaningful; check `is_fault` or
    call `unwrap()`.
    """

    value: RpcValue = None
    fault: RpcFault | None = None

    @classmethod
    def ok(cls, value: RpcValue) -> "RpcResult":
        return cls(value=value)

    @classmethod
    def failure(cls, fault: RpcFault) -> "RpcResult":
        return cls(fault=fault)

    @property
    def is_fault(self) -> bool:
        return self.fault is not None

    def unwrap(self) -> RpcValue:
        """Return the value, or raise the fault as OdooRemoteRejectedError."""
        if self.fault is not None:
            raise map_odoo_fault(self.fault)
        return self.value


def parse_response(root: ElementTree.Element, strict_numbers: bool = False) -> RpcResult:
    """
    Turn a parsed `<methodResponse>` document into an RpcResult.

    Raises:
        OdooNoPayloadError: neither a fault nor params/param/value is present
    """
    fault = root.find(".//fault")
    if fault is not None:
        return RpcResult.failure(_decode_fault(fault, strict_numbers))

    value = root.find("params/param/value")
    if value is None:
        value = root.find(".//params/param/value")
    if value is None:
        raise OdooNoPayloadError(
            "Response contains neither a fault nor a return value",
            root_tag=root.tag,
        )

    return RpcResult.ok(decode_value(value, strict_numbers))


def contains_fault(body: bytes) -> bool:
    """Check whether a raw response body is a well-formed fault envelope."""
    try:
        root = ElementTree.fromstring(body)  # nosec B314
    except ElementTree.ParseError:
        return False
    return root.find(".//fault") is not None


def _decode_fault(fault: ElementTree.Element, strict_numbers: bool) -> RpcFault:
    value = fault.find("value")
    payload: Any = decode_value(value, strict_numbers) if value is not None else None
    if not isinstance(payload, dict):
        return RpcFault(code=0, message=UNKNOWN_FAULT_MESSAGE)

    message = payload.get("faultString")
    if message is None or message == "":
        message = UNKNOWN_FAULT_MESSAGE

    return RpcFault(code=_fault_code(payload.get("faultCode")), message=str(message))


def _fault_code(raw: Any) -> int:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return 0
