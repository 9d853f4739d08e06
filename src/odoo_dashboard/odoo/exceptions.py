"""
Odoo Error Handling

Typed exceptions for every way an XML-RPC call against Odoo can fail.

Error kinds:
- Transport: every relay strategy failed to deliver the request
- Invalid response: bytes arrived but are not well-formed XML
- No payload: well-formed XML without a fault or a return value
- Remote rejected: Odoo answered with a fault envelope
- Authentication: `authenticate` did not return a user id

Error Code Reference (Odoo XML-RPC faults):
- Fault 1: UserError / ValidationError
- Fault 2: MissingError (record not found)
- Fault 3: AccessDenied
- Fault 4: AccessError (permission denied)
"""

import asyncio
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from .fault import RpcFault


class OdooError(Exception):
    """Base exception for all Odoo-related errors."""

    error_code: str = "ODOO_ERROR"
    is_retryable: bool = False

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message)
        self.message = message
        self.details = kwargs

    def to_dict(self) -> dict:
        """Convert error to a JSON-ready response body."""
        response = {
            "error": {
                "code": self.error_code,
                "message": self.message,
            }
        }
        for key, value in self.details.items():
            response["error"][key] = value
        return response

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class OdooConnectionError(OdooError):
    """Network or connection error communicating with Odoo."""

    error_code = "CONNECTION_ERROR"
    is_retryable = True


class OdooTimeoutError(OdooConnectionError):
    """Request timed out."""

    error_code = "CONNECTION_TIMEOUT"
    is_retryable = True


class OdooServerError(OdooError):
    """Endpoint answered with a non-2xx status or an empty body."""

    error_code = "SERVER_ERROR"
    is_retryable = True


class OdooTransportExhaustedError(OdooConnectionError):
    """Every relay strategy failed to deliver the request."""

    error_code = "TRANSPORT_EXHAUSTED"
    is_retryable = True

    def __init__(
        self,
        message: str,
        last_error: OdooError | None = None,
        attempts: list[OdooError] | None = None,
        **kwargs: Any,
    ):
        if last_error is not None:
            kwargs.setdefault("last_error", last_error.message)
        super().__init__(message, **kwargs)
        self.last_error = last_error
        self.attempts = attempts or []


class OdooInvalidResponseError(OdooError):
    """Response body is not well-formed XML (or carries unusable values)."""

    error_code = "INVALID_RESPONSE"
    is_retryable = True


class OdooNoPayloadError(OdooError):
    """Well-formed response with neither a fault nor a return value."""

    error_code = "NO_PAYLOAD"
    is_retryable = False


class OdooAuthenticationError(OdooError):
    """Authentication rejected - `authenticate` did not return a user id."""

    error_code = "AUTHENTICATION_FAILED"
    is_retryable = False


class OdooRemoteRejectedError(OdooError):
    """Odoo answered with a fault envelope."""

    error_code = "REMOTE_REJECTED"
    is_retryable = False

    def __init__(self, message: str, code: int = 0, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.code = code


class OdooValidationError(OdooRemoteRejectedError):
    """Data validation failed (UserError, ValidationError)."""

    error_code = "VALIDATION_ERROR"


class OdooRecordNotFoundError(OdooRemoteRejectedError):
    """Requested record does not exist."""

    error_code = "RECORD_NOT_FOUND"


class OdooAccessDeniedError(OdooRemoteRejectedError):
    """Odoo refused the credentials for this call (AccessDenied fault)."""

    error_code = "ACCESS_DENIED"


class OdooPermissionError(OdooRemoteRejectedError):
    """User lacks permission to access/modify the resource."""

    error_code = "PERMISSION_DENIED"


def map_odoo_fault(fault: "RpcFault") -> OdooRemoteRejectedError:
    """
    Map a decoded fault envelope to the matching OdooRemoteRejectedError.

    Odoo fault codes:
    - 1: UserError, ValidationError
    - 2: MissingError
    - 3: AccessDenied
    - 4: AccessError

    Args:
        fault: Fault decoded from the response envelope

    Returns:
        OdooRemoteRejectedError or one of its subclasses
    """
    fault_code = fault.code
    fault_string = fault.message

    message = _extract_error_message(fault_string)

    if fault_code == 3 or "AccessDenied" in fault_string:
        return OdooAccessDeniedError(message, code=fault_code, original_fault=fault_string)

    if fault_code == 4 or "AccessError" in fault_string:
        return OdooPermissionError(message, code=fault_code, original_fault=fault_string)

    if fault_code == 2 or "MissingError" in fault_string:
        return OdooRecordNotFoundError(message, code=fault_code, original_fault=fault_string)

    if fault_code == 1 or "UserError" in fault_string or "ValidationError" in fault_string:
        return OdooValidationError(message, code=fault_code, original_fault=fault_string)

    return OdooRemoteRejectedError(
        f"Odoo error (code {fault_code}): {message}",
        code=fault_code,
        fault_code=fault_code,
        original_fault=fault_string,
    )


def map_connection_error(error: Exception) -> OdooConnectionError:
    """
    Map httpx request errors to the matching OdooConnectionError.

    Args:
        error: Original exception raised by httpx

    Returns:
        OdooTimeoutError for timeouts, OdooConnectionError otherwise
    """
    if isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return OdooTimeoutError(
            f"Connection timed out: {error}",
            original_error=str(error),
        )

    if isinstance(error, (httpx.ConnectError, ConnectionRefusedError)):
        return OdooConnectionError(
            "Connection refused - Odoo server or relay may be down",
            original_error=str(error),
        )

    if isinstance(error, (httpx.TransportError, OSError)):
        return OdooConnectionError(
            f"Network error: {error}",
            original_error=str(error),
        )

    return OdooConnectionError(
        f"Connection error: {error}",
        original_error=str(error),
    )


def _extract_error_message(fault_string: str) -> str:
    """
    Extract clean error message from Odoo fault string.

    Odoo fault strings often contain Python tracebacks and error class names.
    This extracts just the meaningful message.

    Args:
        fault_string: Raw fault string from XML-RPC

    Returns:
        Clean error message
    """
    # Pattern: "UserError: Message here"
    for prefix in ["UserError:", "ValidationError:", "MissingError:", "AccessError:", "AccessDenied:"]:
        if prefix in fault_string:
            parts = fault_string.split(prefix, 1)
            if len(parts) > 1:
                return parts[1].strip().split("\n")[0].strip()

    first_line = fault_string.split("\n")[0].strip()

    noise_prefixes = ["Traceback ", "File ", "  "]
    for prefix in noise_prefixes:
        if first_line.startswith(prefix):
            # Actual error message usually sits at the end of the traceback
            lines = fault_string.split("\n")
            for line in reversed(lines):
                line = line.strip()
                if line and not any(line.startswith(p) for p in noise_prefixes):
                    return line
            break

    return first_line or fault_string
