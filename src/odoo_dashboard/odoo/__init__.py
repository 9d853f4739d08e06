"""Odoo XML-RPC client and utilities."""

from .client import OdooClient
from .codec import RpcValue, decode_value, encode_value
from .exceptions import (
    OdooAccessDeniedError,
    OdooAuthenticationError,
    OdooConnectionError,
    OdooError,
    OdooInvalidResponseError,
    OdooNoPayloadError,
    OdooPermissionError,
    OdooRecordNotFoundError,
    OdooRemoteRejectedError,
    OdooServerError,
    OdooTimeoutError,
    OdooTransportExhaustedError,
    OdooValidationError,
    map_connection_error,
    map_odoo_fault,
)
from .fault import RpcFault, RpcResult, parse_response
from .rpc import RpcClient, RpcRequest
from .session import OdooCredential, Session, normalize_url
from .transport import TransportChain, build_strategies, direct, relay

__all__ = [
    "OdooClient",
    "OdooCredential",
    "Session",
    "normalize_url",
    # RPC layer
    "RpcClient",
    "RpcRequest",
    "RpcResult",
    "RpcFault",
    "RpcValue",
    "encode_value",
    "decode_value",
    "parse_response",
    "TransportChain",
    "build_strategies",
    "direct",
    "relay",
    # Exceptions
    "OdooError",
    "OdooAccessDeniedError",
    "OdooAuthenticationError",
    "OdooConnectionError",
    "OdooInvalidResponseError",
    "OdooNoPayloadError",
    "OdooPermissionError",
    "OdooRecordNotFoundError",
    "OdooRemoteRejectedError",
    "OdooServerError",
    "OdooTimeoutError",
    "OdooTransportExhaustedError",
    "OdooValidationError",
    # Utilities
    "map_connection_error",
    "map_odoo_fault",
]
