"""
Odoo XML-RPC Client

Session facade over the XML-RPC client: authentication and `search_read`
queries for the reporting dashboard.
"""
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx

from .exceptions import OdooAuthenticationError, OdooInvalidResponseError
from .rpc import RpcClient
from .session import OdooCredential, Session, normalize_url
from .transport import DEFAULT_TIMEOUT, RelayStrategy, TransportChain, build_strategies

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


class OdooClient:
    """
    Async facade for the Odoo XML-RPC API.

    Holds only read-only configuration (endpoint, database, relay chain),
    so one instance can serve concurrent queries. The user id is returned
    to the caller rather than cached.

    Error Handling: faults surface as OdooRemoteRejectedError subclasses,
    transport and protocol problems as their own OdooError kinds.
    """

    def __init__(
        self,
        url: str,
        database: str | None = None,
        db: str | None = None,  # Alias for database
        relays: Sequence[str | RelayStrategy] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        strict_numbers: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = normalize_url(url)
        self.db = (database or db or "").strip()

        strategies = None
        if relays is not None:
            strategies = [
                r if callable(r) else build_strategies([r])[0] for r in relays
            ]

        self._rpc = RpcClient(
            self.url,
            TransportChain(strategies, timeout=timeout, transport=transport),
            strict_numbers=strict_numbers,
        )

    @classmethod
    def from_settings(
        cls, settings: "Settings", transport: httpx.AsyncBaseTransport | None = None
    ) -> "OdooClient":
        """Build a client from environment settings."""
        return cls(
            url=settings.odoo_url,
            database=settings.odoo_db,
            relays=settings.odoo_relays,
            timeout=settings.odoo_timeout,
            strict_numbers=settings.odoo_strict_numbers,
            transport=transport,
        )

    @classmethod
    def from_credential(cls, credential: OdooCredential, **kwargs: Any) -> "OdooClient":
        """Build a client for the endpoint and database of a credential."""
        return cls(url=credential.url, database=credential.database, **kwargs)

    async def _call(self, service: str, method: str, *params: Any) -> Any:
        result = await self._rpc.call(service, method, params)
        return result.unwrap()

    async def authenticate(
        self,
        username: str,
        secret: str,
        database: str | None = None,
    ) -> int:
        """
        Authenticate and return the user id.

        Odoo answers `False` for rejected credentials; anything but an
        integer is treated as a rejection.
        """
        db = database.strip() if database is not None else self.db
        uid = await self._call("common", "authenticate", db, username, secret, {})

        if isinstance(uid, bool) or not isinstance(uid, int):
            raise OdooAuthenticationError(
                f"Invalid credentials for database {db}",
                username=username,
                database=db,
            )

        logger.info(f"Authenticated {username} on {db} as uid {uid}")
        return uid

    async def login(self, username: str, secret: str) -> Session:
        """Authenticate and return a Session for this endpoint."""
        uid = await self.authenticate(username, secret)
        return Session(url=self.url, database=self.db, uid=uid)

    async def query(
        self,
        uid: int | Session,
        secret: str,
        model: str,
        domain: list,
        fields: list[str],
        options: dict[str, Any] | None = None,
    ) -> list[dict]:
        """
        Search and read records of a model.

        The domain is forwarded as-is. A Session supplies its own database
        instead of the client default. Options (limit, offset, order,
        context, ...) are merged after `fields`.
        """
        database = self.db
        if isinstance(uid, Session):
            database = uid.database
            uid = uid.uid

        kwargs = {"fields": fields, **(options or {})}
        records = await self._call(
            "object",
            "execute_kw",
            database,
            uid,
            secret,
            model,
            "search_read",
            [domain],
            kwargs,
        )

        if not isinstance(records, list):
            raise OdooInvalidResponseError(
                f"search_read on {model} returned {type(records).__name__}, expected a list",
                model=model,
            )
        return records

    async def close(self):
        """Cleanup resources"""
        pass  # No connection is held between calls
