"""Connection values handed between the dashboard and the Odoo client."""

from dataclasses import dataclass


def normalize_url(url: str) -> str:
    """Trim, drop trailing slashes and default the scheme to https."""
    url = url.strip().rstrip("/")
    if "://" not in url:
        url = f"https://{url}"
    return url


@dataclass(frozen=True)
class OdooCredential:
    """Credential record supplied by the credential-management layer."""

    url: str
    database: str
    username: str
    secret: str

    def __repr__(self) -> str:
        return (
            f"OdooCredential(url={self.url!r}, database={self.database!r}, "
            f"username={self.username!r}, secret='***')"
        )


@dataclass(frozen=True)
class Session:
    """Authenticated Odoo session: endpoint, database and user id."""

    url: str
    database: str
    uid: int
