"""Configuration management for the Odoo dashboard RPC client."""

from pydantic import field_validator
from pydantic_settings import BaseSettings

# =============================================================================
# HTTP Relay Endpoint
# =============================================================================

# Origins allowed to call the relay endpoint from a browser
ALLOWED_ORIGINS = [
    "https://dashboard.example.com",
]

DEBUG_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Odoo connection
    odoo_url: str = "https://localhost:8069"
    odoo_db: str = "odoo"
    odoo_username: str | None = None
    odoo_api_key: str | None = None
    odoo_password: str | None = None

    # Transport chain: "direct", "allorigins", "corsproxy" or a URL
    # template containing {url}. JSON list when set from the environment.
    odoo_relays: list[str] = ["direct"]
    odoo_timeout: float = 30.0
    odoo_strict_numbers: bool = False

    # HTTP Server
    http_host: str = "0.0.0.0"
    http_port: int = 8080
    cors_origins: list[str] = ALLOWED_ORIGINS

    # Development
    debug: bool = False
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
    }

    @field_validator("odoo_relays")
    @classmethod
    def _relays_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("odoo_relays must list at least one strategy")
        return value

    @field_validator("odoo_timeout")
    @classmethod
    def _timeout_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("odoo_timeout must be positive")
        return value

    @property
    def odoo_secret(self) -> str | None:
        """API key if configured, password otherwise."""
        return self.odoo_api_key or self.odoo_password

    @property
    def effective_cors_origins(self) -> list[str]:
        """Allowed origins, with localhost added in debug mode."""
        if self.debug:
            return [*self.cors_origins, *DEBUG_ORIGINS]
        return list(self.cors_origins)
