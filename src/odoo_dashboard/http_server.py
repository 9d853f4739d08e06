"""
HTTP Relay Server

Same-origin XML-RPC relay for the browser dashboard: the frontend posts
`{url, body}` as JSON and gets Odoo's XML answer back, so it does not depend
on third-party CORS relays.
"""

import logging
from urllib.parse import urlparse

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from .config import Settings
from .odoo.exceptions import map_connection_error

logger = logging.getLogger(__name__)

settings = Settings()

# Replaced in tests to stub the upstream Odoo server
upstream_transport: httpx.AsyncBaseTransport | None = None

app = FastAPI(
    title="Odoo Dashboard RPC",
    description="XML-RPC relay and health endpoints for the Odoo reporting dashboard",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.effective_cors_origins,
    allow_credentials=False,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept"],
)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    return response


# =============================================================================
# Health
# =============================================================================


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "odoo-dashboard-rpc"}


# =============================================================================
# XML-RPC Relay
# =============================================================================


class ProxyRequest(BaseModel):
    """Relay request posted by the dashboard."""

    url: str | None = None
    body: str | None = None


def _is_xmlrpc_target(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc) and "/xmlrpc/" in parsed.path


@app.post("/api/odoo-proxy")
async def odoo_proxy(proxy_request: ProxyRequest):
    """Forward an XML-RPC body to an Odoo endpoint and return its answer."""
    if not proxy_request.url or not proxy_request.body:
        return JSONResponse(status_code=400, content={"error": "Missing url or body"})

    if not _is_xmlrpc_target(proxy_request.url):
        return JSONResponse(
            status_code=400,
            content={"error": "Target must be an http(s) Odoo /xmlrpc/ URL"},
        )

    try:
        async with httpx.AsyncClient(
            transport=upstream_transport, timeout=settings.odoo_timeout
        ) as client:
            upstream = await client.post(
                proxy_request.url,
                content=proxy_request.body.encode("utf-8"),
                headers={"Content-Type": "text/xml", "Accept": "text/xml"},
            )
    except httpx.HTTPError as e:
        error = map_connection_error(e)
        logger.error(f"Proxy error for {urlparse(proxy_request.url).netloc}: {error.message}")
        return JSONResponse(
            status_code=502,
            content={"error": "Proxy request failed", "details": error.message},
        )

    return Response(content=upstream.text, status_code=200, media_type="text/xml")


# =============================================================================
# Main Entry Point
# =============================================================================


def main():
    """Run HTTP server."""
    import uvicorn

    logging.basicConfig(level=settings.log_level.upper())

    uvicorn.run(
        "odoo_dashboard.http_server:app",
        host=settings.http_host,
        port=settings.http_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
