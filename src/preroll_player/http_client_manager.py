"""HTTP client manager for connection pooling and lifecycle management."""

from typing import Any

import httpx

from .settings import get_settings


# Shared HTTP client instances (keyed by config tuple)
_ad_http_clients: dict[tuple[Any, ...], httpx.AsyncClient] = {}


def _load_http_config() -> dict[str, Any]:
    """Load HTTP client configuration from settings."""
    http_cfg = get_settings().http
    return {
        "timeout": http_cfg.timeout,
        "max_connections": http_cfg.max_connections,
        "max_keepalive_connections": http_cfg.max_keepalive_connections,
        "keepalive_expiry": http_cfg.keepalive_expiry,
        "follow_redirects": http_cfg.follow_redirects,
        "verify": http_cfg.verify_ssl,
    }


def _client_cache_key(cfg: dict[str, Any]) -> tuple[Any, ...]:
    """Build a cache key tuple from HTTP configuration."""
    return (
        cfg.get("verify"),
        cfg.get("timeout"),
        cfg.get("max_connections"),
        cfg.get("max_keepalive_connections"),
        cfg.get("keepalive_expiry"),
        cfg.get("follow_redirects"),
    )


def get_ad_http_client(
    *,
    ssl_verify: bool | str | None = None,
    timeout: float | None = None,
) -> httpx.AsyncClient:
    """Get the shared HTTP client for ad manifest requests.

    Clients are cached per configuration; a cached client that has been
    closed is replaced.
    """
    cfg = _load_http_config()
    if ssl_verify is not None:
        cfg["verify"] = ssl_verify
    if timeout is not None:
        cfg["timeout"] = timeout

    key = _client_cache_key(cfg)
    client = _ad_http_clients.get(key)
    if client is None or client.is_closed:
        client = httpx.AsyncClient(
            timeout=cfg["timeout"],
            limits=httpx.Limits(
                max_keepalive_connections=cfg["max_keepalive_connections"],
                max_connections=cfg["max_connections"],
                keepalive_expiry=cfg["keepalive_expiry"],
            ),
            follow_redirects=cfg["follow_redirects"],
            verify=cfg["verify"],
        )
        _ad_http_clients[key] = client
    return client


async def close_http_clients() -> None:
    """Close and forget every cached client."""
    clients = list(_ad_http_clients.values())
    _ad_http_clients.clear()
    for client in clients:
        if not client.is_closed:
            await client.aclose()


__all__ = ["get_ad_http_client", "close_http_clients"]
