"""
Absolute frontend links for emails, Slack messages and notifications.

The base comes from APP_BASE_URL, or from APP_HOST when only a host name is
configured. Local development falls back to http://localhost:3000.
"""
from __future__ import annotations

import os

DEFAULT_APP_BASE_URL = "http://localhost:3000"
LOCAL_HOST_PREFIXES = ("localhost", "127.0.0.1")


def _with_scheme(host: str) -> str:
    if "://" in host:
        return host
    scheme = "http" if host.lower().startswith(LOCAL_HOST_PREFIXES) else "https"
    return f"{scheme}://{host}"


def get_app_base_url() -> str:
    """Frontend base URL without a trailing slash.

    APP_BASE_URL wins over APP_HOST; a bare APP_HOST gets ``https://`` unless
    it is a local address.
    """
    base = (os.getenv("APP_BASE_URL") or "").strip()
    if base:
        return base.rstrip("/")
    host = (os.getenv("APP_HOST") or "").strip()
    if host:
        return _with_scheme(host).rstrip("/")
    return DEFAULT_APP_BASE_URL


def build_app_url(path: str | None) -> str:
    """Join a frontend-relative path (``/projects/<id>``) onto the base URL."""
    base = get_app_base_url()
    if not path:
        return base
    if path.startswith(("http://", "https://")):
        return path
    return f"{base}/{path.lstrip('/')}"
