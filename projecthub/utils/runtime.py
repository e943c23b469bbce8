"""Development-mode switch.

With DEV_MODE=true every request runs as a fixed local user, so the switch is
only honoured while the frontend lives on a local host.
"""

import os
from typing import Set, Tuple
from urllib.parse import urlparse

from projecthub.utils.urls import get_app_base_url

DEV_USER_EMAIL = "dev@localhost"
DEV_USER_NAME = "Development User"

LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


def dev_mode_requested() -> bool:
    return os.getenv("DEV_MODE", "false").lower() == "true"


def dev_hosts() -> Set[str]:
    """Local hosts plus anything listed in DEV_MODE_ALLOWED_HOSTS."""
    extra = os.getenv("DEV_MODE_ALLOWED_HOSTS", "")
    return set(LOCAL_HOSTS) | {h.strip().lower() for h in extra.split(",") if h.strip()}


def dev_mode_active() -> bool:
    """True when DEV_MODE is on and the app runs on an allowed host.

    Raises:
        RuntimeError: DEV_MODE is on but the base URL points at a public host
    """
    if not dev_mode_requested():
        return False
    hostname = (urlparse(get_app_base_url()).hostname or "").lower()
    allowed = dev_hosts()
    if hostname not in allowed:
        raise RuntimeError(
            f"DEV_MODE=true is not permitted for host '{hostname}'; "
            f"allowed hosts: {sorted(allowed)}"
        )
    return True


def dev_identity() -> Tuple[str, str]:
    """(name, email) of the user every dev-mode request runs as."""
    return DEV_USER_NAME, DEV_USER_EMAIL
