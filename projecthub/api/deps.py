"""
API dependency helpers.

Provides the dependency-resolved user context for routes.
"""
import logging
from typing import Optional, Tuple, Dict, Any

from fastapi import Header, HTTPException, status, Depends
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.auth import resolve_identity_from_headers, get_or_create_user
from projecthub.db import models
from projecthub.utils.permissions import get_role_permissions, is_admin_role
from projecthub.utils.runtime import dev_identity, dev_mode_active

logger = logging.getLogger(__name__)


def build_user_context(user: models.User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "is_admin": is_admin_role(user.role),
        "permissions": get_role_permissions(user.role),
    }


def resolve_user(
    db: Session,
    x_auth_request_user: Optional[str] = None,
    x_auth_request_email: Optional[str] = None,
    x_forwarded_user: Optional[str] = None,
    x_forwarded_email: Optional[str] = None,
) -> Optional[models.User]:
    """Upsert the caller from proxy headers (or the dev user); None when anonymous."""
    try:
        is_dev_mode = dev_mode_active()
    except RuntimeError as exc:
        logger.error("DEV_MODE misconfiguration detected: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="DEV_MODE misconfigured")

    if is_dev_mode:
        name, email = dev_identity()
    else:
        name, email = resolve_identity_from_headers(
            x_auth_request_user=x_auth_request_user,
            x_auth_request_email=x_auth_request_email,
            x_forwarded_user=x_forwarded_user,
            x_forwarded_email=x_forwarded_email,
        )
        if not email:
            return None
    return get_or_create_user(db, email=email, name=name)


# Contract:
# Returns (sqlalchemy User model, current_user_context_dict)
# Raises 401 if identity cannot be resolved.

def get_current_user_context(
    db: Session = Depends(get_db),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Tuple[models.User, Dict[str, Any]]:
    user = resolve_user(
        db,
        x_auth_request_user=x_auth_request_user,
        x_auth_request_email=x_auth_request_email,
        x_forwarded_user=x_forwarded_user,
        x_forwarded_email=x_forwarded_email,
    )
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user, build_user_context(user)
