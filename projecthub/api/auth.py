"""
Authentication helpers and identity resolution.

Parses proxy headers, normalizes emails, and upserts users while supporting
simple admin elevation via environment configuration.
"""
import os
import logging
from typing import Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from projecthub.db import models
from projecthub.utils.permissions import ROLE_ADMIN, DEFAULT_ROLE

logger = logging.getLogger(__name__)


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower()


def _normalize_list_env(var_name: str) -> set:
    raw = os.getenv(var_name, "")
    values = set()
    for entry in raw.split(","):
        cleaned = entry.strip().strip('"').strip("'")
        if cleaned:
            values.add(cleaned.lower())
    return values


def _admin_emails() -> set:
    return _normalize_list_env("ADMIN_EMAILS")


def resolve_identity_from_headers(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    user = x_auth_request_user or x_forwarded_user
    email = _normalize_email(x_auth_request_email or x_forwarded_email)
    return user, email


def has_identity_headers(headers) -> bool:
    return bool(
        headers.get("x-auth-request-user")
        or headers.get("x-auth-request-email")
        or headers.get("x-forwarded-user")
        or headers.get("x-forwarded-email")
    )


def get_or_create_user(db: Session, email: str, name: Optional[str] = None) -> models.User:
    user = db.query(models.User).filter(models.User.email == email).first()
    admins = _admin_emails()
    if not user:
        user = models.User(
            email=email,
            name=name or email.split("@")[0],
            role=ROLE_ADMIN if email in admins else DEFAULT_ROLE,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("user_created: email=%s role=%s", user.email, user.role)
        return user

    # Existing users might predate a new ADMIN_EMAILS value; promote them when necessary.
    if email in admins and user.role != ROLE_ADMIN:
        user.role = ROLE_ADMIN
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(user)
    return user
