"""Human-friendly task identifiers such as ``PH-7K2QXM``."""

import re
import secrets

SHORT_ID_PREFIX = "PH-"
# No 0/1/I/O so ids survive being read aloud or retyped
SHORT_ID_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"
SHORT_ID_LENGTH = 6

_SHORT_ID_RE = re.compile(r"^PH-[23456789ABCDEFGHJKLMNPQRSTUVWXYZ]{6}$")


def generate_short_id() -> str:
    body = "".join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(SHORT_ID_LENGTH))
    return f"{SHORT_ID_PREFIX}{body}"


def normalize_short_id(value: str) -> str:
    return (value or "").strip().upper()


def is_valid_short_id(value: str) -> bool:
    return bool(_SHORT_ID_RE.match(normalize_short_id(value)))
