"""Call identifiers pairing ``callProcedure`` requests with their results."""

from __future__ import annotations

import secrets
import string

CALL_ID_ALPHABET = string.ascii_letters + string.digits
DEFAULT_CALL_ID_LENGTH = 32
_MIN_CALL_ID_LENGTH = 16


def generate_call_id(length: int = DEFAULT_CALL_ID_LENGTH) -> str:
    """Return a random alphanumeric identifier, safe to embed in JSON as-is."""

    size = max(int(length), _MIN_CALL_ID_LENGTH)
    return "".join(secrets.choice(CALL_ID_ALPHABET) for _ in range(size))


def call_id_matches(pending_call_id: str | None, call_id: str | None) -> bool:
    """Exact-match correlation against the single pending request."""

    if not pending_call_id or call_id is None:
        return False
    return call_id == pending_call_id


__all__ = [
    "CALL_ID_ALPHABET",
    "DEFAULT_CALL_ID_LENGTH",
    "generate_call_id",
    "call_id_matches",
]
