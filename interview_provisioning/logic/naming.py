"""Interview names and public access codes."""

from __future__ import annotations

import logging
import secrets
import string
from typing import Callable, Optional

from interview_provisioning.db.gateway import StorageGateway
from interview_provisioning.logic.errors import AccessCodeExhausted

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase
FRAGMENT_LENGTH = 12
ACCESS_CODE_LENGTH = 2 * FRAGMENT_LENGTH


def interview_name(interview_type: str, contact_id: Optional[int], is_public: bool) -> str:
    """Advisory display name; names are not keys and may repeat."""
    if is_public and contact_id is not None:
        return f"{interview_type} Interview - Contact {contact_id}"
    return f"{interview_type} Interview - Group"


def _base36_fragment(length: int = FRAGMENT_LENGTH) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_access_code() -> str:
    """Return a 24-character token made of two random base-36 fragments."""
    return _base36_fragment() + _base36_fragment()


def allocate_access_code(
    gateway: StorageGateway,
    max_attempts: int,
    generate: Callable[[], str] = generate_access_code,
) -> str:
    """Return a code not yet used by any interview.

    Candidates are checked against `interviews.access_code`; the unique index
    on that column still guards the window between check and insert.
    """
    for attempt in range(1, max_attempts + 1):
        code = generate()
        if gateway.find_one_or_none("interviews", {"access_code": code}) is None:
            return code
        logger.warning("access_code.collision attempt=%d max_attempts=%d", attempt, max_attempts)
    raise AccessCodeExhausted(max_attempts)


__all__ = [
    "ACCESS_CODE_LENGTH",
    "interview_name",
    "generate_access_code",
    "allocate_access_code",
]
