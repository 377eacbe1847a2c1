"""Shared-secret check for the periodic trigger."""

from __future__ import annotations

import hmac
from typing import Mapping, Optional

_HEADER_NAMES = ("x-cron-secret", "authorization")


def extract_cron_secret(headers: Mapping[str, str]) -> Optional[str]:
    """Return the credential from ``x-cron-secret`` or ``Authorization`` headers.

    A ``Bearer`` prefix is stripped. Returns ``None`` when neither header is present
    or the value is blank.
    """

    for name in _HEADER_NAMES:
        raw = headers.get(name)
        if raw:
            break
    else:
        return None

    value = raw.strip()
    scheme, _, rest = value.partition(" ")
    if scheme.lower() == "bearer":
        value = rest.strip()
    return value or None


def is_authorized(provided: Optional[str], expected: Optional[str]) -> bool:
    """Compare credentials in constant time. No configured secret means no access."""

    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
