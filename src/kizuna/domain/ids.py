"""ID patterns, validation, and generation.

Every entity ID is a kind prefix followed by 12 lowercase hex characters
drawn from a random UUID, e.g. ``jrn_3f9a0c1d2e4b``.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import re
import uuid

TYPE_PREFIXES: dict[str, str] = {
    "user": "usr_",
    "provider": "prv_",
    "journey": "jrn_",
    "booking": "bkg_",
}

ID_PATTERNS: dict[str, re.Pattern[str]] = {
    kind: re.compile(rf"^{prefix}[0-9a-f]{{12}}$") for kind, prefix in TYPE_PREFIXES.items()
}


def generate_id(kind: str) -> str:
    """Return a fresh random ID for *kind*.

    Raises:
        KeyError: If *kind* is not a known entity kind.
    """
    return f"{TYPE_PREFIXES[kind]}{uuid.uuid4().hex[:12]}"


def validate_id(entity_id: str, kind: str) -> bool:
    """Check whether *entity_id* matches the expected pattern for *kind*."""
    pattern = ID_PATTERNS.get(kind)
    if pattern is None:
        return False
    return pattern.match(entity_id) is not None
