"""Shared service-layer helper functions."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from kizuna.domain.meta import to_iso

MAX_PAGE_SIZE = 200


def recent_cutoff(now: datetime, days: int) -> str:
    """ISO timestamp *days* before *now*, for ``created_at__gte`` filters."""
    return to_iso(now - timedelta(days=days)) or ""


def clamp_limit(limit: int | None) -> int:
    """Bound a caller-supplied page size to 1..MAX_PAGE_SIZE (default 50)."""
    if limit is None:
        return 50
    return max(1, min(limit, MAX_PAGE_SIZE))


def floor_buckets(values: Iterable[float | None]) -> dict[str, int]:
    """Count values by their floor, e.g. ``[4.2, 4.9, 3.0] -> {"3": 1, "4": 2}``."""
    counts = Counter(str(math.floor(v or 0.0)) for v in values)
    return dict(sorted(counts.items()))


def drop_none(data: dict[str, Any]) -> dict[str, Any]:
    """Remove keys whose value is None (optional list filters)."""
    return {k: v for k, v in data.items() if v is not None}
