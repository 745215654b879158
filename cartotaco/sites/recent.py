from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable

from .models import ProcessedSite


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def recently_added(
    sites: Iterable[ProcessedSite],
    now: datetime | None = None,
    days: int = 30,
) -> list[ProcessedSite]:
    """Sites created within the last *days* days, newest first."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    cutoff = now - timedelta(days=days)

    dated = []
    for site in sites:
        created = parse_timestamp(site.created_at)
        if created is not None and cutoff <= created <= now:
            dated.append((created, site))
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [site for _, site in dated]


def unseen_count(recent: Iterable[ProcessedSite], last_seen: datetime | None) -> int:
    """How many of *recent* were created after *last_seen* (all, if never seen)."""
    recent = list(recent)
    if last_seen is None:
        return len(recent)
    if last_seen.tzinfo is None:
        last_seen = last_seen.replace(tzinfo=timezone.utc)
    count = 0
    for site in recent:
        created = parse_timestamp(site.created_at)
        if created is not None and created > last_seen:
            count += 1
    return count
