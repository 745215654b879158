from __future__ import annotations

from typing import Any, Iterable, Sequence

ENTITY_KEY = "est_id"

RawRecord = dict[str, Any]
JoinedEntity = dict[str, Any]


def join(
    record_sets: Iterable[tuple[str, Sequence[RawRecord] | None]],
    key: str = ENTITY_KEY,
) -> list[JoinedEntity]:
    """
    Merge named record sets into one dict per entity.

    Each record lands under its set's name with the join key removed.
    ``None`` sets and records without a key are skipped. When a set holds
    several records for one entity the last one wins.
    """
    buckets: dict[Any, JoinedEntity] = {}
    for name, records in record_sets:
        if not records:
            continue
        for record in records:
            if not isinstance(record, dict):
                continue
            entity_id = record.get(key)
            if entity_id is None:
                continue
            bucket = buckets.setdefault(entity_id, {key: entity_id})
            bucket[name] = {k: v for k, v in record.items() if k != key}
    return list(buckets.values())


def group_by_entity(records: Sequence[RawRecord] | None, key: str = ENTITY_KEY) -> dict[Any, list[RawRecord]]:
    """Collect one-to-many rows (e.g. specialties) per entity, key removed."""
    grouped: dict[Any, list[RawRecord]] = {}
    for record in records or []:
        entity_id = record.get(key)
        if entity_id is None:
            continue
        grouped.setdefault(entity_id, []).append({k: v for k, v in record.items() if k != key})
    return grouped
