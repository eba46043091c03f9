"""
Deduplication of feed entries and stored alerts by identity key.
"""
from typing import Any, Dict, Iterable, List, TypeVar

T = TypeVar("T")


def _field(record: Any, name: str) -> str:
    """Read a field from a dataclass, ORM row or plain dict."""
    if isinstance(record, dict):
        value = record.get(name)
    else:
        value = getattr(record, name, None)
    return "" if value is None else str(value)


def dedup_key(record: Any) -> str:
    """
    Identity key of a record.
    
    The link when present, otherwise ``"{title}-{published}"``.
    """
    link = _field(record, "link")
    if link:
        return link
    return f"{_field(record, 'title')}-{_field(record, 'published')}"


def deduplicate_alerts(records: Iterable[T]) -> List[T]:
    """
    Keep the first record seen for each identity key.
    
    Args:
        records: Records in priority order
        
    Returns:
        Surviving records in their original order
    """
    seen: Dict[str, T] = {}
    
    for record in records:
        key = dedup_key(record)
        if key not in seen:
            seen[key] = record
    
    return list(seen.values())
