from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional


def _haystack(item: Mapping[str, Any]) -> str:
    parts = [str(item.get("title") or ""), str(item.get("author") or ""), str(item.get("description") or "")]
    parts.extend(str(t) for t in (item.get("tags") or ()))
    return " ".join(parts).lower()


def filter_items(items: Iterable[Mapping[str, Any]], query: Optional[str]) -> list[Mapping[str, Any]]:
    """Items whose title, author, description or tags contain the query. No query keeps everything."""
    items = list(items)
    if not query:
        return items
    q = query.lower()
    return [it for it in items if q in _haystack(it)]


def filter_tags(tags: Iterable[str], query: Optional[str]) -> list[str]:
    """Tags containing the query; prefix matches first, then alphabetical."""
    tags = list(tags)
    if not query:
        return tags
    q = query.lower()
    hits = [t for t in tags if q in t.lower()]
    return sorted(hits, key=lambda t: (not t.lower().startswith(q), t.lower()))
