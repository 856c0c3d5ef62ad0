"""Resolve evidence image references into displayable data URLs."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Optional

from casemap.utils.logging import log
from casemap.utils.media_codec import mime_from_key, to_data_url

from .evidence_record import EvidenceRecord

Fetch = Callable[[str], bytes]


def image_data_url(key: str, fetch: Fetch) -> Optional[str]:
    """读取单张附件；失败返回 None。"""
    if not key:
        return None
    try:
        payload = fetch(key)
    except (OSError, LookupError) as exc:
        log.warning("failed to read marker image %s: %s", key, exc)
        return None
    return to_data_url(payload, mime_from_key(key))


def attach_image_urls(records: Iterable[EvidenceRecord], fetch: Fetch) -> None:
    """Fill ``image_url`` for every record with an ``image_key``; each key is fetched once."""
    cache: Dict[str, Optional[str]] = {}
    for rec in records:
        key = rec.image_key.strip()
        if not key:
            rec.image_url = None
            continue
        if key not in cache:
            cache[key] = image_data_url(key, fetch)
        rec.image_url = cache[key]
