"""
图片附件编码工具

Conversions between raw image bytes, storage keys and ``data:`` URLs used for
the base map and for per-marker attachments.
"""

import base64
import binascii
import re
from typing import NamedTuple, Optional

from .logging import log

DEFAULT_MIME = "image/png"

_DATA_URL_RE = re.compile(r"^data:([^;,]+);base64,(.*)$", re.DOTALL)

MIME_BY_EXTENSION = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
}


class DataUrl(NamedTuple):
    payload: bytes
    content_type: str


def to_data_url(payload: bytes, mime: str = DEFAULT_MIME) -> str:
    """
    将二进制内容编码为 data URL

    Args:
        payload: raw bytes (a PNG, a JPEG, ...)
        mime: content type placed in the URL header

    Returns:
        str: ``data:<mime>;base64,<...>``
    """
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def parse_data_url(data_url: str) -> Optional[DataUrl]:
    """
    解析 data URL

    Returns:
        DataUrl, or None when the string is not a base64 data URL.
    """
    if not isinstance(data_url, str):
        return None
    match = _DATA_URL_RE.match(data_url.strip())
    if not match:
        return None
    mime, body = match.groups()
    if not mime or not body:
        return None
    try:
        payload = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        log.debug("data URL rejected: %s", exc)
        return None
    return DataUrl(payload=payload, content_type=mime)


def mime_from_key(key: str) -> str:
    """Content type guessed from a storage key's extension, ``image/png`` if unknown."""
    ext = key.lower().rsplit(".", 1)[-1] if "." in key else ""
    return MIME_BY_EXTENSION.get(ext, DEFAULT_MIME)
