"""Host extractors: the locator is an embed page URL."""
from __future__ import annotations
from urllib.parse import urlparse

from ..errors import MalformedInputError


def video_id(url: str, host: str) -> str:
    """Last path segment of an embed URL (".../e/<id>", ".../v/<id>/")."""
    parsed = urlparse(url)
    segments = [s for s in parsed.path.split("/") if s]
    if parsed.scheme not in ("http", "https") or not segments:
        raise MalformedInputError(f"[{host}] no id found in url {url}")
    return segments[-1]
