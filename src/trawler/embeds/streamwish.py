"""
Streamwish embed extractor.
Uses packed JS deobfuscation → extracts every "hlsN" playlist URL.
"""
from __future__ import annotations

from ..base import ExtractionContext, Locator, NormalizedSource
from ..errors import MalformedInputError
from ..fetcher import Fetcher
from ..runner import register_embed
from .packed_common import hls_links, unpacked_page

STREAMWISH_URL = "https://streamwish.to"
# streamwish.to itself sits behind a challenge page, its mirror doesn't
SUBSTITUTE_URL = "https://yuguaab.com"


def resolve_host(url: str) -> tuple[str, str]:
    """(page url, host) for an embed link."""
    if url.startswith(STREAMWISH_URL):
        return url.replace(STREAMWISH_URL, SUBSTITUTE_URL, 1), SUBSTITUTE_URL
    host, sep, _ = url.partition("/e/")
    if not sep:
        raise MalformedInputError(f"[streamwish] invalid url: {url}")
    return url, host


@register_embed
class StreamwishEmbed:
    id = "streamwish"
    name = "Streamwish"

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        page_url, host = resolve_host(locator.ref)
        headers = {"Referer": locator.referer} if locator.referer else None
        script = await unpacked_page(page_url, fetcher, headers=headers)
        return hls_links(script, host, ctx.label or self.name)
