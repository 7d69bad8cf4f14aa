"""Filelions — same packed player as streamwish, served from a fixed mirror."""
from __future__ import annotations

from ..base import ExtractionContext, Locator, NormalizedSource
from ..fetcher import Fetcher
from ..runner import register_embed
from . import video_id
from .packed_common import hls_links, unpacked_page

BASE = "https://dinisglows.com"


@register_embed
class Filelions:
    id = "filelions"
    name = "Filelions"

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        vid_id = video_id(locator.ref, self.id)
        script = await unpacked_page(f"{BASE}/v/{vid_id}", fetcher)
        return hls_links(script, BASE, ctx.label or self.name)
