"""MixDrop — packed JS line → MDCore.wurl → direct MP4."""
from __future__ import annotations
import re

from ..base import ExtractionContext, Locator, NormalizedSource
from ..errors import MalformedInputError
from ..fetcher import DEFAULT_UA, Fetcher
from ..runner import register_embed
from ..toolkit import unpacker

LINK_RE = re.compile(r'MDCore\.wurl=["]([^"]+)["]')


@register_embed
class MixDrop:
    id = "mixdrop"
    name = "MixDrop"

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        # /f/ is the download page, /e/ the player
        html = await fetcher.get(locator.ref.replace("/f/", "/e/"),
                                 headers={"User-Agent": DEFAULT_UA})
        packed = unpacker.find_packed(html)
        if not packed:
            raise MalformedInputError("[mixdrop] no packer script found")

        m = LINK_RE.search(unpacker.unpack(packed))
        if not m:
            raise MalformedInputError("[mixdrop] wurl not found")
        stream_url = m.group(1)
        if stream_url.startswith("//"):
            stream_url = f"https:{stream_url}"

        return [NormalizedSource.video(stream_url, ctx.label or self.name,
                                       {"User-Agent": DEFAULT_UA})]
