"""Mp4upload — plain `src: "..."` in the player setup."""
from __future__ import annotations
import re

from ..base import ExtractionContext, Locator, NormalizedSource
from ..errors import MalformedInputError
from ..fetcher import Fetcher
from ..runner import register_embed

SRC_RE = re.compile(r'src:?\s+"(.*?(mp4|m3u8))"')


@register_embed
class Mp4Upload:
    id = "mp4upload"
    name = "Mp4upload"

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        url = locator.ref
        referer = locator.referer or ctx.referer
        html = await fetcher.get(url, headers={"Referer": referer} if referer else None)
        m = SRC_RE.search(html)
        if not m:
            raise MalformedInputError("[mp4upload] no src found in page")
        return [NormalizedSource.video(m.group(1), ctx.label or self.name, {"Referer": url})]
