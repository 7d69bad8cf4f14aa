"""XPrime — JSON API, one HLS link per title."""
from __future__ import annotations

from ..base import ExtractionContext, Locator, NormalizedSource
from ..errors import MalformedInputError
from ..fetcher import Fetcher
from ..runner import register_source

BACKEND_URL = "https://backend.xprime.tv"
SITE_URL = "https://xprime.tv"


@register_source
class XPrime:
    id = "xprime"
    name = "xprime"

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        params = {"id": locator.ref}
        if locator.episode:
            params["season"] = str(locator.episode.season)
            params["episode"] = str(locator.episode.episode)

        res = await fetcher.get_json(f"{BACKEND_URL}/primenet", params=params,
                                     headers={"Referer": SITE_URL, "Origin": SITE_URL})
        url = res.get("url") if isinstance(res, dict) else None
        if not url:
            raise MalformedInputError("[xprime] no url in response")
        return [NormalizedSource.video(url, self.name, {"Referer": SITE_URL})]
