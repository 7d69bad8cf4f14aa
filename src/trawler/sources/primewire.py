"""
PrimeWire (primesrc) — server list → per-server link → host extractor.
Delegates to streamwish / filelions / mixdrop / dood; other servers are ignored.
"""
from __future__ import annotations
import asyncio
import logging

from ..base import ExtractionContext, Locator, NormalizedSource
from ..errors import MalformedInputError, TrawlerError
from ..fetcher import Fetcher
from ..runner import get_embed, register_source

log = logging.getLogger("trawler.sources.primewire")

BASE = "https://primesrc.me"

SERVER_EMBEDS = {
    "Streamwish": "streamwish",
    "Filelions": "filelions",
    "Mixdrop": "mixdrop",
    "Dood": "dood",
}


@register_source
class PrimeWire:
    id = "primewire"
    name = "PrimeWire"

    async def _servers(self, locator: Locator, fetcher: Fetcher) -> list[dict]:
        params = {"tmdb": locator.ref}
        if locator.episode:
            params.update(season=str(locator.episode.season),
                          episode=str(locator.episode.episode), type="tv")
        else:
            params["type"] = "movie"
        res = await fetcher.get_json(f"{BASE}/api/v1/s", params=params)
        if not isinstance(res, dict) or not isinstance(res.get("servers"), list):
            raise MalformedInputError("[primewire] no servers in response")
        return res["servers"]

    async def _server_sources(self, idx: int, server: dict, ctx: ExtractionContext,
                              fetcher: Fetcher) -> list[NormalizedSource]:
        name = server.get("name", "")
        embed_id = SERVER_EMBEDS.get(name)
        if not embed_id:
            return []
        try:
            res = await fetcher.get_json(f"{BASE}/api/v1/l", params={"key": server.get("key", "")})
            link = res.get("link") if isinstance(res, dict) else None
            if not link:
                raise MalformedInputError("no link for server key")
            return await get_embed(embed_id).extract(
                Locator(link), ctx.derive(label=f"[PrimeWire] {idx}. {name}"), fetcher)
        except TrawlerError as e:
            log.error(f"[{self.id}] failed to extract server {name}: {e}")
            return []

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        servers = await self._servers(locator, fetcher)
        per_server = await asyncio.gather(*(
            self._server_sources(idx, srv, ctx, fetcher)
            for idx, srv in enumerate(servers, start=1)
        ))
        return [s for chunk in per_server for s in chunk]
