"""
HiAnime — episode servers (sub first, then dub) come as an HTML fragment;
each server resolves to a megacloud embed link which is tried with the v3
extractor first and the e-1 extractor as fallback.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Optional, Sequence

from bs4 import BeautifulSoup

from ..base import ExtractionContext, Locator, NormalizedSource
from ..errors import InvalidParamsError, MalformedInputError, TrawlerError
from ..fetcher import Fetcher
from ..runner import Orchestrator, get_embed
from . import register_supplier
from .base import ContentSupplier

log = logging.getLogger("trawler.suppliers.hianime")

BASE = "https://hianime.to"


def parse_servers(fragment: str) -> list[tuple[str, str, str]]:
    """(data-id, title, "sub" | "dub") for every server item, subs first."""
    soup = BeautifulSoup(fragment, "html.parser")
    servers = []
    for kind in ("sub", "dub"):
        for item in soup.select(f".servers-{kind} .item"):
            data_id = item.get("data-id")
            if data_id:
                servers.append((data_id, " ".join(item.get_text().split()), kind))
    return servers


class MegacloudChain:
    id = "hianime_megacloud"
    name = "Megacloud"

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        try:
            sources = await get_embed("megacloud_v3").extract(locator, ctx, fetcher)
        except TrawlerError as e:
            log.warning(f"[hianime] megacloud_v3 failed, falling back: {e}")
            sources = []
        if sources:
            return sources
        return await get_embed("megacloud").extract(locator, ctx, fetcher)


_CHAIN = MegacloudChain()


@register_supplier
class HiAnimeSupplier(ContentSupplier):
    name = "HiAnime"
    channels = ("New", "Most Popular", "Recently Updated", "Top Airing", "Movies", "TV Series")
    default_channels = ("New",)
    supported_types = ("anime",)
    supported_languages = ("en", "ja")

    async def _server_link(self, anime_id: str, server_id: str, fetcher: Fetcher) -> Optional[str]:
        try:
            res = await fetcher.get_json(f"{BASE}/ajax/v2/episode/sources", params={"id": server_id},
                                         headers={"Referer": f"{BASE}/watch/{anime_id}"})
        except TrawlerError as e:
            log.error(f"[hianime] failed to load source link (id: {anime_id}, server: {server_id}): {e}")
            return None
        link = res.get("link") if isinstance(res, dict) else None
        if not link:
            log.warning(f"[hianime] no link for server {server_id}")
        return link or None

    async def load_media_item_sources(
        self,
        id: str,
        langs: Sequence[str],
        params: Sequence[str],
        *,
        orchestrator: Orchestrator,
    ) -> list[NormalizedSource]:
        if not params:
            raise InvalidParamsError("[hianime] episode id expected")
        return await orchestrator.bounded(self._load(id, langs, params[0], orchestrator),
                                          f"[hianime] episode {params[0]}")

    async def _load(self, id: str, langs: Sequence[str], episode_id: str,
                    orchestrator: Orchestrator) -> list[NormalizedSource]:
        fetcher = orchestrator.fetcher
        res = await fetcher.get_json(f"{BASE}/ajax/v2/episode/servers",
                                     params={"episodeId": episode_id},
                                     headers={"Referer": f"{BASE}/watch/{id}"})
        if not isinstance(res, dict) or "html" not in res:
            raise MalformedInputError("[hianime] no servers fragment in response")

        servers = parse_servers(res["html"])
        links = await asyncio.gather(*(
            self._server_link(id, server_id, fetcher) for server_id, _, _ in servers
        ))

        ctx = ExtractionContext(langs=tuple(langs), referer=BASE)
        bindings = [
            (_CHAIN, Locator(link, referer=BASE), ctx.derive(label=f"[{kind}] {title.lower()}"))
            for (_, title, kind), link in zip(servers, links)
            if link
        ]
        return await orchestrator.run_bound(bindings, ctx)
