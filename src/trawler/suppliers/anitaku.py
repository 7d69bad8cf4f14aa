"""
Anitaku — the episode page lists mirror servers; each known server maps to a
host extractor and all of them run through the orchestrator.
"""
from __future__ import annotations
import logging
from typing import Sequence

from bs4 import BeautifulSoup

from ..base import ExtractionContext, Locator, NormalizedSource
from ..errors import InvalidParamsError
from ..runner import Orchestrator, get_embed
from . import register_supplier
from .base import ContentSupplier

log = logging.getLogger("trawler.suppliers.anitaku")

BASE = "https://anitaku.bz"

SERVER_EMBEDS = {
    "doodstream": "dood",
    "vidcdn": "gogostream",
    "streamwish": "streamwish",
    "vidhide": "streamwish",
    "mp4upload": "mp4upload",
}


def parse_servers(html: str) -> list[tuple[str, str]]:
    """(server class, data-video url) pairs in page order."""
    soup = BeautifulSoup(html, "html.parser")
    servers = []
    for li in soup.select("div.anime_muti_link > ul li"):
        link = li.find("a", attrs={"data-video": True})
        name = " ".join(li.get("class") or [])
        if name and link:
            servers.append((name, link["data-video"]))
    return servers


@register_supplier
class AnitakuSupplier(ContentSupplier):
    name = "Anitaku"
    channels = ("New", "Popular", "Movies")
    default_channels = ("New",)
    supported_types = ("anime",)
    supported_languages = ("en",)

    async def load_media_item_sources(
        self,
        id: str,
        langs: Sequence[str],
        params: Sequence[str],
        *,
        orchestrator: Orchestrator,
    ) -> list[NormalizedSource]:
        if not params:
            raise InvalidParamsError("[anitaku] episode slug expected")
        return await orchestrator.bounded(self._load(langs, params[0], orchestrator),
                                          f"[anitaku] episode {params[0]}")

    async def _load(self, langs: Sequence[str], slug: str,
                    orchestrator: Orchestrator) -> list[NormalizedSource]:
        episode_url = f"{BASE}/{slug}"
        html = await orchestrator.fetcher.get(episode_url)

        ctx = ExtractionContext(langs=tuple(langs), referer=episode_url)
        bindings = []
        for name, url in parse_servers(html):
            embed_id = SERVER_EMBEDS.get(name)
            if embed_id is None:
                log.debug(f"[anitaku] skipping unsupported server {name}")
                continue
            if url.startswith("//"):
                url = f"https:{url}"
            bindings.append((get_embed(embed_id), Locator(url, referer=episode_url),
                             ctx.derive(label=name)))
        return await orchestrator.run_bound(bindings, ctx)
