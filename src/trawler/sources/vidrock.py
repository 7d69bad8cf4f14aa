"""
Vidrock — id is hashed into the API path, response has up to five servers.
source1 points at a quality playlist, the rest are direct links tagged with
an audio language.
"""
from __future__ import annotations
import logging
from typing import Optional

from ..base import Episode, ExtractionContext, Locator, NormalizedSource
from ..errors import MalformedInputError, TrawlerError
from ..fetcher import Fetcher
from ..lang import is_allowed
from ..runner import register_source
from ..toolkit import b64encode

log = logging.getLogger("trawler.sources.vidrock")

SITE_URL = "https://vidrock.net"
BACKEND_URL = "https://vidrock.net/api"

_DIGITS = "abcdefghij"


def movie_hash(tmdb_id: str) -> str:
    """Digits → letters a-j, reversed, base64 twice."""
    letters = "".join(_DIGITS[int(d)] for d in tmdb_id)[::-1]
    return b64encode(b64encode(letters.encode()).encode())


def tv_hash(tmdb_id: str, ep: Episode) -> str:
    raw = f"{tmdb_id}-{ep.season}-{ep.episode}"[::-1]
    return b64encode(b64encode(raw.encode()).encode())


@register_source
class Vidrock:
    id = "vidrock"
    name = "Vidrocks"

    async def _playlist(self, server: dict, fetcher: Fetcher) -> list[NormalizedSource]:
        language = server.get("language") or "vidstore"
        items = await fetcher.get_json(server["url"], headers={"Referer": SITE_URL})
        if not isinstance(items, list):
            raise MalformedInputError("playlist is not a list")
        return [
            NormalizedSource.video(item["url"], f"[Vidrocks] 1. {language} - {item.get('resolution')}",
                                   {"Referer": SITE_URL})
            for item in reversed(items)
            if item.get("url")
        ]

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        if not locator.ref.isdigit():
            raise MalformedInputError(f"[vidrock] tmdb id must be numeric: {locator.ref}")
        if locator.episode:
            link = f"{BACKEND_URL}/tv/{tv_hash(locator.ref, locator.episode)}"
        else:
            link = f"{BACKEND_URL}/movie/{movie_hash(locator.ref)}"

        res = await fetcher.get_json(link)
        if not isinstance(res, dict):
            raise MalformedInputError("[vidrock] unexpected response")

        out: list[NormalizedSource] = []
        first: Optional[dict] = res.get("source1")
        if first and first.get("url"):
            try:
                out.extend(await self._playlist(first, fetcher))
            except TrawlerError as e:
                log.warning(f"[{self.id}] failed to load source: {e}")

        rest = [res.get(f"source{n}") for n in range(2, 6)]
        for num, server in enumerate((s for s in rest if s), start=2):
            url = server.get("url")
            language = server.get("language") or "unknown"
            if not url or not is_allowed(ctx.langs, language):
                continue
            out.append(NormalizedSource.video(url, f"[Vidrocks] {num}. {language}",
                                              {"Referer": SITE_URL, "Origin": SITE_URL}))
        return out
