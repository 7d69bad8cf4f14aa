"""AutoEmbed — getVideoSource API: one video plus subtitles."""
from __future__ import annotations

from ..base import ExtractionContext, Locator, NormalizedSource
from ..errors import MalformedInputError
from ..fetcher import Fetcher
from ..lang import match_lang
from ..runner import register_source

BACKEND_URL = "https://tom.autoembed.cc"
SITE_URL = "https://autoembed.cc"


@register_source
class AutoEmbed:
    id = "autoembed"
    name = "autoembed"

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        ep = locator.episode
        if ep:
            params = {"type": "tv", "id": f"{locator.ref}/{ep.season}/{ep.episode}"}
        else:
            params = {"type": "movie", "id": locator.ref}

        res = await fetcher.get_json(f"{BACKEND_URL}/api/getVideoSource", params=params,
                                     headers={"Referer": SITE_URL})
        if not isinstance(res, dict) or not res.get("videoSource"):
            raise MalformedInputError("[autoembed] no videoSource in response")

        out = [NormalizedSource.video(res["videoSource"], self.name)]
        for num, sub in enumerate(res.get("subtitles") or [], start=1):
            label = sub.get("label") or ""
            lang = match_lang(ctx.langs, label) if ctx.langs else None
            if (ctx.langs and lang is None) or not sub.get("file"):
                continue
            out.append(NormalizedSource.subtitle(sub["file"], f"[autoembed] {num}. {label}",
                                                 lang=lang))
        return out
