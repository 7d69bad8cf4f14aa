"""
Embed.su — the page carries a base64 config whose `hash` is itself a
scrambled base64 server list. Servers are loaded concurrently; output keeps
server order.
"""
from __future__ import annotations
import asyncio
import logging
import re

from ..base import ExtractionContext, Locator, NormalizedSource
from ..errors import MalformedInputError, TrawlerError
from ..fetcher import Fetcher, parse_json
from ..lang import match_lang
from ..runner import register_source
from ..toolkit import b64decode, utf8

log = logging.getLogger("trawler.sources.embed_su")

BASE = "https://embed.su"
ATOB_RE = re.compile(r"atob\(`([a-zA-Z0-9=]+)`\)")
STRIP_PROXY_RE = re.compile(r"[a-z\.0-9]+/api/proxy/[a-z0-9]+/")


def decode_servers(config_hash: str) -> list[dict]:
    """
    base64 → split on "." → reverse each segment → join → reverse the
    whole thing → base64 → JSON [{name, hash}].
    """
    text = utf8(b64decode(config_hash))
    joined = "".join(seg[::-1] for seg in text.split("."))
    servers = parse_json(utf8(b64decode(joined[::-1])), "embed_su servers")
    if not isinstance(servers, list):
        raise MalformedInputError("[embed_su] server list is not a list")
    return servers


@register_source
class EmbedSu:
    id = "embed_su"
    name = "Embed.su"

    async def _load_server(self, idx: int, server: dict, ctx: ExtractionContext,
                           fetcher: Fetcher) -> list[NormalizedSource]:
        name = server.get("name", "")
        try:
            res = await fetcher.get_json(f"{BASE}/api/e/{server['hash']}", headers={"Referer": BASE})
            if not isinstance(res, dict) or not res.get("source"):
                raise MalformedInputError("no source")
        except (TrawlerError, KeyError) as e:
            log.warning(f"[{self.id}] failed to extract server {name}: {e}")
            return []

        out = [NormalizedSource.video(STRIP_PROXY_RE.sub("", res["source"], count=1),
                                      f"Embed.su {idx}. {name}")]
        for sub in res.get("subtitles") or []:
            label = sub.get("label") or ""
            if not sub.get("file"):
                continue
            lang = match_lang(ctx.langs, label) if ctx.langs else None
            if ctx.langs and lang is None:
                continue
            out.append(NormalizedSource.subtitle(sub["file"], f"[embed_su] {idx}. {label}", lang=lang))
        return out

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        ep = locator.episode
        if ep:
            url = f"{BASE}/embed/tv/{locator.ref}/{ep.season}/{ep.episode}"
        else:
            url = f"{BASE}/embed/movie/{locator.ref}"

        m = ATOB_RE.search(await fetcher.get(url))
        if not m:
            raise MalformedInputError("[embed_su] no base64 config found")
        config = parse_json(utf8(b64decode(m.group(1))), "embed_su config")
        if not isinstance(config, dict) or not config.get("hash"):
            raise MalformedInputError("[embed_su] config has no hash")

        servers = decode_servers(config["hash"])
        per_server = await asyncio.gather(*(
            self._load_server(idx, srv, ctx, fetcher)
            for idx, srv in enumerate(servers, start=1)
        ))
        return [s for chunk in per_server for s in chunk]
