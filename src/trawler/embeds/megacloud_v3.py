"""
Megacloud v3 embed extractor.

The embed page hides a client key (`_k`) in one of several places; they're
tried in order until one matches:
  <meta name="_gg_fb" content="KEY">
  <!-- _is_th:KEY -->
  <script>window._lk_db = {x: "P1", y: "P2", z: "P3"};</script>
  <div data-dpi="KEY"></div>
  <script nonce="KEY">
  <script>window._xy_ws = "KEY";</script>
"""
from __future__ import annotations
import logging
import re
from typing import Callable, Optional

from .. import jwplayer
from ..base import ExtractionContext, Locator, NormalizedSource
from ..fetcher import Fetcher
from ..runner import register_embed

log = logging.getLogger("trawler.embeds.megacloud_v3")

BASE = "https://megacloud.blog/"

_PART = r"""([xyzXYZ]):\s+["']([a-zA-Z0-9]+)["']"""
_LK_DB_RE = re.compile(
    rf"<script>window\._lk_db\s+=\s+\{{{_PART},\s+{_PART},\s+{_PART}\}};</script>")


def _single(pattern: str) -> Callable[[str], Optional[str]]:
    regex = re.compile(pattern)

    def _find(html: str) -> Optional[str]:
        m = regex.search(html)
        return m.group(1) if m else None
    return _find


def _lk_db(html: str) -> Optional[str]:
    m = _LK_DB_RE.search(html)
    if not m:
        return None
    parts = ["", "", ""]
    for i in range(0, 6, 2):
        name, value = m.group(i + 1, i + 2)
        parts[{"x": 0, "y": 1}.get(name.lower(), 2)] = value
    return "".join(parts)


KEY_FINDERS: list[tuple[str, Callable[[str], Optional[str]]]] = [
    ("meta", _single(r'<meta name="_gg_fb" content="([a-zA-Z0-9]+)">')),
    ("comment", _single(r"<!--\s+_is_th:([0-9a-zA-Z]+)\s+-->")),
    ("lk_db", _lk_db),
    ("data-dpi", _single(r'<div\s+data-dpi="([0-9a-zA-Z]+)".*></div>')),
    ("nonce", _single(r'<script nonce="([0-9a-zA-Z]+)">')),
    ("xy_ws", _single(r"""<script>window\._xy_ws\s*=\s*['"`]([0-9a-zA-Z]+)['"`];</script>""")),
]


def find_client_key(html: str) -> Optional[str]:
    for _, finder in KEY_FINDERS:
        key = finder(html)
        if key:
            return key
    return None


@register_embed
class MegacloudV3:
    id = "megacloud_v3"
    name = "Megacloud"

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        url = locator.ref
        vid_id = url.rstrip("/").rsplit("/", 1)[-1].split("?", 1)[0]
        referer = locator.referer or ctx.referer
        html = await fetcher.get(url, headers={"Referer": referer} if referer else None)

        key = find_client_key(html)
        if not key:
            log.warning(f"[{self.id}] key not found")
            return []

        player = await fetcher.get_json(f"{BASE}embed-2/v3/e-1/getSources",
                                        params={"id": vid_id, "_k": key},
                                        headers={"Referer": url})
        return jwplayer.to_sources(player, ctx.label or self.name, {"Referer": BASE}, ctx.langs)
