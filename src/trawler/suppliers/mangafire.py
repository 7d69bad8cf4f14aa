"""
MangaFire — each (lang, volume id) pair in params becomes one MANGA source
holding the volume's page images. Volumes without images yield nothing.
"""
from __future__ import annotations
import logging
from typing import Optional, Sequence

from ..base import NormalizedSource
from ..errors import InvalidParamsError, MalformedInputError, TrawlerError
from ..fetcher import Fetcher
from ..runner import Orchestrator
from . import register_supplier
from .base import ContentSupplier

log = logging.getLogger("trawler.suppliers.mangafire")

BASE = "https://mangafire.to"


@register_supplier
class MangaFireSupplier(ContentSupplier):
    name = "MangaFire"
    channels = ("Updated", "New Release", "Most Viewed")
    default_channels = ("Updated",)
    supported_types = ("manga",)
    supported_languages = ("en", "fr", "es", "es-la", "pt", "pt-br", "ja")

    async def _load_volume(self, lang: str, volume_id: str, fetcher: Fetcher) -> Optional[NormalizedSource]:
        url = f"{BASE}/ajax/read/volume/{volume_id}"
        res = await fetcher.get_json(url, headers={"Referer": BASE})
        if not isinstance(res, dict) or res.get("status") != 200:
            raise MalformedInputError(f"bad status for volume {volume_id}")
        images = (res.get("result") or {}).get("images") or []
        pages = [img[0] for img in images if img and isinstance(img[0], str)]
        if not pages:
            log.info(f"[mangafire] volume {volume_id} ({lang}) has no pages")
            return None
        return NormalizedSource.manga(url, lang, pages, {"Referer": BASE})
    async def load_media_item_sources(
        self,
        id: str,
        langs: Sequence[str],
        params: Sequence[str],
        *,
        orchestrator: Orchestrator,
    ) -> list[NormalizedSource]:
        if len(params) % 2:
            raise InvalidParamsError("[mangafire] params must be (lang, volume id) pairs")

        async def _load_all():
            out = []
            for lang, volume_id in zip(params[::2], params[1::2]):
                try:
                    vol = await self._load_volume(lang, volume_id, orchestrator.fetcher)
                except TrawlerError as e:
                    log.warning(f"[mangafire] failed to load volume {volume_id} ({lang}): {e}")
                    continue
                if vol is not None:
                    out.append(vol)
            return out

        return await orchestrator.bounded(_load_all(), "[mangafire] volumes")
