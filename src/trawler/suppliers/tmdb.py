"""
TMDB — movies and shows keyed by TMDB id. Every registered source
extractor runs against the same locator.

params[0] is JSON: {"id": 603, "imdb_id": "tt0133093", "ep": {"s": 1, "e": 2}}
"""
from __future__ import annotations
import json
from typing import Sequence

from ..base import Episode, ExtractionContext, Locator, NormalizedSource
from ..errors import InvalidParamsError
from ..runner import Orchestrator
from . import register_supplier
from .base import ContentSupplier


def parse_source_params(raw: str) -> Locator:
    try:
        params = json.loads(raw)
        tmdb_id = params["id"]
        ep = params.get("ep")
        episode = Episode(int(ep["s"]), int(ep["e"])) if ep else None
    except (ValueError, KeyError, TypeError) as e:
        raise InvalidParamsError(f"[tmdb] bad source params {raw!r}: {e}") from e
    return Locator(str(tmdb_id), imdb_id=params.get("imdb_id"), episode=episode)


@register_supplier
class TMDBSupplier(ContentSupplier):
    name = "TMDB"
    channels = ("Trending", "Popular Movies", "Popular TV Shows")
    default_channels = ("Trending",)
    supported_types = ("movie", "series", "cartoon", "anime")
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
            raise InvalidParamsError("[tmdb] source params expected")
        locator = parse_source_params(params[0])
        return await orchestrator.run(locator, ExtractionContext(langs=tuple(langs)))
