"""
Content supplier interface.

Catalog operations (search, channels, details, media items) are served by
other components; a supplier here only turns a media item into its sources.
"""
from __future__ import annotations
from typing import Sequence

from ..base import NormalizedSource
from ..runner import Orchestrator


class ContentSupplier:
    name: str
    channels: tuple[str, ...] = ()
    default_channels: tuple[str, ...] = ()
    supported_types: tuple[str, ...] = ()
    supported_languages: tuple[str, ...] = ()

    async def search(self, query: str, types: Sequence[str]):
        raise NotImplementedError(f"{self.name}: search is not provided here")

    async def load_channel(self, channel: str, page: int):
        raise NotImplementedError(f"{self.name}: load_channel is not provided here")

    async def get_content_details(self, id: str):
        raise NotImplementedError(f"{self.name}: get_content_details is not provided here")

    async def load_media_items(self, id: str, params: Sequence[str]):
        raise NotImplementedError(f"{self.name}: load_media_items is not provided here")

    async def load_media_item_sources(
        self,
        id: str,
        langs: Sequence[str],
        params: Sequence[str],
        *,
        orchestrator: Orchestrator,
    ) -> list[NormalizedSource]:
        raise NotImplementedError
