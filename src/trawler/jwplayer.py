"""
JW Player style setup blocks: {"sources": [{"file"|"url", "label"}], "tracks": [{"file", "kind", "label"}]}.
"""
from __future__ import annotations
from typing import Mapping, Sequence

from .base import NormalizedSource
from .errors import MalformedInputError
from .lang import match_lang

CAPTION_KINDS = {"caption", "captions", "subtitle"}


def _label(prefix: str, num: int, label: str | None) -> str:
    text = f"{prefix} {num}."
    if label:
        text += f" {label}"
    return text


def to_sources(
    config: Mapping,
    prefix: str,
    headers: Mapping[str, str] | None = None,
    langs: Sequence[str] = (),
) -> list[NormalizedSource]:
    """Videos first, then caption tracks (language-filtered when `langs` is set)."""
    if not isinstance(config, Mapping):
        raise MalformedInputError("player config is not an object")

    out: list[NormalizedSource] = []
    for idx, src in enumerate(config.get("sources") or [], start=1):
        link = src.get("file") or src.get("url")
        if link:
            out.append(NormalizedSource.video(link, _label(prefix, idx, src.get("label")), headers))

    tracks = [t for t in config.get("tracks") or []
              if t.get("kind") in CAPTION_KINDS and t.get("file")]
    for idx, track in enumerate(tracks, start=1):
        label = track.get("label") or ""
        lang = match_lang(langs, label) if langs else None
        if langs and lang is None:
            continue
        out.append(NormalizedSource.subtitle(track["file"], _label(prefix, idx, label), lang=lang))
    return out
