"""
Core types for the Trawler extraction pipeline.

A Locator goes into an extractor together with an ExtractionContext and
zero or more NormalizedSource records come out:
  - VIDEO:    playable URL (HLS playlist or direct file)
  - SUBTITLE: caption file, label carries the language
  - MANGA:    a set of page images
"""
from __future__ import annotations
import dataclasses
import enum
import types
from dataclasses import dataclass, field
from typing import Mapping, Optional


# ──────────────────────────────
#  Locator (what to extract)
# ──────────────────────────────
@dataclass(frozen=True)
class Episode:
    season: int
    episode: int


@dataclass(frozen=True)
class Locator:
    ref: str                          # URL, numeric id or composite key
    referer: Optional[str] = None
    imdb_id: Optional[str] = None
    episode: Optional[Episode] = None

    @property
    def is_url(self) -> bool:
        return self.ref.startswith(("http://", "https://"))

    def with_ref(self, ref: str, referer: Optional[str] = None) -> "Locator":
        return dataclasses.replace(self, ref=ref, referer=referer or self.referer)


# ──────────────────────────────
#  Context (how to extract)
# ──────────────────────────────
@dataclass(frozen=True)
class ExtractionContext:
    langs: tuple[str, ...] = ()       # accepted subtitle/audio languages
    referer: Optional[str] = None
    label: str = ""                   # display prefix e.g. "[PrimeWire] 1. Dood"

    def derive(self, **changes) -> "ExtractionContext":
        return dataclasses.replace(self, **changes)


# ──────────────────────────────
#  Output
# ──────────────────────────────
class SourceKind(str, enum.Enum):
    VIDEO = "video"
    SUBTITLE = "subtitle"
    MANGA = "manga"


@dataclass(frozen=True)
class NormalizedSource:
    kind: SourceKind
    url: str
    label: str
    headers: Mapping[str, str] = field(default_factory=dict)
    lang: Optional[str] = None        # subtitles only
    pages: tuple[str, ...] = ()       # manga only
    page_count: int = 0               # manga only

    def __post_init__(self):
        if not self.url:
            raise ValueError(f"{self.kind.value} source '{self.label}' has no url")
        # read-only private copy
        object.__setattr__(self, "headers", types.MappingProxyType(dict(self.headers)))

    def __hash__(self):
        return hash((self.kind, self.url, self.label, frozenset(self.headers.items()),
                     self.lang, self.pages, self.page_count))

    @classmethod
    def video(cls, url: str, label: str, headers: Mapping[str, str] | None = None):
        return cls(SourceKind.VIDEO, url, label.strip(), headers or {})

    @classmethod
    def subtitle(cls, url: str, label: str, headers: Mapping[str, str] | None = None,
                 lang: Optional[str] = None):
        return cls(SourceKind.SUBTITLE, url, label.strip(), headers or {}, lang=lang)

    @classmethod
    def manga(cls, url: str, label: str, pages: list[str] | tuple[str, ...] = (),
              headers: Mapping[str, str] | None = None, page_count: int | None = None):
        pages = tuple(pages)
        return cls(SourceKind.MANGA, url, label.strip(), headers or {},
                   pages=pages,
                   page_count=len(pages) if page_count is None else page_count)

    def to_dict(self):
        d = {"kind": self.kind.value, "url": self.url, "label": self.label}
        if self.headers:
            d["headers"] = dict(self.headers)
        if self.kind is SourceKind.SUBTITLE and self.lang:
            d["lang"] = self.lang
        if self.kind is SourceKind.MANGA:
            d["pages"] = list(self.pages)
            d["page_count"] = self.page_count
        return d


@dataclass
class ExtractionOutcome:
    extractor_id: str
    sources: list[NormalizedSource] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None
