"""Trawler — extraction and deobfuscation of media sources from third-party hosts."""
from .base import (
    Episode, ExtractionContext, ExtractionOutcome, Locator, NormalizedSource, SourceKind,
)
from .fetcher import Fetcher
from .lang import is_allowed
from .runner import Orchestrator, register_embed, register_source

__version__ = "0.4.0"
