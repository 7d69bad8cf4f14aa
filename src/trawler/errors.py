"""
Error taxonomy shared by the toolkit, the extractors and the orchestrator.

  FetchError           network / HTTP status failure      → extractor failed
  MalformedInputError  marker or field missing, bad JSON   → "no sources"
  CipherError          key/iv size, padding, auth tag      → extractor failed
  EncodingError        base64 / hex / utf-8                → extractor failed
  NotFoundError        unknown supplier                    → raised to caller
"""
from __future__ import annotations


class TrawlerError(Exception):
    pass


class FetchError(TrawlerError):
    def __init__(self, url: str, reason: object):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class MalformedInputError(TrawlerError):
    pass


class UnpackError(MalformedInputError):
    def __init__(self, message: str):
        super().__init__(f"unpack error: {message}")


class CipherError(TrawlerError):
    pass


class EncodingError(TrawlerError):
    pass


class ExtractorTimeout(TrawlerError):
    pass


class BatchTimeoutError(TrawlerError):
    pass


class NotFoundError(TrawlerError):
    pass


class InvalidParamsError(TrawlerError):
    pass
