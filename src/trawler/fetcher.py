"""
HTTP fetcher shared by every extractor. Wraps aiohttp with common defaults,
headers, timeout, and optional proxy support.

Transport problems and non-2xx statuses come out as FetchError; a body that
claims to be JSON but isn't comes out as MalformedInputError.
"""
from __future__ import annotations
import asyncio
import json
from typing import Optional
from urllib.parse import urljoin

import aiohttp

from . import config
from .errors import FetchError, MalformedInputError

DEFAULT_UA = config.USER_AGENT


class Fetcher:
    def __init__(self, *, timeout: float | None = None, proxy: str | None = None,
                 verify_ssl: bool | None = None):
        self.timeout = aiohttp.ClientTimeout(
            total=timeout or config.HTTP_TIMEOUT, connect=config.CONNECT_TIMEOUT)
        self.proxy = proxy if proxy is not None else config.PROXY
        self.verify_ssl = config.VERIFY_SSL if verify_ssl is None else verify_ssl
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": DEFAULT_UA},
                connector=None if self.verify_ssl else aiohttp.TCPConnector(ssl=False),
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def _request(
        self,
        method: str,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        params: dict | None = None,
        data: dict | str | None = None,
        json_body: dict | None = None,
        follow_redirects: bool = True,
    ) -> tuple[str, str]:
        """Returns (body, final url)."""
        full = urljoin(base_url, url) if base_url else url
        session = await self._get_session()
        try:
            async with session.request(
                method,
                full,
                headers=headers or {},
                params=params,
                data=data,
                json=json_body,
                allow_redirects=follow_redirects,
                proxy=self.proxy,
            ) as resp:
                resp.raise_for_status()
                return await resp.text(), str(resp.url)
        except aiohttp.ClientResponseError as e:
            raise FetchError(full, f"HTTP {e.status}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(full, e.__class__.__name__) from e

    # ── convenience methods ──────────────────

    async def get(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        params: dict | None = None,
        follow_redirects: bool = True,
    ) -> str:
        body, _ = await self._request("GET", url, base_url=base_url, headers=headers,
                                      params=params, follow_redirects=follow_redirects)
        return body

    async def get_json(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        params: dict | None = None,
    ) -> dict | list:
        body = await self.get(url, base_url=base_url, headers=headers, params=params)
        return parse_json(body, url)

    async def post(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        data: dict | str | None = None,
        json_body: dict | None = None,
    ) -> str:
        body, _ = await self._request("POST", url, base_url=base_url, headers=headers,
                                      data=data, json_body=json_body)
        return body

    async def post_json(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        data: dict | str | None = None,
        json_body: dict | None = None,
    ) -> dict | list:
        body = await self.post(url, base_url=base_url, headers=headers,
                               data=data, json_body=json_body)
        return parse_json(body, url)

    async def get_final_url(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
    ) -> str:
        """Follow redirects and return the final URL."""
        _, final = await self._request("GET", url, base_url=base_url, headers=headers)
        return final


def parse_json(body: str, where: str = "") -> dict | list:
    try:
        return json.loads(body)
    except ValueError as e:
        raise MalformedInputError(f"{where}: response is not JSON ({e})") from e
