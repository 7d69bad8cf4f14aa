import json
from urllib.parse import urlencode

import pytest

from trawler.errors import FetchError
from trawler.fetcher import parse_json


class FakeFetcher:
    """
    Scripted stand-in for trawler.fetcher.Fetcher.

    Routes map a URL to a body (str), a JSON value (dict/list) or an
    exception to raise. A request is matched on its full URL (query
    included) first, then on the URL without a query string.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def _respond(self, method, url, headers=None, params=None, data=None):
        full = f"{url}?{urlencode(params)}" if params else url
        self.calls.append({"method": method, "url": full, "headers": dict(headers or {}),
                           "params": dict(params or {}), "data": data})
        for key in (full, full.split("?", 1)[0]):
            if key in self.routes:
                body = self.routes[key]
                break
        else:
            raise FetchError(full, "HTTP 404")
        if isinstance(body, BaseException):
            raise body
        if isinstance(body, (dict, list)):
            return json.dumps(body)
        return body

    async def get(self, url, *, base_url=None, headers=None, params=None, follow_redirects=True):
        return self._respond("GET", url, headers, params)

    async def get_json(self, url, *, base_url=None, headers=None, params=None):
        return parse_json(self._respond("GET", url, headers, params), url)

    async def post(self, url, *, base_url=None, headers=None, data=None, json_body=None):
        return self._respond("POST", url, headers, data=data or json_body)

    async def post_json(self, url, *, base_url=None, headers=None, data=None, json_body=None):
        return parse_json(self._respond("POST", url, headers, data=data or json_body), url)

    async def get_final_url(self, url, *, base_url=None, headers=None):
        self._respond("GET", url, headers)
        return url

    async def close(self):
        pass

    def urls(self):
        return [c["url"] for c in self.calls]


@pytest.fixture
def fetcher():
    return FakeFetcher()


def packed_script(payload, radix, symbols):
    """Wrap `payload` in a p.a.c.k.e.r call over `symbols`."""
    return (
        "eval(function(p,a,c,k,e,d){while(c--)if(k[c])p=p.replace(new RegExp('\\\\b'+c.toString(a)"
        "+'\\\\b','g'),k[c]);return p}"
        f"('{payload}',{radix},{len(symbols)},'{'|'.join(symbols)}'.split('|'),0,{{}}))"
    )


def packed_page(payload, radix, symbols):
    return f"<html><body><script type='text/javascript'>{packed_script(payload, radix, symbols)}</script></body></html>"
