import httpx
import pytest
from typing import Callable, Dict, List, Tuple, Union

from sitemap_models import PageRecord

URLSET_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url>
    <loc>https://example.com/</loc>
    <lastmod>2024-05-01</lastmod>
    <changefreq>daily</changefreq>
    <priority>1.0</priority>
  </url>
  <url>
    <loc>https://example.com/blog/hello-world</loc>
    <lastmod>2024-04-12T08:30:00+00:00</lastmod>
  </url>
  <url>
    <loc>https://example.com/about</loc>
  </url>
</urlset>
"""

INDEX_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <sitemap><loc>https://example.com/post-sitemap.xml</loc><lastmod>2024-05-01</lastmod></sitemap>
  <sitemap><loc>https://example.com/page-sitemap.xml</loc></sitemap>
</sitemapindex>
"""

# (status, body, content-type) or an exception instance to raise
Route = Union[Tuple[int, bytes, str], Exception]


class FakeSite:
    """httpx MockTransport keyed by ``host + path``; unknown URLs answer 404."""

    def __init__(self, routes: Dict[str, Route]):
        self.routes = routes
        self.calls: List[str] = []
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        key = f"{request.url.host}{request.url.path}"
        self.calls.append(key)
        self.requests.append(request)
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, content=b"not found")
        if isinstance(route, Exception):
            raise route
        status, body, content_type = route
        return httpx.Response(status, content=body, headers={"content-type": content_type})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), follow_redirects=True)


@pytest.fixture
def fake_site() -> Callable[[Dict[str, Route]], FakeSite]:
    return FakeSite


@pytest.fixture
def records() -> List[PageRecord]:
    return [
        PageRecord(location="https://a.example.com/Blog/2024/python-tips", last_modified="2024-01-02"),
        PageRecord(location="https://a.example.com/blog/2023/go-tips"),
        PageRecord(location="https://b.example.com/shop/product-1", priority="0.5"),
        PageRecord(location="https://b.example.com/tag/python"),
        PageRecord(location="https://c.example.com/about", change_frequency="yearly"),
    ]
