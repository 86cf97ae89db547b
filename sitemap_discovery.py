import re
import httpx
from urllib.parse import urlparse
from typing import Callable, List, Optional, Set, Tuple

import sitemap_config as cfg
from sitemap_config import log
from sitemap_errors import DiscoveryExhausted, EmptyUrlError, TransportMiss
from sitemap_models import PageRecord, SitemapResource
from sitemap_parser import parse_resource

ProgressCallback = Callable[[str, int], None]

KNOWN_SITEMAP_PATHS = [
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap/sitemap.xml",
    "/sitemaps/sitemap.xml",
    "/wp-sitemap.xml",  # WordPress
    "/sitemap/index.xml",
    # Yoast / Rank Math style per-type sitemaps
    "/post-sitemap.xml",
    "/page-sitemap.xml",
    "/product-sitemap.xml",
    "/category-sitemap.xml",
]

ROBOTS_SITEMAP_RE = re.compile(r"^Sitemap:\s*(.+)$", re.IGNORECASE | re.MULTILINE)


def normalize_url(raw_input: str) -> str:
    url = (raw_input or "").strip()
    if not url:
        raise EmptyUrlError()
    if not url.lower().startswith(("http://", "https://")):
        url = "https://" + url
    return url.rstrip("/")


def origin_of(url: str) -> str:
    p = urlparse(url)
    return f"{p.scheme}://{p.netloc}"


def known_path_candidates(origin: str) -> List[str]:
    return [origin + path for path in KNOWN_SITEMAP_PATHS + cfg.SITEMAP_EXTRA_PATHS]


def parse_sitemaps_from_robots(robots_txt: str) -> List[str]:
    """Return every ``Sitemap:`` URL declared in robots.txt, in file order."""
    urls: List[str] = []
    if not robots_txt:
        return urls
    for m in ROBOTS_SITEMAP_RE.finditer(robots_txt):
        u = m.group(1).strip()
        if u:
            urls.append(u)
    log("sitemap", f"Found {len(urls)} sitemap URL(s) in robots.txt")
    return urls


def _sitemap_headers() -> dict:
    return {"User-Agent": cfg.SITEMAP_USER_AGENT, "Accept": cfg.SITEMAP_ACCEPT}


def _robots_headers() -> dict:
    return {"User-Agent": cfg.SITEMAP_USER_AGENT, "Accept": "text/plain,*/*;q=0.8"}


async def _fetch(client: httpx.AsyncClient, url: str, headers: dict) -> httpx.Response:
    """Single GET; any failure is raised as TransportMiss."""
    try:
        r = await client.get(url, headers=headers)
    except httpx.TimeoutException as e:
        raise TransportMiss(url, f"timeout ({type(e).__name__})") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise TransportMiss(url, f"{type(e).__name__}: {e}") from e
    if not r.is_success:
        raise TransportMiss(url, f"status={r.status_code}", status_code=r.status_code)
    return r


def _report(on_progress: Optional[ProgressCallback], status: str, percent: int) -> None:
    if on_progress is None:
        return
    try:
        on_progress(status, max(0, min(100, int(percent))))
    except Exception as e:
        # Progress is advisory; a broken observer never changes the outcome
        log("sitemap", f"Progress callback failed: {type(e).__name__}: {e}")


class _Attempts:
    """Ordered record of candidate URLs; each URL is fetched at most once."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client
        self.tried: List[str] = []
        self._seen: Set[str] = set()

    async def try_sitemap(self, url: str) -> Optional[SitemapResource]:
        if url in self._seen:
            log("sitemap", f"Skip (already tried): {url}")
            return None
        self._seen.add(url)
        self.tried.append(url)
        log("sitemap", f"Trying sitemap location: {url}")
        try:
            r = await _fetch(self.client, url, _sitemap_headers())
        except TransportMiss as miss:
            log("sitemap", f"Miss: {miss}")
            return None
        content_type = r.headers.get("content-type", "")
        log("sitemap", f"Found sitemap at {url} (content-type={content_type or 'unknown'}, bytes={len(r.content)})")
        return SitemapResource(url=str(url), content=r.content, content_type=content_type, attempts=list(self.tried))

    async def fetch_robots(self, url: str) -> Optional[str]:
        log("sitemap", f"Fetching robots.txt -> {url}")
        try:
            r = await _fetch(self.client, url, _robots_headers())
        except TransportMiss as miss:
            log("sitemap", f"robots.txt not accessible ({miss.reason})")
            return None
        return r.text or ""


async def _resolve_with(client: httpx.AsyncClient, raw_input: str, on_progress: Optional[ProgressCallback]) -> SitemapResource:
    url = normalize_url(raw_input)
    log("sitemap", f"Starting sitemap discovery for: {url}")
    _report(on_progress, "Normalizing URL...", 5)
    attempts = _Attempts(client)

    _report(on_progress, "Fetching sitemap...", 10)
    found = await attempts.try_sitemap(url)
    if found:
        return found

    if not url.lower().endswith(".xml"):
        _report(on_progress, "Trying .xml extension...", 15)
        found = await attempts.try_sitemap(url + ".xml")
        if found:
            return found

    try:
        origin = origin_of(url)
    except ValueError as e:
        # No origin, so neither the known paths nor robots.txt can be built
        log("sitemap", f"Cannot derive origin from {url} ({e}); skipping known paths and robots.txt")
        raise DiscoveryExhausted(attempts.tried) from e
    candidates = known_path_candidates(origin)
    for i, candidate in enumerate(candidates):
        _report(on_progress, "Checking common sitemap locations...", 20 + (40 * i) // max(1, len(candidates)))
        found = await attempts.try_sitemap(candidate)
        if found:
            return found

    _report(on_progress, "Checking robots.txt...", 60)
    robots = await attempts.fetch_robots(origin + "/robots.txt")
    if robots is not None:
        declared = parse_sitemaps_from_robots(robots)
        for i, candidate in enumerate(declared):
            _report(on_progress, "Trying sitemaps from robots.txt...", 65 + (10 * i) // max(1, len(declared)))
            found = await attempts.try_sitemap(candidate)
            if found:
                return found

    log("sitemap", f"No sitemap found after {len(attempts.tried)} attempt(s)")
    raise DiscoveryExhausted(attempts.tried)


async def resolve(
    raw_input: str,
    on_progress: Optional[ProgressCallback] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
) -> SitemapResource:
    """Locate a sitemap for ``raw_input`` (a domain, page URL or sitemap URL).

    Candidates are tried one after another in a fixed order: the URL itself,
    the URL with ``.xml`` appended, the well-known paths on the origin, then
    every sitemap declared in robots.txt. Failed attempts are logged and
    skipped; if none succeeds DiscoveryExhausted is raised.

    A caller-supplied ``client`` is used as is and left open.
    """
    if client is not None:
        return await _resolve_with(client, raw_input, on_progress)
    async with httpx.AsyncClient(
        timeout=timeout if timeout is not None else cfg.SITEMAP_TIMEOUT,
        follow_redirects=cfg.SITEMAP_FOLLOW_REDIRECTS,
    ) as own_client:
        return await _resolve_with(own_client, raw_input, on_progress)


async def fetch_sitemap(
    raw_input: str,
    on_progress: Optional[ProgressCallback] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
) -> Tuple[SitemapResource, List[PageRecord]]:
    """Resolve then parse. Parse errors propagate unchanged."""
    resource = await resolve(raw_input, on_progress=on_progress, client=client, timeout=timeout)
    _report(on_progress, "Parsing XML content...", 80)
    records = parse_resource(resource)
    _report(on_progress, "Processing complete", 100)
    log("sitemap", f"Total URLs collected from {resource.url}: {len(records)}")
    return resource, records


async def fetch_sitemap_records(
    raw_input: str,
    on_progress: Optional[ProgressCallback] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
) -> List[PageRecord]:
    _, records = await fetch_sitemap(raw_input, on_progress=on_progress, client=client, timeout=timeout)
    return records
