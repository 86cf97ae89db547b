"""
Service layer wrapping the sitemap discovery, filter and export functions
"""
import os
import re
import json
from urllib.parse import quote
from typing import Any, Dict, List, Optional, Tuple

from sitemap_discovery import ProgressCallback, fetch_sitemap
from sitemap_errors import (
    DecodeError,
    DiscoveryExhausted,
    EmptyUrlError,
    MalformedXml,
    NoUrlsFound,
    SitemapError,
    SitemapIndexFound,
)
from sitemap_export import XLSX_MEDIA_TYPE, csv_text, json_payload, xlsx_bytes
from sitemap_filters import apply_filters, pattern_error, preview_filters
from sitemap_models import FilterSpec, PageRecord
from api.models import SitemapFetchResponse

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]")


def error_status(exc: SitemapError) -> int:
    """HTTP status code for a surfaced sitemap error"""
    if isinstance(exc, EmptyUrlError):
        return 400
    if isinstance(exc, DiscoveryExhausted):
        return 404
    if isinstance(exc, SitemapIndexFound):
        return 409
    if isinstance(exc, (DecodeError, MalformedXml, NoUrlsFound)):
        return 422
    return 500


def error_payload(exc: SitemapError) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, SitemapIndexFound):
        payload["sitemaps"] = exc.sitemaps
    if isinstance(exc, DiscoveryExhausted):
        payload["attempts"] = exc.attempts
    return payload


class SitemapService:
    """Service for sitemap discovery and parsing"""

    async def fetch(
        self,
        url: str,
        on_progress: Optional[ProgressCallback] = None,
        timeout: Optional[float] = None,
    ) -> SitemapFetchResponse:
        resource, records = await fetch_sitemap(url, on_progress=on_progress, timeout=timeout)
        return SitemapFetchResponse(
            url=url,
            sitemap_url=resource.url,
            total=len(records),
            records=records,
        )


class FilterService:
    """Service for record filtering"""

    def apply(self, records: List[PageRecord], spec: FilterSpec) -> List[PageRecord]:
        return apply_filters(records, spec)

    def preview(self, records: List[PageRecord], spec: FilterSpec, limit: int = 10) -> Dict[str, Any]:
        return preview_filters(records, spec, limit=limit)

    def validate_pattern(self, pattern: str) -> Optional[str]:
        return pattern_error(pattern)


class ExportService:
    """Service for spreadsheet / CSV / JSON export"""

    MEDIA_TYPES = {
        "xlsx": XLSX_MEDIA_TYPE,
        "csv": "text/csv; charset=utf-8",
        "json": "application/json",
    }

    def render(self, records: List[PageRecord], fmt: str) -> Tuple[bytes, str]:
        """Return (body, media_type) for the requested format"""
        if fmt == "xlsx":
            body = xlsx_bytes(records)
        elif fmt == "csv":
            body = csv_text(records).encode("utf-8")
        elif fmt == "json":
            body = json.dumps(json_payload(records), ensure_ascii=False, indent=2).encode("utf-8")
        else:
            raise ValueError(f"Unsupported export format: {fmt}")
        return body, self.MEDIA_TYPES[fmt]

    def content_disposition(self, filename: Optional[str], fmt: str) -> str:
        """Attachment header for a client-supplied file name.

        Directory parts are dropped and anything outside a plain ASCII set is
        replaced in ``filename``; the original name is kept in ``filename*``
        (RFC 5987) when it differs.
        """
        name = os.path.basename((filename or "").replace("\\", "/")).strip()
        if not name:
            name = f"sitemap_urls.{fmt}"
        safe = _UNSAFE_FILENAME_CHARS.sub("_", name)
        header = f'attachment; filename="{safe}"'
        if safe != name:
            header += f"; filename*=UTF-8''{quote(name, safe='')}"
        return header
