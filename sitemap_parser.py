"""
Sitemap decoding and parsing.

Turns the raw bytes of a fetched sitemap into an ordered list of PageRecord:

    records = parse_sitemap(content, "application/xml")

A <urlset> yields one record per <url> that carries a <loc>. A <sitemapindex>
is not expanded: SitemapIndexFound is raised with the child sitemap URLs so the
caller can resolve one of them explicitly.
"""
import gzip
import zlib
from typing import List, Optional
from xml.etree import ElementTree as ET

from sitemap_config import log
from sitemap_errors import DecodeError, MalformedXml, NoUrlsFound, SitemapIndexFound
from sitemap_models import PageRecord, SitemapResource

GZIP_MAGIC = b"\x1f\x8b"


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.split("}", 1)[-1] if "}" in tag else tag


def _first_child(parent: ET.Element, local_name: str) -> Optional[ET.Element]:
    for child in list(parent):
        if _local_name(child.tag) == local_name:
            return child
    return None


def _child_text(parent: ET.Element, local_name: str, strip: bool = True) -> Optional[str]:
    # First occurrence only; an empty or blank element counts as absent
    child = _first_child(parent, local_name)
    if child is None or not (child.text or "").strip():
        return None
    return child.text.strip() if strip else child.text


def _children(parent: ET.Element, local_name: str) -> List[ET.Element]:
    return [c for c in list(parent) if _local_name(c.tag) == local_name]


def is_gzip_declared(content_type: Optional[str]) -> bool:
    return "gzip" in (content_type or "").lower()


def decompress(content: bytes) -> bytes:
    try:
        return gzip.decompress(content)
    except (OSError, EOFError, zlib.error) as e:
        raise DecodeError(f"Could not decompress gzipped sitemap: {e}") from e


def decode_text(content: bytes, content_type: Optional[str] = None, source_url: Optional[str] = None) -> str:
    """Decompress when needed and decode the payload as UTF-8 text."""
    if is_gzip_declared(content_type):
        log("parser", "Decompressing gzipped content")
        content = decompress(content)
    elif source_url and source_url.lower().endswith(".gz") and content[:2] == GZIP_MAGIC:
        log("parser", f"Decompressing .gz payload served as {content_type or 'unknown type'}")
        content = decompress(content)
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Sitemap is not valid UTF-8: {e}") from e


def parse_xml(text: str) -> ET.Element:
    try:
        return ET.fromstring(text.lstrip())
    except ET.ParseError as e:
        raise MalformedXml(str(e)) from e


def _records_from_urlset(root: ET.Element) -> List[PageRecord]:
    entries = _children(root, "url")
    if not entries:
        raise NoUrlsFound()
    records: List[PageRecord] = []
    skipped = 0
    for u in entries:
        loc = _child_text(u, "loc")
        if not loc:
            skipped += 1
            continue
        records.append(PageRecord(
            location=loc,
            last_modified=_child_text(u, "lastmod", strip=False),
            change_frequency=_child_text(u, "changefreq", strip=False),
            priority=_child_text(u, "priority", strip=False),
        ))
    if skipped:
        log("parser", f"Skipped {skipped} <url> entr{'y' if skipped == 1 else 'ies'} without <loc>")
    return records


def _child_sitemaps(root: ET.Element) -> List[str]:
    out: List[str] = []
    for sm in _children(root, "sitemap"):
        loc = _child_text(sm, "loc")
        if loc:
            out.append(loc)
    return out


def parse_sitemap(content: bytes, content_type: Optional[str] = None, source_url: Optional[str] = None) -> List[PageRecord]:
    """Decode and parse a sitemap payload into page records (document order).

    Raises DecodeError, MalformedXml, SitemapIndexFound or NoUrlsFound.
    """
    text = decode_text(content, content_type, source_url)
    log("parser", f"XML content length: {len(text)}")
    root = parse_xml(text)
    kind = _local_name(root.tag).lower()
    if kind == "urlset":
        records = _records_from_urlset(root)
        log("parser", f"Extracted {len(records)} URL(s)")
        return records
    if kind == "sitemapindex":
        sitemaps = _child_sitemaps(root)
        if sitemaps:
            log("parser", f"Found sitemap index with {len(sitemaps)} sitemap(s)")
            raise SitemapIndexFound(sitemaps)
    log("parser", f"No urlset or sitemap index found (root: <{_local_name(root.tag)}>)")
    raise NoUrlsFound()


def parse_resource(resource: SitemapResource) -> List[PageRecord]:
    return parse_sitemap(resource.content, resource.content_type, source_url=resource.url)
