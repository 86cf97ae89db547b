"""
Error types raised while discovering, decoding, parsing and filtering sitemaps.
"""
from typing import List, Optional


class SitemapError(Exception):
    """Base class for every sitemap failure surfaced to callers."""


class EmptyUrlError(SitemapError):
    def __init__(self, message: str = "Please enter a URL"):
        super().__init__(message)


class TransportMiss(SitemapError):
    """A single fetch attempt failed (network error, timeout or non-2xx status).

    Always absorbed by the resolver, which moves on to the next candidate.
    """

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"{url}: {reason}")


class DiscoveryExhausted(SitemapError):
    MESSAGE = "Could not find sitemap. Please check the URL and try again."

    def __init__(self, attempts: Optional[List[str]] = None):
        self.attempts: List[str] = list(attempts or [])
        super().__init__(self.MESSAGE)


class DecodeError(SitemapError):
    """Decompression or UTF-8 decoding of the payload failed."""


class MalformedXml(SitemapError):
    """The XML parser could not build a document tree."""


class SitemapIndexFound(SitemapError):
    """The document is a sitemap of sitemaps; re-resolve one of ``sitemaps``."""

    def __init__(self, sitemaps: List[str]):
        self.sitemaps: List[str] = list(sitemaps)
        super().__init__("Multiple sitemaps found. Please use one of these URLs:\n" + "\n".join(self.sitemaps))


class NoUrlsFound(SitemapError):
    def __init__(self, message: str = "Invalid sitemap format: no URLs found"):
        super().__init__(message)


class InvalidPattern(SitemapError):
    """A filter pattern does not compile. Only raised by explicit validation."""

    def __init__(self, field: str, pattern: str, reason: str):
        self.field = field
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid {field.replace('_', ' ')}: {reason}")
