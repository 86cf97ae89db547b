"""
Runtime settings for sitemap discovery, filtering and the API.

Values come from the environment (a local .env file is loaded first and never
overrides variables that are already set).
"""
import os
from typing import List

from dotenv import load_dotenv

load_dotenv(override=False)


def _env_flag(name: str, default: str) -> bool:
    return str(os.getenv(name, default)).strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, "") or default)
    except ValueError:
        return default


def _env_paths(name: str) -> List[str]:
    raw = os.getenv(name, "") or ""
    paths: List[str] = []
    for part in raw.split(","):
        p = part.strip()
        if not p:
            continue
        if not p.startswith("/"):
            p = "/" + p
        paths.append(p)
    return paths


# Per-request timeout (seconds) for every discovery attempt
SITEMAP_TIMEOUT: float = _env_float("SITEMAP_TIMEOUT", 15.0)
SITEMAP_USER_AGENT: str = os.getenv("SITEMAP_USER_AGENT", "Mozilla/5.0 (compatible; SitemapFetcher/1.0)")
SITEMAP_ACCEPT: str = "text/xml, application/xml, application/gzip"
SITEMAP_FOLLOW_REDIRECTS: bool = _env_flag("SITEMAP_FOLLOW_REDIRECTS", "1")
# Appended after the built-in known paths, e.g. "/news-sitemap.xml,/sitemap-1.xml"
SITEMAP_EXTRA_PATHS: List[str] = _env_paths("SITEMAP_EXTRA_PATHS")
SITEMAP_VERBOSE: bool = _env_flag("SITEMAP_VERBOSE", "1")

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "9001"))


def log(tag: str, message: str) -> None:
    """Print a tagged console line, e.g. ``[sitemap] Trying ...``."""
    if SITEMAP_VERBOSE:
        print(f"[{tag}] {message}")
