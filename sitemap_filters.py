"""
Sitemap URL Filtering Functions
================================

Compound include/exclude filtering of parsed sitemap records:
1. Keyword filtering (every include token must appear, no exclude token may appear)
2. Pattern filtering (case-insensitive regular expressions)

Usage:
    from sitemap_filters import apply_filters
    from sitemap_models import FilterSpec

    spec = FilterSpec(include_keywords="blog", exclude_pattern=r"/tag/")
    kept = apply_filters(records, spec)

A pattern that does not compile never aborts filtering: the criterion is
treated as inactive. Use pattern_error()/check_pattern() to surface such
patterns to the user before filtering.
"""

import re
from typing import Dict, List, Optional, Pattern, Sequence

from sitemap_config import log
from sitemap_errors import InvalidPattern
from sitemap_models import FilterSpec, PageRecord


PATTERN_FIELDS = ("include_pattern", "exclude_pattern")

# re.compile also fails with OverflowError (huge repeat counts) and
# RecursionError (deeply nested groups), not only re.error
PATTERN_COMPILE_ERRORS = (re.error, OverflowError, RecursionError)


# ============================================================================
# PATTERNS
# ============================================================================

def compile_pattern(pattern: str) -> Optional[Pattern]:
    """
    Compile a case-insensitive pattern.

    Returns None when the pattern is empty or invalid (criterion inactive).

    Examples:
        >>> compile_pattern("") is None
        True
        >>> compile_pattern("([") is None
        True
    """
    if not pattern:
        return None
    try:
        return re.compile(pattern, re.IGNORECASE)
    except PATTERN_COMPILE_ERRORS:
        return None


def pattern_error(pattern: str) -> Optional[str]:
    """Compiler message for an invalid pattern, None if it is empty or valid."""
    if not pattern:
        return None
    try:
        re.compile(pattern, re.IGNORECASE)
    except PATTERN_COMPILE_ERRORS as e:
        return str(e) or type(e).__name__
    return None


def check_pattern(field: str, pattern: str) -> None:
    """Raise InvalidPattern if ``pattern`` does not compile."""
    err = pattern_error(pattern)
    if err:
        raise InvalidPattern(field, pattern, err)


def pattern_errors(spec: FilterSpec) -> Dict[str, str]:
    """Map of pattern field name -> compiler message for every invalid field."""
    errors: Dict[str, str] = {}
    for field in PATTERN_FIELDS:
        err = pattern_error(getattr(spec, field))
        if err:
            errors[field] = err
    return errors


# ============================================================================
# KEYWORDS
# ============================================================================

def split_keywords(keywords: str) -> List[str]:
    """Lower-cased whitespace-separated tokens, empty tokens dropped."""
    return [k for k in (keywords or "").lower().split() if k]


def matches_all_keywords(location: str, tokens: Sequence[str]) -> bool:
    loc = location.lower()
    return all(t in loc for t in tokens)


def matches_any_keyword(location: str, tokens: Sequence[str]) -> bool:
    loc = location.lower()
    return any(t in loc for t in tokens)


# ============================================================================
# COMBINED FILTERING
# ============================================================================

class _CompiledSpec:
    """FilterSpec with tokens split and patterns compiled once per apply."""

    def __init__(self, spec: FilterSpec):
        self.include_tokens = split_keywords(spec.include_keywords)
        self.exclude_tokens = split_keywords(spec.exclude_keywords)
        self.include_re = compile_pattern(spec.include_pattern)
        self.exclude_re = compile_pattern(spec.exclude_pattern)
        for field, err in pattern_errors(spec).items():
            log("filter", f"Invalid {field} ignored: {err}")

    def keep(self, location: str) -> bool:
        if self.include_tokens and not matches_all_keywords(location, self.include_tokens):
            return False
        if self.include_re is not None and not self.include_re.search(location):
            return False
        if self.exclude_tokens and matches_any_keyword(location, self.exclude_tokens):
            return False
        if self.exclude_re is not None and self.exclude_re.search(location):
            return False
        return True


def filter_record(record: PageRecord, spec: FilterSpec) -> bool:
    """True if a single record satisfies every active criterion of ``spec``."""
    return _CompiledSpec(spec).keep(record.location)


def apply_filters(records: Sequence[PageRecord], spec: FilterSpec) -> List[PageRecord]:
    """
    Records satisfying all four criteria of ``spec``, in input order.

    Never raises: an invalid pattern leaves its criterion inactive.
    """
    if spec.is_empty:
        log("filter", "No filters applied, returning all URLs")
        return list(records)
    compiled = _CompiledSpec(spec)
    kept = [r for r in records if compiled.keep(r.location)]
    log("filter", f"Filtered {len(records)} -> {len(kept)} URL(s)")
    return kept


def preview_filters(records: Sequence[PageRecord], spec: FilterSpec, limit: int = 10) -> Dict[str, object]:
    """
    Live preview for a filter editor: match count plus the first matches.

    Returns:
        {"total": int, "matched": int, "preview": [location, ...], "errors": {field: message}}
    """
    kept = apply_filters(records, spec)
    return {
        "total": len(records),
        "matched": len(kept),
        "preview": [r.location for r in kept[:max(0, limit)]],
        "errors": pattern_errors(spec),
    }
