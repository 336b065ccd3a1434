"""Text sanitization for storage and escaping for rendering.

Two separate obligations:
- Storage: strip markup from untrusted discussion text before it is persisted
  (sanitize_text_field, sanitize_textarea_field, sanitize_url).
- Rendering: escape every value emitted into HTML (escape_html, escape_attr,
  escape_url), even values that were sanitized on the way in.

Neutralizing values embedded in GraphQL query text lives in
discussion_mirror.github.query and is not handled here.
"""

import html
import re
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

__all__ = [
    "ALLOWED_URL_SCHEMES",
    "escape_attr",
    "escape_html",
    "escape_url",
    "sanitize_text_field",
    "sanitize_textarea_field",
    "sanitize_url",
    "strip_all_tags",
]

ALLOWED_URL_SCHEMES = ("http", "https")

# Elements whose text content is never kept
_DROPPED_ELEMENTS = ("script", "style")

_WHITESPACE_RE = re.compile(r"\s+")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")


def strip_all_tags(value: str) -> str:
    """Remove all markup, including the contents of script and style elements."""
    if "<" not in value and "&" not in value:
        return value
    soup = BeautifulSoup(value, "html.parser")
    for element in soup(_DROPPED_ELEMENTS):
        element.decompose()
    return soup.get_text()


def sanitize_text_field(value: str | None) -> str:
    """Sanitize a single-line text value for storage.

    Strips markup, removes control characters, collapses line breaks, tabs
    and runs of whitespace to a single space and trims the result.

    Args:
        value: Untrusted input (None treated as empty)

    Returns:
        Plain single-line text
    """
    if not value:
        return ""
    text = strip_all_tags(str(value))
    text = _CONTROL_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def sanitize_textarea_field(value: str | None) -> str:
    """Sanitize a multi-line text value for storage.

    Same as sanitize_text_field but preserves line breaks.
    """
    if not value:
        return ""
    text = str(value).replace("\r\n", "\n").replace("\r", "\n")
    text = strip_all_tags(text)
    text = _CONTROL_RE.sub("", text)
    text = _TRAILING_SPACE_RE.sub("\n", text)
    return text.strip()


def sanitize_url(value: str | None) -> str:
    """Normalize a URL for storage.

    Only absolute http(s) URLs are kept; anything else (javascript:, data:,
    relative paths, embedded whitespace) yields an empty string.
    """
    if not value or not isinstance(value, str):
        return ""
    url = value.strip()
    if not url or _WHITESPACE_RE.search(url) or _CONTROL_RE.search(url):
        return ""
    try:
        parts = urlsplit(url)
    except ValueError:
        return ""
    if parts.scheme.lower() not in ALLOWED_URL_SCHEMES or not parts.netloc:
        return ""
    return url


def escape_html(value: str | None) -> str:
    """Escape text for an HTML text node."""
    return html.escape(value or "", quote=False)


def escape_attr(value: str | None) -> str:
    """Escape text for a quoted HTML attribute."""
    return html.escape(value or "", quote=True)


def escape_url(value: str | None) -> str:
    """Escape a URL for an href attribute, dropping unsafe schemes."""
    return escape_attr(sanitize_url(value))
