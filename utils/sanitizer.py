"""
Input Sanitization Module

Cleans user-submitted URLs and text pulled from external pages and the AI
service before it is stored.
"""

import re
from urllib.parse import urlparse

from constants import ALLOWED_URL_SCHEMES

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b-\x1f\x7f-\x9f]')
_WHITESPACE = re.compile(r'\s+')


def sanitize_url(url):
    """
    Sanitize a URL by rejecting dangerous schemes.

    Args:
        url: The URL to validate (can be None)

    Returns:
        The stripped URL if it is an absolute http(s) URL, else empty string
    """
    if not url or not isinstance(url, str):
        return ''

    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError:
        return ''

    if parsed.scheme.lower() not in ALLOWED_URL_SCHEMES or not parsed.netloc:
        return ''
    if _CONTROL_CHARS.search(url) or ' ' in url:
        return ''
    return url


def sanitize_text(text, max_length=10000):
    """
    Strip control characters and surrounding whitespace, then truncate.

    Newlines and tabs are kept.
    """
    if text is None:
        return ''
    if not isinstance(text, str):
        text = str(text)
    text = _CONTROL_CHARS.sub('', text).strip()
    if len(text) > max_length:
        text = text[:max_length]
    return text


def sanitize_recipe_name(name, max_length=200):
    """
    Sanitize a recipe title for storage and display.

    Collapses runs of whitespace. Returns '' when nothing is left, so the
    caller can fall back to another title.
    """
    name = sanitize_text(name, max_length=max_length * 2)
    name = _WHITESPACE.sub(' ', name)
    if len(name) > max_length:
        name = name[:max_length - 3].rstrip() + '...'
    return name


def sanitize_lines(lines, max_length=500):
    """Sanitize every entry of a list of strings, dropping non-strings."""
    cleaned = []
    for line in lines or []:
        if isinstance(line, (int, float)):
            line = str(line)
        if not isinstance(line, str):
            continue
        cleaned.append(sanitize_text(line, max_length=max_length))
    return cleaned


def slugify(title):
    """
    Derive a URL-safe slug from a title.

    Lowercases, turns whitespace into hyphens, drops anything outside
    [a-z0-9-] and collapses repeated hyphens.

    Examples:
        >>> slugify('Best Chili Ever!')
        'best-chili-ever'
    """
    slug = _WHITESPACE.sub('-', (title or '').strip().lower())
    slug = re.sub(r'[^a-z0-9-]', '', slug)
    slug = re.sub(r'-{2,}', '-', slug).strip('-')
    return slug[:255]
