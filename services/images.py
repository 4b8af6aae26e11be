"""
Recipe Image Service

Finds a representative image in page metadata and copies images into
object storage under a per-recipe key.
"""

import logging
import time
from urllib.parse import urljoin

import requests

from utils.image_handler import ImageValidationError, inspect_image
from utils.url_validator import SSRFError, safe_fetch

from .errors import StorageError

logger = logging.getLogger(__name__)

# (selector, attribute) pairs tried in order
IMAGE_SELECTORS = (
    ("meta[property='og:image']", 'content'),
    ("meta[name='twitter:image']", 'content'),
    ("link[rel~='apple-touch-icon']", 'href'),
    ("link[rel~='apple-touch-icon-precomposed']", 'href'),
    ("link[rel~='icon']", 'href'),
)

# Errors that make an image unusable without failing the recipe
IMAGE_ERRORS = (SSRFError, requests.RequestException, ImageValidationError, StorageError)


def extract_image_url(soup, page_url):
    """
    Pick an image URL from page metadata.

    Relative references are resolved against the page URL. Falls back to
    /favicon.ico on the page's host.

    Args:
        soup: BeautifulSoup of the page
        page_url: URL the page was loaded from

    Returns:
        str: Absolute image URL, or '' if none could be derived
    """
    for selector, attr in IMAGE_SELECTORS:
        for tag in soup.select(selector):
            value = (tag.get(attr) or '').strip()
            if value:
                return urljoin(page_url, value)

    if page_url:
        return urljoin(page_url, '/favicon.ico')
    return ''


def image_key(slug, extension, timestamp=None):
    if timestamp is None:
        timestamp = int(time.time())
    return f"images/{slug}-{timestamp}{extension}"


def store_image_from_url(image_url, slug, object_store, timeout=60):
    """
    Download an image and upload it to object storage.

    Returns:
        str: Public URL of the stored copy

    Raises:
        SSRFError, requests.RequestException, ImageValidationError, StorageError
    """
    if not image_url or not image_url.strip():
        raise ImageValidationError("image url is empty")

    response = safe_fetch(image_url, timeout=timeout)
    info = inspect_image(response.content, response.headers.get('Content-Type', ''), image_url)
    key = image_key(slug, info.extension)
    return object_store.put(key, info.content_type, response.content)
