"""
Extraction Pipeline

Turns a submitted URL into a RecipeData: render the page (falling back to a
plain fetch), strip it to visible text, ask the AI service for structured
fields, then resolve and store a representative image.
"""

import hashlib
import logging
import os
from datetime import date
from urllib.parse import unquote, urlparse

import requests
from bs4 import BeautifulSoup

from constants import DEFAULT_RECIPE_CATEGORY, IMAGE_PROMPT_TEMPLATE, VALID_RECIPE_CATEGORIES
from models import RecipeData
from utils.sanitizer import sanitize_lines, sanitize_recipe_name, sanitize_text, slugify
from utils.url_validator import SSRFError, safe_fetch

from .errors import AIResponseError, BrowserUnavailableError, ExtractionError, FetchError, RenderError
from .images import IMAGE_ERRORS, extract_image_url, store_image_from_url

logger = logging.getLogger(__name__)

UNTITLED = 'Untitled'


def normalize_category(category):
    category = (category or '').strip().lower()
    if category in VALID_RECIPE_CATEGORIES:
        return category
    return DEFAULT_RECIPE_CATEGORY


def recipe_link(category, slug):
    return f"/recipes/{category}/{slug}"


def page_text(soup, max_length=None):
    """Visible text of a parsed page with script and style removed."""
    for tag in soup(['script', 'style', 'noscript']):
        tag.decompose()
    text = soup.get_text(separator='\n', strip=True)
    if max_length and len(text) > max_length:
        text = text[:max_length]
    return text


def title_from_url(url):
    """
    Readable title from the last path segment of a URL.

    '/recipes/best-chili-ever.html' -> 'Best Chili Ever'. Returns '' when the
    path has no usable segment.
    """
    path = urlparse(url or '').path
    segments = [segment for segment in path.split('/') if segment]
    if not segments:
        return ''
    name = os.path.splitext(unquote(segments[-1]))[0]
    name = name.replace('-', ' ').replace('_', ' ').strip()
    if not name:
        return ''
    return ' '.join(word.capitalize() for word in name.split())


def untitled_slug(url):
    """Slug for untitled placeholders, unique per source URL."""
    digest = hashlib.sha1((url or '').encode('utf-8')).hexdigest()[:8]
    return f"untitled-{digest}"


def fetch_page_title(url, timeout=10):
    """Return og:title or <title> of the page, or '' on any fetch failure."""
    try:
        response = safe_fetch(url, timeout=timeout, max_size=2 * 1024 * 1024)
    except (SSRFError, requests.RequestException) as e:
        logger.debug(f"Title fetch failed for {url}: {e}")
        return ''

    soup = BeautifulSoup(response.text, 'html.parser')
    og_title = soup.find('meta', attrs={'property': 'og:title'})
    if og_title and (og_title.get('content') or '').strip():
        return sanitize_recipe_name(og_title['content'])
    if soup.title and soup.title.string:
        return sanitize_recipe_name(soup.title.string)
    return ''


def fallback_title_and_slug(url, timeout=10):
    """
    Cheap title and slug for a placeholder recipe.

    Tries the page's own title, then the URL path, then 'Untitled'.

    Returns:
        (title, slug) tuple
    """
    title = fetch_page_title(url, timeout=timeout) or title_from_url(url)
    slug = slugify(title)
    if not title or not slug:
        return UNTITLED, untitled_slug(url)
    return title, slug


class RecipeExtractor:
    """Runs the full extraction pipeline for one URL."""

    def __init__(self, renderer, ai_client, object_store=None, page_timeout=60,
                 fetch_timeout=60, image_timeout=60, fallback_timeout=10, max_text_length=None):
        self.renderer = renderer
        self.ai_client = ai_client
        self.object_store = object_store
        self.page_timeout = page_timeout
        self.fetch_timeout = fetch_timeout
        self.image_timeout = image_timeout
        self.fallback_timeout = fallback_timeout
        self.max_text_length = max_text_length

    def fallback_title_and_slug(self, url):
        return fallback_title_and_slug(url, timeout=self.fallback_timeout)

    def load_page(self, url):
        """
        Get page HTML, rendered if possible.

        A missing browser is not retried over HTTP; the caller stores a
        placeholder instead.
        """
        try:
            return self.renderer.render(url, self.page_timeout)
        except BrowserUnavailableError:
            raise
        except RenderError as render_error:
            logger.warning(f"Render failed for {url}, trying plain fetch: {render_error}")
            try:
                return self.renderer.fetch_raw(url, self.fetch_timeout)
            except FetchError as fetch_error:
                raise ExtractionError(
                    f"render failed: {render_error}; http fallback failed: {fetch_error}"
                ) from fetch_error

    def extract(self, url):
        """
        Extract a recipe from url.

        Returns:
            (RecipeData, slug) tuple. The slug is '' when no title was found.

        Raises:
            ExtractionError: Page could not be loaded or the AI step failed
        """
        html = self.load_page(url)
        soup = BeautifulSoup(html or '', 'html.parser')
        text = page_text(soup, self.max_text_length)
        if not text:
            raise ExtractionError(f"no text content found at {url}")

        extracted = self.ai_client.extract_recipe(text)

        title = sanitize_recipe_name(extracted.title)
        slug = slugify(title)
        if title and not slug:
            # Titles with no ASCII letters or digits
            slug = untitled_slug(url)
        category = normalize_category(extracted.category)
        logger.info(f"Extracted '{title}' ({len(extracted.ingredients)} ingredients) from {url}")

        recipe = RecipeData(
            title=title,
            category=category,
            description=sanitize_text(extracted.description),
            instructions=sanitize_lines(extracted.instructions, max_length=5000),
            ingredients=sanitize_lines(extracted.ingredients),
            prep_time=max(extracted.prep_time, 0),
            cook_time=max(extracted.cook_time, 0),
            total_time=max(extracted.total_time, 0),
            servings=max(extracted.servings, 0),
            original_url=url,
            date=date.today().isoformat(),
            slug=slug,
        )
        if slug:
            recipe.link = recipe_link(category, slug)
            recipe.image = self.resolve_image(soup, url, slug, title)
        return recipe, slug

    def resolve_image(self, soup, page_url, slug, title):
        """
        Store a representative image and return its public URL.

        Metadata images come first; only when none can be stored is one
        generated. Failures are logged and yield ''.
        """
        if self.object_store is None or not self.object_store.is_configured:
            logger.debug("Object store not configured; skipping image")
            return ''

        metadata_image = extract_image_url(soup, page_url)
        if metadata_image:
            try:
                return store_image_from_url(metadata_image, slug, self.object_store, self.image_timeout)
            except IMAGE_ERRORS as e:
                logger.warning(f"Failed to store metadata image {metadata_image}: {e}")

        try:
            generated = self.ai_client.generate_image(IMAGE_PROMPT_TEMPLATE.format(title=title))
        except AIResponseError as e:
            logger.warning(f"Error generating image for {slug}: {e}")
            return ''

        try:
            return store_image_from_url(generated, slug, self.object_store, self.image_timeout)
        except IMAGE_ERRORS as e:
            logger.warning(f"Failed to store generated image for {slug}: {e}")
            return ''
