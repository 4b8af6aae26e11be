"""
Recipe Service

Read/write facade used by the CLI and any web layer: URL submission,
cached reads with serving scaling, and user edits that invalidate the
cache.
"""

import logging
from collections import namedtuple

from constants import VALID_RECIPE_CATEGORIES
from utils.sanitizer import sanitize_url

from .cache import invalidate_recipe_caches, recipe_cache_key, recipe_list_cache_key
from .errors import InputError
from .scaling import scale_recipe

logger = logging.getLogger(__name__)

RECIPE_CACHE_TTL = 30 * 24 * 60 * 60
RECIPE_LIST_CACHE_TTL = 60 * 60

# status is 'linked', 'queued' or 'pending'
SubmitResult = namedtuple('SubmitResult', ['status', 'slug'])


def _require_username(username):
    username = (username or '').strip()
    if not username:
        raise InputError("username is required")
    return username


def _check_category(category):
    category = (category or '').strip().lower()
    if category and category not in VALID_RECIPE_CATEGORIES:
        raise InputError(f"invalid category: {category}")
    return category


class RecipeService:
    """Recipe operations for one repository and cache pair."""

    def __init__(self, repository, cache, recipe_ttl=RECIPE_CACHE_TTL, list_ttl=RECIPE_LIST_CACHE_TTL):
        self.repository = repository
        self.cache = cache
        self.recipe_ttl = recipe_ttl
        self.list_ttl = list_ttl

    def submit_url(self, username, url):
        """
        Accept a recipe URL from a user.

        An existing complete recipe for the URL is linked right away;
        otherwise the URL is queued for extraction.

        Raises:
            InputError: Blank username or a URL that is not http(s)
        """
        username = _require_username(username)
        clean_url = sanitize_url(url)
        if not clean_url:
            raise InputError("a valid http or https url is required")

        linked, slug = self.repository.link_recipe_if_exists(username, clean_url)
        if linked:
            invalidate_recipe_caches(self.cache, username, slug)
            logger.info(f"Linked existing recipe {slug} for {username}")
            return SubmitResult('linked', slug)

        created = self.repository.enqueue_recipe(username, clean_url)
        return SubmitResult('queued' if created else 'pending', '')

    def get_recipe(self, username, slug, servings=None, scale=None):
        """
        Load a recipe, scaled to servings or by scale when given.

        The cached copy always holds base amounts.
        """
        username = _require_username(username)
        key = recipe_cache_key(username, slug)
        recipe = self.cache.get(key)
        if recipe is None:
            recipe = self.repository.get_recipe(username, slug)
            self.cache.set(key, recipe, self.recipe_ttl)
        else:
            logger.debug(f"Cache hit for {key}")
        return scale_recipe(recipe, servings=servings, factor=scale)

    def list_recipes(self, username, category=None):
        username = _require_username(username)
        category = _check_category(category)
        key = recipe_list_cache_key(username, category)
        recipes = self.cache.get(key)
        if recipes is None:
            recipes = self.repository.list_recipes(username, category or None)
            self.cache.set(key, recipes, self.list_ttl)
        return list(recipes)

    def search_recipes(self, username, term):
        return self.repository.search_recipes(_require_username(username), term)

    def list_favorites(self, username):
        return self.repository.list_favorite_recipes(_require_username(username))

    def category_counts(self, username):
        return self.repository.category_counts(_require_username(username))

    def set_favorite(self, username, slug, favorite=True):
        username = _require_username(username)
        self.repository.set_favorite(username, slug, favorite)
        invalidate_recipe_caches(self.cache, username, slug)

    def upsert_note(self, username, slug, content):
        username = _require_username(username)
        self.repository.upsert_note(username, slug, content)
        invalidate_recipe_caches(self.cache, username, slug)

    def delete_note(self, username, slug):
        username = _require_username(username)
        self.repository.delete_note(username, slug)
        invalidate_recipe_caches(self.cache, username, slug)

    def patch_recipe(self, username, slug, title=None, instructions=None, category=None):
        """Partial update limited to title, instructions and category."""
        username = _require_username(username)
        if category is not None:
            category = _check_category(category)
            if not category:
                raise InputError("category cannot be blank")
        self.repository.patch_recipe(username, slug, title=title, instructions=instructions, category=category)
        invalidate_recipe_caches(self.cache, username, slug)

    def delete_recipe(self, username, slug):
        username = _require_username(username)
        removed = self.repository.delete_recipe(username, slug)
        invalidate_recipe_caches(self.cache, username, slug)
        return removed
