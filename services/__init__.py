"""
Services Package

Business logic modules for the recipe ingestion service.
"""

from .errors import (
    RecipeAppError,
    InputError,
    NotFoundError,
    PersistenceError,
    ExtractionError,
    BrowserUnavailableError,
    RenderError,
    FetchError,
    AIResponseError,
    StorageError,
)

from .parsing import (
    ParsedAmount,
    parse_amount,
    format_amount,
    split_unit,
    compose_display,
    parse_ingredient_line,
)

from .completeness import is_complete
from .scaling import scale_recipe, scale_ingredients

from .cache import (
    TTLCache,
    recipe_cache_key,
    recipe_list_cache_key,
    invalidate_recipe_caches,
)

from .repository import RecipeRepository
from .renderer import PageRenderer, find_chromium_binary
from .ai import AIClient, ExtractedRecipe
from .storage import ObjectStore
from .images import extract_image_url, store_image_from_url
from .extraction import RecipeExtractor, fallback_title_and_slug
from .queue import JobResult, QueueProcessor
from .recipes import RecipeService, SubmitResult

__all__ = [
    # Errors
    'RecipeAppError',
    'InputError',
    'NotFoundError',
    'PersistenceError',
    'ExtractionError',
    'BrowserUnavailableError',
    'RenderError',
    'FetchError',
    'AIResponseError',
    'StorageError',
    # Parsing
    'ParsedAmount',
    'parse_amount',
    'format_amount',
    'split_unit',
    'compose_display',
    'parse_ingredient_line',
    # Completeness and scaling
    'is_complete',
    'scale_recipe',
    'scale_ingredients',
    # Cache
    'TTLCache',
    'recipe_cache_key',
    'recipe_list_cache_key',
    'invalidate_recipe_caches',
    # Persistence
    'RecipeRepository',
    # Collaborators
    'PageRenderer',
    'find_chromium_binary',
    'AIClient',
    'ExtractedRecipe',
    'ObjectStore',
    'extract_image_url',
    'store_image_from_url',
    # Pipeline
    'RecipeExtractor',
    'fallback_title_and_slug',
    'JobResult',
    'QueueProcessor',
    'RecipeService',
    'SubmitResult',
]
