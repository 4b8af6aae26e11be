"""
Constants Package

Unit vocabulary, fraction tables, validation whitelists and AI prompts.
"""

from .units import (
    TWO_WORD_UNITS,
    ONE_WORD_UNITS,
    FRACTION_DENOMINATORS,
    UNICODE_FRACTIONS,
)

from .validation import (
    VALID_RECIPE_CATEGORIES,
    DEFAULT_RECIPE_CATEGORY,
    ALLOWED_URL_SCHEMES,
    MAX_LENGTHS,
    IMAGE_EXTENSIONS,
)

from .prompts import (
    EXTRACTION_SYSTEM_PROMPT,
    EXTRACTION_PROMPT,
    IMAGE_PROMPT_TEMPLATE,
    RECIPE_SCHEMA,
    RECIPE_SCHEMA_NAME,
)

__all__ = [
    'TWO_WORD_UNITS',
    'ONE_WORD_UNITS',
    'FRACTION_DENOMINATORS',
    'UNICODE_FRACTIONS',
    'VALID_RECIPE_CATEGORIES',
    'DEFAULT_RECIPE_CATEGORY',
    'ALLOWED_URL_SCHEMES',
    'MAX_LENGTHS',
    'IMAGE_EXTENSIONS',
    'EXTRACTION_SYSTEM_PROMPT',
    'EXTRACTION_PROMPT',
    'IMAGE_PROMPT_TEMPLATE',
    'RECIPE_SCHEMA',
    'RECIPE_SCHEMA_NAME',
]
