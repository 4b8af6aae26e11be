"""
Validation Constants

Contains whitelist values and field limits used when accepting data from
users and from the extraction pipeline.
"""

# Valid recipe categories (whitelist; anything else is stored as 'other')
VALID_RECIPE_CATEGORIES = {'breakfast', 'dinner', 'baking', 'other'}

DEFAULT_RECIPE_CATEGORY = 'other'

# Allowed URL schemes for submitted recipe links
ALLOWED_URL_SCHEMES = {'http', 'https'}

# Maximum field lengths
MAX_LENGTHS = {
    'username': 255,
    'recipe_title': 200,
    'slug': 255,
    'source_url': 2048,
    'ingredient_text': 500,
    'note': 10000,
    'queue_error': 1024,
}

# Image content types accepted from metadata and generated images
IMAGE_EXTENSIONS = {
    'image/jpeg': '.jpg',
    'image/jpg': '.jpg',
    'image/png': '.png',
    'image/webp': '.webp',
    'image/gif': '.gif',
    'image/x-icon': '.ico',
    'image/vnd.microsoft.icon': '.ico',
}
