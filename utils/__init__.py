# Utility modules for the recipe ingestion service
from .url_validator import is_safe_url, safe_fetch, SSRFError
from .image_handler import inspect_image, extension_for, ImageValidationError
from .sanitizer import sanitize_text, sanitize_url, sanitize_recipe_name, sanitize_lines, slugify
