"""
Image Validation Module

Checks downloaded recipe images before they are uploaded to object
storage, and works out the content type and file extension to store them
under.
"""

import os
from collections import namedtuple
from io import BytesIO
from urllib.parse import urlparse

from PIL import Image, UnidentifiedImageError

from constants import IMAGE_EXTENSIONS


class ImageValidationError(Exception):
    """Raised when an image fails validation."""
    pass


# Allowed image formats (PIL format names) and their content types
FORMAT_CONTENT_TYPES = {
    'JPEG': 'image/jpeg',
    'PNG': 'image/png',
    'GIF': 'image/gif',
    'WEBP': 'image/webp',
    'ICO': 'image/x-icon',
}

# Maximum image dimensions (prevent decompression bombs)
MAX_WIDTH = 8192
MAX_HEIGHT = 8192

# Maximum file size (10MB)
MAX_FILE_SIZE = 10 * 1024 * 1024

DEFAULT_EXTENSION = '.jpg'

ImageInfo = namedtuple('ImageInfo', ['content_type', 'extension', 'width', 'height'])


def extension_for(content_type, url=''):
    """
    Pick a file extension for an image.

    Tries the content type first, then the URL path suffix, then '.jpg'.
    """
    content_type = (content_type or '').split(';')[0].strip().lower()
    if content_type in IMAGE_EXTENSIONS:
        return IMAGE_EXTENSIONS[content_type]
    suffix = os.path.splitext(urlparse(url or '').path)[1].lower()
    if suffix in IMAGE_EXTENSIONS.values():
        return suffix
    return DEFAULT_EXTENSION


def inspect_image(image_data, content_type='', url=''):
    """
    Validate image bytes and describe them.

    Args:
        image_data: Raw image bytes
        content_type: Content-Type header from the download, if any
        url: Source URL, used as an extension hint

    Returns:
        ImageInfo(content_type, extension, width, height)

    Raises:
        ImageValidationError: If the bytes are not an allowed image
    """
    if not image_data:
        raise ImageValidationError("Empty image")
    if len(image_data) > MAX_FILE_SIZE:
        raise ImageValidationError(f"Image too large: {len(image_data)} bytes (max {MAX_FILE_SIZE})")

    try:
        with Image.open(BytesIO(image_data)) as img:
            img.verify()
        # Re-open after verify (verify() leaves file in uncertain state)
        with Image.open(BytesIO(image_data)) as img:
            image_format = img.format
            width, height = img.size
    except Image.DecompressionBombError as e:
        raise ImageValidationError("Image appears to be a decompression bomb") from e
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ImageValidationError(f"Invalid or corrupted image: {e}") from e

    if image_format not in FORMAT_CONTENT_TYPES:
        raise ImageValidationError(f"Invalid image format: {image_format}")
    if width > MAX_WIDTH or height > MAX_HEIGHT:
        raise ImageValidationError(
            f"Image dimensions too large: {width}x{height}. Maximum: {MAX_WIDTH}x{MAX_HEIGHT}"
        )

    header_type = (content_type or '').split(';')[0].strip().lower()
    if not header_type.startswith('image/'):
        header_type = FORMAT_CONTENT_TYPES[image_format]

    return ImageInfo(header_type, extension_for(header_type, url), width, height)
