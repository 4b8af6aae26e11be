"""
Tests for URL validation, sanitization and image inspection.
"""

import pytest

from conftest import png_bytes
from utils.image_handler import ImageValidationError, extension_for, inspect_image
from utils.sanitizer import sanitize_lines, sanitize_recipe_name, sanitize_text, sanitize_url, slugify
from utils.url_validator import is_private_ip, is_safe_url


@pytest.mark.parametrize('url', [
    'http://localhost/recipe',
    'http://127.0.0.1/recipe',
    'http://10.0.0.5/recipe',
    'http://192.168.1.1/recipe',
    'http://169.254.169.254/latest/meta-data',
    'file:///etc/passwd',
    'ftp://example.com/recipe',
    '',
])
def test_unsafe_urls_are_rejected(url):
    is_safe, error = is_safe_url(url, resolve=False)
    assert not is_safe
    assert error


def test_public_urls_are_allowed_without_resolving():
    assert is_safe_url('https://example.com/recipes/chili', resolve=False) == (True, None)
    assert is_safe_url('http://93.184.216.34/', resolve=False) == (True, None)


def test_is_private_ip():
    assert is_private_ip('10.1.2.3')
    assert is_private_ip('::1')
    assert is_private_ip('garbage')
    assert not is_private_ip('8.8.8.8')


def test_sanitize_url():
    assert sanitize_url(' https://example.com/a ') == 'https://example.com/a'
    assert sanitize_url('javascript:alert(1)') == ''
    assert sanitize_url('https:///no-host') == ''
    assert sanitize_url('https://example.com/a b') == ''
    assert sanitize_url(None) == ''


def test_sanitize_text_strips_control_characters():
    assert sanitize_text(' a\x00b\nc ') == 'ab\nc'
    assert sanitize_text('abcdef', max_length=3) == 'abc'
    assert sanitize_text(None) == ''


def test_sanitize_recipe_name():
    assert sanitize_recipe_name('  Best   Chili\tEver ') == 'Best Chili Ever'
    assert sanitize_recipe_name('\x00  ') == ''
    long_name = sanitize_recipe_name('x' * 300)
    assert len(long_name) == 200
    assert long_name.endswith('...')


def test_sanitize_lines():
    assert sanitize_lines([' a ', 3, None, {'x': 1}]) == ['a', '3']
    assert sanitize_lines(None) == []


@pytest.mark.parametrize('title, slug', [
    ('Best Chili Ever!', 'best-chili-ever'),
    ("  Grandma's  Apple-Pie ", 'grandmas-apple-pie'),
    ('Crème Brûlée', 'crme-brle'),
    ('---', ''),
    ('', ''),
])
def test_slugify(title, slug):
    assert slugify(title) == slug


def test_inspect_image_png():
    info = inspect_image(png_bytes((10, 20)), 'image/png; charset=binary')
    assert info.content_type == 'image/png'
    assert info.extension == '.png'
    assert (info.width, info.height) == (10, 20)


def test_inspect_image_uses_detected_format_without_header():
    info = inspect_image(png_bytes(), 'application/octet-stream')
    assert info.content_type == 'image/png'
    assert info.extension == '.png'


def test_inspect_image_rejects_garbage():
    with pytest.raises(ImageValidationError):
        inspect_image(b'<html>not an image</html>')
    with pytest.raises(ImageValidationError):
        inspect_image(b'')


def test_extension_for():
    assert extension_for('image/jpeg') == '.jpg'
    assert extension_for('', 'https://example.com/a/photo.webp') == '.webp'
    assert extension_for('', 'https://example.com/a/photo') == '.jpg'
