"""
Shared pytest fixtures.

Every test gets a fresh app on a temporary SQLite file. Network access
from the pipeline is blocked; tests that need a page or an image patch in
their own fetch function.
"""

from io import BytesIO
from types import SimpleNamespace

import pytest
import requests
from PIL import Image

from app import create_app, get_services, shutdown_services
from models import db
from services import RecipeExtractor
from services.ai import ExtractedRecipe


class FakeRenderer:
    """Stands in for PageRenderer; records every call."""

    def __init__(self, html='', render_error=None, fetch_html='', fetch_error=None):
        self.html = html
        self.render_error = render_error
        self.fetch_html = fetch_html
        self.fetch_error = fetch_error
        self.calls = []

    def render(self, url, timeout=60):
        self.calls.append(('render', url))
        if self.render_error is not None:
            raise self.render_error
        return self.html

    def fetch_raw(self, url, timeout=60):
        self.calls.append(('fetch_raw', url))
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.fetch_html


class FakeAIClient:
    """Stands in for AIClient with canned responses."""

    def __init__(self, recipe=None, error=None, image_url='', image_error=None):
        self.recipe = recipe
        self.error = error
        self.image_url = image_url
        self.image_error = image_error
        self.texts = []
        self.prompts = []

    def extract_recipe(self, text):
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        return self.recipe

    def generate_image(self, prompt):
        self.prompts.append(prompt)
        if self.image_error is not None:
            raise self.image_error
        return self.image_url


class FakeObjectStore:
    """In-memory object store."""

    is_configured = True

    def __init__(self):
        self.objects = {}

    def put(self, key, content_type, data):
        self.objects[key] = (content_type, data)
        return f"https://images.example.com/{key}"

    def list(self, prefix=''):
        return sorted(key for key in self.objects if key.startswith(prefix))

    def get(self, key):
        return self.objects[key][1]


def make_extracted(**overrides):
    fields = {
        'title': 'Best Chili Ever',
        'description': 'A hearty chili.',
        'instructions': ['Brown the beef.', 'Simmer for an hour.'],
        'ingredients': ['1 1/2 lb ground beef', '2 cans kidney beans', 'Salt to taste'],
        'url': '',
        'image': '',
        'category': 'Dinner',
        'prepTime': 15,
        'cookTime': 60,
        'totalTime': 75,
        'servings': 4,
    }
    fields.update(overrides)
    return ExtractedRecipe.model_validate(fields)


def png_bytes(size=(4, 4)):
    buffer = BytesIO()
    Image.new('RGB', size, (200, 30, 30)).save(buffer, format='PNG')
    return buffer.getvalue()


def fake_response(content=b'', text='', content_type='text/html'):
    return SimpleNamespace(content=content, text=text, headers={'Content-Type': content_type})


def _offline_fetch(url, *args, **kwargs):
    raise requests.ConnectionError(f"network disabled in tests: {url}")


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    """Make every pipeline fetch fail unless a test patches in a page."""
    monkeypatch.setattr('services.extraction.safe_fetch', _offline_fetch)
    monkeypatch.setattr('services.images.safe_fetch', _offline_fetch)
    monkeypatch.setattr('services.renderer.safe_fetch', _offline_fetch)


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', test_config={
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.db'}",
    })
    yield app
    shutdown_services(app)


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture
def services(app):
    return get_services(app)


@pytest.fixture
def repository(services):
    return services.repository


@pytest.fixture
def user(app_ctx, repository):
    repository.create_user('alice', 'secret-pass')
    return 'alice'


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def make_extractor(object_store):
    def _make(renderer=None, ai_client=None, store=object_store):
        return RecipeExtractor(
            renderer or FakeRenderer(html='<html><body><h1>Chili</h1></body></html>'),
            ai_client or FakeAIClient(recipe=make_extracted()),
            object_store=store,
        )
    return _make
