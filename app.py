"""
Recipe Ingestion Service

Application factory, service wiring and Flask CLI commands.

Services are built in dependency order (database, repository, cache,
external collaborators, extractor, queue processor) and torn down in
reverse: the queue processor is stopped before the engine is disposed.
"""

import atexit
import logging
import os
import sqlite3
import sys

import click
from flask import Flask
from sqlalchemy import event
from sqlalchemy.engine import Engine

from config import get_config
from models import db
from services import (
    AIClient,
    InputError,
    NotFoundError,
    ObjectStore,
    PageRenderer,
    QueueProcessor,
    RecipeAppError,
    RecipeExtractor,
    RecipeRepository,
    RecipeService,
    TTLCache,
)

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'recipe_services'


class ServiceContainer:
    """Holds the long-lived service objects for one app."""

    def __init__(self, repository, cache, renderer, ai_client, object_store, extractor, processor, recipes):
        self.repository = repository
        self.cache = cache
        self.renderer = renderer
        self.ai_client = ai_client
        self.object_store = object_store
        self.extractor = extractor
        self.processor = processor
        self.recipes = recipes


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    # Enable SQLite foreign key enforcement
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def configure_logging(app):
    """Install one stream handler on the root logger at LOG_LEVEL."""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    root = logging.getLogger()
    if not any(getattr(handler, '_recipe_handler', False) for handler in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s'
        ))
        handler._recipe_handler = True
        root.addHandler(handler)
    root.setLevel(level)


def _ensure_sqlite_dir(uri):
    prefix = 'sqlite:///'
    if not uri.startswith(prefix) or ':memory:' in uri:
        return
    directory = os.path.dirname(uri[len(prefix):])
    if directory:
        os.makedirs(directory, exist_ok=True)


def build_services(app):
    """Construct every service for app and register them on app.extensions."""
    cfg = app.config
    repository = RecipeRepository(
        max_attempts=cfg['QUEUE_MAX_ATTEMPTS'],
        reset_ttl=cfg['PASSWORD_RESET_TTL'],
    )
    cache = TTLCache()
    renderer = PageRenderer(chromium_bin=cfg.get('CHROMIUM_BIN') or None)
    ai_client = AIClient(
        api_key=cfg.get('OPENAI_API_KEY'),
        model=cfg['OPENAI_MODEL'],
        image_model=cfg['OPENAI_IMAGE_MODEL'],
        extract_timeout=cfg['AI_EXTRACT_TIMEOUT'],
        image_timeout=cfg['AI_IMAGE_TIMEOUT'],
    )
    object_store = ObjectStore(
        endpoint_url=cfg.get('CLOUDFLARE_ENDPOINT') or None,
        access_key=cfg.get('CLOUDFLARE_ACCESS_KEY'),
        secret_key=cfg.get('CLOUDFLARE_SECRET_KEY'),
        bucket=cfg.get('IMAGE_BUCKET'),
        public_base_url=cfg.get('IMAGE_PUBLIC_BASE_URL'),
    )
    extractor = RecipeExtractor(
        renderer,
        ai_client,
        object_store=object_store,
        page_timeout=cfg['PAGE_TIMEOUT'],
        fetch_timeout=cfg['FETCH_TIMEOUT'],
        image_timeout=cfg['AI_IMAGE_TIMEOUT'],
        fallback_timeout=cfg['FALLBACK_TITLE_TIMEOUT'],
        max_text_length=cfg['EXTRACTION_MAX_TEXT_LENGTH'] or None,
    )
    processor = QueueProcessor(
        app,
        repository,
        extractor,
        cache=cache,
        poll_interval=cfg['QUEUE_POLL_INTERVAL'],
        batch_size=cfg['QUEUE_BATCH_SIZE'],
        concurrency=cfg['QUEUE_CONCURRENCY'],
    )
    recipes = RecipeService(
        repository,
        cache,
        recipe_ttl=cfg['RECIPE_CACHE_TTL'],
        list_ttl=cfg['RECIPE_LIST_CACHE_TTL'],
    )
    services = ServiceContainer(
        repository, cache, renderer, ai_client, object_store, extractor, processor, recipes
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services(app):
    return app.extensions[EXTENSION_KEY]


def shutdown_services(app):
    """Stop the queue processor, then release database connections."""
    services = app.extensions.get(EXTENSION_KEY)
    if services is not None:
        services.processor.stop()
        services.cache.clear()
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    logger.info("Services shut down")


def init_db(app):
    with app.app_context():
        db.create_all()


def register_commands(app):
    """Register the Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all database tables."""
        init_db(app)
        click.echo('Database initialized.')

    @app.cli.command('create-user')
    @click.argument('username')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
    def create_user_command(username, password):
        """Create a user account."""
        try:
            get_services(app).repository.create_user(username, password)
        except RecipeAppError as e:
            raise click.ClickException(str(e))
        click.echo(f'Created user {username}.')

    @app.cli.command('submit')
    @click.argument('username')
    @click.argument('url')
    def submit_command(username, url):
        """Submit a recipe URL for a user."""
        try:
            result = get_services(app).recipes.submit_url(username, url)
        except (InputError, NotFoundError) as e:
            raise click.ClickException(str(e))
        if result.status == 'linked':
            click.echo(f'Linked existing recipe {result.slug}.')
        elif result.status == 'queued':
            click.echo('Queued for extraction.')
        else:
            click.echo('Already queued.')

    @app.cli.command('process-queue')
    @click.option('--once', is_flag=True, help='Process a single batch and exit.')
    def process_queue_command(once):
        """Run the queue processor."""
        processor = get_services(app).processor
        if once:
            results = processor.process_batch()
            for result in results:
                click.echo(f'{result.outcome}: {result.slug or result.error or ""}')
            click.echo(f'Processed {len(results)} item(s).')
            return

        processor.start()
        click.echo('Queue processor running; press Ctrl+C to stop.')
        try:
            while processor.running:
                processor.join(1)
        except KeyboardInterrupt:
            click.echo('Stopping after the current batch...')
        finally:
            shutdown_services(app)


def create_app(config_name=None, test_config=None):
    """
    Application factory.

    Args:
        config_name: 'development', 'production' or 'testing'; defaults to
            FLASK_ENV
        test_config: Optional dict applied on top of the config class

    Returns:
        Flask app with services registered under app.extensions
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    if test_config:
        app.config.update(test_config)

    configure_logging(app)
    _ensure_sqlite_dir(app.config['SQLALCHEMY_DATABASE_URI'])
    db.init_app(app)
    init_db(app)

    build_services(app)
    register_commands(app)

    if app.config.get('QUEUE_AUTOSTART'):
        get_services(app).processor.start()
        atexit.register(shutdown_services, app)

    return app


if __name__ == '__main__':
    application = create_app()
    processor = get_services(application).processor
    processor.start()
    try:
        while processor.running:
            processor.join(1)
    except KeyboardInterrupt:
        pass
    finally:
        shutdown_services(application)
