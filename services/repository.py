"""
Recipe Repository

Data access for users, recipes, queue items, favorites and notes. Every
public method runs in its own transaction on the current Flask-SQLAlchemy
session; database failures are rolled back and re-raised as
PersistenceError.
"""

import hashlib
import logging
import secrets
from contextlib import contextmanager
from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from constants import MAX_LENGTHS
from models import (
    Favorite, IngredientDetail, Note, PasswordReset, QueueItem, QueueJob,
    Recipe, RecipeData, RecipeIngredient, User, UserRecipe, db, utcnow,
)

from .completeness import is_complete
from .errors import InputError, NotFoundError, PersistenceError
from .extraction import recipe_link
from .parsing import compose_display, format_amount, parse_amount, split_unit

logger = logging.getLogger(__name__)


def hash_token(token):
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def ingredient_rows(lines):
    """
    Parse raw ingredient lines into RecipeIngredient rows.

    Lines with neither a description nor a non-zero amount are skipped.
    Positions keep the index of the source line.
    """
    rows = []
    for position, line in enumerate(lines or []):
        parsed = parse_amount(line)
        unit, description = '', parsed.remainder
        if parsed.value is not None:
            unit, description = split_unit(parsed.remainder)
        description = description.strip()
        if not description and not unit and not parsed.value:
            continue
        amount_text = format_amount(parsed.value) if parsed.value is not None else parsed.amount_text
        rows.append(RecipeIngredient(
            position=position,
            amount_value=parsed.value,
            amount_text=amount_text[:50],
            unit=unit[:30],
            description=description[:MAX_LENGTHS['ingredient_text']],
        ))
    return rows


def ingredient_detail(row):
    """Convert a stored ingredient row into an IngredientDetail."""
    detail = IngredientDetail(
        description=(row.description or '').strip(),
        unit=(row.unit or '').strip(),
        base_amount_text=(row.amount_text or '').strip(),
    )
    if row.amount_value is not None:
        detail.base_amount_value = row.amount_value
        detail.amount_value = row.amount_value
        detail.amount_text = format_amount(row.amount_value)
    else:
        detail.amount_text = detail.base_amount_text

    detail.display = compose_display(detail.amount_text, detail.unit, detail.description)
    if not detail.display and detail.base_amount_text:
        detail.display = detail.base_amount_text
    return detail


def recipe_record(model, with_ingredients=True):
    """Build a detached RecipeData from a Recipe row."""
    record = RecipeData(
        title=model.title,
        category=model.category or '',
        instructions=model.instruction_steps,
        prep_time=model.prep_time or 0,
        cook_time=model.cook_time or 0,
        total_time=model.total_time or 0,
        servings=model.servings or 0,
        image=model.image or '',
        original_url=model.original_url or '',
        link=model.link or '',
        date=model.date or '',
        slug=model.slug,
    )
    if with_ingredients:
        record.parsed_ingredients = [ingredient_detail(row) for row in model.ingredients]
        record.ingredients = [detail.display for detail in record.parsed_ingredients]
    return record


class RecipeRepository:
    """Repository over the Flask-SQLAlchemy session."""

    def __init__(self, max_attempts=5, error_max_length=None, reset_ttl=3600):
        self.max_attempts = max_attempts
        self.error_max_length = error_max_length or MAX_LENGTHS['queue_error']
        self.reset_ttl = reset_ttl

    @property
    def session(self):
        return db.session

    @contextmanager
    def _transaction(self, action):
        try:
            yield self.session
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"{action} failed: {e}")
            raise PersistenceError(f"{action}: {e}") from e
        except Exception:
            self.session.rollback()
            raise

    # ---------------------------------------------------------------
    # Lookups
    # ---------------------------------------------------------------

    def _user(self, username):
        if not username or not username.strip():
            raise InputError("username is required")
        user = User.query.filter_by(username=username).first()
        if user is None:
            raise NotFoundError(f"user not found: {username}")
        return user

    def _recipe_by_slug(self, slug):
        if not slug or not slug.strip():
            raise InputError("slug is required")
        recipe = Recipe.query.filter_by(slug=slug).first()
        if recipe is None:
            raise NotFoundError(f"recipe not found: {slug}")
        return recipe

    def _link(self, user_id, recipe_id):
        exists = UserRecipe.query.filter_by(user_id=user_id, recipe_id=recipe_id).first()
        if exists is None:
            self.session.add(UserRecipe(user_id=user_id, recipe_id=recipe_id))

    def _user_recipes_query(self, user):
        return (
            Recipe.query
            .join(UserRecipe, UserRecipe.recipe_id == Recipe.id)
            .filter(UserRecipe.user_id == user.id)
        )

    def _decorate(self, record, user, recipe_id):
        note = Note.query.filter_by(user_id=user.id, recipe_id=recipe_id).first()
        record.note = note.content if note else None
        record.is_favorite = Favorite.query.filter_by(user_id=user.id, recipe_id=recipe_id).first() is not None
        return record

    # ---------------------------------------------------------------
    # Users
    # ---------------------------------------------------------------

    def create_user(self, username, password):
        """
        Create an account.

        Raises:
            InputError: Blank username/password or username taken
        """
        if not username or not username.strip() or not password:
            raise InputError("username and password are required")
        username = username.strip()[:MAX_LENGTHS['username']]
        try:
            with self._transaction("create user") as session:
                session.add(User(username=username, password_hash=generate_password_hash(password)))
        except PersistenceError as e:
            if isinstance(e.__cause__, IntegrityError):
                raise InputError("username already exists") from e
            raise
        logger.info(f"Created user {username}")

    def authenticate_user(self, username, password):
        """Return the user id for valid credentials, else raise InputError."""
        if not username or not password:
            raise InputError("username and password are required")
        with self._transaction("authenticate user"):
            user = User.query.filter_by(username=username).first()
            if user is None or not user.password_hash:
                raise InputError("invalid credentials")
            if not check_password_hash(user.password_hash, password):
                raise InputError("invalid credentials")
            return user.id

    def get_user_profile(self, username):
        with self._transaction("get user profile"):
            user = self._user(username)
            return {'username': user.username, 'created_at': user.created_at}

    def create_password_reset(self, username, ttl_seconds=None):
        """
        Issue a password reset token.

        Earlier unused tokens for the user are invalidated. Only the hash
        of the token is stored. ttl_seconds defaults to the configured
        PASSWORD_RESET_TTL.

        Returns:
            str: The plaintext token to send to the user
        """
        token = secrets.token_urlsafe(32)
        now = utcnow()
        with self._transaction("create password reset") as session:
            user = self._user(username)
            PasswordReset.query.filter_by(user_id=user.id, used_at=None).update({'used_at': now})
            session.add(PasswordReset(
                user_id=user.id,
                token_hash=hash_token(token),
                expires_at=now + timedelta(seconds=self.reset_ttl if ttl_seconds is None else ttl_seconds),
            ))
        return token

    def reset_password_with_token(self, token, new_password):
        if not token or not token.strip() or not new_password or not new_password.strip():
            raise InputError("token and password are required")
        with self._transaction("reset password"):
            reset = (
                PasswordReset.query
                .filter(PasswordReset.token_hash == hash_token(token))
                .filter(PasswordReset.used_at.is_(None))
                .filter(PasswordReset.expires_at > utcnow())
                .first()
            )
            if reset is None:
                raise InputError("invalid or expired token")
            reset.user.password_hash = generate_password_hash(new_password)
            reset.used_at = utcnow()

    # ---------------------------------------------------------------
    # Queue
    # ---------------------------------------------------------------

    def enqueue_recipe(self, username, url):
        """
        Queue a URL for extraction.

        No second item is created while one for the same user and URL is
        still pending.

        Returns:
            bool: True if a new item was created
        """
        if not url or not url.strip():
            raise InputError("url is required")
        with self._transaction("enqueue recipe") as session:
            user = self._user(username)
            pending = (
                QueueItem.query
                .filter_by(user_id=user.id, url=url, processed_at=None)
                .first()
            )
            if pending is not None:
                logger.debug(f"Queue item already pending for {username}: {url}")
                return False
            session.add(QueueItem(user_id=user.id, url=url))
        logger.info(f"Enqueued {url} for {username}")
        return True

    def fetch_pending_queue(self, limit=5):
        """Return pending items, oldest first, as detached QueueJob records."""
        with self._transaction("fetch queue"):
            query = (
                QueueItem.query
                .filter(QueueItem.processed_at.is_(None))
                .order_by(QueueItem.created_at.asc(), QueueItem.id.asc())
            )
            if limit and limit > 0:
                query = query.limit(limit)
            return [
                QueueJob(
                    id=item.id,
                    user_id=item.user_id,
                    username=item.user.username if item.user else '',
                    url=item.url,
                    attempts=item.attempts or 0,
                )
                for item in query.all()
            ]

    def mark_queue_item_result(self, item_id, error=None):
        """
        Record one processing attempt.

        Success finalizes the item and clears its error. Failure stores the
        truncated error and finalizes only once the attempt ceiling is hit.

        Args:
            item_id: QueueItem id
            error: None on success, otherwise an exception or message
        """
        with self._transaction("update queue item"):
            item = self.session.get(QueueItem, item_id)
            if item is None:
                raise NotFoundError(f"queue item not found: {item_id}")
            item.attempts = (item.attempts or 0) + 1
            if error is None:
                item.processed_at = utcnow()
                item.last_error = None
                return
            message = str(error) or error.__class__.__name__
            item.last_error = message[:self.error_max_length]
            if item.attempts >= self.max_attempts and item.processed_at is None:
                item.processed_at = utcnow()
                logger.warning(f"Queue item {item_id} gave up after {item.attempts} attempts")

    def get_queue_item(self, item_id):
        return self.session.get(QueueItem, item_id)

    # ---------------------------------------------------------------
    # Recipes
    # ---------------------------------------------------------------

    def link_recipe_if_exists(self, username, url):
        """
        Link an already-extracted recipe to the user.

        Only complete recipes are linked, so incomplete stubs get
        re-extracted.

        Returns:
            (linked, slug) tuple
        """
        if not url or not url.strip():
            raise InputError("url is required")
        with self._transaction("link recipe"):
            user = self._user(username)
            model = Recipe.query.filter_by(original_url=url).first()
            if model is None:
                return False, ''
            if not is_complete(recipe_record(model)):
                logger.info(f"Existing recipe {model.slug} lacks complete data; reprocessing")
                return False, ''
            self._link(user.id, model.id)
            return True, model.slug

    def _free_slug(self, slug, url):
        """
        Pick the slug a recipe from url is stored under.

        A slug already held by a recipe from another source URL is never
        reused; the URL's digest is appended instead, then a counter.
        """
        model = Recipe.query.filter_by(slug=slug).first()
        if model is None or not model.original_url or not url or model.original_url == url:
            return slug, model

        limit = MAX_LENGTHS['slug']
        digest = hashlib.sha1(url.encode('utf-8')).hexdigest()[:8]
        base = f"{slug[:limit - len(digest) - 1]}-{digest}"
        candidate = base
        counter = 2
        while True:
            model = Recipe.query.filter_by(slug=candidate).first()
            if model is None or model.original_url == url:
                return candidate, model
            suffix = f"-{counter}"
            candidate = f"{base[:limit - len(suffix)]}{suffix}"
            counter += 1

    def save_recipe_for_user(self, username, slug, recipe):
        """
        Insert or update a recipe by slug and link it to the user.

        A recipe from a different source URL never replaces the row holding
        the slug; it is stored under a suffixed slug. An incomplete recipe
        never replaces a complete one; the user is linked to the existing
        row. Ingredient rows are replaced. Everything happens in one
        transaction.

        Returns:
            str: The slug the recipe is stored under
        """
        if not slug or not slug.strip():
            raise InputError("slug is required")
        with self._transaction("save recipe") as session:
            user = self._user(username)
            requested = slug
            slug, model = self._free_slug(slug, recipe.original_url)
            if model is not None and is_complete(recipe_record(model)) and not is_complete(recipe):
                self._link(user.id, model.id)
                logger.info(f"Kept complete recipe {slug}; linked to {username}")
                return slug
            if model is None:
                model = Recipe(slug=slug)
                session.add(model)
            model.title = (recipe.title or '')[:MAX_LENGTHS['recipe_title']]
            model.category = recipe.category
            model.instruction_steps = recipe.instructions
            model.prep_time = recipe.prep_time
            model.cook_time = recipe.cook_time
            model.total_time = recipe.total_time
            model.servings = recipe.servings
            model.image = recipe.image
            model.link = recipe.link if slug == requested else recipe_link(recipe.category, slug)
            model.original_url = recipe.original_url
            model.date = recipe.date
            model.ingredients = ingredient_rows(recipe.ingredients)
            session.flush()
            self._link(user.id, model.id)
        logger.info(f"Saved recipe {slug} for {username}")
        return slug

    def get_recipe(self, username, slug):
        with self._transaction("get recipe"):
            user = self._user(username)
            model = self._user_recipes_query(user).filter(Recipe.slug == slug).first()
            if model is None:
                raise NotFoundError(f"recipe not found: {slug}")
            return self._decorate(recipe_record(model), user, model.id)

    def list_recipes(self, username, category=None):
        """List the user's recipes, newest link first, optionally by category."""
        with self._transaction("list recipes"):
            user = self._user(username)
            query = self._user_recipes_query(user)
            if category:
                query = query.filter(Recipe.category == category)
            models = query.order_by(UserRecipe.created_at.desc(), UserRecipe.id.desc()).all()
            return [self._decorate(recipe_record(m, with_ingredients=False), user, m.id) for m in models]

    def search_recipes(self, username, term):
        """Case-insensitive title search within the user's recipes."""
        with self._transaction("search recipes"):
            user = self._user(username)
            like = f"%{(term or '').lower()}%"
            models = (
                self._user_recipes_query(user)
                .filter(func.lower(Recipe.title).like(like))
                .order_by(UserRecipe.created_at.desc(), UserRecipe.id.desc())
                .all()
            )
            return [self._decorate(recipe_record(m, with_ingredients=False), user, m.id) for m in models]

    def list_favorite_recipes(self, username):
        with self._transaction("list favorites"):
            user = self._user(username)
            models = (
                Recipe.query
                .join(Favorite, Favorite.recipe_id == Recipe.id)
                .filter(Favorite.user_id == user.id)
                .order_by(Favorite.created_at.desc(), Favorite.id.desc())
                .all()
            )
            records = []
            for model in models:
                record = self._decorate(recipe_record(model), user, model.id)
                record.original_servings = record.servings
                record.is_favorite = True
                records.append(record)
            return records

    def patch_recipe(self, username, slug, title=None, instructions=None, category=None):
        """Update title, instructions and/or category of a linked recipe."""
        with self._transaction("patch recipe"):
            user = self._user(username)
            model = self._user_recipes_query(user).filter(Recipe.slug == slug).first()
            if model is None:
                raise NotFoundError(f"recipe not found: {slug}")
            if title is not None:
                if not title.strip():
                    raise InputError("title cannot be blank")
                model.title = title.strip()[:MAX_LENGTHS['recipe_title']]
            if instructions is not None:
                model.instruction_steps = instructions
            if category is not None:
                model.category = category

    def delete_recipe(self, username, slug):
        """Remove the recipe from the user's collection. The shared recipe row stays."""
        with self._transaction("delete recipe"):
            user = self._user(username)
            model = Recipe.query.filter_by(slug=slug).first()
            if model is None:
                return False
            deleted = UserRecipe.query.filter_by(user_id=user.id, recipe_id=model.id).delete()
            return deleted > 0

    def set_favorite(self, username, slug, favorite=True):
        with self._transaction("set favorite") as session:
            user = self._user(username)
            model = self._recipe_by_slug(slug)
            existing = Favorite.query.filter_by(user_id=user.id, recipe_id=model.id).first()
            if favorite and existing is None:
                session.add(Favorite(user_id=user.id, recipe_id=model.id))
            elif not favorite and existing is not None:
                session.delete(existing)

    def upsert_note(self, username, slug, content):
        """Create or replace the user's note. Blank content deletes it."""
        content = (content or '').strip()
        if not content:
            return self.delete_note(username, slug)
        with self._transaction("upsert note") as session:
            user = self._user(username)
            model = self._recipe_by_slug(slug)
            note = Note.query.filter_by(user_id=user.id, recipe_id=model.id).first()
            if note is None:
                session.add(Note(user_id=user.id, recipe_id=model.id, content=content[:MAX_LENGTHS['note']]))
            else:
                note.content = content[:MAX_LENGTHS['note']]

    def delete_note(self, username, slug):
        with self._transaction("delete note"):
            user = self._user(username)
            model = self._recipe_by_slug(slug)
            Note.query.filter_by(user_id=user.id, recipe_id=model.id).delete()

    def count_recipes(self, username):
        with self._transaction("count recipes"):
            user = self._user(username)
            return UserRecipe.query.filter_by(user_id=user.id).count()

    def category_counts(self, username):
        """Return [(category, count), ...] for the user's recipes, sorted by name."""
        with self._transaction("category counts"):
            user = self._user(username)
            category = func.coalesce(Recipe.category, '')
            rows = (
                self.session.query(category, func.count(Recipe.id))
                .join(UserRecipe, UserRecipe.recipe_id == Recipe.id)
                .filter(UserRecipe.user_id == user.id)
                .group_by(category)
                .order_by(func.lower(category))
                .all()
            )
            return [(name, count) for name, count in rows]
