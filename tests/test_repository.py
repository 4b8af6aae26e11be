"""
Tests for the recipe repository: users, queue items, recipes, favorites
and notes.
"""

import pytest

from app import create_app, get_services, shutdown_services
from models import PasswordReset, QueueItem, Recipe, RecipeData, RecipeIngredient, UserRecipe, db
from services.errors import InputError, NotFoundError
from services.repository import ingredient_rows


def make_recipe(slug='best-chili-ever', title='Best Chili Ever', category='dinner',
                url='https://example.com/chili', ingredients=None):
    return RecipeData(
        title=title,
        category=category,
        instructions=['Brown the beef.', 'Simmer.'],
        ingredients=ingredients if ingredients is not None else [
            '1 1/2 lb ground beef', '2 cans kidney beans', 'Salt to taste',
        ],
        servings=4,
        original_url=url,
        link=f"/recipes/{category}/{slug}",
        date='2024-01-01',
        slug=slug,
    )


# -------------------------------------------------------------------
# Users
# -------------------------------------------------------------------

def test_create_and_authenticate_user(user, repository):
    user_id = repository.authenticate_user('alice', 'secret-pass')
    assert user_id is not None
    assert repository.get_user_profile('alice')['username'] == 'alice'


def test_wrong_password_is_rejected(user, repository):
    with pytest.raises(InputError):
        repository.authenticate_user('alice', 'wrong')
    with pytest.raises(InputError):
        repository.authenticate_user('nobody', 'secret-pass')


def test_duplicate_username_is_rejected(user, repository):
    with pytest.raises(InputError, match='already exists'):
        repository.create_user('alice', 'other-pass')


def test_unknown_user_raises_not_found(app_ctx, repository):
    with pytest.raises(NotFoundError):
        repository.list_recipes('nobody')
    with pytest.raises(InputError):
        repository.list_recipes('  ')


def test_password_reset_flow(user, repository):
    first = repository.create_password_reset('alice')
    second = repository.create_password_reset('alice')

    with pytest.raises(InputError):
        repository.reset_password_with_token(first, 'new-pass')

    repository.reset_password_with_token(second, 'new-pass')
    assert repository.authenticate_user('alice', 'new-pass')
    with pytest.raises(InputError):
        repository.reset_password_with_token(second, 'another-pass')
    assert PasswordReset.query.filter_by(used_at=None).count() == 0


def test_expired_reset_token_is_rejected(user, repository):
    token = repository.create_password_reset('alice', ttl_seconds=-1)
    with pytest.raises(InputError, match='expired'):
        repository.reset_password_with_token(token, 'new-pass')


def test_reset_token_lifetime_comes_from_config(tmp_path):
    app = create_app('testing', test_config={
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'ttl.db'}",
        'PASSWORD_RESET_TTL': -1,
    })
    try:
        with app.app_context():
            repository = get_services(app).repository
            assert repository.reset_ttl == -1
            repository.create_user('alice', 'secret-pass')
            token = repository.create_password_reset('alice')
            with pytest.raises(InputError, match='expired'):
                repository.reset_password_with_token(token, 'new-pass')
            db.session.remove()
    finally:
        shutdown_services(app)


# -------------------------------------------------------------------
# Queue
# -------------------------------------------------------------------

def test_enqueue_skips_duplicate_pending_item(user, repository):
    assert repository.enqueue_recipe('alice', 'https://example.com/chili') is True
    assert repository.enqueue_recipe('alice', 'https://example.com/chili') is False
    assert QueueItem.query.count() == 1


def test_enqueue_after_processing_creates_new_item(user, repository):
    repository.enqueue_recipe('alice', 'https://example.com/chili')
    job = repository.fetch_pending_queue()[0]
    repository.mark_queue_item_result(job.id)
    assert repository.enqueue_recipe('alice', 'https://example.com/chili') is True


def test_enqueue_requires_url(user, repository):
    with pytest.raises(InputError):
        repository.enqueue_recipe('alice', '  ')


def test_fetch_pending_queue_oldest_first_with_limit(user, repository):
    for n in range(3):
        repository.enqueue_recipe('alice', f"https://example.com/{n}")
    jobs = repository.fetch_pending_queue(limit=2)
    assert [job.url for job in jobs] == ['https://example.com/0', 'https://example.com/1']
    assert jobs[0].username == 'alice'
    assert jobs[0].attempts == 0


def test_failed_item_stays_pending_until_attempt_ceiling(user, repository):
    repository.enqueue_recipe('alice', 'https://example.com/chili')
    item_id = repository.fetch_pending_queue()[0].id

    for _ in range(4):
        repository.mark_queue_item_result(item_id, 'boom')
    item = repository.get_queue_item(item_id)
    assert item.attempts == 4
    assert item.is_pending
    assert item.last_error == 'boom'

    repository.mark_queue_item_result(item_id, 'boom')
    item = repository.get_queue_item(item_id)
    assert item.attempts == 5
    assert not item.is_pending
    assert repository.fetch_pending_queue() == []


def test_success_clears_error_and_finalizes(user, repository):
    repository.enqueue_recipe('alice', 'https://example.com/chili')
    item_id = repository.fetch_pending_queue()[0].id
    repository.mark_queue_item_result(item_id, RuntimeError('first try'))
    repository.mark_queue_item_result(item_id)
    item = repository.get_queue_item(item_id)
    assert item.attempts == 2
    assert item.last_error is None
    assert item.processed_at is not None


def test_queue_error_is_truncated(user, repository):
    repository.enqueue_recipe('alice', 'https://example.com/chili')
    item_id = repository.fetch_pending_queue()[0].id
    repository.mark_queue_item_result(item_id, 'x' * 5000)
    assert len(repository.get_queue_item(item_id).last_error) == 1024


def test_mark_unknown_queue_item(app_ctx, repository):
    with pytest.raises(NotFoundError):
        repository.mark_queue_item_result(999)


# -------------------------------------------------------------------
# Recipes
# -------------------------------------------------------------------

def test_ingredient_rows_skip_blank_lines_and_keep_positions():
    rows = ingredient_rows(['2 cups flour', '   ', 'Salt to taste'])
    assert [row.position for row in rows] == [0, 2]
    assert rows[0].amount_value == 2
    assert rows[0].unit == 'cups'
    assert rows[0].description == 'flour'
    assert rows[1].amount_value is None
    assert rows[1].description == 'Salt to taste'


def test_save_and_get_recipe(user, repository):
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())
    recipe = repository.get_recipe('alice', 'best-chili-ever')

    assert recipe.title == 'Best Chili Ever'
    assert recipe.instructions == ['Brown the beef.', 'Simmer.']
    assert recipe.servings == 4
    assert recipe.is_favorite is False
    assert recipe.note is None
    beef = recipe.parsed_ingredients[0]
    assert beef.base_amount_value == pytest.approx(1.5)
    assert beef.amount_text == '1 1/2'
    assert beef.unit == 'lb'
    assert beef.description == 'ground beef'
    assert recipe.ingredients[0] == '1 1/2 lb ground beef'
    salt = recipe.parsed_ingredients[2]
    assert salt.base_amount_value is None
    assert salt.display == 'Salt to taste'


def test_save_twice_replaces_ingredients(user, repository):
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())
    updated = make_recipe(title='Better Chili', ingredients=['3 cups beans'])
    repository.save_recipe_for_user('alice', 'best-chili-ever', updated)

    assert Recipe.query.count() == 1
    assert RecipeIngredient.query.count() == 1
    assert UserRecipe.query.count() == 1
    recipe = repository.get_recipe('alice', 'best-chili-ever')
    assert recipe.title == 'Better Chili'
    assert recipe.ingredients == ['3 cups beans']


def test_save_from_other_url_gets_its_own_slug(user, repository):
    repository.create_user('bob', 'bob-pass')
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())
    other = make_recipe(title='Best Chili Ever', url='https://b.example/chili', ingredients=['2 lb pork'])
    slug = repository.save_recipe_for_user('bob', 'best-chili-ever', other)

    assert slug != 'best-chili-ever'
    assert slug.startswith('best-chili-ever-')
    assert Recipe.query.count() == 2
    assert repository.get_recipe('alice', 'best-chili-ever').ingredients[0] == '1 1/2 lb ground beef'
    bobs = repository.get_recipe('bob', slug)
    assert bobs.ingredients == ['2 lb pork']
    assert bobs.link == f"/recipes/dinner/{slug}"
    with pytest.raises(NotFoundError):
        repository.get_recipe('bob', 'best-chili-ever')

    # The same source URL lands on the suffixed row again
    assert repository.save_recipe_for_user('bob', 'best-chili-ever', other) == slug
    assert Recipe.query.count() == 2


def test_incomplete_save_keeps_complete_recipe(user, repository):
    repository.create_user('bob', 'bob-pass')
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())
    stub = make_recipe(ingredients=[])
    assert repository.save_recipe_for_user('bob', 'best-chili-ever', stub) == 'best-chili-ever'

    assert Recipe.query.count() == 1
    assert len(repository.get_recipe('alice', 'best-chili-ever').ingredients) == 3
    assert len(repository.get_recipe('bob', 'best-chili-ever').ingredients) == 3


def test_get_recipe_requires_link(user, repository):
    repository.create_user('bob', 'bob-pass')
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())
    with pytest.raises(NotFoundError):
        repository.get_recipe('bob', 'best-chili-ever')


def test_link_recipe_if_exists_links_complete_recipe(user, repository):
    repository.create_user('bob', 'bob-pass')
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())

    linked, slug = repository.link_recipe_if_exists('bob', 'https://example.com/chili')
    assert linked is True
    assert slug == 'best-chili-ever'
    assert repository.get_recipe('bob', 'best-chili-ever').title == 'Best Chili Ever'


def test_link_recipe_if_exists_ignores_incomplete_recipe(user, repository):
    stub = make_recipe(ingredients=[])
    repository.save_recipe_for_user('alice', 'best-chili-ever', stub)
    assert repository.link_recipe_if_exists('alice', 'https://example.com/chili') == (False, '')
    assert repository.link_recipe_if_exists('alice', 'https://example.com/other') == (False, '')


def test_list_and_search_recipes(user, repository):
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())
    repository.save_recipe_for_user('alice', 'pancakes', make_recipe(
        slug='pancakes', title='Fluffy Pancakes', category='breakfast',
        url='https://example.com/pancakes',
    ))

    listed = repository.list_recipes('alice')
    assert [r.slug for r in listed] == ['pancakes', 'best-chili-ever']
    assert listed[0].parsed_ingredients == []

    assert [r.slug for r in repository.list_recipes('alice', 'dinner')] == ['best-chili-ever']
    assert [r.slug for r in repository.search_recipes('alice', 'PANCAKE')] == ['pancakes']
    assert repository.count_recipes('alice') == 2
    assert repository.category_counts('alice') == [('breakfast', 1), ('dinner', 1)]


def test_patch_recipe(user, repository):
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())
    repository.patch_recipe('alice', 'best-chili-ever', title=' Chili ', instructions=['Cook.'])
    recipe = repository.get_recipe('alice', 'best-chili-ever')
    assert recipe.title == 'Chili'
    assert recipe.instructions == ['Cook.']
    assert recipe.category == 'dinner'

    with pytest.raises(InputError):
        repository.patch_recipe('alice', 'best-chili-ever', title='  ')


def test_delete_recipe_only_unlinks(user, repository):
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())
    assert repository.delete_recipe('alice', 'best-chili-ever') is True
    assert repository.delete_recipe('alice', 'best-chili-ever') is False
    assert repository.delete_recipe('alice', 'missing') is False
    assert Recipe.query.count() == 1
    assert repository.list_recipes('alice') == []


def test_favorites(user, repository):
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())
    repository.set_favorite('alice', 'best-chili-ever')
    repository.set_favorite('alice', 'best-chili-ever')

    favorites = repository.list_favorite_recipes('alice')
    assert len(favorites) == 1
    assert favorites[0].is_favorite
    assert favorites[0].original_servings == 4
    assert repository.get_recipe('alice', 'best-chili-ever').is_favorite

    repository.set_favorite('alice', 'best-chili-ever', False)
    assert repository.list_favorite_recipes('alice') == []

    with pytest.raises(NotFoundError):
        repository.set_favorite('alice', 'missing')


def test_notes(user, repository):
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())
    repository.upsert_note('alice', 'best-chili-ever', ' Add more cumin ')
    assert repository.get_recipe('alice', 'best-chili-ever').note == 'Add more cumin'

    repository.upsert_note('alice', 'best-chili-ever', 'Less salt')
    assert repository.get_recipe('alice', 'best-chili-ever').note == 'Less salt'

    repository.upsert_note('alice', 'best-chili-ever', '   ')
    assert repository.get_recipe('alice', 'best-chili-ever').note is None


def test_recipes_are_removed_with_user_links(user, repository):
    repository.save_recipe_for_user('alice', 'best-chili-ever', make_recipe())
    recipe = Recipe.query.filter_by(slug='best-chili-ever').first()
    db.session.delete(recipe)
    db.session.commit()
    assert UserRecipe.query.count() == 0
    assert RecipeIngredient.query.count() == 0
