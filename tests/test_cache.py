"""
Tests for the TTL cache and recipe cache keys.
"""

from services.cache import (
    TTLCache,
    invalidate_recipe_caches,
    recipe_cache_key,
    recipe_list_cache_key,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set('a', 1, ttl=10)
    assert cache.get('a') == 1
    clock.now += 9.9
    assert cache.get('a') == 1
    clock.now += 0.1
    assert cache.get('a') is None
    assert len(cache) == 0


def test_entry_without_ttl_never_expires():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set('a', 'value')
    clock.now += 10 ** 6
    assert cache.get('a') == 'value'


def test_delete_prefix_counts_removed_keys():
    cache = TTLCache()
    cache.set('recipes:alice:all', [1], ttl=60)
    cache.set('recipes:alice:dinner', [2], ttl=60)
    cache.set('recipes:bob:all', [3], ttl=60)
    assert cache.delete_prefix('recipes:alice:') == 2
    assert cache.get('recipes:bob:all') == [3]


def test_cache_keys():
    assert recipe_cache_key('alice', 'chili') == 'recipe:alice:chili'
    assert recipe_list_cache_key('alice') == 'recipes:alice:all'
    assert recipe_list_cache_key('alice', 'dinner') == 'recipes:alice:dinner'


def test_invalidate_recipe_caches_drops_recipe_and_lists():
    cache = TTLCache()
    cache.set(recipe_cache_key('alice', 'chili'), 'r', ttl=60)
    cache.set(recipe_cache_key('alice', 'soup'), 's', ttl=60)
    cache.set(recipe_list_cache_key('alice'), [], ttl=60)
    cache.set(recipe_list_cache_key('bob'), [], ttl=60)

    invalidate_recipe_caches(cache, 'alice', 'chili')

    assert cache.get(recipe_cache_key('alice', 'chili')) is None
    assert cache.get(recipe_cache_key('alice', 'soup')) == 's'
    assert cache.get(recipe_list_cache_key('alice')) is None
    assert cache.get(recipe_list_cache_key('bob')) == []


def test_invalidate_without_cache_is_a_no_op():
    invalidate_recipe_caches(None, 'alice', 'chili')
