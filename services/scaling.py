"""
Serving Scaler

Recomputes ingredient amounts for a requested number of servings or an
explicit scale factor. Base amounts are never modified, so scaling is
always relative to the amounts originally extracted.
"""

import copy
import math

from .parsing import compose_display, format_amount


def _round_servings(value):
    return int(math.floor(value + 0.5))


def resolve_scale(recipe, servings=None, factor=None):
    """
    Work out the scale factor and resulting serving count.

    Args:
        recipe: RecipeData with servings/original_servings set
        servings: Requested serving count, or None
        factor: Requested multiplier, or None

    Returns:
        (factor, servings, original_servings) tuple
    """
    original = recipe.original_servings or recipe.servings or 0
    current = recipe.servings

    if servings is not None and servings > 0 and original > 0:
        return servings / original, _round_servings(servings), original
    if factor is not None and factor > 0:
        return factor, _round_servings(original * factor), original
    return 1.0, current, original


def scale_ingredients(details, factor):
    """
    Return scaled copies of the given ingredient details.

    Lines without a base amount keep their base text and are not scaled.
    """
    scaled = []
    for detail in details:
        item = copy.copy(detail)
        if item.base_amount_value is not None:
            item.amount_value = item.base_amount_value * factor
            item.amount_text = format_amount(item.amount_value)
        else:
            item.amount_value = None
            item.amount_text = item.base_amount_text
        item.display = compose_display(item.amount_text, item.unit, item.description)
        scaled.append(item)
    return scaled


def scale_recipe(recipe, servings=None, factor=None):
    """
    Scale a recipe to a serving count or by a factor.

    Servings take precedence over factor. With neither, the factor is 1 and
    the display strings are simply rebuilt from the stored values. The input
    recipe is left untouched.

    Args:
        recipe: RecipeData
        servings: Target number of servings (optional)
        factor: Multiplier (optional)

    Returns:
        A new RecipeData with current amounts and servings updated
    """
    result = copy.deepcopy(recipe)
    scale, new_servings, original = resolve_scale(result, servings, factor)
    result.original_servings = original
    result.servings = new_servings
    result.parsed_ingredients = scale_ingredients(result.parsed_ingredients, scale)
    if result.parsed_ingredients:
        result.ingredients = [detail.display for detail in result.parsed_ingredients]
    return result
