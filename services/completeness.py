"""
Completeness Check

Decides whether an extracted recipe carries enough data to be saved as a
full recipe, or whether a placeholder has to be stored instead.
"""


def _ingredient_has_content(detail):
    return bool(
        (detail.description or '').strip()
        or (detail.amount_text or '').strip()
        or (detail.base_amount_text or '').strip()
        or detail.amount_value is not None
        or detail.base_amount_value is not None
    )


def is_complete(recipe):
    """
    Check whether a recipe is usable.

    A recipe is complete when it has a non-blank title, at least one
    ingredient line with text or an amount, and at least one non-blank
    instruction step.

    Args:
        recipe: RecipeData instance

    Returns:
        bool
    """
    if recipe is None:
        return False
    if not (recipe.title or '').strip():
        return False
    if not recipe.ingredients and not recipe.parsed_ingredients:
        return False
    if not recipe.instructions:
        return False

    has_ingredient = any((line or '').strip() for line in recipe.ingredients)
    if not has_ingredient:
        has_ingredient = any(_ingredient_has_content(d) for d in recipe.parsed_ingredients)

    has_instruction = any((step or '').strip() for step in recipe.instructions)
    return has_ingredient and has_instruction
