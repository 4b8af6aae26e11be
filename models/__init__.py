"""
Models Package

Exports all database models and the db instance for use throughout the application.
"""

from .base import db, utcnow

from .user import User, PasswordReset
from .recipe import Recipe, RecipeIngredient, UserRecipe, Favorite, Note
from .queue import QueueItem
from .records import IngredientDetail, RecipeData, QueueJob

__all__ = [
    'db',
    'utcnow',
    'User',
    'PasswordReset',
    'Recipe',
    'RecipeIngredient',
    'UserRecipe',
    'Favorite',
    'Note',
    'QueueItem',
    'IngredientDetail',
    'RecipeData',
    'QueueJob',
]
