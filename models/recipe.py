"""
Recipe Models

Contains the Recipe model and the per-recipe ingredient rows, plus the
per-user tables: recipe links, favorites and notes.
"""

import json

from .base import db, utcnow


class Recipe(db.Model):
    """Extracted recipe, shared by every user who submitted its URL."""
    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(50), default='other', index=True)
    instructions = db.Column(db.Text, nullable=False, default='[]')  # JSON list of steps
    prep_time = db.Column(db.Integer, default=0)
    cook_time = db.Column(db.Integer, default=0)
    total_time = db.Column(db.Integer, default=0)
    servings = db.Column(db.Integer, default=0)
    image = db.Column(db.String(2048), default='')
    link = db.Column(db.String(512), default='')
    original_url = db.Column(db.String(2048), default='', index=True)
    date = db.Column(db.String(32), default='')
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    ingredients = db.relationship(
        'RecipeIngredient', backref='recipe', lazy=True,
        cascade='all, delete-orphan', order_by='RecipeIngredient.position'
    )
    user_links = db.relationship('UserRecipe', backref='recipe', lazy=True, cascade='all, delete-orphan')
    favorites = db.relationship('Favorite', backref='recipe', lazy=True, cascade='all, delete-orphan')
    notes = db.relationship('Note', backref='recipe', lazy=True, cascade='all, delete-orphan')

    @property
    def instruction_steps(self):
        if not self.instructions:
            return []
        steps = json.loads(self.instructions)
        return steps if isinstance(steps, list) else []

    @instruction_steps.setter
    def instruction_steps(self, steps):
        self.instructions = json.dumps(list(steps or []))


class RecipeIngredient(db.Model):
    """One parsed ingredient line. amount_value is NULL when the line had no amount."""
    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id', ondelete='CASCADE'), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    amount_value = db.Column(db.Float, nullable=True)
    amount_text = db.Column(db.String(50), default='')
    unit = db.Column(db.String(30), default='')
    description = db.Column(db.String(500), nullable=False, default='')


class UserRecipe(db.Model):
    """Link between a user and a recipe in their collection."""
    __table_args__ = (db.UniqueConstraint('user_id', 'recipe_id'),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class Favorite(db.Model):
    """Recipe a user marked as favorite."""
    __table_args__ = (db.UniqueConstraint('user_id', 'recipe_id'),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class Note(db.Model):
    """Free-text note a user keeps on a recipe (one per user and recipe)."""
    __table_args__ = (db.UniqueConstraint('user_id', 'recipe_id'),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id', ondelete='CASCADE'), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
