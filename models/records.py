"""
Recipe Records

Plain data records passed between the extraction pipeline, the repository
and the serving scaler. These are detached from the database session so
they can be cached and handed across worker threads.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class IngredientDetail:
    """
    One structured ingredient line.

    base_amount_value is None when the line had no numeric amount; it is
    never overwritten by scaling. amount_value/amount_text hold the
    current (possibly scaled) amount and display the composed line.
    """
    description: str = ''
    unit: str = ''
    base_amount_value: Optional[float] = None
    base_amount_text: str = ''
    amount_value: Optional[float] = None
    amount_text: str = ''
    display: str = ''

    @property
    def has_amount(self):
        return self.base_amount_value is not None


@dataclass
class RecipeData:
    """A recipe as produced by extraction or loaded for a user."""
    title: str = ''
    category: str = ''
    description: str = ''
    instructions: List[str] = field(default_factory=list)
    ingredients: List[str] = field(default_factory=list)
    parsed_ingredients: List[IngredientDetail] = field(default_factory=list)
    prep_time: int = 0
    cook_time: int = 0
    total_time: int = 0
    servings: int = 0
    original_servings: int = 0
    image: str = ''
    original_url: str = ''
    link: str = ''
    date: str = ''
    note: Optional[str] = None
    is_favorite: bool = False
    slug: str = ''


@dataclass
class QueueJob:
    """Snapshot of a pending queue item handed to a worker thread."""
    id: int
    user_id: Optional[int]
    username: str
    url: str
    attempts: int = 0
