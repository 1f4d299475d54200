"""
Grocery-side matching.

``find_grocery_by_name`` searches a user's pantry for a free-text name
(exact, plural/singular, prefix/containment, meat type, multi-word scoring).
``update_related_ingredients`` is the inverse direction: after a grocery is
created or renamed, link the owner's still-unmatched ingredients to it.
"""

import logging
from functools import partial
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from ..core.text import normalize
from ..models import Grocery, Recipe, RecipeIngredient
from .config import MatcherConfig, get_matcher_config
from .strategies import (
    GroceryScope,
    exact_match,
    meat_type_match,
    multi_word_match,
    prefix_containment_match,
    run_cascade,
    singular_plural_match,
)

logger = logging.getLogger(__name__)


class GroceryMatcher:
    def __init__(self, config: Optional[MatcherConfig] = None):
        self.config = config or get_matcher_config()
        self.strategies = (
            exact_match,
            singular_plural_match,
            prefix_containment_match,
            partial(meat_type_match, config=self.config),
            partial(multi_word_match, config=self.config),
        )

    def find(self, db: Session, user_id: int, name: str) -> Optional[Grocery]:
        return run_cascade(self.strategies, GroceryScope(db, user_id), normalize(name))


def find_grocery_by_name(
    db: Session,
    user_id: int,
    name: str,
    config: Optional[MatcherConfig] = None,
) -> Optional[Grocery]:
    return GroceryMatcher(config).find(db, user_id, name)


def update_related_ingredients(db: Session, grocery: Grocery) -> int:
    """
    Link unmatched ingredients of the grocery owner's recipes whose name
    equals or contains the grocery name. Linked ingredients are left alone.

    Returns the number of ingredients linked. The caller commits; ingredient
    objects already loaded in the session are not refreshed.
    """
    name = normalize(grocery.name)
    if not name:
        return 0

    owned_recipes = select(Recipe.id).where(Recipe.user_id == grocery.user_id)
    ingredient_name = func.lower(RecipeIngredient.name)

    stmt = (
        update(RecipeIngredient)
        .where(
            RecipeIngredient.recipe_id.in_(owned_recipes),
            RecipeIngredient.grocery_id.is_(None),
            or_(ingredient_name == name, ingredient_name.contains(name, autoescape=True)),
        )
        .values(grocery_id=grocery.id)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    return result.rowcount or 0


def match_grocery_to_ingredients(db: Session, grocery: Grocery) -> dict:
    count = update_related_ingredients(db, grocery)
    logger.info("Linked %s ingredient(s) to grocery %s (%s)", count, grocery.id, grocery.name)
    return {
        "grocery_id": grocery.id,
        "grocery_name": grocery.name,
        "matched_ingredients": count,
    }
