"""Handlers for matching jobs.

Handlers take ``(db, queue, *ids)``, are idempotent and treat a missing
entity as a no-op. The worker owns the transaction.
"""

import logging
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..matching.grocery_matcher import match_grocery_to_ingredients
from ..matching.ingredient_matcher import match_ingredient_to_grocery
from ..models import Grocery, Recipe, RecipeIngredient, User
from .queue import JobQueue

logger = logging.getLogger(__name__)


def match_grocery(db: Session, queue: JobQueue, grocery_id: int) -> Optional[dict]:
    grocery = db.get(Grocery, grocery_id)
    if grocery is None:
        logger.info("match_grocery: grocery %s no longer exists", grocery_id)
        return None

    logger.info("Starting grocery matching for %s (ID: %s)", grocery.name, grocery.id)
    return match_grocery_to_ingredients(db, grocery)


def match_ingredient(db: Session, queue: JobQueue, ingredient_id: int, user_id: int) -> Optional[dict]:
    ingredient = db.get(RecipeIngredient, ingredient_id)
    if ingredient is None or db.get(User, user_id) is None:
        return None
    if ingredient.recipe.user_id != user_id:
        logger.warning("match_ingredient: ingredient %s is not owned by user %s", ingredient_id, user_id)
        return None
    if ingredient.grocery_id is not None:
        return {"ingredient_id": ingredient.id, "grocery_id": ingredient.grocery_id}

    grocery = match_ingredient_to_grocery(db, user_id, ingredient.name)
    if grocery is None:
        logger.info("No matching grocery found for ingredient %s", ingredient.name)
        return {"ingredient_id": ingredient.id, "grocery_id": None}

    ingredient.grocery_id = grocery.id
    logger.info("Matched ingredient %s with grocery %s", ingredient.name, grocery.name)
    return {"ingredient_id": ingredient.id, "grocery_id": grocery.id}


def match_recipe(db: Session, queue: JobQueue, recipe_id: int) -> Optional[dict]:
    """Fan out one match_ingredient job per unmatched ingredient."""
    recipe = db.get(Recipe, recipe_id)
    if recipe is None:
        return None

    unmatched = db.scalars(
        select(RecipeIngredient.id)
        .where(RecipeIngredient.recipe_id == recipe.id, RecipeIngredient.grocery_id.is_(None))
        .order_by(RecipeIngredient.id)
    ).all()
    for ingredient_id in unmatched:
        queue.enqueue("match_ingredient", ingredient_id, recipe.user_id)

    logger.info("Enqueued %s ingredient matching jobs for recipe %s", len(unmatched), recipe.name)
    return {"recipe_id": recipe.id, "enqueued": len(unmatched)}


HANDLERS: dict[str, Callable[..., Optional[dict]]] = {
    "match_grocery": match_grocery,
    "match_ingredient": match_ingredient,
    "match_recipe": match_recipe,
}
