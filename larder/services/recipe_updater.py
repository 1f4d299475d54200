"""Update a recipe, its ingredients, and ingredient links in one transaction.

Renaming an ingredient re-runs the grocery lookup for it unless the caller
set ``grocery_id`` explicitly; an explicit grocery must belong to the recipe
owner. Ingredients left unmatched are handed to the background matcher.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.text import normalize
from ..jobs.queue import JobQueue, submit
from ..matching.grocery_matcher import GroceryMatcher
from ..models import Grocery, Recipe, RecipeIngredient, Unit
from ..schemas import IngredientUpdate, RecipeUpdate
from .recipe_creator import resolve_category
from .recipe_ingredients import RecipeIngredientCreator, split_fatal
from .results import ServiceResult

logger = logging.getLogger(__name__)

RECIPE_FIELDS = ("prep_time", "cook_time", "servings")


class RecipeUpdater:
    def __init__(self, db: Session, user_id: int, recipe: Recipe, queue: Optional[JobQueue] = None):
        self.db = db
        self.user_id = user_id
        self.recipe = recipe
        self.queue = queue
        self.matcher = GroceryMatcher()
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def update(self, data: RecipeUpdate) -> ServiceResult:
        fields = data.model_dump(exclude_unset=True)
        try:
            ok = (
                self._update_recipe(fields)
                and self._delete_ingredients(data.deleted_ingredient_ids)
                and self._update_ingredients(data.ingredients)
                and self._create_ingredients(data)
            )
            if not ok:
                self.db.rollback()
                return ServiceResult.fail(*self.errors, warnings=self.warnings)
            self.db.commit()
        except SQLAlchemyError:
            logger.exception("Recipe update failed for recipe %s", self.recipe.id)
            self.db.rollback()
            return ServiceResult.fail("Failed to update recipe")

        self.db.refresh(self.recipe)
        self._enqueue_matching()
        return ServiceResult.ok(self.recipe, warnings=self.warnings)

    def _update_recipe(self, fields: dict) -> bool:
        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name:
                self.errors.append("Name can't be blank")
                return False
            self.recipe.name = name

        if "notes" in fields:
            self.recipe.notes = fields["notes"]

        if "instructions" in fields:
            self.recipe.instructions = fields["instructions"] or ""

        for field in RECIPE_FIELDS:
            if field in fields:
                setattr(self.recipe, field, fields[field])

        if "category_id" in fields:
            category = resolve_category(self.db, self.user_id, fields["category_id"], None)
            if not category.success:
                self.errors.extend(category.errors)
                return False
            self.recipe.category_id = category.data

        if fields.get("completed") is not None and fields["completed"] != self.recipe.completed:
            self.recipe.completed = fields["completed"]
            self.recipe.completed_at = datetime.now(timezone.utc) if fields["completed"] else None

        self.db.flush()
        return True

    def _delete_ingredients(self, ingredient_ids: list[int]) -> bool:
        if not ingredient_ids:
            return True
        wanted = set(ingredient_ids)
        to_delete = [i for i in self.recipe.ingredients if i.id in wanted]
        logger.info("Deleting ingredients %s from recipe %s", [i.id for i in to_delete], self.recipe.id)
        for ingredient in to_delete:
            self.recipe.ingredients.remove(ingredient)
        self.db.flush()
        return True

    def _update_ingredients(self, updates: list[IngredientUpdate]) -> bool:
        by_id = {ingredient.id: ingredient for ingredient in self.recipe.ingredients}
        for update in updates:
            ingredient = by_id.get(update.id)
            if ingredient is None:
                self.warnings.append(f"Couldn't find ingredient with ID: {update.id}")
                continue
            if not self._apply_ingredient_update(ingredient, update):
                return False
        self.db.flush()
        return True

    def _apply_ingredient_update(self, ingredient: RecipeIngredient, update: IngredientUpdate) -> bool:
        fields = update.model_dump(exclude_unset=True)

        if "grocery_id" in fields:
            grocery_id = fields["grocery_id"]
            if grocery_id is not None:
                grocery = self.db.get(Grocery, grocery_id)
                if grocery is None or grocery.user_id != self.user_id:
                    self.errors.append(f"Grocery {grocery_id} not found")
                    return False
            ingredient.grocery_id = grocery_id

        if fields.get("quantity") is not None:
            ingredient.quantity = Decimal(str(fields["quantity"]))

        if fields.get("unit_id") is not None:
            if self.db.get(Unit, fields["unit_id"]) is None:
                self.errors.append(f"Unit {fields['unit_id']} not found")
                return False
            ingredient.unit_id = fields["unit_id"]

        if "name" in fields:
            new_name = normalize(fields["name"])
            if not new_name:
                self.errors.append("Ingredient name can't be blank")
                return False
            if new_name != ingredient.name:
                ingredient.name = new_name
                if "grocery_id" not in fields:
                    grocery = self.matcher.find(self.db, self.user_id, new_name)
                    ingredient.grocery_id = grocery.id if grocery else None

        for field in ("preparation", "size"):
            if field in fields:
                setattr(ingredient, field, normalize(fields[field]) or None)

        return True

    def _create_ingredients(self, data: RecipeUpdate) -> bool:
        if not data.new_ingredients:
            return True
        result = RecipeIngredientCreator(self.db, self.recipe, self.user_id, self.matcher).create_ingredients(
            data.new_ingredients
        )
        fatal, warnings = split_fatal(result.errors)
        if warnings:
            self.warnings.append(f"Some ingredients could not be created: {', '.join(warnings)}")
        if fatal:
            self.errors.extend(fatal)
            return False
        return True

    def _enqueue_matching(self) -> None:
        if self.queue is None:
            return
        for ingredient in self.recipe.ingredients:
            if ingredient.grocery_id is None:
                submit(self.queue, "match_ingredient", ingredient.id, self.user_id)
