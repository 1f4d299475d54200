"""
Recipe availability against a pantry snapshot.

The snapshot (grocery id -> Grocery) is loaded once per request and shared
across every recipe checked in that request.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..core.text import format_quantity
from ..models import Grocery, Recipe, RecipeIngredient
from ..settings import settings
from .units import ConversionTable, conversion_factor

logger = logging.getLogger(__name__)

PantrySnapshot = dict[int, Grocery]


def load_pantry_snapshot(db: Session, user_id: int) -> PantrySnapshot:
    groceries = db.scalars(
        select(Grocery)
        .options(selectinload(Grocery.unit))
        .where(Grocery.user_id == user_id)
    ).all()
    return {grocery.id: grocery for grocery in groceries}


class AvailabilityChecker:
    def __init__(
        self,
        recipe: Recipe,
        pantry: PantrySnapshot,
        conversions: Optional[ConversionTable] = None,
    ):
        self.recipe = recipe
        self.pantry = pantry
        self.conversions = conversions or {}

    def missing_ingredients(self, limit: Optional[int] = None) -> list[dict]:
        """
        Ingredients that are unmatched, not in the pantry, or short on
        quantity, in stored order. Stops once ``limit`` entries are found.
        """
        missing: list[dict] = []
        for ingredient in self.recipe.ingredients:
            if limit is not None and len(missing) >= limit:
                break

            grocery = self.pantry.get(ingredient.grocery_id) if ingredient.grocery_id else None
            if grocery is None:
                missing.append(self._entry(ingredient, None))
            elif self._required_in_grocery_unit(ingredient, grocery) > Decimal(grocery.quantity or 0):
                missing.append(self._entry(ingredient, grocery))

        return missing

    def available(self) -> bool:
        return not self.missing_ingredients(limit=1)

    def availability_info(self, limit: Optional[int] = None) -> dict:
        missing = self.missing_ingredients(limit=limit)
        return {"available": not missing, "missing_ingredients": missing}

    def _required_in_grocery_unit(self, ingredient: RecipeIngredient, grocery: Grocery) -> Decimal:
        required = Decimal(ingredient.quantity)
        if ingredient.unit_id is None or grocery.unit_id is None or ingredient.unit_id == grocery.unit_id:
            return required

        factor = conversion_factor(self.conversions, ingredient.unit_id, grocery.unit_id)
        if factor is None:
            # No persisted conversion: compare the numbers as they are
            return required
        return required * factor

    @staticmethod
    def _entry(ingredient: RecipeIngredient, grocery: Optional[Grocery]) -> dict:
        return {
            "id": ingredient.id,
            "name": ingredient.name,
            "required": format_quantity(ingredient.quantity),
            "required_unit": ingredient.unit.name if ingredient.unit else settings.default_unit_name,
            "available": format_quantity(grocery.quantity) if grocery else 0,
            "available_unit": grocery.unit.name if grocery and grocery.unit else settings.default_unit_name,
        }
