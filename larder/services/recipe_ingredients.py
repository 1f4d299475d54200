"""
Persist ingredient drafts for a recipe.

Each draft gets a resolved (or newly created) unit and a synchronous grocery
lookup; anything still unmatched is left for the background matcher. Bad
drafts (blank name, non-positive quantity) are skipped with a warning, while
datastore failures produce an "Error creating ingredient" error that the
calling service treats as fatal.
"""

import logging
from decimal import Decimal
from numbers import Number
from typing import Iterable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.text import format_quantity, normalize
from ..matching.grocery_matcher import GroceryMatcher
from ..models import Recipe, RecipeIngredient, Unit
from .results import ServiceResult
from .units import find_or_create_unit, get_default_unit

logger = logging.getLogger(__name__)

FATAL_MARKER = "Error creating ingredient"


class IngredientDraft(Protocol):
    name: str
    quantity: Optional[float]
    unit_name: Optional[str]
    preparation: Optional[str]
    size: Optional[str]


def is_fatal(message: str) -> bool:
    return FATAL_MARKER in message


def split_fatal(messages: Iterable[str]) -> tuple[list[str], list[str]]:
    """Partition ingredient messages into (fatal errors, warnings)."""
    fatal, warnings = [], []
    for message in messages:
        (fatal if is_fatal(message) else warnings).append(message)
    return fatal, warnings


class RecipeIngredientCreator:
    def __init__(self, db: Session, recipe: Recipe, user_id: int, matcher: Optional[GroceryMatcher] = None):
        self.db = db
        self.recipe = recipe
        self.user_id = user_id
        self.matcher = matcher or GroceryMatcher()

    def create_ingredients(self, drafts: Iterable[IngredientDraft]) -> ServiceResult:
        created: list[RecipeIngredient] = []
        errors: list[str] = []

        for draft in drafts:
            result = self.create_ingredient(draft)
            if result.success:
                created.append(result.data)
                continue
            errors.extend(result.errors)
            if any(is_fatal(e) for e in result.errors):
                # the session needs a rollback; later drafts cannot be flushed
                break

        if errors:
            return ServiceResult(False, data=created, errors=errors)
        return ServiceResult.ok(created)

    def create_ingredient(self, draft: IngredientDraft) -> ServiceResult:
        name = normalize(draft.name)
        quantity = format_quantity(draft.quantity if draft.quantity is not None else 1)

        problems = []
        if not name:
            problems.append("Ingredient name can't be blank")
        if not isinstance(quantity, Number) or quantity <= 0:
            problems.append(f"Quantity for {name or 'ingredient'} must be greater than 0")
        if problems:
            return ServiceResult.fail(*problems)

        try:
            unit = self._resolve_unit(draft)
            grocery = self.matcher.find(self.db, self.user_id, name)

            ingredient = RecipeIngredient(
                name=name,
                quantity=Decimal(str(quantity)),
                unit=unit,
                grocery_id=grocery.id if grocery else None,
                preparation=normalize(draft.preparation) or None,
                size=normalize(draft.size) or None,
            )
            self.recipe.ingredients.append(ingredient)
            self.db.flush()
        except SQLAlchemyError as e:
            logger.warning("Failed to create ingredient %r for recipe %s: %s", draft.name, self.recipe.id, e)
            return ServiceResult.fail(f"{FATAL_MARKER} {draft.name}: {e}")

        return ServiceResult.ok(ingredient)

    def _resolve_unit(self, draft: IngredientDraft) -> Unit:
        unit_id = getattr(draft, "unit_id", None)
        if unit_id is not None:
            unit = self.db.get(Unit, unit_id)
            if unit is not None:
                return unit
        if draft.unit_name:
            return find_or_create_unit(self.db, draft.unit_name)
        return get_default_unit(self.db)
