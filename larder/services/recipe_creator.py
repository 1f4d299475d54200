"""Create a recipe together with its ingredients in one transaction."""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..jobs.queue import JobQueue, submit
from ..models import Recipe, RecipeCategory
from ..parsing import parse_ingredients, split_recipe_text
from ..schemas import RecipeCreate
from .recipe_ingredients import RecipeIngredientCreator, split_fatal
from .results import ServiceResult

logger = logging.getLogger(__name__)


def resolve_category(db: Session, user_id: int, category_id: Optional[int], new_category: Optional[str]) -> ServiceResult:
    """Existing category owned by the user, or a new one by name. Data is the id or None."""
    if new_category and new_category.strip():
        name = new_category.strip()
        category = db.scalar(
            select(RecipeCategory).where(
                RecipeCategory.user_id == user_id,
                func.lower(RecipeCategory.name) == name.lower(),
            )
        )
        if category is None:
            category = RecipeCategory(user_id=user_id, name=name)
            db.add(category)
            db.flush()
        return ServiceResult.ok(category.id)

    if category_id is None:
        return ServiceResult.ok(None)

    category = db.get(RecipeCategory, category_id)
    if category is None or category.user_id != user_id:
        return ServiceResult.fail("Recipe category not found")
    return ServiceResult.ok(category.id)


class RecipeCreator:
    def __init__(self, db: Session, user_id: int, queue: Optional[JobQueue] = None):
        self.db = db
        self.user_id = user_id
        self.queue = queue

    def create(self, data: RecipeCreate) -> ServiceResult:
        name = (data.name or "").strip()
        if not name:
            return ServiceResult.fail("Name can't be blank")

        instructions = data.instructions or ""
        drafts = list(data.ingredients)
        parser_notes: list[str] = []

        ingredient_text = data.ingredients_text
        if data.raw_text:
            sections = split_recipe_text(data.raw_text)
            instructions = instructions or sections.instructions
            if sections.ingredient_lines:
                ingredient_text = "\n".join(filter(None, [ingredient_text, *sections.ingredient_lines]))

        if ingredient_text:
            parsed = parse_ingredients(ingredient_text)
            drafts.extend(parsed.ingredients)
            parser_notes = parsed.notes

        try:
            category = resolve_category(self.db, self.user_id, data.category_id, data.new_category)
            if not category.success:
                self.db.rollback()
                return category

            recipe = Recipe(
                user_id=self.user_id,
                category_id=category.data,
                name=name,
                instructions=instructions,
                notes=_merge_notes(data.notes, parser_notes),
                prep_time=data.prep_time,
                cook_time=data.cook_time,
                servings=data.servings,
            )
            self.db.add(recipe)
            self.db.flush()

            result = RecipeIngredientCreator(self.db, recipe, self.user_id).create_ingredients(drafts)
            fatal, warnings = split_fatal(result.errors)
            if fatal:
                self.db.rollback()
                return ServiceResult.fail(*fatal)

            self.db.commit()
        except SQLAlchemyError:
            logger.exception("Recipe creation failed for user %s", self.user_id)
            self.db.rollback()
            return ServiceResult.fail("Failed to create recipe")

        self.db.refresh(recipe)
        self._enqueue_matching(recipe)
        return ServiceResult.ok(recipe, warnings=warnings)

    def _enqueue_matching(self, recipe: Recipe) -> None:
        if any(ingredient.grocery_id is None for ingredient in recipe.ingredients):
            submit(self.queue, "match_recipe", recipe.id)


def _merge_notes(notes: Optional[str], parser_notes: list[str]) -> Optional[str]:
    parts = [notes.strip()] if notes and notes.strip() else []
    parts.extend(parser_notes)
    return "\n".join(parts) or None
