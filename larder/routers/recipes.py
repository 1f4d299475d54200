import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from ..db import get_db
from ..deps import get_current_user, get_job_queue, raise_for_result
from ..jobs.queue import JobQueue
from ..services.availability import AvailabilityChecker, load_pantry_snapshot
from ..services.recipe_creator import RecipeCreator
from ..services.recipe_updater import RecipeUpdater
from ..services.units import load_conversion_table

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_owned_recipe(db: Session, user: models.User, recipe_id: int) -> models.Recipe:
    recipe = db.scalar(
        select(models.Recipe)
        .options(selectinload(models.Recipe.ingredients).selectinload(models.RecipeIngredient.unit))
        .where(models.Recipe.id == recipe_id)
    )
    if not recipe or recipe.user_id != user.id:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


@router.get("", response_model=list[schemas.RecipeSummary])
def list_recipes(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    category_id: Optional[int] = None,
):
    """List recipes with a can-I-make-this flag from a single pantry snapshot."""
    stmt = (
        select(models.Recipe)
        .options(selectinload(models.Recipe.ingredients))
        .where(models.Recipe.user_id == user.id)
        .order_by(models.Recipe.name)
    )
    if category_id is not None:
        stmt = stmt.where(models.Recipe.category_id == category_id)
    recipes = db.scalars(stmt).all()

    pantry = load_pantry_snapshot(db, user.id)
    conversions = load_conversion_table(db)

    return [
        schemas.RecipeSummary(
            id=recipe.id,
            name=recipe.name,
            category_id=recipe.category_id,
            completed=recipe.completed,
            available=AvailabilityChecker(recipe, pantry, conversions).available(),
        )
        for recipe in recipes
    ]


@router.post("", response_model=schemas.RecipeWriteOut, status_code=status.HTTP_201_CREATED)
def create_recipe(
    recipe_in: schemas.RecipeCreate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    queue: JobQueue = Depends(get_job_queue),
):
    result = RecipeCreator(db, user.id, queue).create(recipe_in)
    raise_for_result(result)
    return {"recipe": result.data, "warnings": result.warnings}


@router.get("/{recipe_id}", response_model=schemas.RecipeOut)
def get_recipe(
    recipe_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _get_owned_recipe(db, user, recipe_id)


@router.patch("/{recipe_id}", response_model=schemas.RecipeWriteOut)
def update_recipe(
    recipe_id: int,
    recipe_in: schemas.RecipeUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    queue: JobQueue = Depends(get_job_queue),
):
    recipe = _get_owned_recipe(db, user, recipe_id)
    result = RecipeUpdater(db, user.id, recipe, queue).update(recipe_in)
    raise_for_result(result)
    return {"recipe": result.data, "warnings": result.warnings}


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipe(
    recipe_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    recipe = _get_owned_recipe(db, user, recipe_id)
    db.delete(recipe)
    db.commit()
    return None


@router.get("/{recipe_id}/availability", response_model=schemas.AvailabilityOut)
def recipe_availability(
    recipe_id: int,
    limit: Optional[int] = Query(None, ge=1),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Missing or insufficient ingredients for one recipe."""
    recipe = _get_owned_recipe(db, user, recipe_id)
    checker = AvailabilityChecker(recipe, load_pantry_snapshot(db, user.id), load_conversion_table(db))
    return checker.availability_info(limit=limit)


@router.post("/{recipe_id}/match", response_model=schemas.MatchJobOut, status_code=status.HTTP_202_ACCEPTED)
def match_recipe_ingredients(
    recipe_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    queue: JobQueue = Depends(get_job_queue),
):
    """Queue background matching for the recipe's unmatched ingredients."""
    recipe = _get_owned_recipe(db, user, recipe_id)
    try:
        queue.enqueue("match_recipe", recipe.id)
    except RedisError:
        logger.exception("Failed to enqueue match_recipe for recipe %s", recipe.id)
        raise HTTPException(status_code=503, detail="Matching queue unavailable")
    return {"enqueued": True, "job_type": "match_recipe", "recipe_id": recipe.id}
