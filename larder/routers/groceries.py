from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from ..db import get_db
from ..deps import get_current_user, get_job_queue, raise_for_result
from ..jobs.queue import JobQueue
from ..matching.grocery_matcher import find_grocery_by_name
from ..services.grocery_service import DUPLICATE_NAME, GroceryService

router = APIRouter()


def _get_owned_grocery(db: Session, user: models.User, grocery_id: int) -> models.Grocery:
    grocery = db.get(models.Grocery, grocery_id)
    if not grocery or grocery.user_id != user.id:
        raise HTTPException(status_code=404, detail="Grocery not found")
    return grocery


@router.get("", response_model=list[schemas.GroceryOut])
def list_groceries(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    q: Optional[str] = None,
    section_id: Optional[int] = None,
):
    """List the user's pantry, optionally filtered by name or section."""
    query = (
        db.query(models.Grocery)
        .options(selectinload(models.Grocery.unit))
        .filter(models.Grocery.user_id == user.id)
    )
    if q:
        query = query.filter(func.lower(models.Grocery.name).contains(q.strip().lower(), autoescape=True))
    if section_id is not None:
        query = query.filter(models.Grocery.section_id == section_id)
    return query.order_by(models.Grocery.name).all()


@router.get("/match", response_model=Optional[schemas.GroceryOut])
def match_grocery(
    name: str = Query(..., min_length=1),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Best pantry match for a free-text name, or null."""
    return find_grocery_by_name(db, user.id, name)


@router.post("", response_model=schemas.GroceryOut, status_code=status.HTTP_201_CREATED)
def create_grocery(
    grocery_in: schemas.GroceryCreate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    queue: JobQueue = Depends(get_job_queue),
):
    result = GroceryService(db, user.id, queue).create(grocery_in)
    raise_for_result(result, conflict_errors=(DUPLICATE_NAME,))
    return result.data


@router.patch("/{grocery_id}", response_model=schemas.GroceryOut)
def update_grocery(
    grocery_id: int,
    grocery_in: schemas.GroceryUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    queue: JobQueue = Depends(get_job_queue),
):
    grocery = _get_owned_grocery(db, user, grocery_id)
    result = GroceryService(db, user.id, queue).update(grocery, grocery_in)
    raise_for_result(result, conflict_errors=(DUPLICATE_NAME,))
    return result.data


@router.delete("/{grocery_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_grocery(
    grocery_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a grocery. Recipe ingredients linked to it become unmatched."""
    grocery = _get_owned_grocery(db, user, grocery_id)
    raise_for_result(GroceryService(db, user.id).delete(grocery))
    return None
