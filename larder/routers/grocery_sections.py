from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import get_db
from ..deps import get_current_user
from ..services.grocery_service import create_section

router = APIRouter()


@router.get("", response_model=list[schemas.GrocerySectionOut])
def list_sections(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The user's pantry sections in display order."""
    return db.scalars(
        select(models.GrocerySection)
        .where(models.GrocerySection.user_id == user.id)
        .order_by(models.GrocerySection.display_order, models.GrocerySection.id)
    ).all()


@router.post("", response_model=schemas.GrocerySectionOut, status_code=status.HTTP_201_CREATED)
def create_grocery_section(
    section_in: schemas.GrocerySectionCreate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not section_in.name.strip():
        raise HTTPException(status_code=422, detail=["Name can't be blank"])

    section = create_section(db, user.id, section_in)
    db.commit()
    db.refresh(section)
    return section
