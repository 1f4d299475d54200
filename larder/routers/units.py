from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import get_db
from ..services.units import find_or_create_unit

router = APIRouter()


@router.get("", response_model=list[schemas.UnitOut])
def list_units(db: Session = Depends(get_db)):
    return db.scalars(select(models.Unit).order_by(models.Unit.name)).all()


@router.post("/conversions", response_model=schemas.UnitConversionOut, status_code=status.HTTP_201_CREATED)
def upsert_conversion(conversion_in: schemas.UnitConversionCreate, db: Session = Depends(get_db)):
    """Record how many ``to_unit`` make one ``from_unit``. Re-posting a pair updates its factor."""
    from_unit = find_or_create_unit(db, conversion_in.from_unit)
    to_unit = find_or_create_unit(db, conversion_in.to_unit)
    if from_unit.id == to_unit.id:
        db.rollback()
        raise HTTPException(status_code=422, detail="Conversion needs two different units")

    conversion = db.scalar(
        select(models.UnitConversion).where(
            models.UnitConversion.from_unit_id == from_unit.id,
            models.UnitConversion.to_unit_id == to_unit.id,
        )
    )
    if conversion is None:
        conversion = models.UnitConversion(from_unit_id=from_unit.id, to_unit_id=to_unit.id)
        db.add(conversion)
    conversion.conversion_factor = Decimal(str(conversion_in.conversion_factor))

    db.commit()
    db.refresh(conversion)
    return conversion
