"""
Unit lookup and creation.

Ingredient text can mention any unit; unknown ones are created on the fly
with a category guessed from the name. Conversion factors are only ever read
from the unit_conversions table.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.text import canonical_unit_name, classify_unit_category, normalize
from ..models import Unit, UnitConversion
from ..settings import settings

logger = logging.getLogger(__name__)

# (name, abbreviation, category); the initial migration seeds the same rows
DEFAULT_UNITS = (
    ("whole", "whl", "count"),
    ("piece", "pc", "count"),
    ("teaspoon", "tsp", "volume"),
    ("tablespoon", "tbsp", "volume"),
    ("cup", "c", "volume"),
    ("fluid ounce", "fl oz", "volume"),
    ("milliliter", "ml", "volume"),
    ("liter", "l", "volume"),
    ("pint", "pt", "volume"),
    ("quart", "qt", "volume"),
    ("gallon", "gal", "volume"),
    ("ounce", "oz", "weight"),
    ("pound", "lb", "weight"),
    ("gram", "g", "weight"),
    ("kilogram", "kg", "weight"),
)

ConversionTable = dict[tuple[int, int], Decimal]


def ensure_default_units(db: Session) -> None:
    existing = set(db.scalars(select(Unit.name)).all())
    for name, abbreviation, category in DEFAULT_UNITS:
        if name not in existing:
            db.add(Unit(name=name, abbreviation=abbreviation, category=category))
    db.flush()


def _unique_abbreviation(db: Session, name: str) -> str:
    base = name.replace(" ", "")[:3] or "u"
    candidate = base
    suffix = 1
    while db.scalar(select(Unit.id).where(Unit.abbreviation == candidate)) is not None:
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


def find_or_create_unit(db: Session, unit_name: Optional[str]) -> Unit:
    """
    Resolve a unit by name, then abbreviation, then name prefix.
    Unknown units are created (flushed, not committed).
    """
    name = normalize(canonical_unit_name(unit_name or "")) or settings.default_unit_name

    unit = db.scalar(select(Unit).where(func.lower(Unit.name) == name))
    if unit:
        return unit

    unit = db.scalar(select(Unit).where(func.lower(Unit.abbreviation) == name))
    if unit:
        return unit

    unit = db.scalar(
        select(Unit)
        .where(func.lower(Unit.name).startswith(name, autoescape=True))
        .order_by(Unit.id)
    )
    if unit:
        return unit

    unit = Unit(
        name=name,
        abbreviation=_unique_abbreviation(db, name),
        category=classify_unit_category(name),
    )
    db.add(unit)
    db.flush()
    logger.info("Created unit %r (%s)", unit.name, unit.category)
    return unit


def get_default_unit(db: Session) -> Unit:
    return find_or_create_unit(db, settings.default_unit_name)


def load_conversion_table(db: Session) -> ConversionTable:
    """All persisted conversions keyed by (from_unit_id, to_unit_id)."""
    rows = db.scalars(select(UnitConversion)).all()
    return {(row.from_unit_id, row.to_unit_id): Decimal(row.conversion_factor) for row in rows}


def conversion_factor(table: ConversionTable, from_unit_id: int, to_unit_id: int) -> Optional[Decimal]:
    """Direct factor, or the reciprocal of the reverse conversion."""
    if from_unit_id == to_unit_id:
        return Decimal(1)
    factor = table.get((from_unit_id, to_unit_id))
    if factor is not None:
        return factor
    reverse = table.get((to_unit_id, from_unit_id))
    if reverse:
        return Decimal(1) / reverse
    return None
