"""Pantry grocery writes.

Creating or renaming a grocery enqueues a ``match_grocery`` job so the
owner's unmatched recipe ingredients get linked in the background.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.text import normalize
from ..jobs.queue import JobQueue, submit
from ..models import Grocery, GrocerySection, Unit
from ..schemas import GroceryCreate, GrocerySectionCreate, GroceryUpdate
from .emoji_matcher import get_emoji_matcher
from .results import ServiceResult
from .units import find_or_create_unit, get_default_unit

logger = logging.getLogger(__name__)

DUPLICATE_NAME = "Name has already been taken"


def create_section(db: Session, user_id: int, data: GrocerySectionCreate) -> GrocerySection:
    """New section for the user; without an explicit order it goes last."""
    display_order = data.display_order
    if display_order is None:
        count = db.scalar(
            select(func.count(GrocerySection.id)).where(GrocerySection.user_id == user_id)
        )
        display_order = (count or 0) + 1

    section = GrocerySection(user_id=user_id, name=data.name.strip(), display_order=display_order)
    db.add(section)
    db.flush()
    return section


class GroceryService:
    def __init__(self, db: Session, user_id: int, queue: Optional[JobQueue] = None):
        self.db = db
        self.user_id = user_id
        self.queue = queue

    def create(self, data: GroceryCreate) -> ServiceResult:
        name = normalize(data.name)
        if not name:
            return ServiceResult.fail("Name can't be blank")
        if self._name_taken(name):
            return ServiceResult.fail(DUPLICATE_NAME)

        try:
            section_id = data.section_id
            if data.section is not None:
                section_id = create_section(self.db, self.user_id, data.section).id
            elif section_id is not None and not self._owns_section(section_id):
                self.db.rollback()
                return ServiceResult.fail("Grocery section not found")

            unit = self._resolve_unit(data.unit_id, data.unit_name)
            if unit is None:
                self.db.rollback()
                return ServiceResult.fail(f"Unit {data.unit_id} not found")

            grocery = Grocery(
                user_id=self.user_id,
                name=name,
                quantity=Decimal(str(data.quantity)),
                unit=unit,
                section_id=section_id,
                emoji=data.emoji or get_emoji_matcher().find_emoji(name),
            )
            self.db.add(grocery)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return ServiceResult.fail(DUPLICATE_NAME)
        except SQLAlchemyError:
            logger.exception("Grocery creation failed for user %s", self.user_id)
            self.db.rollback()
            return ServiceResult.fail("Failed to create grocery")

        self.db.refresh(grocery)
        self._enqueue_matching(grocery)
        return ServiceResult.ok(grocery)

    def update(self, grocery: Grocery, data: GroceryUpdate) -> ServiceResult:
        fields = data.model_dump(exclude_unset=True)
        renamed = False

        try:
            if fields.get("name") is not None:
                name = normalize(fields["name"])
                if name != grocery.name:
                    if self._name_taken(name, exclude_id=grocery.id):
                        return ServiceResult.fail(DUPLICATE_NAME)
                    grocery.name = name
                    renamed = True

            if fields.get("quantity") is not None:
                grocery.quantity = Decimal(str(fields["quantity"]))

            if fields.get("unit_id") is not None or fields.get("unit_name"):
                unit = self._resolve_unit(fields.get("unit_id"), fields.get("unit_name"))
                if unit is None:
                    self.db.rollback()
                    return ServiceResult.fail(f"Unit {fields['unit_id']} not found")
                grocery.unit = unit

            if "section_id" in fields:
                if fields["section_id"] is not None and not self._owns_section(fields["section_id"]):
                    self.db.rollback()
                    return ServiceResult.fail("Grocery section not found")
                grocery.section_id = fields["section_id"]

            if "emoji" in fields:
                grocery.emoji = fields["emoji"]

            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return ServiceResult.fail(DUPLICATE_NAME)
        except SQLAlchemyError:
            logger.exception("Grocery update failed for grocery %s", grocery.id)
            self.db.rollback()
            return ServiceResult.fail("Failed to update grocery")

        self.db.refresh(grocery)
        if renamed:
            self._enqueue_matching(grocery)
        return ServiceResult.ok(grocery)

    def delete(self, grocery: Grocery) -> ServiceResult:
        """Delete a grocery; linked ingredients stay in their recipes, unmatched."""
        try:
            self.db.delete(grocery)
            self.db.commit()
        except SQLAlchemyError:
            logger.exception("Grocery deletion failed for grocery %s", grocery.id)
            self.db.rollback()
            return ServiceResult.fail("Failed to delete grocery")
        return ServiceResult.ok()

    def _name_taken(self, name: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(Grocery.id).where(
            Grocery.user_id == self.user_id,
            func.lower(Grocery.name) == name,
        )
        if exclude_id is not None:
            stmt = stmt.where(Grocery.id != exclude_id)
        return self.db.scalar(stmt) is not None

    def _owns_section(self, section_id: int) -> bool:
        section = self.db.get(GrocerySection, section_id)
        return section is not None and section.user_id == self.user_id

    def _resolve_unit(self, unit_id: Optional[int], unit_name: Optional[str]) -> Optional[Unit]:
        if unit_id is not None:
            return self.db.get(Unit, unit_id)
        if unit_name:
            return find_or_create_unit(self.db, unit_name)
        return get_default_unit(self.db)

    def _enqueue_matching(self, grocery: Grocery) -> None:
        submit(self.queue, "match_grocery", grocery.id)
