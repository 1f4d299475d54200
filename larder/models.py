"""SQLAlchemy ORM models for Larder.

Tables:
- users: Owners of pantries and recipe boxes (auth is handled upstream)
- units / unit_conversions: Shared measurement units and persisted conversion factors
- grocery_sections / groceries: Pantry inventory, scoped per user
- recipe_categories / recipes / recipe_ingredients: Recipe box with structured ingredients
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from sqlalchemy.sql import func

from .db import Base


class User(Base):
    """Owner of groceries and recipes.

    Every matching query is scoped by user; a user never sees or links
    another user's groceries.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    groceries: Mapped[list["Grocery"]] = relationship(
        "Grocery", back_populates="user", cascade="all, delete-orphan"
    )
    grocery_sections: Mapped[list["GrocerySection"]] = relationship(
        "GrocerySection", back_populates="user", cascade="all, delete-orphan"
    )
    recipe_categories: Mapped[list["RecipeCategory"]] = relationship(
        "RecipeCategory", back_populates="user", cascade="all, delete-orphan"
    )
    recipes: Mapped[list["Recipe"]] = relationship(
        "Recipe", back_populates="user", cascade="all, delete-orphan"
    )


class Unit(Base):
    """Measurement unit shared by all users.

    Created on the fly when ingredient text mentions an unknown unit.
    """
    __tablename__ = "units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    # volume | weight | length | count | other
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="other")
    abbreviation: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)


class UnitConversion(Base):
    """Multiply a quantity in from_unit by conversion_factor to get to_unit."""
    __tablename__ = "unit_conversions"
    __table_args__ = (
        UniqueConstraint("from_unit_id", "to_unit_id", name="uq_unit_conversion_pair"),
        CheckConstraint("conversion_factor > 0", name="ck_unit_conversion_factor_positive"),
        CheckConstraint("from_unit_id <> to_unit_id", name="ck_unit_conversion_distinct_units"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    from_unit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False
    )
    to_unit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False
    )
    conversion_factor: Mapped[Decimal] = mapped_column(Numeric(12, 6), nullable=False)

    from_unit: Mapped["Unit"] = relationship("Unit", foreign_keys=[from_unit_id])
    to_unit: Mapped["Unit"] = relationship("Unit", foreign_keys=[to_unit_id])


class GrocerySection(Base):
    """Shelf/aisle grouping for pantry items."""
    __tablename__ = "grocery_sections"
    __table_args__ = (
        Index("ix_grocery_sections_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    user: Mapped["User"] = relationship("User", back_populates="grocery_sections")
    groceries: Mapped[list["Grocery"]] = relationship("Grocery", back_populates="section")


class Grocery(Base):
    """Pantry item. Names are stored lowercased and are unique per user."""
    __tablename__ = "groceries"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_groceries_user_name"),
        CheckConstraint("quantity >= 0", name="ck_groceries_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    unit_id: Mapped[int] = mapped_column(Integer, ForeignKey("units.id"), nullable=False)
    section_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("grocery_sections.id", ondelete="SET NULL"), nullable=True
    )
    emoji: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="groceries")
    unit: Mapped["Unit"] = relationship("Unit")
    section: Mapped[Optional["GrocerySection"]] = relationship(
        "GrocerySection", back_populates="groceries"
    )
    recipe_ingredients: Mapped[list["RecipeIngredient"]] = relationship(
        "RecipeIngredient", back_populates="grocery"
    )

    @validates("name")
    def _lowercase_name(self, key, value):
        return value.strip().lower() if value else value


class RecipeCategory(Base):
    __tablename__ = "recipe_categories"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_recipe_categories_user_name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="recipe_categories")


class Recipe(Base):
    """Recipe owned by a user, with its ingredient lines."""
    __tablename__ = "recipes"
    __table_args__ = (
        Index("ix_recipes_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("recipe_categories.id", ondelete="SET NULL"), nullable=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    instructions: Mapped[str] = mapped_column(Text, nullable=False, default="")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    prep_time: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    cook_time: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    servings: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="recipes")
    category: Mapped[Optional["RecipeCategory"]] = relationship("RecipeCategory")
    ingredients: Mapped[list["RecipeIngredient"]] = relationship(
        "RecipeIngredient", back_populates="recipe", cascade="all, delete-orphan",
        order_by="RecipeIngredient.id"
    )


class RecipeIngredient(Base):
    """Ingredient line of a recipe; grocery_id is None while unmatched."""
    __tablename__ = "recipe_ingredients"
    __table_args__ = (
        Index("ix_recipe_ingredients_recipe_id", "recipe_id"),
        Index("ix_recipe_ingredients_grocery_id", "grocery_id"),
        CheckConstraint("quantity > 0", name="ck_recipe_ingredients_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    grocery_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("groceries.id", ondelete="SET NULL"), nullable=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    unit_id: Mapped[int] = mapped_column(Integer, ForeignKey("units.id"), nullable=False)
    preparation: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    size: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Relationships
    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="ingredients")
    grocery: Mapped[Optional["Grocery"]] = relationship("Grocery", back_populates="recipe_ingredients")
    unit: Mapped["Unit"] = relationship("Unit")

    @validates("name")
    def _lowercase_name(self, key, value):
        return value.strip().lower() if value else value
