"""Initial schema: users, units, pantry groceries, recipes and ingredients

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

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


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Units and conversions (shared by all users)
    units = op.create_table(
        "units",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(50), unique=True, nullable=False),
        sa.Column("category", sa.String(20), nullable=False, server_default="other"),
        sa.Column("abbreviation", sa.String(20), unique=True, nullable=False),
    )
    op.bulk_insert(units, [
        {"name": name, "abbreviation": abbreviation, "category": category}
        for name, abbreviation, category in DEFAULT_UNITS
    ])
    op.create_table(
        "unit_conversions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("from_unit_id", sa.Integer, sa.ForeignKey("units.id", ondelete="CASCADE"), nullable=False),
        sa.Column("to_unit_id", sa.Integer, sa.ForeignKey("units.id", ondelete="CASCADE"), nullable=False),
        sa.Column("conversion_factor", sa.Numeric(12, 6), nullable=False),
        sa.UniqueConstraint("from_unit_id", "to_unit_id", name="uq_unit_conversion_pair"),
        sa.CheckConstraint("conversion_factor > 0", name="ck_unit_conversion_factor_positive"),
        sa.CheckConstraint("from_unit_id <> to_unit_id", name="ck_unit_conversion_distinct_units"),
    )

    # Pantry
    op.create_table(
        "grocery_sections",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("display_order", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("ix_grocery_sections_user_id", "grocery_sections", ["user_id"])

    op.create_table(
        "groceries",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("unit_id", sa.Integer, sa.ForeignKey("units.id"), nullable=False),
        sa.Column("section_id", sa.Integer, sa.ForeignKey("grocery_sections.id", ondelete="SET NULL"), nullable=True),
        sa.Column("emoji", sa.String(16), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "name", name="uq_groceries_user_name"),
        sa.CheckConstraint("quantity >= 0", name="ck_groceries_quantity_non_negative"),
    )
    # Case-insensitive lookups used by the matchers
    op.execute("CREATE INDEX ix_groceries_user_lower_name ON groceries (user_id, lower(name))")

    # Recipes
    op.create_table(
        "recipe_categories",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.UniqueConstraint("user_id", "name", name="uq_recipe_categories_user_name"),
    )

    op.create_table(
        "recipes",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", sa.Integer, sa.ForeignKey("recipe_categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("instructions", sa.Text, nullable=False, server_default=""),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("completed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("prep_time", sa.String(50), nullable=True),
        sa.Column("cook_time", sa.String(50), nullable=True),
        sa.Column("servings", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_recipes_user_id", "recipes", ["user_id"])

    op.create_table(
        "recipe_ingredients",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("recipe_id", sa.Integer, sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("grocery_id", sa.Integer, sa.ForeignKey("groceries.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 2), nullable=False),
        sa.Column("unit_id", sa.Integer, sa.ForeignKey("units.id"), nullable=False),
        sa.Column("preparation", sa.String(200), nullable=True),
        sa.Column("size", sa.String(100), nullable=True),
        sa.CheckConstraint("quantity > 0", name="ck_recipe_ingredients_quantity_positive"),
    )
    op.create_index("ix_recipe_ingredients_recipe_id", "recipe_ingredients", ["recipe_id"])
    op.create_index("ix_recipe_ingredients_grocery_id", "recipe_ingredients", ["grocery_id"])


def downgrade() -> None:
    op.drop_table("recipe_ingredients")
    op.drop_table("recipes")
    op.drop_table("recipe_categories")
    op.execute("DROP INDEX IF EXISTS ix_groceries_user_lower_name")
    op.drop_table("groceries")
    op.drop_table("grocery_sections")
    op.drop_table("unit_conversions")
    op.drop_table("units")
    op.drop_table("users")
