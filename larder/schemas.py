"""Pydantic schemas for the Larder API.

Request/response models for:
- Units and unit conversions
- Groceries (pantry items) and grocery sections
- Recipes with their ingredients
- Availability reports
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field



# --- Units ---

class UnitOut(BaseModel):
    id: int
    name: str
    category: str
    abbreviation: str

    class Config:
        from_attributes = True


class UnitConversionCreate(BaseModel):
    from_unit: str = Field(..., min_length=1)
    to_unit: str = Field(..., min_length=1)
    conversion_factor: float = Field(..., gt=0)


class UnitConversionOut(BaseModel):
    id: int
    from_unit_id: int
    to_unit_id: int
    conversion_factor: float

    class Config:
        from_attributes = True


# --- Grocery ---

class GrocerySectionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_order: Optional[int] = None


class GrocerySectionOut(BaseModel):
    id: int
    name: str
    display_order: int

    class Config:
        from_attributes = True


class GroceryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(0, ge=0)
    unit_id: Optional[int] = None
    unit_name: Optional[str] = None
    section_id: Optional[int] = None
    section: Optional[GrocerySectionCreate] = None  # create a new section alongside
    emoji: Optional[str] = None


class GroceryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[float] = Field(None, ge=0)
    unit_id: Optional[int] = None
    unit_name: Optional[str] = None
    section_id: Optional[int] = None
    emoji: Optional[str] = None


class GroceryOut(BaseModel):
    id: int
    name: str
    quantity: float
    unit: UnitOut
    section_id: Optional[int]
    emoji: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Recipe ingredients ---

class IngredientIn(BaseModel):
    name: str = ""
    quantity: Optional[float] = 1.0
    unit_name: Optional[str] = None
    unit_id: Optional[int] = None
    preparation: Optional[str] = None
    size: Optional[str] = None


class IngredientUpdate(BaseModel):
    id: int
    name: Optional[str] = None
    quantity: Optional[float] = Field(None, gt=0)
    unit_id: Optional[int] = None
    grocery_id: Optional[int] = None
    preparation: Optional[str] = None
    size: Optional[str] = None


class IngredientOut(BaseModel):
    id: int
    name: str
    quantity: float
    unit: UnitOut
    grocery_id: Optional[int]
    preparation: Optional[str]
    size: Optional[str]

    class Config:
        from_attributes = True


# --- Recipe ---

class RecipeCreate(BaseModel):
    name: str = Field(..., max_length=200)
    instructions: str = ""
    notes: Optional[str] = None
    category_id: Optional[int] = None
    new_category: Optional[str] = None
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    servings: Optional[float] = Field(None, gt=0)
    ingredients: list[IngredientIn] = []
    ingredients_text: Optional[str] = None  # one ingredient per line
    raw_text: Optional[str] = None  # pasted recipe; split into ingredients and instructions


class RecipeUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    instructions: Optional[str] = None
    notes: Optional[str] = None
    category_id: Optional[int] = None
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    servings: Optional[float] = Field(None, gt=0)
    completed: Optional[bool] = None
    ingredients: list[IngredientUpdate] = []
    deleted_ingredient_ids: list[int] = []
    new_ingredients: list[IngredientIn] = []


class RecipeOut(BaseModel):
    id: int
    name: str
    instructions: str
    notes: Optional[str]
    category_id: Optional[int]
    completed: bool
    completed_at: Optional[datetime]
    prep_time: Optional[str]
    cook_time: Optional[str]
    servings: Optional[float]
    ingredients: list[IngredientOut] = []

    class Config:
        from_attributes = True


class RecipeWriteOut(BaseModel):
    recipe: RecipeOut
    warnings: list[str] = []


class RecipeSummary(BaseModel):
    id: int
    name: str
    category_id: Optional[int]
    completed: bool
    available: bool


# --- Availability ---

class MissingIngredientOut(BaseModel):
    id: int
    name: str
    required: float
    required_unit: str
    available: float
    available_unit: str


class AvailabilityOut(BaseModel):
    available: bool
    missing_ingredients: list[MissingIngredientOut]


# --- Parsing ---

class ParseRequest(BaseModel):
    text: str


class MatchJobOut(BaseModel):
    enqueued: bool
    job_type: str
    recipe_id: int
