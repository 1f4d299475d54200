from fastapi import APIRouter

from .. import schemas
from ..parsing import ParsedIngredients, RecipeSections, parse_ingredients, split_recipe_text

router = APIRouter()


@router.post("/ingredients", response_model=ParsedIngredients)
def parse_ingredient_text(request: schemas.ParseRequest):
    """Parse one ingredient per line into structured drafts plus notes."""
    return parse_ingredients(request.text)


@router.post("/recipe", response_model=RecipeSections)
def split_recipe(request: schemas.ParseRequest):
    """Split pasted recipe text into ingredient lines and instructions."""
    return split_recipe_text(request.text)
