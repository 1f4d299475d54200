from .ingredient_parser import (
    IngredientParser,
    IngredientParseError,
    ParsedIngredientDraft,
    ParsedIngredients,
    parse_ingredients,
)
from .sections import RecipeSections, split_recipe_text

__all__ = [
    "IngredientParser",
    "IngredientParseError",
    "ParsedIngredientDraft",
    "ParsedIngredients",
    "parse_ingredients",
    "RecipeSections",
    "split_recipe_text",
]
