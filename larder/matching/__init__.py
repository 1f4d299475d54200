from .config import MatcherConfig, get_matcher_config
from .grocery_matcher import GroceryMatcher, find_grocery_by_name, update_related_ingredients
from .ingredient_matcher import IngredientMatcher, match_ingredient_to_grocery

__all__ = [
    "MatcherConfig",
    "get_matcher_config",
    "GroceryMatcher",
    "find_grocery_by_name",
    "update_related_ingredients",
    "IngredientMatcher",
    "match_ingredient_to_grocery",
]
