"""
Link a recipe ingredient name to one of the owner's pantry groceries.

Strategy order: exact, singular/plural, parent ingredient, fuzzy.
"""

import logging
from functools import partial
from typing import Optional

from sqlalchemy.orm import Session

from ..core.text import normalize
from ..models import Grocery
from .config import MatcherConfig, get_matcher_config
from .strategies import (
    GroceryScope,
    exact_match,
    fuzzy_match,
    parent_ingredient_match,
    run_cascade,
    singular_plural_match,
)

logger = logging.getLogger(__name__)


class IngredientMatcher:
    def __init__(self, config: Optional[MatcherConfig] = None):
        self.config = config or get_matcher_config()
        self.strategies = (
            exact_match,
            singular_plural_match,
            partial(parent_ingredient_match, config=self.config),
            partial(fuzzy_match, config=self.config),
        )

    def match(self, db: Session, user_id: int, raw_name: str) -> Optional[Grocery]:
        name = normalize(raw_name)
        grocery = run_cascade(self.strategies, GroceryScope(db, user_id), name)
        if grocery is None:
            logger.debug("No grocery match for ingredient %r (user %s)", name, user_id)
        return grocery


def match_ingredient_to_grocery(
    db: Session,
    user_id: int,
    raw_name: str,
    config: Optional[MatcherConfig] = None,
) -> Optional[Grocery]:
    return IngredientMatcher(config).match(db, user_id, raw_name)
