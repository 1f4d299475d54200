"""Grocery lookup strategies used by the matching cascades.

Each strategy is a plain function ``(scope, name) -> Grocery | None`` where
``name`` is already trimmed and lowercased and ``scope`` restricts every query
to one user's pantry. Strategies that need word lists take a ``config``
keyword and are bound with ``functools.partial`` by the cascades.
"""

import logging
import re
from typing import Callable, Iterable, Optional

from sqlalchemy import String, case, func, literal, or_
from sqlalchemy.orm import Query, Session
from thefuzz import fuzz

from ..models import Grocery
from .config import MatcherConfig

logger = logging.getLogger(__name__)

_WORD_SPLIT_RE = re.compile(r"[\s,\-/]+")


class GroceryScope:
    """A user's groceries; the only way strategies reach the datastore."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def query(self) -> Query:
        return (
            self.db.query(Grocery)
            .filter(Grocery.user_id == self.user_id)
            .order_by(Grocery.id)
        )


Strategy = Callable[[GroceryScope, str], Optional[Grocery]]


def split_words(name: str) -> list[str]:
    return [w for w in _WORD_SPLIT_RE.split(name) if w]


def singular_forms(name: str) -> list[str]:
    """Singular candidates, precedence ies -> y, then es, then s."""
    forms = []
    if name.endswith("ies"):
        forms.append(name[:-3] + "y")
    elif name.endswith("es"):
        forms.append(name[:-2])
    if name.endswith("s"):
        forms.append(name[:-1])
    return [f for f in forms if f and f != name]


def plural_forms(name: str) -> list[str]:
    if name.endswith("y") and len(name) > 1 and name[-2] not in "aeiou":
        forms = [name[:-1] + "ies"]
    elif name.endswith(("ch", "sh", "ss", "x", "z")):
        forms = [name + "es"]
    elif name.endswith("o"):
        forms = [name + "es"]
    else:
        forms = []
    forms.append(name + "s")
    return forms


def _escape_like(expr):
    """Make a column usable as a literal LIKE pattern."""
    for char in ("\\", "%", "_"):
        expr = func.replace(expr, char, "\\" + char, type_=String)
    return expr


def exact_match(scope: GroceryScope, name: str) -> Optional[Grocery]:
    return scope.query().filter(func.lower(Grocery.name) == name).first()


def singular_plural_match(scope: GroceryScope, name: str) -> Optional[Grocery]:
    variants = singular_forms(name) + plural_forms(name)
    return scope.query().filter(func.lower(Grocery.name).in_(variants)).first()


def parent_ingredient_match(scope: GroceryScope, name: str, *, config: MatcherConfig) -> Optional[Grocery]:
    """ "fresh organic spinach" -> "spinach" """
    words = name.split()
    if len(words) <= 1:
        return None

    base_words = [w for w in words if w not in config.descriptive_adjectives]
    if not base_words:
        return None

    return exact_match(scope, base_words[-1])


def fuzzy_match(scope: GroceryScope, name: str, *, config: MatcherConfig) -> Optional[Grocery]:
    best, best_score = None, 0.0
    for grocery in scope.query().all():
        score = fuzz.token_sort_ratio(name, grocery.name.lower()) / 100
        if score >= config.fuzzy_threshold and score > best_score:
            best, best_score = grocery, score
    if best is not None:
        logger.debug("Fuzzy match %r -> %r (%.2f)", name, best.name, best_score)
    return best


def prefix_containment_match(scope: GroceryScope, name: str) -> Optional[Grocery]:
    lowered = func.lower(Grocery.name)
    is_prefix = lowered.startswith(name, autoescape=True)
    contains = lowered.contains(name, autoescape=True)
    grocery_is_prefix = literal(name).like(_escape_like(lowered) + "%", escape="\\")

    return (
        scope.query()
        .filter(or_(is_prefix, contains, grocery_is_prefix))
        .order_by(None)
        .order_by(case((is_prefix, 0), (contains, 1), else_=2), Grocery.id)
        .first()
    )


def meat_type_match(scope: GroceryScope, name: str, *, config: MatcherConfig) -> Optional[Grocery]:
    words = split_words(name)
    meat_type = next((w for w in words if w in config.meat_types), None)
    if meat_type is None:
        return None

    candidates = scope.query().filter(
        func.lower(Grocery.name).contains(meat_type, autoescape=True)
    ).all()
    if not candidates:
        return None

    descriptors = [
        w for w in words
        if w != meat_type and w not in config.ignore_words and len(w) >= config.min_word_length
    ]
    if descriptors:
        def _score(grocery: Grocery) -> tuple[int, bool]:
            grocery_name = grocery.name.lower()
            hits = sum(1 for d in descriptors if d in grocery_name)
            return hits, words[0] in split_words(grocery_name)

        best = max(candidates, key=_score)
        if _score(best)[0] > 0:
            return best

    return candidates[0]


def multi_word_match(scope: GroceryScope, name: str, *, config: MatcherConfig) -> Optional[Grocery]:
    significant: list[str] = []
    for word in split_words(name):
        if len(word) >= config.min_word_length and word not in config.ignore_words and word not in significant:
            significant.append(word)
    if not significant:
        return None

    lowered = func.lower(Grocery.name)
    candidates = scope.query().filter(
        or_(*[lowered.contains(w, autoescape=True) for w in significant])
    ).all()
    if not candidates:
        return None

    def _score(grocery: Grocery) -> int:
        grocery_words = split_words(grocery.name.lower())
        matching = [w for w in significant if w in grocery_words]
        score = len(matching) * 10
        if matching:
            positions = [grocery_words.index(w) for w in matching]
            if positions == sorted(positions):
                score += 5
        if grocery_words and grocery_words[0] == significant[0]:
            score += 3
        return score

    return max(candidates, key=_score)


def strategy_name(strategy: Strategy) -> str:
    return getattr(getattr(strategy, "func", strategy), "__name__", repr(strategy))


def run_cascade(strategies: Iterable[Strategy], scope: GroceryScope, name: str) -> Optional[Grocery]:
    """Try strategies in order; the first grocery found wins."""
    if not name:
        return None
    for strategy in strategies:
        grocery = strategy(scope, name)
        if grocery is not None:
            logger.debug("Matched %r to grocery %s via %s", name, grocery.id, strategy_name(strategy))
            return grocery
    return None
