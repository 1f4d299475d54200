from dataclasses import dataclass, field
from functools import lru_cache

from ..settings import settings

DESCRIPTIVE_ADJECTIVES = frozenset({
    "fresh", "frozen", "dried", "ground", "minced", "chopped", "diced", "sliced",
    "unsalted", "salted", "low-fat", "non-fat", "whole", "organic", "raw", "canned",
})

IGNORE_WORDS = frozenset({
    "and", "with", "the", "for", "of", "in", "on", "or", "a", "an", "to", "from",
    "fresh", "frozen", "dried", "large", "small", "medium", "whole", "chopped",
    "diced", "sliced", "minced", "organic", "style", "plain",
})

MEAT_TYPES = frozenset({
    "chicken", "beef", "pork", "lamb", "turkey", "veal", "duck", "goat", "venison",
    "bacon", "ham", "sausage", "steak", "salmon", "tuna", "cod", "tilapia",
    "halibut", "trout", "shrimp", "prawn", "prawns", "crab", "lobster", "scallops",
    "fish", "anchovy", "anchovies",
})


@dataclass(frozen=True)
class MatcherConfig:
    """Word lists and thresholds shared by the matching strategies."""

    descriptive_adjectives: frozenset = field(default=DESCRIPTIVE_ADJECTIVES)
    ignore_words: frozenset = field(default=IGNORE_WORDS)
    meat_types: frozenset = field(default=MEAT_TYPES)
    fuzzy_threshold: float = 0.75
    min_word_length: int = 3


@lru_cache(maxsize=1)
def get_matcher_config() -> MatcherConfig:
    """Process-wide config, built once from settings."""
    return MatcherConfig(fuzzy_threshold=settings.fuzzy_match_threshold)
