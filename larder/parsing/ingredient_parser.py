"""Rule-based parser for free-text ingredient lists.

Turns lines such as "2 large apples, peeled and diced" into structured drafts:
quantity, unit, preparation, size and a cleaned ingredient name. Parsing is
heuristic and never drops a line: anything that cannot be read structurally
degrades to quantity 1 and unit "whole".
"""

import logging
import re
from fractions import Fraction
from typing import Optional

from pydantic import BaseModel

from ..core.text import (
    UNIT_ABBREVIATIONS,
    canonical_unit_name,
    collapse_whitespace,
    normalize,
    substitute_unicode_fractions,
)

logger = logging.getLogger(__name__)

DEFAULT_QUANTITY = 1.0
DEFAULT_UNIT = "whole"

PREPARATION_VERBS = (
    "chopped", "diced", "minced", "sliced", "grated", "shredded", "crushed",
    "peeled", "cored", "seeded", "pitted", "trimmed", "halved", "quartered",
    "cubed", "julienned", "mashed", "melted", "softened", "beaten", "whisked",
    "sifted", "toasted", "roasted", "drained", "rinsed", "thawed", "cooked",
    "ground", "zested", "juiced", "crumbled", "deveined", "shelled", "stemmed",
)

# Longer phrases first so "extra large" is not read as "large"
SIZE_ADJECTIVES = (
    "extra-large", "extra large", "large", "medium", "small", "jumbo", "big",
    "little", "tiny", "mini", "thick", "thin", "heaping", "generous", "scant",
    "level",
)

FILLER_DESCRIPTORS = (
    "freshly", "fresh", "finely", "coarsely", "roughly", "thinly", "thickly",
    "lightly", "loosely", "firmly", "very", "well", "about", "approximately",
    "good-quality", "good quality", "packed",
)

TRAILING_PHRASES = (
    "to taste", "for garnish", "for garnishing", "for serving", "for dusting",
    "for frying", "for greasing", "optional", "divided", "as needed",
    "if needed", "plus more", "or more", "at room temperature", "room temperature",
)

CONNECTORS = ("and", "or", "then", "&", "plus", "with")

NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11,
    "twelve": 12, "dozen": 12,
}

# Measures that read naturally without a number ("pinch of salt")
BARE_MEASURES = {"pinch", "dash", "handful", "bunch", "sprig"}

# Full unit names (singular and plural) -> canonical singular name.
# Abbreviations are resolved first through canonical_unit_name.
UNIT_FORMS = {}
for _singular, _plural in (
    ("teaspoon", "teaspoons"), ("tablespoon", "tablespoons"), ("cup", "cups"),
    ("ounce", "ounces"), ("fluid ounce", "fluid ounces"), ("pound", "pounds"),
    ("gram", "grams"), ("kilogram", "kilograms"), ("milliliter", "milliliters"),
    ("millilitre", "millilitres"), ("liter", "liters"), ("litre", "litres"),
    ("pint", "pints"), ("quart", "quarts"), ("gallon", "gallons"),
    ("pinch", "pinches"), ("dash", "dashes"), ("clove", "cloves"), ("can", "cans"),
    ("package", "packages"), ("bunch", "bunches"), ("slice", "slices"),
    ("stick", "sticks"), ("sprig", "sprigs"), ("handful", "handfuls"),
    ("piece", "pieces"), ("jar", "jars"), ("bottle", "bottles"), ("head", "heads"),
    ("stalk", "stalks"), ("whole", "whole"),
):
    UNIT_FORMS[_singular] = _singular.replace("millilitre", "milliliter").replace("litre", "liter")
    UNIT_FORMS[_plural] = UNIT_FORMS[_singular]
UNIT_FORMS.update({"fl oz": "fluid ounce", "fl. oz": "fluid ounce", "pkg": "package"})

_NUMBER = r"\d+\s+\d+/\d+|\d+/\d+|\d+(?:\.\d+)?|\.\d+"
_AMOUNT_RE = re.compile(
    rf"^(?P<amount>{_NUMBER})(?:\s*(?:-|–|to)\s*(?:{_NUMBER}))?(?=\s|$|[a-zA-Z(])\s*",
)
_NUMBER_WORD_RE = re.compile(
    r"^(?P<word>" + "|".join(sorted(NUMBER_WORDS, key=len, reverse=True)) + r")\s+",
    re.IGNORECASE,
)
_APPROXIMATION_RE = re.compile(r"^(?:about|approximately|approx\.?|around|roughly)\s+(?=[\d.])", re.IGNORECASE)
_PAREN_RE = re.compile(r"\([^)]*\)")
_LEADING_PAREN_RE = re.compile(r"^\([^)]*\)\s*")
_OR_RE = re.compile(r"\s+or\s+", re.IGNORECASE)


def _word_pattern(words) -> re.Pattern:
    alternation = "|".join(re.escape(w) for w in words)
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


_PREPARATION_RE = _word_pattern(PREPARATION_VERBS)
_SIZE_RE = _word_pattern(SIZE_ADJECTIVES)
_FILLER_RE = _word_pattern(FILLER_DESCRIPTORS)
_TRAILING_RE = _word_pattern(TRAILING_PHRASES)
_EDGE_CONNECTOR_RE = re.compile(
    r"^(?:(?:" + "|".join(re.escape(c) for c in CONNECTORS) + r")\s+)+"
    r"|(?:\s+(?:" + "|".join(re.escape(c) for c in CONNECTORS) + r"))+$",
    re.IGNORECASE,
)


class IngredientParseError(ValueError):
    """Raised when a line cannot be read as quantity/unit/name."""


class ParsedIngredientDraft(BaseModel):
    name: str
    quantity: float = DEFAULT_QUANTITY
    unit_name: str = DEFAULT_UNIT
    preparation: Optional[str] = None
    size: Optional[str] = None


class ParsedIngredients(BaseModel):
    ingredients: list[ParsedIngredientDraft] = []
    notes: list[str] = []


def _to_float(amount: str) -> float:
    parts = amount.split()
    total = Fraction(0)
    for part in parts:
        total += Fraction(part)
    return float(total)


def _match_unit(text: str) -> tuple[Optional[str], str]:
    """Return (canonical unit, rest) when text starts with a unit token."""
    lowered = text.lower()
    # two-word units first ("fl oz", "fluid ounces")
    for form in ("fluid ounces", "fluid ounce", "fl. oz", "fl oz"):
        if lowered.startswith(form) and (len(lowered) == len(form) or not lowered[len(form)].isalpha()):
            return UNIT_FORMS[form], text[len(form):].lstrip(" .")

    token, _, rest = text.partition(" ")
    bare = token.rstrip(".,").lower()
    if bare in UNIT_ABBREVIATIONS:
        return canonical_unit_name(bare), rest
    if bare in UNIT_FORMS:
        return UNIT_FORMS[bare], rest
    return None, text


def _strip_amount(text: str) -> tuple[Optional[float], str]:
    match = _AMOUNT_RE.match(text)
    if match:
        return _to_float(match.group("amount")), text[match.end():]
    match = _NUMBER_WORD_RE.match(text)
    if match:
        return float(NUMBER_WORDS[match.group("word").lower()]), text[match.end():]
    return None, text


def _collect(pattern: re.Pattern, text: str) -> tuple[list[str], str]:
    found = []
    for match in pattern.finditer(text):
        word = match.group(0).lower()
        if word not in found:
            found.append(word)
    return found, pattern.sub(" ", text)


def _trim_edges(text: str) -> str:
    text = collapse_whitespace(text)
    previous = None
    while previous != text:
        previous = text
        text = text.strip(" ,;.:-–")
        text = _EDGE_CONNECTOR_RE.sub("", text).strip()
    return text


def _strip_leading_fragments(text: str) -> str:
    previous = None
    while previous != text:
        previous = text
        stripped = re.sub(r"^[\d\s./\-–]+(?=\D|$)", "", text).lstrip()
        if stripped != text:
            # a number directly followed by a unit: "12-oz cans" -> "cans"
            unit, rest = _match_unit(stripped)
            if unit and rest.strip():
                stripped = rest.lstrip()
        text = re.sub(r"^of\s+", "", stripped, flags=re.IGNORECASE)
    return text


class IngredientParser:
    """Parse a block of ingredient lines into drafts plus free-text notes."""

    def parse(self, raw_text: str) -> ParsedIngredients:
        text = substitute_unicode_fractions(raw_text or "")
        result = ParsedIngredients()

        for raw_line in text.split("\n"):
            line = collapse_whitespace(raw_line)
            if not line:
                continue

            line, note = self._split_alternative(line)
            if note:
                result.notes.append(note)

            result.ingredients.append(self.parse_line(line))

        return result

    def parse_line(self, line: str) -> ParsedIngredientDraft:
        try:
            quantity, unit_name, name = self._extract(line)
        except (IngredientParseError, ValueError, ZeroDivisionError) as exc:
            logger.debug("Falling back to plain parsing for %r: %s", line, exc)
            quantity, unit_name, name = DEFAULT_QUANTITY, DEFAULT_UNIT, line

        cleaned, preparation, size = self._process_name(name)
        if not cleaned:
            cleaned = normalize(line)

        return ParsedIngredientDraft(
            name=cleaned,
            quantity=quantity,
            unit_name=unit_name,
            preparation=", ".join(preparation) or None,
            size=", ".join(size) or None,
        )

    def _extract(self, line: str) -> tuple[float, str, str]:
        """Read the leading amount and unit; the remainder is the name."""
        quantity, rest = _strip_amount(_APPROXIMATION_RE.sub("", line))
        if quantity is not None:
            rest = _LEADING_PAREN_RE.sub("", rest)
            unit_name, rest = _match_unit(rest)
        else:
            unit_name, remainder = _match_unit(rest)
            if unit_name in BARE_MEASURES:
                rest = remainder
            else:
                unit_name = None

        name = rest.strip()
        if not name:
            raise IngredientParseError(f"no ingredient name in {line!r}")

        return (
            quantity if quantity is not None else DEFAULT_QUANTITY,
            unit_name or DEFAULT_UNIT,
            name,
        )

    def _process_name(self, name: str) -> tuple[str, list[str], list[str]]:
        preparation, name = _collect(_PREPARATION_RE, name)
        size, name = _collect(_SIZE_RE, name)
        name = _FILLER_RE.sub(" ", name)
        name = _PAREN_RE.sub(" ", name)
        name = _strip_leading_fragments(collapse_whitespace(name))
        name = _TRAILING_RE.sub(" ", name)

        if "," in name:
            head, tail = name.split(",", 1)
            if len(tail.split()) <= 3 and ":" not in tail:
                name = head

        return _trim_edges(name).lower(), preparation, size

    def _split_alternative(self, line: str) -> tuple[str, Optional[str]]:
        """Handle "X or Y": keep X, note Y, unless Y is only a preparation."""
        parts = _OR_RE.split(line, maxsplit=1)
        if len(parts) != 2:
            return line, None

        first, second = parts[0].strip(), parts[1].strip()
        if not first or not second:
            return line, None
        if len(second.split()) <= 3 and _PREPARATION_RE.search(second):
            return line, None

        note = (
            f"Alternative ingredient: can use {second.lower()} "
            f"instead of {self._base_name(first)}"
        )
        return first, note

    def _base_name(self, text: str) -> str:
        _, rest = _strip_amount(text)
        rest = _LEADING_PAREN_RE.sub("", rest)
        _, rest = _match_unit(rest)
        return collapse_whitespace(rest).lower().strip(" ,")


def parse_ingredients(raw_text: str) -> ParsedIngredients:
    return IngredientParser().parse(raw_text)
