import re
from numbers import Number

UNICODE_FRACTIONS = {
    "½": "1/2",
    "⅓": "1/3",
    "⅔": "2/3",
    "¼": "1/4",
    "¾": "3/4",
    "⅕": "1/5",
    "⅖": "2/5",
    "⅗": "3/5",
    "⅘": "4/5",
    "⅙": "1/6",
    "⅚": "5/6",
    "⅛": "1/8",
    "⅜": "3/8",
    "⅝": "5/8",
    "⅞": "7/8",
}

_FRACTION_GLYPHS = re.compile("(\\d?)([" + "".join(UNICODE_FRACTIONS) + "])")

UNIT_ABBREVIATIONS = {
    "tbsp": "tablespoon",
    "tbsps": "tablespoon",
    "tbs": "tablespoon",
    "tblsp": "tablespoon",
    "tsp": "teaspoon",
    "tsps": "teaspoon",
    "c": "cup",
    "oz": "ounce",
    "ozs": "ounce",
    "lb": "pound",
    "lbs": "pound",
    "g": "gram",
    "kg": "kilogram",
    "ml": "milliliter",
    "l": "liter",
    "pt": "pint",
    "qt": "quart",
    "gal": "gallon",
}

VOLUME_KEYWORDS = ("cup", "tablespoon", "teaspoon", "pint", "quart", "gallon", "liter", "milliliter", "fluid")
WEIGHT_KEYWORDS = ("pound", "ounce", "gram", "kilogram")
LENGTH_KEYWORDS = ("inch", "centimeter", "millimeter", "meter")


def normalize(text) -> str:
    """Trim and lowercase; None becomes an empty string."""
    if text is None:
        return ""
    return str(text).strip().lower()


def substitute_unicode_fractions(text: str) -> str:
    """
    Replace vulgar fraction glyphs with ASCII "n/d".
    A glyph glued to a whole number ("1½") becomes a mixed number ("1 1/2").
    """
    if not text:
        return ""

    def _replace(match: re.Match) -> str:
        whole, glyph = match.group(1), match.group(2)
        fraction = UNICODE_FRACTIONS[glyph]
        return f"{whole} {fraction}" if whole else fraction

    return _FRACTION_GLYPHS.sub(_replace, text)


def canonical_unit_name(token: str) -> str:
    """Map a unit abbreviation to its full name; unknown tokens pass through."""
    if token is None:
        return ""
    clean = token.strip().lower()
    clean = re.sub(r"\.$", "", clean)
    if clean in UNIT_ABBREVIATIONS:
        return UNIT_ABBREVIATIONS[clean]
    return re.sub(r"\.$", "", token.strip())


def classify_unit_category(name: str) -> str:
    # Order matters: "fluid ounce" is a volume, not a weight
    lowered = normalize(name)
    if any(keyword in lowered for keyword in VOLUME_KEYWORDS):
        return "volume"
    if any(keyword in lowered for keyword in WEIGHT_KEYWORDS):
        return "weight"
    if any(keyword in lowered for keyword in LENGTH_KEYWORDS):
        return "length"
    return "other"


def format_quantity(value):
    """Round to 2 decimals, collapsing whole numbers to int."""
    if isinstance(value, bool) or not isinstance(value, Number):
        return value
    rounded = round(float(value) * 100) / 100.0
    return int(rounded) if rounded == int(rounded) else rounded


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()
