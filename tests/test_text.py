from decimal import Decimal

from larder.core.text import (
    UNICODE_FRACTIONS,
    canonical_unit_name,
    classify_unit_category,
    format_quantity,
    normalize,
    substitute_unicode_fractions,
)


def test_normalize_trims_and_lowercases():
    assert normalize("  Fresh Basil ") == "fresh basil"
    assert normalize(None) == ""


def test_fraction_table_has_fifteen_glyphs():
    assert len(UNICODE_FRACTIONS) == 15


def test_substitute_unicode_fractions():
    assert substitute_unicode_fractions("½ cup milk") == "1/2 cup milk"
    assert substitute_unicode_fractions("1½ cups flour") == "1 1/2 cups flour"
    assert substitute_unicode_fractions("¾ tsp salt") == "3/4 tsp salt"
    assert substitute_unicode_fractions("") == ""


def test_canonical_unit_name():
    assert canonical_unit_name("tbsp") == "tablespoon"
    assert canonical_unit_name("Tblsp.") == "tablespoon"
    assert canonical_unit_name("tsps") == "teaspoon"
    assert canonical_unit_name("c") == "cup"
    assert canonical_unit_name("lbs") == "pound"
    assert canonical_unit_name("gal") == "gallon"
    assert canonical_unit_name("sprig.") == "sprig"


def test_classify_unit_category_order():
    assert classify_unit_category("cup") == "volume"
    assert classify_unit_category("fluid ounce") == "volume"
    assert classify_unit_category("ounce") == "weight"
    assert classify_unit_category("kilogram") == "weight"
    assert classify_unit_category("inch") == "length"
    assert classify_unit_category("clove") == "other"


def test_format_quantity():
    assert format_quantity(2.0) == 2
    assert isinstance(format_quantity(2.0), int)
    assert format_quantity(0.3333) == 0.33
    assert format_quantity(Decimal("1.50")) == 1.5
    assert format_quantity("two") == "two"
