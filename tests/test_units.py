from decimal import Decimal

from larder.models import Unit, UnitConversion
from larder.services.units import (
    conversion_factor,
    find_or_create_unit,
    get_default_unit,
    load_conversion_table,
)


def test_finds_by_name_and_abbreviation(db_session, units):
    assert find_or_create_unit(db_session, "tbsp").name == "tablespoon"
    assert find_or_create_unit(db_session, "fl oz").name == "fluid ounce"
    assert find_or_create_unit(db_session, "Tsp.").name == "teaspoon"


def test_finds_by_name_prefix(db_session, units):
    assert find_or_create_unit(db_session, "kilo").name == "kilogram"


def test_creates_unknown_unit_with_category(db_session, units):
    inch = find_or_create_unit(db_session, "inch")
    assert inch.id is not None
    assert inch.category == "length"
    assert inch.abbreviation == "inc"

    sprig = find_or_create_unit(db_session, "sprig")
    assert sprig.category == "other"
    assert find_or_create_unit(db_session, "sprig").id == sprig.id


def test_created_abbreviations_stay_unique(db_session, units):
    pinch = find_or_create_unit(db_session, "pinch")
    pinot = find_or_create_unit(db_session, "pinot")
    assert pinch.abbreviation == "pin"
    assert pinot.abbreviation == "pin2"


def test_default_unit(db_session, units):
    assert get_default_unit(db_session).name == "whole"
    assert find_or_create_unit(db_session, None).name == "whole"
    assert find_or_create_unit(db_session, "").name == "whole"


def test_conversion_table(db_session, units):
    cup = db_session.query(Unit).filter_by(name="cup").one()
    tbsp = db_session.query(Unit).filter_by(name="tablespoon").one()
    db_session.add(UnitConversion(from_unit_id=cup.id, to_unit_id=tbsp.id, conversion_factor=Decimal("16")))
    db_session.commit()

    table = load_conversion_table(db_session)
    assert conversion_factor(table, cup.id, tbsp.id) == Decimal("16")
    assert conversion_factor(table, tbsp.id, cup.id) == Decimal("0.0625")
    assert conversion_factor(table, cup.id, cup.id) == Decimal(1)
    assert conversion_factor({}, cup.id, tbsp.id) is None
