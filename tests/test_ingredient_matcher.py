import pytest

from larder.matching import MatcherConfig, match_ingredient_to_grocery
from larder.matching.strategies import plural_forms, singular_forms


def test_singular_forms():
    assert singular_forms("berries") == ["berry", "berrie"]
    assert "apple" in singular_forms("apples")
    assert "tomato" in singular_forms("tomatoes")
    assert singular_forms("milk") == []


def test_plural_forms():
    assert plural_forms("berry")[0] == "berries"
    assert plural_forms("peach")[0] == "peaches"
    assert "tomatoes" in plural_forms("tomato")
    assert plural_forms("day") == ["days"]
    assert plural_forms("egg") == ["eggs"]


def test_exact_match_beats_containment(db_session, user, make_grocery):
    onion = make_grocery(user, "Onion")
    make_grocery(user, "Onion Powder")

    assert match_ingredient_to_grocery(db_session, user.id, "onion").id == onion.id
    assert match_ingredient_to_grocery(db_session, user.id, "  ONION ").id == onion.id


@pytest.mark.parametrize("grocery_name,query", [
    ("apple", "apples"),
    ("apples", "apple"),
    ("egg", "eggs"),
    ("carrots", "carrot"),
    ("berry", "berries"),
    ("tomatoes", "tomato"),
])
def test_singular_plural_symmetry(db_session, user, make_grocery, grocery_name, query):
    grocery = make_grocery(user, grocery_name)
    assert match_ingredient_to_grocery(db_session, user.id, query).id == grocery.id


def test_parent_ingredient_match(db_session, user, make_grocery):
    spinach = make_grocery(user, "spinach")
    make_grocery(user, "spinach dip")

    assert match_ingredient_to_grocery(db_session, user.id, "fresh organic spinach").id == spinach.id


def test_fuzzy_match_uses_threshold(db_session, user, make_grocery):
    cheddar = make_grocery(user, "cheddar cheese")

    assert match_ingredient_to_grocery(db_session, user.id, "chedar cheese").id == cheddar.id
    strict = MatcherConfig(fuzzy_threshold=0.99)
    assert match_ingredient_to_grocery(db_session, user.id, "chedar cheese", strict) is None


def test_fuzzy_match_is_order_insensitive(db_session, user, make_grocery):
    cheddar = make_grocery(user, "cheddar cheese")
    assert match_ingredient_to_grocery(db_session, user.id, "cheese cheddar").id == cheddar.id


def test_no_match_returns_none(db_session, user, make_grocery):
    make_grocery(user, "milk")
    assert match_ingredient_to_grocery(db_session, user.id, "chocolate") is None
    assert match_ingredient_to_grocery(db_session, user.id, "") is None


def test_matching_is_scoped_to_owner(db_session, user, other_user, make_grocery):
    make_grocery(other_user, "salt")
    assert match_ingredient_to_grocery(db_session, user.id, "salt") is None

    mine = make_grocery(user, "salt")
    assert match_ingredient_to_grocery(db_session, user.id, "salt").id == mine.id
