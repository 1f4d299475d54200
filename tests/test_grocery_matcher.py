from sqlalchemy import select

from larder.matching import find_grocery_by_name, update_related_ingredients
from larder.matching.grocery_matcher import match_grocery_to_ingredients
from larder.models import RecipeIngredient


def test_exact_then_plural(db_session, user, make_grocery):
    apple = make_grocery(user, "apple")
    make_grocery(user, "apple juice")

    assert find_grocery_by_name(db_session, user.id, "Apple").id == apple.id
    assert find_grocery_by_name(db_session, user.id, "apples").id == apple.id


def test_prefix_preferred_over_containment(db_session, user, make_grocery):
    make_grocery(user, "sea salt")
    flakes = make_grocery(user, "salt flakes")

    assert find_grocery_by_name(db_session, user.id, "salt").id == flakes.id


def test_containment(db_session, user, make_grocery):
    sea_salt = make_grocery(user, "sea salt")
    assert find_grocery_by_name(db_session, user.id, "salt").id == sea_salt.id


def test_grocery_name_prefix_of_query(db_session, user, make_grocery):
    rice = make_grocery(user, "rice")
    assert find_grocery_by_name(db_session, user.id, "rice noodles").id == rice.id


def test_containment_escapes_like_wildcards(db_session, user, make_grocery):
    make_grocery(user, "whole milk")
    assert find_grocery_by_name(db_session, user.id, "%") is None


def test_grocery_name_wildcards_are_literal(db_session, user, make_grocery):
    make_grocery(user, "2%")
    make_grocery(user, "_")

    assert find_grocery_by_name(db_session, user.id, "2 cups cream") is None
    assert find_grocery_by_name(db_session, user.id, "zz") is None


def test_percent_in_grocery_name_is_literal_prefix(db_session, user, make_grocery):
    low_fat = make_grocery(user, "1% milk")
    assert find_grocery_by_name(db_session, user.id, "1% milk chocolate").id == low_fat.id


def test_meat_type_match(db_session, user, make_grocery):
    fillet = make_grocery(user, "salmon fillet")
    make_grocery(user, "tuna steak")

    assert find_grocery_by_name(db_session, user.id, "Fresh Salmon with Herbs").id == fillet.id


def test_meat_type_scores_descriptors(db_session, user, make_grocery):
    make_grocery(user, "chicken breast")
    thighs = make_grocery(user, "chicken thighs")

    assert find_grocery_by_name(db_session, user.id, "grilled chicken thighs").id == thighs.id


def test_multi_word_scoring(db_session, user, make_grocery):
    make_grocery(user, "tomato sauce")
    pasta = make_grocery(user, "pasta with sauce")

    assert find_grocery_by_name(db_session, user.id, "Pasta and Sauce").id == pasta.id


def test_no_grocery_found(db_session, user, other_user, make_grocery):
    make_grocery(other_user, "butter")
    assert find_grocery_by_name(db_session, user.id, "butter") is None
    assert find_grocery_by_name(db_session, user.id, "and of") is None


def test_update_related_ingredients(db_session, user, other_user, make_grocery, make_recipe):
    kosher = make_grocery(user, "kosher salt")
    recipe = make_recipe(user, "Brine", [
        ("sea salt", 1, "tablespoon", None),
        ("salt", 2, "teaspoon", None),
        ("black pepper", 1, "teaspoon", None),
        ("kosher salt", 1, "cup", kosher),
    ])
    foreign = make_recipe(other_user, "Not mine", [("sea salt", 1, "teaspoon", None)])

    salt = make_grocery(user, "salt")
    assert update_related_ingredients(db_session, salt) == 2
    db_session.commit()

    links = dict(db_session.execute(
        select(RecipeIngredient.name, RecipeIngredient.grocery_id)
        .where(RecipeIngredient.recipe_id == recipe.id)
    ).all())
    assert links == {
        "sea salt": salt.id,
        "salt": salt.id,
        "black pepper": None,
        "kosher salt": kosher.id,
    }

    foreign_link = db_session.scalar(
        select(RecipeIngredient.grocery_id).where(RecipeIngredient.recipe_id == foreign.id)
    )
    assert foreign_link is None


def test_update_related_ingredients_is_idempotent(db_session, user, make_grocery, make_recipe):
    make_recipe(user, "Salad", [("olive oil", 2, "tablespoon", None)])
    oil = make_grocery(user, "olive oil")

    first = match_grocery_to_ingredients(db_session, oil)
    db_session.commit()
    assert first == {"grocery_id": oil.id, "grocery_name": "olive oil", "matched_ingredients": 1}
    assert update_related_ingredients(db_session, oil) == 0
