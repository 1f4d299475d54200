from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from larder.matching.grocery_matcher import GroceryMatcher
from larder.models import Recipe, RecipeCategory
from larder.schemas import IngredientIn, RecipeCreate
from larder.services.recipe_creator import RecipeCreator
from larder.services.recipe_ingredients import FATAL_MARKER, RecipeIngredientCreator


def test_parsed_ingredients_are_linked_to_pantry(db_session, user, make_grocery, queue):
    apple = make_grocery(user, "apple")
    milk = make_grocery(user, "milk")
    sugar = make_grocery(user, "sugar")

    result = RecipeCreator(db_session, user.id, queue).create(RecipeCreate(
        name="Apple pudding",
        ingredients_text="2 apples, cored and chopped\n1 cup milk\n2 tablespoons sugar",
    ))

    assert result.success, result.errors
    ingredients = result.data.ingredients
    assert [i.name for i in ingredients] == ["apples", "milk", "sugar"]
    assert [i.grocery_id for i in ingredients] == [apple.id, milk.id, sugar.id]
    assert "cored" in ingredients[0].preparation
    assert "chopped" in ingredients[0].preparation
    assert ingredients[2].unit.name == "tablespoon"
    # everything matched synchronously, nothing to queue
    assert queue.pending() == 0


def test_unmatched_ingredients_are_queued(db_session, user, make_grocery, queue, run_jobs):
    result = RecipeCreator(db_session, user.id, queue).create(
        RecipeCreate(name="Rice bowl", ingredients_text="1 cup rice")
    )
    assert result.success
    recipe_id = result.data.id
    assert result.data.ingredients[0].grocery_id is None
    assert queue.pending() == 1

    rice = make_grocery(user, "rice")
    run_jobs()

    db_session.expire_all()
    recipe = db_session.get(Recipe, recipe_id)
    assert recipe.ingredients[0].grocery_id == rice.id


def test_parser_notes_are_appended(db_session, user):
    result = RecipeCreator(db_session, user.id).create(RecipeCreate(
        name="Granola",
        notes="Keeps for a week",
        ingredients_text="1 cup honey or maple syrup",
    ))
    assert result.data.notes == "Keeps for a week\nAlternative ingredient: can use maple syrup instead of honey"


def test_raw_text_is_split_into_sections(db_session, user):
    result = RecipeCreator(db_session, user.id).create(RecipeCreate(
        name="Boiled egg",
        raw_text="Ingredients\n2 eggs\nInstructions\nBoil for seven minutes.",
    ))
    assert result.success
    assert result.data.instructions == "Boil for seven minutes."
    assert [i.name for i in result.data.ingredients] == ["eggs"]


def test_invalid_ingredients_become_warnings(db_session, user):
    result = RecipeCreator(db_session, user.id).create(RecipeCreate(
        name="Toast",
        ingredients=[
            IngredientIn(name="bread", quantity=2),
            IngredientIn(name="", quantity=1),
            IngredientIn(name="butter", quantity=0),
        ],
    ))
    assert result.success
    assert [i.name for i in result.data.ingredients] == ["bread"]
    assert len(result.warnings) == 2
    assert not any(FATAL_MARKER in w for w in result.warnings)


def test_datastore_failure_rolls_back_everything(db_session, user, monkeypatch):
    def broken_find(self, db, user_id, name):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(GroceryMatcher, "find", broken_find)

    result = RecipeCreator(db_session, user.id).create(RecipeCreate(
        name="Soup",
        new_category="Soups",
        ingredients_text="1 onion\n2 carrots",
    ))

    assert not result.success
    assert FATAL_MARKER in result.errors[0]
    assert db_session.scalar(select(func.count(Recipe.id))) == 0
    assert db_session.scalar(select(func.count(RecipeCategory.id))) == 0


def test_blank_name_is_rejected(db_session, user):
    result = RecipeCreator(db_session, user.id).create(RecipeCreate(name="   "))
    assert not result.success
    assert result.errors == ["Name can't be blank"]


def test_new_category_is_created_once(db_session, user):
    first = RecipeCreator(db_session, user.id).create(RecipeCreate(name="Brownies", new_category="Dessert"))
    second = RecipeCreator(db_session, user.id).create(RecipeCreate(name="Fudge", new_category="dessert"))
    assert first.data.category_id == second.data.category_id


def test_foreign_category_is_rejected(db_session, user, other_user):
    category = RecipeCategory(user_id=other_user.id, name="Theirs")
    db_session.add(category)
    db_session.commit()

    result = RecipeCreator(db_session, user.id).create(RecipeCreate(name="Stew", category_id=category.id))
    assert result.errors == ["Recipe category not found"]


def test_ingredient_creator_reports_validation_per_draft(db_session, user, make_recipe):
    recipe = make_recipe(user, "Tea")
    result = RecipeIngredientCreator(db_session, recipe, user.id).create_ingredients([
        IngredientIn(name="Black Tea", quantity=1, unit_name="tsp"),
        IngredientIn(name="water", quantity=-1),
    ])
    assert not result.success
    assert result.errors == ["Quantity for water must be greater than 0"]
    [tea] = result.data
    assert tea.name == "black tea"
    assert tea.unit.name == "teaspoon"


def test_queue_outage_does_not_fail_creation(db_session, user):
    class UnreachableQueue:
        def enqueue(self, job_type, *ids):
            raise RedisConnectionError("redis down")

    result = RecipeCreator(db_session, user.id, UnreachableQueue()).create(
        RecipeCreate(name="Leek soup", ingredients_text="2 leeks")
    )

    assert result.success
    assert db_session.scalar(select(func.count(Recipe.id))) == 1
