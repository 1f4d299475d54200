import json
import time

import pytest

from larder.jobs.matching import HANDLERS
from larder.models import RecipeIngredient
from larder.schemas import GroceryCreate
from larder.services.grocery_service import GroceryService
from larder.settings import settings
from larder.worker import process_job, processing_backoff



def test_enqueue_payload(queue, mock_redis):
    queue.enqueue("match_ingredient", 7, 3)

    [raw] = mock_redis.lrange(settings.matching_queue, 0, -1)
    job = json.loads(raw)
    assert job["type"] == "match_ingredient"
    assert job["args"] == [7, 3]
    assert job["attempts"] == 0


def test_enqueue_rejects_bad_jobs(queue):
    with pytest.raises(ValueError):
        queue.enqueue("send_email", 1)
    with pytest.raises(ValueError):
        queue.enqueue("match_grocery", "1")
    assert queue.pending() == 0


def test_new_grocery_links_unmatched_ingredients(db_session, user, make_recipe, queue, run_jobs):
    recipe = make_recipe(user, "Chips", [("sea salt", 1, "teaspoon", None), ("potatoes", 2, "whole", None)])

    result = GroceryService(db_session, user.id, queue).create(GroceryCreate(name="Salt"))
    assert result.success
    assert queue.pending() == 1

    assert run_jobs() == 1
    db_session.expire_all()
    links = {i.name: i.grocery_id for i in recipe.ingredients}
    assert links == {"sea salt": result.data.id, "potatoes": None}


def test_match_ingredient_respects_owner(db_session, user, other_user, make_grocery, make_recipe, queue, run_jobs):
    make_grocery(other_user, "flour")
    recipe = make_recipe(user, "Bread", [("flour", 3, "cup", None)])
    ingredient_id = recipe.ingredients[0].id

    queue.enqueue("match_ingredient", ingredient_id, other_user.id)
    queue.enqueue("match_ingredient", ingredient_id, user.id)
    run_jobs()

    db_session.expire_all()
    assert db_session.get(RecipeIngredient, ingredient_id).grocery_id is None


def test_missing_entities_are_a_no_op(queue, session_factory):
    queue.enqueue("match_grocery", 404)
    job = queue.pop()
    assert process_job(job, queue, session_factory) is True
    assert queue.scheduled() == 0


def test_failed_job_is_retried_then_dead_lettered(queue, monkeypatch, session_factory):
    def boom(db, queue, grocery_id):
        raise RuntimeError("datastore unavailable")

    monkeypatch.setitem(HANDLERS, "match_grocery", boom)
    queue.enqueue("match_grocery", 1)

    for attempt in range(1, settings.job_max_attempts):
        job = queue.pop()
        assert process_job(job, queue, session_factory) is False
        assert job["attempts"] == attempt
        assert queue.scheduled() == 1
        assert queue.promote_due(now=time.time() + 10 ** 6) == 1

    job = queue.pop()
    assert process_job(job, queue, session_factory) is False
    assert queue.scheduled() == 0
    [dead] = queue.dead()
    assert dead["attempts"] == settings.job_max_attempts
    assert dead["error"] == "datastore unavailable"


def test_retries_wait_for_backoff(queue, monkeypatch, session_factory):
    monkeypatch.setitem(HANDLERS, "match_recipe", lambda db, queue, recipe_id: 1 / 0)
    queue.enqueue("match_recipe", 1)
    process_job(queue.pop(), queue, session_factory)

    assert queue.promote_due() == 0
    assert queue.pending() == 0


def test_unknown_job_type_is_dead_lettered(queue, mock_redis, session_factory):
    mock_redis.rpush(queue.name, json.dumps({"type": "mystery", "args": [], "attempts": 0}))
    assert process_job(queue.pop(), queue, session_factory) is False
    assert queue.dead()[0]["type"] == "mystery"


def test_backoff_grows_exponentially():
    assert processing_backoff(1) == settings.job_backoff_seconds
    assert processing_backoff(2) == settings.job_backoff_seconds * 2
    assert processing_backoff(3) == settings.job_backoff_seconds * 4
