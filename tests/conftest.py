from decimal import Decimal

import fakeredis
import fakeredis.aioredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from larder.db import Base, get_db
from larder.infra import redis_client
from larder.jobs.queue import RedisJobQueue
from larder.main import app
from larder.models import Grocery, Recipe, RecipeIngredient, User
from larder.services.units import ensure_default_units, find_or_create_unit
from larder.worker import drain

# --- Test Database Setup ---

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # one shared connection so every session sees the same in-memory db
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """Test client with DB override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def mock_redis():
    server = fakeredis.FakeServer()
    async_redis = fakeredis.aioredis.FakeRedis(server=server, decode_responses=True)
    sync_redis = fakeredis.FakeRedis(server=server, decode_responses=True)

    redis_client._redis_async = async_redis
    redis_client._redis_sync = sync_redis

    yield sync_redis

    redis_client._redis_async = None
    redis_client._redis_sync = None


@pytest.fixture
def queue(mock_redis):
    return RedisJobQueue()


@pytest.fixture
def run_jobs(queue):
    """Drain the matching queue (including fan-out) with the test database."""
    def _run() -> int:
        total = 0
        while True:
            processed = drain(queue, TestingSessionLocal)
            if not processed:
                return total
            total += processed
    return _run


# --- Data helpers ---

@pytest.fixture
def units(db_session):
    ensure_default_units(db_session)
    db_session.commit()


@pytest.fixture
def user(db_session, units):
    u = User(name="Test User", email="test@example.com")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def other_user(db_session, units):
    u = User(name="Other User", email="other@example.com")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def headers(user):
    return {"X-User-Id": str(user.id)}


@pytest.fixture
def make_grocery(db_session):
    def _make(owner, name, quantity=1, unit="whole"):
        grocery = Grocery(
            user_id=owner.id,
            name=name,
            quantity=Decimal(str(quantity)),
            unit=find_or_create_unit(db_session, unit),
        )
        db_session.add(grocery)
        db_session.commit()
        db_session.refresh(grocery)
        return grocery
    return _make


@pytest.fixture
def make_recipe(db_session):
    """Recipe with ingredients given as (name, quantity, unit, grocery) tuples."""
    def _make(owner, name, ingredients=()):
        recipe = Recipe(user_id=owner.id, name=name, instructions="")
        for ing_name, quantity, unit, grocery in ingredients:
            recipe.ingredients.append(
                RecipeIngredient(
                    name=ing_name,
                    quantity=Decimal(str(quantity)),
                    unit=find_or_create_unit(db_session, unit),
                    grocery_id=grocery.id if grocery else None,
                )
            )
        db_session.add(recipe)
        db_session.commit()
        db_session.refresh(recipe)
        return recipe
    return _make


@pytest.fixture
def session_factory():
    """Session factory bound to the test database, for calling the worker directly."""
    return TestingSessionLocal
