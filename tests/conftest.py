import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from recipehub.auth import Identity
from recipehub.db import Base, get_db, init_engine, init_session_factory
from recipehub.deps import optional_identity, require_identity
from recipehub.main import create_app
from recipehub.models import Tag, TagTranslation
from recipehub.settings import Settings
from recipehub.store import RecipeStore

# --- Test Database Setup ---

# StaticPool keeps one in-memory connection shared by every session.
# init_engine switches SQLite foreign keys on so ON DELETE CASCADE works.
engine = init_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = init_session_factory(engine)

TEST_USER = Identity(
    id="11111111-1111-1111-1111-111111111111",
    claims={"sub": "11111111-1111-1111-1111-111111111111", "role": "authenticated"},
    token="test-token",
)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def make_settings(**overrides) -> Settings:
    values = {
        "supabase_url": "http://auth.test",
        "supabase_anon_key": "anon-key",
        "database_url": "sqlite://",
        "environment": "development",
        "rate_limit": "1000/minute",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_app(**settings_overrides):
    application = create_app(make_settings(**settings_overrides))
    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def app():
    return make_app()


@pytest.fixture
def client(app):
    """Test client authenticated as TEST_USER."""
    app.dependency_overrides[require_identity] = lambda: TEST_USER
    app.dependency_overrides[optional_identity] = lambda: TEST_USER
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def anon_client(app):
    """Test client without credentials (real auth dependencies)."""
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return RecipeStore(db_session, TEST_USER)


@pytest.fixture
def tags(db_session):
    """Three tags, two of them translated to Spanish."""
    quick = Tag(id=1, name="quick", color="#ff0000")
    vegan = Tag(id=2, name="vegan", color="#00ff00")
    dessert = Tag(id=3, name="dessert", color="#0000ff")
    db_session.add_all([quick, vegan, dessert])
    db_session.add_all([
        TagTranslation(tag_id=1, language_code="es", name="rápido"),
        TagTranslation(tag_id=2, language_code="es", name="vegano"),
    ])
    db_session.commit()
    return [quick, vegan, dessert]


@pytest.fixture
def make_payload():
    """Factory for a valid recipe creation body (camelCase, as clients send it)."""
    def _make(**overrides):
        payload = {
            "name": "Pancakes",
            "description": "Fluffy breakfast pancakes",
            "prepTime": 20,
            "servings": 4,
            "difficulty": 2,
            "calories": 350,
            "ingredients": [
                {"name": "flour", "quantity": "200", "unit": "g"},
                {"name": "milk", "quantity": 300, "unit": "ml"},
                {"name": "egg", "quantity": "2"},
            ],
            "steps": [
                {"description": "Mix dry ingredients"},
                {"description": "Whisk in milk and egg", "tip": "Do not overmix"},
                {"description": "Fry on a hot pan"},
            ],
        }
        payload.update(overrides)
        return payload
    return _make
