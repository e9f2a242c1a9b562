import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from main import app
from database import Base, get_db
from models import User, Partnership
from auth import get_password_hash, create_access_token

# Import rate limiters to override them
from utils.rate_limiter import auth_rate_limiter

# Setup in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def client(db_session):
    """Create a FastAPI TestClient with overridden database dependency."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_db, None)

@pytest.fixture
def make_user(db_session):
    """Factory for extra users."""
    def _make_user(email, full_name=None, password="password123"):
        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            full_name=full_name,
            is_active=True
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user

def headers_for(user):
    access_token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {access_token}"}

@pytest.fixture
def make_headers():
    return headers_for

@pytest.fixture
def test_user(make_user):
    """Create a test user and return the user object."""
    return make_user("test@example.com", "Test User")

@pytest.fixture
def auth_headers(test_user):
    """Return authorization headers for the test user."""
    return headers_for(test_user)

@pytest.fixture
def other_user(make_user):
    """The co-parent of test_user."""
    return make_user("other@example.com", "Other User")

@pytest.fixture
def other_headers(other_user):
    return headers_for(other_user)

@pytest.fixture
def partnership(db_session, test_user, other_user):
    """A complete partnership between test_user (user1) and other_user (user2)."""
    p = Partnership(
        user1_id=test_user.id,
        user2_id=other_user.id,
        custody_enabled=False
    )
    db_session.add(p)
    db_session.commit()
    db_session.refresh(p)
    return p

@pytest.fixture(autouse=True)
def disable_rate_limits():
    """Disable rate limits during testing using dependency overrides."""
    async def mock_rate_limit():
        return True

    app.dependency_overrides[auth_rate_limiter] = mock_rate_limit

    yield

    app.dependency_overrides.pop(auth_rate_limiter, None)
