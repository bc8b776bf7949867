import os

# Configure before the application modules read settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENROUTER_API_KEY"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from starlette.testclient import TestClient

from boxbox.database import Base, engine
from boxbox.main import app

TEST_EMAIL = "owner@boxbox.app"
TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def anon_client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict:
    with TestClient(app) as setup:
        setup.post("/api/auth/register", json={"email": TEST_EMAIL, "password": TEST_PASSWORD, "name": "Owner"})
        response = setup.post("/api/auth/login", json={"email": TEST_EMAIL, "password": TEST_PASSWORD})
        assert response.status_code == 200
        token = response.json()["accessToken"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(auth_headers) -> TestClient:
    test_client = TestClient(app)
    test_client.headers.update(auth_headers)
    return test_client


@pytest.fixture
def box(client) -> dict:
    response = client.post("/api/boxes", json={"name": "Garage"})
    assert response.status_code == 201
    return response.json()
