import pytest
from unittest.mock import Mock, MagicMock
from fastapi.testclient import TestClient

from main import app
from app.database import get_db
from app.auth.dependencies import get_current_user
from app.models.user import User


@pytest.fixture
def mock_db():
    """Mock database session"""
    db = MagicMock()
    db.query.return_value = db
    db.filter.return_value = db
    db.order_by.return_value = db
    db.with_for_update.return_value = db
    db.first.return_value = None
    db.all.return_value = []
    db.count.return_value = 0
    return db


@pytest.fixture
def mock_owner():
    """Mock reseller account"""
    user = Mock(spec=User)
    user.id = 1
    user.email = "revenda@test.com"
    user.name = "Revenda Teste"
    user.is_active = True
    return user


@pytest.fixture
def client_with_owner(mock_db, mock_owner):
    """TestClient with reseller auth and mocked DB"""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: mock_owner
    client = TestClient(app)
    yield client, mock_db, mock_owner
    app.dependency_overrides.clear()


@pytest.fixture
def unauthenticated_client(mock_db):
    """TestClient without auth override"""
    app.dependency_overrides[get_db] = lambda: mock_db
    client = TestClient(app)
    yield client, mock_db
    app.dependency_overrides.clear()
