"""
Configuration partagée pour tous les tests.
Override la dépendance get_db pour éviter toute connexion réelle à PostgreSQL,
et les dépendances d'authentification pour simuler un administrateur ou un enseignant.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.database import get_db
from app.main import app
from app.security import Principal, require_admin, require_teacher
from app.services.auth_client import get_auth_client

ADMIN = Principal(user_id="admin-1", phone="+919800000000", role="admin", is_admin=True)
TEACHER = Principal(user_id="teacher-1", phone="+919812345678", role="teacher")


@pytest.fixture
def client():
    """Client HTTP de test avec la BDD mockée (sans session)."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    """Client authentifié en tant qu'administrateur."""
    app.dependency_overrides[require_admin] = lambda: ADMIN
    return client


@pytest.fixture
def teacher_client(client):
    """Client authentifié en tant qu'enseignant."""
    app.dependency_overrides[require_teacher] = lambda: TEACHER
    return client


@pytest.fixture
def auth_client_mock(client):
    """Client du service d'authentification simulé."""
    mock_auth = MagicMock()
    app.dependency_overrides[get_auth_client] = lambda: mock_auth
    return mock_auth
