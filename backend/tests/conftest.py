"""
Configuration partagée pour tous les tests.
Override la dépendance get_db pour éviter toute connexion réelle à PostgreSQL,
et les dépendances de session pour simuler un admin ou un enseignant connecté.
"""

import time
import uuid

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from app import rate_limit
from app.auth import require_admin, require_teacher
from app.database import get_db
from app.main import app
from app.schemas.auth import SessionPayload

TEACHER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")


@pytest.fixture(autouse=True)
def clear_rate_limit_store():
    """Chaque test démarre avec un compteur de tentatives vide."""
    rate_limit._store.clear()
    yield
    rate_limit._store.clear()


@pytest.fixture
def mock_db():
    return MagicMock()


@pytest.fixture
def client(mock_db):
    """Client HTTP de test avec la BDD mockée (aucune session)."""
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    """Client connecté en tant qu'admin (identifiants d'environnement, sans fiche enseignant)."""
    app.dependency_overrides[require_admin] = lambda: SessionPayload(role="admin", exp=int(time.time()) + 3600)
    return client


@pytest.fixture
def teacher_client(client):
    """Client connecté en tant qu'enseignant TEACHER_ID."""
    app.dependency_overrides[require_teacher] = lambda: SessionPayload(
        role="teacher", teacher_id=TEACHER_ID, exp=int(time.time()) + 3600
    )
    return client
