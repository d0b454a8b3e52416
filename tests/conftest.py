"""Configuration de test pour pytest avec gestion des chemins.

Ce module ajoute la racine du projet au sys.path, force une base SQLite mémoire et un cache mémoire
pour le conteneur global, et fournit les fixtures partagées (moteur, dépôt, cache, service, client
HTTP authentifié).
"""

from __future__ import annotations

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from cms...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Le conteneur global est construit à l'import: jamais de vraie base ni de Redis en test
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.pop("REDIS_URL", None)
os.environ.pop("REQUIRE_REDIS", None)
os.environ.pop("CONTENT_SECTION_SCHEMAS_JSON", None)

from cms.core.settings import Settings  # noqa: E402
from cms.domain.auth import create_access_token  # noqa: E402
from cms.domain.content_service import ContentService  # noqa: E402
from cms.domain.validation import ValidationRegistry  # noqa: E402
from cms.infra.repo.admin_user_repo import AdminUserRepo  # noqa: E402
from cms.infra.repo.content_version_repo import ContentVersionRepo  # noqa: E402
from cms.infra.repo.db import get_engine  # noqa: E402
from cms.infra.repo.models import Base  # noqa: E402
from tests.fakes import TEST_ADMIN_EMAIL, TEST_ADMIN_ID, RecordingCache  # noqa: E402

TEST_JWT_SECRET = "test-secret"


@pytest.fixture
def engine():
    """Moteur SQLite mémoire avec le schéma créé."""
    eng = get_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """Moteur SQLite fichier, pour les scénarios multi-threads (vraies connexions séparées)."""
    eng = get_engine(f"sqlite+pysqlite:///{tmp_path / 'content.db'}", connect_timeout_s=10.0)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine) -> ContentVersionRepo:
    return ContentVersionRepo(engine, lock_timeout_s=1.0)


@pytest.fixture
def cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def signals() -> list:
    return []


@pytest.fixture
def service(store, cache, signals) -> ContentService:
    """Service de contenu câblé sur le dépôt SQLite et un cache mémoire instrumenté."""
    return ContentService(store, cache, ValidationRegistry(), signal_sink=signals.append)


@pytest.fixture
def user_repo(engine) -> AdminUserRepo:
    return AdminUserRepo(engine)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(JWT_SECRET=TEST_JWT_SECRET, JWT_ALG="HS256", JWT_EXPIRES_MIN=5)


@pytest.fixture
def client(service, user_repo, test_settings):
    """Client HTTP dont les dépendances pointent vers les fixtures de test."""
    from fastapi.testclient import TestClient

    from cms.api.deps import get_app_settings, get_content_service, get_user_repo
    from cms.app.main import app

    app.dependency_overrides[get_content_service] = lambda: service
    app.dependency_overrides[get_user_repo] = lambda: user_repo
    app.dependency_overrides[get_app_settings] = lambda: test_settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """En-tête Bearer d'un administrateur valide."""
    token = create_access_token(
        TEST_JWT_SECRET, "HS256", 5, {"sub": str(TEST_ADMIN_ID), "email": TEST_ADMIN_EMAIL}
    )
    return {"Authorization": f"Bearer {token}"}
