"""Configuration de test pour pytest avec gestion des chemins.

Ce module configure pytest pour résoudre les imports backend en ajoutant la racine du projet au
sys.path, et fournit un conteneur branché sur le faux Prokerala (`tests/fakes.py`).
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from backend...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from backend.core.container import Container  # noqa: E402
from tests.fakes import FakeUpstream, make_settings  # noqa: E402


@pytest.fixture(autouse=True)
def clean_secret_env(monkeypatch):
    """Évite que des secrets réels de l'environnement ne fuient dans les tests."""
    for key in ("CLIENT_ID", "CLIENT_SECRET", "GEMINI_API_KEY"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def test_container(fake_upstream) -> Container:
    return Container(settings=make_settings(), transport=fake_upstream.transport())


@pytest.fixture
def client(test_container, monkeypatch):
    """TestClient dont les dépendances pointent sur `test_container`."""
    from fastapi.testclient import TestClient

    from backend.app.main import app

    monkeypatch.setattr("backend.api.deps.container", test_container)
    monkeypatch.setattr("backend.api.routes_health.container", test_container)
    return TestClient(app)
