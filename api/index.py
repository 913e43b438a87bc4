"""
Point d'entrée serverless.

Expose l'application FastAPI au niveau module (`app`), forme attendue par les runtimes Python
serverless. Les secrets (CLIENT_ID, CLIENT_SECRET, GEMINI_API_KEY) viennent de l'environnement de
la plateforme.
"""

import sys
from pathlib import Path

# Rend `backend` importable quand la fonction est déployée sans installation du paquet
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from backend.app.main import app  # noqa: E402

__all__ = ["app"]
