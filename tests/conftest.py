"""
Pytest configuration and shared fixtures.
This file points the app at an in-memory database before anything imports it
and ensures the project root is in sys.path for imports.
"""

import os
import sys
from pathlib import Path

# The engine is built from settings at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "testing"
os.environ["JWT_SECRET"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["STRIPE_WEBHOOK_SECRET"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["MAILGUN_API_KEY"] = ""
os.environ["MAILGUN_DOMAIN"] = ""

# Add project root to sys.path so we can import domain, services, etc.
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest

from adapters import storage_adapter
from adapters.storage_adapter import LocalStorage
from services.auth_service import login_attempts


@pytest.fixture(autouse=True)
def _isolated_state(tmp_path):
    """Fresh login throttle and a temporary media directory for every test."""
    login_attempts.reset()
    previous = storage_adapter._storage
    storage_adapter._storage = LocalStorage(str(tmp_path / "media"))
    yield
    storage_adapter._storage = previous
    login_attempts.reset()
