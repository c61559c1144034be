from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read once at import time, so the test database has to be
# configured before anything imports config.
_TEST_DATA_DIR = Path(tempfile.mkdtemp(prefix="glucotrack-tests-"))
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789"
os.environ["DATA_DIR"] = str(_TEST_DATA_DIR)
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DATA_DIR / 'glucotrack-test.db'}"
os.environ["STORAGE_BACKEND"] = "sql"

from services.rate_limit_service import reset_rate_limits  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()
