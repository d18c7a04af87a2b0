# tests/conftest.py
import os
import sys
import tempfile

# Configuration is read at import time, so the environment is fixed before
# anything from the app package is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="quotation-tests-")
os.environ["APP_ENV"] = "development"
os.environ["DB_TYPE"] = "sqlite"
os.environ["SQLITE_PATH"] = os.path.join(_TMP_DIR, "quotations.db")
os.environ["GENERATED_PDF_DIR"] = os.path.join(_TMP_DIR, "generated_pdfs")
os.environ["LOG_LEVEL"] = "WARNING"

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="session")
def client():
    from main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="session")
def pdf_dir():
    return os.environ["GENERATED_PDF_DIR"]


@pytest.fixture
def spec_payload():
    def _make(**overrides):
        payload = {
            "type": "sliding",
            "name": "Living Room",
            "location": "Ground Floor",
            "dimensions": {"width": 1200, "height": 1500},
            "specifications": {
                "glass": "toughened-6mm",
                "frame": {"material": "upvc", "color": "white"},
            },
            "pricing": {"base_price": 5000, "sqft_price": 450, "quantity": 2},
        }
        payload.update(overrides)
        return payload

    return _make
