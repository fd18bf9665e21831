"""
PrintVault Test Suite — Shared Fixtures

The backend reads its settings at import time, so the environment is pointed at
a throwaway database and library directory before anything under backend/ is
imported.

Usage:
    pip install -e ".[test]"
    pytest -v --tb=short
"""

import os
import sys
import shutil
import tempfile
from pathlib import Path

import pytest

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="printvault-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT / 'printvault.db'}"
os.environ["LIBRARY_DIR"] = str(_TEST_ROOT / "library")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DESCRIBE_ON_INGEST"] = "true"
os.environ["BULK_WORKERS"] = "2"

BACKEND_DIR = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from helpers import box_triangles, build_3mf, build_binary_stl, model_xml  # noqa: E402


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_TEST_ROOT, ignore_errors=True)


# ---------------------------------------------------------------------------
# File builders
# ---------------------------------------------------------------------------

@pytest.fixture
def stl_file(tmp_path):
    """Write a binary STL spanning the given box and return its path."""
    def _make(name="model.stl", width=25.0, depth=25.0, height=25.0, count=2, **kwargs):
        path = tmp_path / name
        path.write_bytes(build_binary_stl(box_triangles(width, depth, height, count), **kwargs))
        return str(path)
    return _make


@pytest.fixture
def threemf_file(tmp_path):
    """Write a 3MF whose model XML carries the given metadata and return its path."""
    def _make(name="model.3mf", entry="3D/3dmodel.model", xml=None, extra=None, **metadata):
        path = tmp_path / name
        path.write_bytes(build_3mf(model_xml(**metadata) if xml is None else xml, entry=entry, extra=extra))
        return str(path)
    return _make


# ---------------------------------------------------------------------------
# Database / app
# ---------------------------------------------------------------------------

@pytest.fixture
def db_session():
    """A session on a clean library_files table."""
    from core.db import SessionLocal, init_db
    from modules.library.models import LibraryFile

    init_db()
    session = SessionLocal()
    session.query(LibraryFile).delete()
    session.commit()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def library_dir():
    from core.config import settings

    root = Path(settings.library_dir)
    shutil.rmtree(root, ignore_errors=True)
    root.mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture
def client(db_session, library_dir):
    """TestClient over a fresh app: one JobTracker per test."""
    from fastapi.testclient import TestClient
    from core.app import create_app

    with TestClient(create_app()) as c:
        yield c
