import io
import os
import tempfile
import zipfile
from pathlib import Path

import pytest

# Point the app at throwaway locations before `softwarestore` is imported.
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="softwarestore-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_ROOT / 'app.db'}")
os.environ.setdefault("TEMP_UPLOAD_DIR", str(_TEST_ROOT / "uploads"))
os.environ.setdefault("STORAGE_DIR", str(_TEST_ROOT / "storage"))

from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session  # noqa: E402

from softwarestore.config import settings  # noqa: E402
from softwarestore.database import create_db_and_tables, get_session, make_engine  # noqa: E402
from softwarestore.main import app, get_file_transfer  # noqa: E402
from softwarestore.utils.file_transfer import LocalFileTransfer  # noqa: E402

CATEGORIES = ["Games", "Multimedia", "Utilities"]


@pytest.fixture
def engine(tmp_path):
    """A fresh SQLite catalog per test, seeded with three categories."""
    eng = make_engine(f"sqlite:///{tmp_path / 'catalog.db'}")
    create_db_and_tables(bind=eng, default_categories=CATEGORIES)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "storage"


@pytest.fixture
def client(engine, upload_dir, storage_dir, monkeypatch):
    monkeypatch.setattr(settings, "TEMP_UPLOAD_DIR", upload_dir)

    def _session_override():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_file_transfer] = lambda: LocalFileTransfer(storage_dir)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_zip():
    """Build zip bytes from {name: bytes}; a `None` value adds a directory entry."""
    def _make(entries):
        bio = io.BytesIO()
        with zipfile.ZipFile(bio, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, data in entries.items():
                if data is None:
                    zf.writestr(zipfile.ZipInfo(name.rstrip("/") + "/"), b"")
                else:
                    zf.writestr(name, data)
        return bio.getvalue()
    return _make


@pytest.fixture
def make_corrupt_zip(make_zip):
    """Zip bytes whose deflated `data.bin` member is garbled right after its local header."""
    def _make():
        payload = bytearray(make_zip({
            "info.txt": b"name=Foo\ndescription=Bar\n",
            "data.bin": bytes(i % 251 for i in range(5000)),
        }))
        with zipfile.ZipFile(io.BytesIO(bytes(payload))) as zf:
            member = zf.getinfo("data.bin")
        # local header: 30 fixed bytes + filename + extra field
        start = member.header_offset + 30 + len(member.filename.encode()) + len(member.extra)
        payload[start:start + 20] = b"\xff" * 20
        return bytes(payload)
    return _make
