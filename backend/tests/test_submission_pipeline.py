import io
from types import SimpleNamespace

import pytest
from PIL import Image
from sqlmodel import select

from softwarestore import models
from softwarestore.errors import IOFailure, NotFound, PersistenceFailure
from softwarestore.messages import ERROR_EMPTY_FILES, ERROR_INFO_FORMAT, ERROR_PROCESSING_ZIP, MSG_PROGRAM_ADDED
from softwarestore.schemas import ProgramForm, SubmissionState
from softwarestore.services import CatalogStore, SubmissionService
from softwarestore.utils.file_transfer import LocalFileTransfer

INFO = b"name=Foo\ndescription=Bar\nicon128=a.png\nicon512=b.png\n"


def _make_png(size=(16, 16)) -> bytes:
    img = Image.new("RGB", size, "white")
    bio = io.BytesIO()
    img.save(bio, format="PNG")
    return bio.getvalue()


def _upload(payload, name="app.zip"):
    return SimpleNamespace(filename=name, file=io.BytesIO(payload))


def _form(category_id=3):
    return ProgramForm(name="Foo", description="Bar", category_id=category_id)


def _service(session, upload_dir, storage_dir, **kwargs):
    kwargs.setdefault("transfer", LocalFileTransfer(storage_dir))
    return SubmissionService(session, temp_upload_dir=upload_dir, program_info_file="info.txt", **kwargs)


def _programs(session):
    return session.exec(select(models.Program)).all()


def _assert_no_temp_files(upload_dir):
    assert not upload_dir.exists() or not any(upload_dir.iterdir())


def test_valid_archive_creates_program(session, upload_dir, storage_dir, make_zip):
    payload = make_zip({"info.txt": INFO, "a.png": _make_png(), "b.png": _make_png((64, 64)), "bin/": None})
    result = _service(session, upload_dir, storage_dir).submit(_form(), _upload(payload))

    assert result.state == SubmissionState.PERSISTED
    assert result.ok
    assert result.message_key == MSG_PROGRAM_ADDED
    programs = _programs(session)
    assert len(programs) == 1
    p = programs[0]
    assert p.id == result.program_id
    assert (p.name, p.description, p.img128, p.img512) == ("Foo", "Bar", "a.png", "b.png")
    assert p.category_id == 3
    assert p.statistics.downloads == 0
    assert (storage_dir / "Foo" / "a.png").read_bytes() == _make_png()
    assert (storage_dir / "Foo" / "bin").is_dir()
    _assert_no_temp_files(upload_dir)


def test_empty_file_rejects_submission(session, upload_dir, storage_dir, make_zip):
    payload = make_zip({"info.txt": INFO, "a.png": b"", "b.png": _make_png()})
    result = _service(session, upload_dir, storage_dir).submit(_form(), _upload(payload))
    assert result.state == SubmissionState.REJECTED
    assert result.message_key == ERROR_EMPTY_FILES
    assert _programs(session) == []
    assert not storage_dir.exists()
    _assert_no_temp_files(upload_dir)


@pytest.mark.parametrize("entries", [
    {"readme.txt": b"no info file here"},
    {"info.txt": b"name=Foo\nbroken line\n"},
    {"info.txt": b"name=Foo\n"},
    {"nested/info.txt": INFO},
])
def test_bad_program_info_rejects_submission(session, upload_dir, storage_dir, make_zip, entries):
    result = _service(session, upload_dir, storage_dir).submit(_form(), _upload(make_zip(entries)))
    assert result.state == SubmissionState.REJECTED
    assert result.message_key == ERROR_INFO_FORMAT
    assert _programs(session) == []
    _assert_no_temp_files(upload_dir)


def test_unreadable_archive_fails_with_processing_error(session, upload_dir, storage_dir):
    result = _service(session, upload_dir, storage_dir).submit(_form(), _upload(b"not a zip at all"))
    assert result.state == SubmissionState.FAILED
    assert result.message_key == ERROR_PROCESSING_ZIP
    assert _programs(session) == []
    _assert_no_temp_files(upload_dir)


def test_corrupt_archive_member_fails_with_processing_error(session, upload_dir, storage_dir, make_corrupt_zip):
    result = _service(session, upload_dir, storage_dir).submit(_form(), _upload(make_corrupt_zip()))
    assert result.state == SubmissionState.FAILED
    assert result.message_key == ERROR_PROCESSING_ZIP
    assert _programs(session) == []
    assert not storage_dir.exists()
    _assert_no_temp_files(upload_dir)


class _BrokenTransfer:
    def upload_files(self, files, target_dir_name):
        raise IOFailure("remote storage unavailable")


def test_transfer_failure_is_processing_error(session, upload_dir, storage_dir, make_zip):
    svc = _service(session, upload_dir, storage_dir, transfer=_BrokenTransfer())
    result = svc.submit(_form(), _upload(make_zip({"info.txt": INFO})))
    assert result.state == SubmissionState.FAILED
    assert result.message_key == ERROR_PROCESSING_ZIP
    assert _programs(session) == []
    _assert_no_temp_files(upload_dir)


class _FailingStore(CatalogStore):
    def add_program(self, program):
        raise PersistenceFailure("database is locked")


def test_persistence_failure_propagates_after_cleanup(session, upload_dir, storage_dir, make_zip):
    svc = _service(session, upload_dir, storage_dir, store=_FailingStore(session))
    with pytest.raises(PersistenceFailure):
        svc.submit(_form(), _upload(make_zip({"info.txt": INFO})))
    _assert_no_temp_files(upload_dir)


def test_unknown_category_propagates_not_found(session, upload_dir, storage_dir, make_zip):
    with pytest.raises(NotFound):
        _service(session, upload_dir, storage_dir).submit(_form(category_id=99), _upload(make_zip({"info.txt": INFO})))
    assert not storage_dir.exists()
    _assert_no_temp_files(upload_dir)


def test_concurrent_submissions_use_separate_work_dirs(session, upload_dir, storage_dir, make_zip, monkeypatch):
    seen = []
    from softwarestore import services

    real_store_upload = services.store_upload

    def spy(upload, target_dir):
        seen.append(target_dir)
        return real_store_upload(upload, target_dir)

    monkeypatch.setattr(services, "store_upload", spy)
    svc = _service(session, upload_dir, storage_dir)
    svc.submit(_form(), _upload(make_zip({"info.txt": INFO})))
    svc.submit(_form(), _upload(make_zip({"info.txt": INFO})))
    assert len(seen) == 2
    assert seen[0] != seen[1]
    assert all(p.parent == upload_dir for p in seen)
