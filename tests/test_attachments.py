import io

import pytest
from fastapi import UploadFile

from exceptions import AdvisoryCleanupFailure


def upload(name, content=b"contenu"):
    return UploadFile(file=io.BytesIO(content), filename=name)


def test_save_returns_opaque_reference(store):
    reference = store.save(upload("bulletin.pdf"))

    assert reference.startswith("/uploads/")
    assert reference.endswith(".pdf")
    assert store.path_for(reference).read_bytes() == b"contenu"


def test_blank_upload_is_no_attachment(store):
    assert store.save(None) is None
    assert store.save(upload("")) is None


def test_delete_removes_file(store):
    reference = store.save(upload("photo.jpg"))
    assert store.delete(reference) is True
    assert not store.path_for(reference).exists()


def test_delete_missing_file(store):
    assert store.delete("/uploads/absent.txt") is False


def test_reference_cannot_escape_directory(store, tmp_path):
    outside = tmp_path / "secret.txt"
    outside.write_text("x")

    path = store.path_for("/uploads/../secret.txt")

    assert path.parent == store.directory
    store.delete("/uploads/../secret.txt")
    assert outside.exists()


def test_foreign_reference_is_a_cleanup_failure(store):
    with pytest.raises(AdvisoryCleanupFailure):
        store.delete("/etc/passwd")
