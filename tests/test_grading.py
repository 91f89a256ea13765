import math
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

import grading
from crud_ops import create_grade
from exceptions import AdvisoryCleanupFailure, StorageFailure
from models import Diploma


def row(score, weight=1):
    return SimpleNamespace(score=score, weight=weight)


def test_weighted_average_example():
    """(10*2 + 16*1) / 3"""
    assert grading.weighted_average([row(10, 2), row(16, 1)]) == pytest.approx(12.0)


def test_weighted_average_no_grades_is_zero():
    result = grading.weighted_average([])
    assert result == 0
    assert not math.isnan(result)


def test_missing_weight_counts_as_one():
    assert grading.weighted_average([row(8, None), row(14, 1)]) == pytest.approx(11.0)


def test_zero_total_weight_is_zero():
    assert grading.weighted_average([row(15, 0), row(9, 0)]) == 0


def test_weights_cancelling_out_is_zero():
    assert grading.weighted_average([row(12, 2), row(18, -2)]) == 0


def test_negative_values_are_not_rejected():
    assert grading.weighted_average([row(-4, 1), row(10, 3)]) == pytest.approx(6.5)


def test_compute_weighted_average_reads_only_that_user(db, student, other_student, admin):
    create_grade(db, student.id, "Maths", 10, 2, admin.id)
    create_grade(db, student.id, "Histoire", 16, None, admin.id)
    create_grade(db, other_student.id, "Maths", 2, 5, admin.id)

    assert grading.compute_weighted_average(db, student.id) == pytest.approx(12.0)


def test_grade_read_error_becomes_storage_failure(db, student, monkeypatch):
    def failing_query(*entities):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "query", failing_query)

    with pytest.raises(StorageFailure) as info:
        grading.compute_weighted_average(db, student.id)
    assert info.value.operation == "read grades"


def test_issue_diploma_freezes_average(db, student, admin):
    grade = create_grade(db, student.id, "Maths", 10, 2, admin.id)
    create_grade(db, student.id, "Physique", 16, 1, admin.id)

    diploma = grading.issue_diploma(db, student.id, "Baccalauréat")
    assert diploma.average == pytest.approx(12.0)
    assert diploma.issued_at is not None

    grade.score = 20
    db.commit()
    create_grade(db, student.id, "Chimie", 0, 4, admin.id)

    db.expire_all()
    stored = db.query(Diploma).filter(Diploma.id == diploma.id).one()
    assert stored.average == pytest.approx(12.0)
    assert grading.compute_weighted_average(db, student.id) != pytest.approx(12.0)


def test_issue_diploma_without_grades(db, student):
    diploma = grading.issue_diploma(db, student.id, "Attestation")
    assert diploma.average == 0


@pytest.mark.parametrize("title", [None, "", "   "])
def test_issue_diploma_default_title(db, student, title):
    diploma = grading.issue_diploma(db, student.id, title)
    assert diploma.title == "Diplôme RP"


def test_list_diplomas_visibility(db, student, other_student, admin):
    mine = grading.issue_diploma(db, student.id, "A")
    theirs = grading.issue_diploma(db, other_student.id, "B")

    assert [d.id for d in grading.list_diplomas(db, student)] == [mine.id]
    assert [d.id for d in grading.list_diplomas(db, admin)] == [theirs.id, mine.id]


def test_revoke_removes_row_and_file(db, store, student):
    (store.directory / "scan.pdf").write_bytes(b"%PDF")
    diploma = grading.issue_diploma(db, student.id, "Brevet", "/uploads/scan.pdf")

    outcome = grading.revoke_diploma(db, store, diploma.id)

    assert outcome.record_deleted is True
    assert outcome.attachment_removed is True
    assert db.query(Diploma).count() == 0
    assert not (store.directory / "scan.pdf").exists()


def test_revoke_without_attachment(db, store, student):
    diploma = grading.issue_diploma(db, student.id, "Brevet")
    outcome = grading.revoke_diploma(db, store, diploma.id)
    assert outcome.record_deleted is True
    assert outcome.attachment_removed is None


def test_revoke_survives_file_cleanup_failure(db, store, student, monkeypatch):
    diploma = grading.issue_diploma(db, student.id, "Brevet", "/uploads/scan.pdf")

    def broken_delete(reference):
        raise AdvisoryCleanupFailure(reference, PermissionError("read-only"))

    monkeypatch.setattr(store, "delete", broken_delete)
    outcome = grading.revoke_diploma(db, store, diploma.id)

    assert outcome.record_deleted is True
    assert outcome.attachment_removed is False
    assert db.query(Diploma).count() == 0


def test_revoke_unknown_diploma(db, store):
    assert grading.revoke_diploma(db, store, 404).record_deleted is False


def test_remove_grade_with_attachment(db, store, student, admin):
    (store.directory / "copie.png").write_bytes(b"png")
    grade = create_grade(db, student.id, "Maths", 12, 1, admin.id, "/uploads/copie.png")

    outcome = grading.remove_grade(db, store, grade.id)

    assert outcome.record_deleted is True
    assert outcome.attachment_removed is True
    assert grading.compute_weighted_average(db, student.id) == 0
