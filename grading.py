# SchoolPortal - Portail scolaire
# Copyright (C) 2026 (linuxdev)
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Grade aggregation and diploma issuance.

A diploma stores the weighted average of its holder's grades as computed at
issuance time. Later grade edits do not touch issued diplomas.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import access
from attachments import AttachmentStore
from config import DEFAULT_DIPLOMA_TITLE
from crud_ops import get_grade, get_grades_for_user, delete_grade
from database import commit
from exceptions import AdvisoryCleanupFailure, StorageFailure
from models import Diploma, User

logger = logging.getLogger(__name__)


@dataclass
class CleanupOutcome:
    """Result of deleting a row that may own an attachment file.

    record_deleted is authoritative. attachment_removed is None when there
    was no attachment, False when the file could not be removed.
    """

    record_deleted: bool
    attachment_removed: Optional[bool] = None


def weighted_average(grades: Iterable) -> float:
    """Weighted mean of (score, weight) rows; a missing weight counts as 1.

    Returns 0.0 when the weights sum to zero, which includes the empty case.
    Negative weights and scores are taken as they come.
    """
    total = 0.0
    total_weight = 0.0
    for grade in grades:
        weight = 1 if grade.weight is None else grade.weight
        total += grade.score * weight
        total_weight += weight
    if total_weight == 0:
        return 0.0
    return total / total_weight


def compute_weighted_average(db: Session, user_id: int) -> float:
    return weighted_average(get_grades_for_user(db, user_id))


def issue_diploma(db: Session, user_id: int, title: str = None, attachment: str = None) -> Diploma:
    average = compute_weighted_average(db, user_id)
    title = (title or "").strip() or DEFAULT_DIPLOMA_TITLE
    diploma = Diploma(
        user_id=user_id,
        title=title,
        average=average,
        issued_at=datetime.utcnow(),
        attachment=attachment,
    )
    db.add(diploma)
    commit(db, "issue diploma")
    db.refresh(diploma)
    logger.info("Issued diploma %s to user %s with average %.2f", diploma.id, user_id, average)
    return diploma


def get_diploma(db: Session, diploma_id: int):
    return db.query(Diploma).filter(Diploma.id == diploma_id).first()


def list_diplomas(db: Session, viewer: User):
    """Diplomas visible to the viewer, newest first."""
    try:
        diplomas = db.query(Diploma).order_by(Diploma.id.desc()).all()
    except SQLAlchemyError as e:
        logger.error("Could not read diplomas: %s", e)
        raise StorageFailure("list diplomas", e) from e
    return access.visible(diplomas, viewer.role, viewer.id)


def remove_attachment(store: AttachmentStore, reference: Optional[str]) -> Optional[bool]:
    if not reference:
        return None
    try:
        store.delete(reference)
    except AdvisoryCleanupFailure as e:
        logger.warning("%s: %s", e, e.cause)
        return False
    return True


def revoke_diploma(db: Session, store: AttachmentStore, diploma_id: int) -> CleanupOutcome:
    """Delete a diploma row, then try to remove its attachment file.

    The two steps are reported separately: a failed file removal does not
    undo or fail the row deletion.
    """
    diploma = get_diploma(db, diploma_id)
    if diploma is None:
        return CleanupOutcome(record_deleted=False)
    reference = diploma.attachment
    db.delete(diploma)
    commit(db, "revoke diploma")
    logger.info("Revoked diploma %s", diploma_id)
    return CleanupOutcome(record_deleted=True, attachment_removed=remove_attachment(store, reference))


def remove_grade(db: Session, store: AttachmentStore, grade_id: int) -> CleanupOutcome:
    grade = get_grade(db, grade_id)
    if grade is None:
        return CleanupOutcome(record_deleted=False)
    reference = grade.attachment
    delete_grade(db, grade)
    logger.info("Deleted grade %s", grade_id)
    return CleanupOutcome(record_deleted=True, attachment_removed=remove_attachment(store, reference))
