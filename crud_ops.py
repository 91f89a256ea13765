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

import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from passlib.context import CryptContext

from config import ROLES, DEFAULT_ROLE
from database import commit
from exceptions import StorageFailure
from models import User, TimetableEntry, GradeRecord

logger = logging.getLogger(__name__)

# Configure argon2 for password hashing
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto", argon2__rounds=10, argon2__memory_cost=1024, argon2__parallelism=2)


def get_password_hash(password):
    # Truncate password to 72 bytes if needed to be compatible with bcrypt
    if len(password.encode('utf-8')) > 72:
        password = password.encode('utf-8')[:72].decode('utf-8', errors='ignore')
    return pwd_context.hash(password)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def generate_password():
    return uuid.uuid4().hex[:8]


def normalize_role(role):
    return role if role in ROLES else DEFAULT_ROLE


def count_users(db: Session):
    return db.query(User).count()


def get_user_by_username(db: Session, username: str):
    return db.query(User).filter(User.username == username).first()


def get_user(db: Session, user_id: int):
    return db.query(User).filter(User.id == user_id).first()


def get_users(db: Session):
    return db.query(User).order_by(User.id.asc()).all()


def get_students(db: Session):
    return db.query(User).filter(User.role == "student").order_by(User.id.asc()).all()


def create_user(db: Session, username: str, password: str, role: str, displayname: str = None):
    hashed_password = get_password_hash(password)
    db_user = User(
        username=username,
        displayname=displayname or username,
        hashed_password=hashed_password,
        role=normalize_role(role),
    )
    db.add(db_user)
    commit(db, "create user")
    db.refresh(db_user)
    logger.info("Created user %s (%s)", db_user.username, db_user.role)
    return db_user


def reset_password(db: Session, user: User):
    """Give the user a fresh generated password and return it in clear once."""
    new_password = generate_password()
    user.hashed_password = get_password_hash(new_password)
    commit(db, "reset password")
    logger.info("Password reset for user %s", user.username)
    return new_password


def delete_user(db: Session, user_id: int):
    # Grades, diplomas and messages of the user are left in place
    deleted = db.query(User).filter(User.id == user_id).delete()
    commit(db, "delete user")
    return deleted > 0


def get_timetable(db: Session):
    return db.query(TimetableEntry).order_by(TimetableEntry.id.asc()).all()


def create_timetable_entry(db: Session, day: str, time_slot: str, subject: str, teacher: str):
    entry = TimetableEntry(day=day, time_slot=time_slot, subject=subject, teacher=teacher)
    db.add(entry)
    commit(db, "create timetable entry")
    db.refresh(entry)
    return entry


def delete_timetable_entry(db: Session, entry_id: int):
    deleted = db.query(TimetableEntry).filter(TimetableEntry.id == entry_id).delete()
    commit(db, "delete timetable entry")
    return deleted > 0


def create_grade(db: Session, user_id: int, subject: str, score: float, weight: float = None,
                 author_id: int = None, attachment: str = None):
    # No range check on score or weight: only admins reach this
    db_grade = GradeRecord(
        user_id=user_id,
        subject=subject,
        score=score,
        weight=1 if weight is None else weight,
        author_id=author_id,
        attachment=attachment,
    )
    db.add(db_grade)
    commit(db, "create grade")
    db.refresh(db_grade)
    return db_grade


def get_grade(db: Session, grade_id: int):
    return db.query(GradeRecord).filter(GradeRecord.id == grade_id).first()


def get_grades_for_user(db: Session, user_id: int):
    try:
        return db.query(GradeRecord).filter(GradeRecord.user_id == user_id).order_by(GradeRecord.id.asc()).all()
    except SQLAlchemyError as e:
        logger.error("Could not read grades of user %s: %s", user_id, e)
        raise StorageFailure("read grades", e) from e


def get_all_grades(db: Session):
    try:
        return db.query(GradeRecord).order_by(GradeRecord.id.desc()).all()
    except SQLAlchemyError as e:
        logger.error("Could not read grades: %s", e)
        raise StorageFailure("read grades", e) from e


def delete_grade(db: Session, grade: GradeRecord):
    db.delete(grade)
    commit(db, "delete grade")
