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


from sqlalchemy import Column, Integer, String, ForeignKey, Float, DateTime, Text
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    displayname = Column(String)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="student")  # "student", "teacher" or "admin"

    @property
    def label(self):
        return self.displayname or self.username


class TimetableEntry(Base):
    __tablename__ = "timetable"

    id = Column(Integer, primary_key=True, index=True)
    day = Column(String)
    time_slot = Column(String)
    subject = Column(String)
    teacher = Column(String)


# Rows below reference users without a foreign-key cascade: deleting a user
# leaves their grades, diplomas and messages in place.

class GradeRecord(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    subject = Column(String)
    score = Column(Float, nullable=False)
    weight = Column(Float, default=1)
    author_id = Column(Integer, ForeignKey("users.id"))
    attachment = Column(String)

    student = relationship("User", foreign_keys=[user_id])
    author = relationship("User", foreign_keys=[author_id])


class Diploma(Base):
    __tablename__ = "diplomes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    # Snapshot taken at issuance, never recomputed
    average = Column(Float, nullable=False)
    issued_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    attachment = Column(String)

    holder = relationship("User")


class ChatMessage(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    author = relationship("User")
