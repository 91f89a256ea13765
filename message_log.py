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

"""Durable chat log.

Messages are only ever appended. Reads return the whole log, newest first;
there is no pagination.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

import schemas
from database import commit
from exceptions import StorageFailure, ValidationFailure
from models import ChatMessage

logger = logging.getLogger(__name__)


def append(db: Session, author_id: int, text: str) -> int:
    """Persist one message and return its id.

    Empty strings are stored as given; rejecting blank input is up to the
    caller.
    """
    if author_id is None:
        raise ValidationFailure("Message author is required")
    if text is None:
        raise ValidationFailure("Message text is required")
    message = ChatMessage(user_id=author_id, content=text, created_at=datetime.utcnow())
    db.add(message)
    commit(db, "append message")
    logger.info("Appended message %s from user %s", message.id, author_id)
    return message.id


def list_all(db: Session):
    try:
        return (
            db.query(ChatMessage)
            .options(joinedload(ChatMessage.author))
            .order_by(ChatMessage.id.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.error("Could not read message log: %s", e)
        raise StorageFailure("list messages", e) from e


def serialize(messages):
    """JSON-ready rows for the live channel."""
    return [
        schemas.ChatMessage(
            id=m.id,
            user_id=m.user_id,
            content=m.content,
            created_at=m.created_at,
            displayname=m.author.label if m.author else None,
        ).model_dump(mode="json")
        for m in messages
    ]
