"""
SchoolPortal - Test Configuration and Fixtures
"""
import asyncio
import os
import tempfile
from pathlib import Path

import pytest

# Must be set before any portal module reads config
_TMP = Path(tempfile.mkdtemp(prefix="schoolportal-tests-"))
os.environ['SCHOOLPORTAL_DATABASE_URL'] = 'sqlite://'
os.environ['SCHOOLPORTAL_UPLOAD_DIR'] = str(_TMP / 'uploads')
os.environ['SCHOOLPORTAL_CONFIG'] = str(_TMP / 'config.json')
os.environ['LOG_LEVEL'] = 'WARNING'

from fastapi.testclient import TestClient

import models  # noqa: F401
from attachments import AttachmentStore, get_attachment_store
from broadcast import BroadcastChannel, get_channel
from crud_ops import create_user
from database import Base, SessionLocal, engine, get_db
from main import app


class RecordingConnection:
    """Stand-in for a WebSocket that keeps what it was sent."""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, payload):
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(payload)


@pytest.fixture
def db():
    """Fresh in-memory database for each test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(tmp_path) -> AttachmentStore:
    return AttachmentStore(tmp_path / 'uploads')


@pytest.fixture
def channel() -> BroadcastChannel:
    return BroadcastChannel()


@pytest.fixture
def recorder(channel) -> RecordingConnection:
    """A connection already joined to the test channel"""
    connection = RecordingConnection()
    asyncio.run(channel.join(connection))
    return connection


@pytest.fixture
def client(db, store, channel):
    """Test client sharing the test session, store and channel"""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_attachment_store] = lambda: store
    app.dependency_overrides[get_channel] = lambda: channel

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def admin(db):
    return create_user(db, 'direction', 'admin-pass', 'admin', 'La Direction')


@pytest.fixture
def teacher(db):
    return create_user(db, 'mdupont', 'teacher-pass', 'teacher', 'M. Dupont')


@pytest.fixture
def student(db):
    return create_user(db, 'alice', 'student-pass', 'student', 'Alice Martin')


@pytest.fixture
def other_student(db):
    return create_user(db, 'bob', 'student-pass', 'student', 'Bob Leroy')


def login_as(client, user):
    client.cookies.set('user_id', str(user.id))
    return client
