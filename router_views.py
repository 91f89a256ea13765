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

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
import bleach

import access
import grading
import message_log
from attachments import AttachmentStore, get_attachment_store
from broadcast import BroadcastChannel, EventType, get_channel, make_event
from config import TEMPLATES_DIR
from crud_ops import (
    create_grade, create_timetable_entry, create_user, delete_timetable_entry, delete_user,
    generate_password, get_all_grades, get_grades_for_user, get_students, get_timetable,
    get_user, get_user_by_username, get_users, reset_password,
)
from database import get_db
from exceptions import StorageFailure, ValidationFailure
from models import User
from router_auth import require_admin, require_user

logger = logging.getLogger(__name__)

router = APIRouter()
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def clean(value):
    return bleach.clean(value or "").strip()


def parse_weight(raw: str):
    """Blank weight means the default coefficient of 1."""
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValidationFailure("Coefficient invalide")


def require_subject(db: Session, user_id: int) -> User:
    subject = get_user(db, user_id)
    if subject is None:
        raise ValidationFailure("Utilisateur introuvable")
    return subject


def discard_upload(store: AttachmentStore, reference):
    # The row never made it to the database, so its file has no owner
    if reference:
        grading.remove_attachment(store, reference)


@router.get("/")
def home(user: User = Depends(require_user)):
    return RedirectResponse(url="/dashboard", status_code=302)


@router.get("/dashboard")
def dashboard(request: Request, user: User = Depends(require_user)):
    return templates.TemplateResponse(request, "dashboard.html", {"user": user})


# Timetable

@router.get("/timetable")
def timetable(request: Request, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return templates.TemplateResponse(request, "timetable.html", {"user": user, "entries": get_timetable(db)})


@router.post("/timetable")
def add_timetable_entry(
    day: str = Form(""),
    time_slot: str = Form(""),
    subject: str = Form(""),
    teacher: str = Form(""),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    create_timetable_entry(db, clean(day), clean(time_slot), clean(subject), clean(teacher))
    return RedirectResponse(url="/timetable", status_code=302)


@router.post("/timetable/delete")
def remove_timetable_entry(id: int = Form(...), admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    delete_timetable_entry(db, id)
    return RedirectResponse(url="/timetable", status_code=302)


# Grades

@router.get("/notes")
def notes(request: Request, user: User = Depends(require_user), db: Session = Depends(get_db)):
    if access.sees_all_grades(user.role):
        grades = get_all_grades(db)
        average = None
    else:
        grades = get_grades_for_user(db, user.id)
        average = grading.weighted_average(grades)
    return templates.TemplateResponse(request, "notes.html", {
        "user": user,
        "notes": grades,
        "average": average,
        "students": get_students(db),
    })


@router.post("/notes")
def add_grade(
    user_id: int = Form(...),
    subject: str = Form(""),
    score: float = Form(...),
    weight: str = Form(""),
    attachment: UploadFile = File(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
):
    require_subject(db, user_id)
    weight_value = parse_weight(weight)
    reference = store.save(attachment)
    try:
        create_grade(db, user_id, clean(subject), score, weight_value, admin.id, reference)
    except StorageFailure:
        discard_upload(store, reference)
        raise
    return RedirectResponse(url="/notes", status_code=302)


@router.post("/notes/delete")
def remove_grade(
    id: int = Form(...),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
):
    outcome = grading.remove_grade(db, store, id)
    if not outcome.record_deleted:
        raise HTTPException(status_code=404, detail="Note introuvable")
    return RedirectResponse(url="/notes", status_code=302)


# Diplomas

@router.get("/diplomes")
def diplomas(request: Request, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return templates.TemplateResponse(request, "diplomes.html", {
        "user": user,
        "diplomes": grading.list_diplomas(db, user),
        "students": get_students(db) if access.is_admin(user.role) else [],
    })


@router.post("/diplomes")
def issue_diploma(
    user_id: int = Form(...),
    title: str = Form(""),
    attachment: UploadFile = File(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
):
    require_subject(db, user_id)
    reference = store.save(attachment)
    try:
        grading.issue_diploma(db, user_id, clean(title), reference)
    except StorageFailure:
        discard_upload(store, reference)
        raise
    return RedirectResponse(url="/diplomes", status_code=302)


@router.post("/diplomes/delete")
def revoke_diploma(
    id: int = Form(...),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
):
    outcome = grading.revoke_diploma(db, store, id)
    if not outcome.record_deleted:
        raise HTTPException(status_code=404, detail="Diplôme introuvable")
    return RedirectResponse(url="/diplomes", status_code=302)


# Messages

@router.get("/messages")
def messages(request: Request, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return templates.TemplateResponse(request, "messages.html", {"user": user, "messages": message_log.list_all(db)})


def append_and_read(db: Session, author_id: int, text: str):
    message_log.append(db, author_id, text)
    return message_log.serialize(message_log.list_all(db))


@router.post("/messages")
async def post_message(
    content: str = Form(""),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
    channel: BroadcastChannel = Depends(get_channel),
):
    text = clean(content)
    if not text:
        raise ValidationFailure("Message vide")

    # A failed append raises here, before anything is published
    history = await run_in_threadpool(append_and_read, db, user.id, text)
    await channel.publish(make_event(EventType.MESSAGES_UPDATE, history))
    return RedirectResponse(url="/messages", status_code=302)


# User administration

def render_users(request: Request, admin: User, db: Session, created=None):
    return templates.TemplateResponse(request, "admin_users.html", {
        "user": admin,
        "users": get_users(db),
        "created": created,
    })


@router.get("/admin/users")
def admin_users(request: Request, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return render_users(request, admin, db)


@router.post("/admin/users/create")
def admin_create_user(
    request: Request,
    username: str = Form(...),
    displayname: str = Form(""),
    password: str = Form(""),
    role: str = Form("student"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    username = clean(username)
    if not username:
        raise ValidationFailure("Nom d'utilisateur requis")
    if get_user_by_username(db, username):
        raise ValidationFailure("Ce nom d'utilisateur existe déjà")

    if not password.strip():
        password = generate_password()
    created = create_user(db, username, password, clean(role), clean(displayname) or username)
    return render_users(request, admin, db, {"username": created.username, "password": password, "role": created.role})


@router.post("/admin/users/delete")
def admin_delete_user(id: int = Form(...), admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    delete_user(db, id)
    return RedirectResponse(url="/admin/users", status_code=302)


@router.post("/admin/users/reset")
def admin_reset_password(request: Request, id: int = Form(...), admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    target = get_user(db, id)
    if target is None:
        raise HTTPException(status_code=404, detail="Utilisateur introuvable")
    new_password = reset_password(db, target)
    return render_users(request, admin, db, {"username": target.username, "password": new_password, "role": None})
