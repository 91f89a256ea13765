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

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session
import bleach

from config import TEMPLATES_DIR
from crud_ops import get_user, get_user_by_username, verify_password, create_user, count_users
from database import get_db
from exceptions import AccessDenied, ValidationFailure
from models import User

logger = logging.getLogger(__name__)

router = APIRouter()
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


class LoginRequired(Exception):
    """Raised by the user gate; main.py turns it into a redirect to /login."""


def get_current_user(request: Request, db: Session = Depends(get_db)):
    user_id = request.cookies.get("user_id")
    if not user_id:
        return None

    try:
        return get_user(db, int(user_id))
    except ValueError:
        # Invalid user_id in cookie
        return None


def require_user(user: User = Depends(get_current_user)) -> User:
    if user is None:
        raise LoginRequired()
    return user


def require_admin(user: User = Depends(require_user)) -> User:
    if user.role != "admin":
        raise AccessDenied("Accès refusé")
    return user


def login_response(user: User):
    response = RedirectResponse(url="/dashboard", status_code=302)
    response.set_cookie(key="user_id", value=str(user.id), httponly=True)
    return response


@router.get("/login")
def login_page(request: Request):
    return templates.TemplateResponse(request, "login.html", {"error": None})


@router.post("/login")
async def login(request: Request, db: Session = Depends(get_db)):
    form_data = await request.form()
    username = bleach.clean(form_data.get("username", ""))
    password = form_data.get("password", "")

    user = get_user_by_username(db, username)
    if not user:
        error = "Utilisateur introuvable"
    elif not verify_password(password, user.hashed_password):
        error = "Mot de passe incorrect"
    else:
        logger.info("User %s logged in", user.username)
        return login_response(user)

    return templates.TemplateResponse(request, "login.html", {"error": error}, status_code=401)


@router.get("/logout")
def logout():
    response = RedirectResponse(url="/login", status_code=302)
    response.delete_cookie("user_id")
    return response


@router.get("/setup")
def setup_page(request: Request, db: Session = Depends(get_db)):
    if count_users(db) > 0:
        return templates.TemplateResponse(request, "alert.html", {"error": "Setup déjà effectué."}, status_code=409)
    return templates.TemplateResponse(request, "setup.html", {})


@router.post("/setup")
async def setup(request: Request, db: Session = Depends(get_db)):
    # The first account is always an admin; afterwards setup is closed
    if count_users(db) > 0:
        return templates.TemplateResponse(request, "alert.html", {"error": "Setup déjà effectué."}, status_code=409)

    form_data = await request.form()
    username = bleach.clean(form_data.get("username", "")).strip()
    displayname = bleach.clean(form_data.get("displayname", "")).strip()
    password = form_data.get("password", "")
    if not username or not password:
        raise ValidationFailure("Nom d'utilisateur et mot de passe requis")

    user = create_user(db, username, password, "admin", displayname or username)
    return templates.TemplateResponse(request, "setup_done.html", {"username": user.username})
