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
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException
import bleach

from config import API_HOST, API_PORT, STATIC_DIR, TEMPLATES_DIR, UPLOAD_DIR, UPLOAD_URL_PREFIX, load_settings
from crud_ops import count_users, create_user
from database import SessionLocal, init_db
from exceptions import PortalError
from logging_config import setup_logging
from router_auth import LoginRequired, router as auth_router
from router_chat import router as chat_router
from router_views import router as views_router

setup_logging()
logger = logging.getLogger(__name__)


def seed_admin():
    """Create the admin from config.json when the database has no users yet."""
    settings = load_settings()
    admin_username = settings.get("admin_username")
    admin_password = settings.get("admin_password")
    if not admin_username or not admin_password:
        return

    db = SessionLocal()
    try:
        if count_users(db) == 0:
            create_user(db, bleach.clean(admin_username), admin_password, "admin")
            logger.info("Seeded admin user %s from config", admin_username)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    seed_admin()
    logger.info("SchoolPortal started")
    yield


app = FastAPI(title="SchoolPortal", lifespan=lifespan)

UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

# Uploads first so they are not shadowed by the /static mount
app.mount(UPLOAD_URL_PREFIX.rstrip("/"), StaticFiles(directory=str(UPLOAD_DIR)), name="uploads")
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

app.include_router(auth_router, prefix="")
app.include_router(views_router, prefix="")
app.include_router(chat_router, prefix="")


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok"}


def render_alert(request: Request, message: str, status_code: int):
    return templates.TemplateResponse(
        request, "alert.html", {"error": bleach.clean(message)}, status_code=status_code
    )


@app.middleware("http")
async def error_handler(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return render_alert(request, str(exc), 500)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse(url="/login", status_code=302)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s", exc, request.method, request.url.path)
    return render_alert(request, str(exc), exc.status_code)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return render_alert(request, f"HTTP Error {exc.status_code}: {exc.detail}", exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return render_alert(request, f"Validation Error: {exc}", 400)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
