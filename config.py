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

"""Configuration for SchoolPortal.

Paths and server settings come from environment variables (a local .env file
is loaded first). Site settings such as the default admin account live in
config.json, written by the first-start setup.
"""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).parent.resolve()

TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

CONFIG_FILE = Path(os.getenv("SCHOOLPORTAL_CONFIG", str(BASE_DIR / "config.json")))

DATABASE_URL: str = os.getenv(
    "SCHOOLPORTAL_DATABASE_URL", f"sqlite:///{(BASE_DIR / 'database.sqlite').as_posix()}"
)

# Attachment references are stored as "/uploads/<name>", served from this directory
UPLOAD_DIR = Path(os.getenv("SCHOOLPORTAL_UPLOAD_DIR", str(STATIC_DIR / "uploads")))
UPLOAD_URL_PREFIX = "/uploads/"

API_HOST: str = os.getenv("API_HOST", "127.0.0.1")
API_PORT: int = int(os.getenv("API_PORT", "3000"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

ROLES = ("student", "teacher", "admin")
DEFAULT_ROLE = "student"

DEFAULT_DIPLOMA_TITLE = "Diplôme RP"

DEFAULT_SETTINGS = {
    "language": "fr",
    "admin_username": None,
    "admin_password": None,
}


def load_settings(path: Path = None) -> dict:
    """Read config.json merged over the defaults.

    A missing file is not an error: the portal then runs with the defaults
    and no admin account is seeded.
    """
    path = path or CONFIG_FILE
    settings = dict(DEFAULT_SETTINGS)
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            settings.update(json.load(f))
    return settings
