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
import sys

from config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: str = None) -> None:
    """Configure the root logger once for the whole process."""
    root = logging.getLogger()
    level = (level or LOG_LEVEL).upper()
    root.setLevel(getattr(logging, level, logging.INFO))

    # uvicorn reload re-imports main; avoid stacking handlers
    if any(getattr(h, "_schoolportal", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._schoolportal = True
    root.addHandler(handler)

    # SQL echo is too noisy for the default level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
