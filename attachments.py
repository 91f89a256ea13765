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

"""Attachment storage on the local disk.

Uploads are written under a random name and identified by an opaque
reference of the form "/uploads/<name>". The rest of the portal stores that
string as-is and hands it back here for removal.
"""

import logging
import shutil
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from config import UPLOAD_DIR, UPLOAD_URL_PREFIX
from exceptions import AdvisoryCleanupFailure

logger = logging.getLogger(__name__)


class AttachmentStore:
    def __init__(self, directory: Path = UPLOAD_DIR, url_prefix: str = UPLOAD_URL_PREFIX):
        self.directory = Path(directory)
        self.url_prefix = url_prefix
        self.directory.mkdir(parents=True, exist_ok=True)

    def save(self, upload: Optional[UploadFile]) -> Optional[str]:
        """Store an upload and return its reference, or None if nothing was sent."""
        # Browsers post an empty file part when the input is left blank
        if upload is None or not upload.filename:
            return None
        name = uuid.uuid4().hex + Path(upload.filename).suffix
        with open(self.directory / name, "wb") as out:
            shutil.copyfileobj(upload.file, out)
        reference = self.url_prefix + name
        logger.info("Stored attachment %s", reference)
        return reference

    def path_for(self, reference: str) -> Path:
        if not reference.startswith(self.url_prefix):
            raise AdvisoryCleanupFailure(reference)
        # Only the last component is trusted
        return self.directory / Path(reference[len(self.url_prefix):]).name

    def delete(self, reference: str) -> bool:
        """Remove the file behind a reference.

        Returns False when the file was already gone. Any other failure is
        raised as AdvisoryCleanupFailure.
        """
        path = self.path_for(reference)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise AdvisoryCleanupFailure(reference, e) from e
        logger.info("Removed attachment %s", reference)
        return True


def get_attachment_store() -> AttachmentStore:
    """Dependency returning the store rooted at the configured upload directory."""
    return AttachmentStore()
