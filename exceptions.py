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

"""Application exceptions.

Every failure in a durable path is raised synchronously to the caller; none
of them is retried.
"""


class PortalError(Exception):
    """Base exception for SchoolPortal errors."""

    status_code = 500


class ValidationFailure(PortalError):
    """A required field is missing or malformed. Raised before any write."""

    status_code = 400


class StorageFailure(PortalError):
    """A read or write against the database failed."""

    status_code = 500

    def __init__(self, operation: str, cause: Exception = None):
        """Initialize the exception.

        Args:
            operation: Short name of the storage operation that failed.
            cause: The underlying database error, if any.
        """
        self.operation = operation
        self.cause = cause
        super().__init__(f"Storage failure during {operation}")


class AdvisoryCleanupFailure(PortalError):
    """Removing an attachment file failed after its row was deleted.

    Logged by whoever catches it; it never becomes the result of the
    operation that triggered the cleanup.
    """

    def __init__(self, reference: str, cause: Exception = None):
        self.reference = reference
        self.cause = cause
        super().__init__(f"Could not remove attachment '{reference}'")


class AccessDenied(PortalError):
    """The caller's role does not allow this operation."""

    status_code = 403
