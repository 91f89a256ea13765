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

"""Visibility rules for per-user records (grades, diplomas)."""


def is_admin(role: str) -> bool:
    return role == "admin"


def can_view(role: str, owner_id: int, caller_id: int) -> bool:
    """Whether a caller may see a record owned by owner_id.

    Owners always see their own records; admins see everybody's.
    """
    return is_admin(role) or owner_id == caller_id


def sees_all_grades(role: str) -> bool:
    # Teachers read every grade sheet, only admins may write them
    return role in ("teacher", "admin")


def visible(records, role: str, caller_id: int, owner_attr: str = "user_id"):
    """Filter records down to the ones the caller may view."""
    return [r for r in records if can_view(role, getattr(r, owner_attr), caller_id)]
