from types import SimpleNamespace

import pytest

import access


@pytest.mark.parametrize("role, owner_id, caller_id, expected", [
    ("student", 1, 1, True),
    ("student", 2, 1, False),
    ("teacher", 2, 1, False),
    ("admin", 2, 1, True),
    ("admin", 1, 1, True),
])
def test_can_view(role, owner_id, caller_id, expected):
    assert access.can_view(role, owner_id, caller_id) is expected


def test_visible_filters_records():
    records = [SimpleNamespace(user_id=1), SimpleNamespace(user_id=2), SimpleNamespace(user_id=1)]
    assert len(access.visible(records, "student", 1)) == 2
    assert len(access.visible(records, "admin", 7)) == 3


def test_only_staff_sees_all_grades():
    assert access.sees_all_grades("teacher")
    assert access.sees_all_grades("admin")
    assert not access.sees_all_grades("student")
