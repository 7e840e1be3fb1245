import pytest
from reviewdesk.auth.roles import (
    expand_roles,
    has_any_role,
    is_coordinator,
    normalize_roles,
)


@pytest.mark.parametrize(
    "roles_input, expected",
    [
        ("admin", ["coordinator"]),
        ("publisher", ["author"]),
        (" Reviewer ", ["reviewer"]),
        (["publisher", "reviewer", "author"], ["author", "reviewer"]),
        (["admin", "coordinator"], ["coordinator"]),
        (["bogus"], ["author"]),
        (None, ["author"]),
        ([], ["author"]),
    ],
)
def test_normalize_roles(roles_input, expected):
    assert normalize_roles(roles_input) == expected


def test_expand_roles_is_symmetric_for_aliases():
    assert expand_roles(["coordinator"]) == {"coordinator", "admin"}
    assert expand_roles(["admin"]) == {"coordinator", "admin"}
    assert expand_roles(["author"]) == {"author", "publisher"}


def test_expand_roles_keeps_unknown_labels():
    assert expand_roles(["auditor"]) == {"auditor"}


def test_has_any_role_accepts_legacy_labels():
    assert has_any_role(["admin"], ["coordinator"])
    assert has_any_role(["publisher"], ["author"])
    assert has_any_role(["coordinator"], ["admin"])
    assert not has_any_role(["reviewer"], ["coordinator"])
    assert not has_any_role([], ["author"])


def test_is_coordinator():
    assert is_coordinator(["reviewer", "admin"])
    assert not is_coordinator(["reviewer", "author"])
