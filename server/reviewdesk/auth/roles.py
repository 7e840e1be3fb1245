"""
Canonical roles and their legacy aliases.

Accounts store only canonical roles (author, reviewer, coordinator). Older
clients and tokens may still carry the legacy labels ``publisher`` (an author)
and ``admin`` (a coordinator). Every place that reads or checks roles goes
through this module so that both spellings are treated the same way.
"""

from typing import Iterable, List, Optional, Set, Union

from reviewdesk.database.models import Role

# Legacy or canonical label -> canonical role
CANONICAL_ROLES = {
    "author": Role.AUTHOR,
    "publisher": Role.AUTHOR,
    "reviewer": Role.REVIEWER,
    "coordinator": Role.COORDINATOR,
    "admin": Role.COORDINATOR,
}

# Canonical role -> every label that should be admitted for it
ROLE_ALIASES = {
    Role.AUTHOR: {"author", "publisher"},
    Role.REVIEWER: {"reviewer"},
    Role.COORDINATOR: {"coordinator", "admin"},
}

DEFAULT_ROLES = [Role.AUTHOR.value]


def _clean(label: Optional[str]) -> str:
    return (label or "").strip().lower()


def normalize_roles(roles_input: Union[str, Iterable[str], None]) -> List[str]:
    """
    Map a role or list of roles (canonical or legacy) to canonical role names.

    Unknown labels are dropped and duplicates collapse while keeping the input
    order. An empty result falls back to ``["author"]``.
    """
    if not roles_input:
        return list(DEFAULT_ROLES)

    labels = [roles_input] if isinstance(roles_input, str) else list(roles_input)

    normalized: List[str] = []
    for label in labels:
        role = CANONICAL_ROLES.get(_clean(label))
        if role and role.value not in normalized:
            normalized.append(role.value)

    return normalized or list(DEFAULT_ROLES)


def expand_roles(required: Iterable[str]) -> Set[str]:
    """
    Expand a set of required roles into every label that satisfies it.

    ``expand_roles(["coordinator"])`` is ``{"coordinator", "admin"}`` and
    ``expand_roles(["admin"])`` is the same set.
    """
    accepted: Set[str] = set()
    for label in required:
        cleaned = _clean(label)
        role = CANONICAL_ROLES.get(cleaned)
        if role is None:
            # Unknown labels only admit themselves
            accepted.add(cleaned)
            continue
        accepted.update(ROLE_ALIASES[role])
    return accepted


def has_any_role(user_roles: Iterable[str], allowed: Iterable[str]) -> bool:
    """True when at least one of the caller's roles satisfies the allowed set."""
    accepted = expand_roles(allowed)
    return any(_clean(role) in accepted for role in user_roles)


def is_coordinator(user_roles: Iterable[str]) -> bool:
    return has_any_role(user_roles, [Role.COORDINATOR.value])
