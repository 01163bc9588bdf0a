"""Listing status transitions.

New listings start ``pending``. Admins approve, reject or ban them; owners
can only mark their own approved listing as sold or adopted. ``banned`` is
terminal.
"""

from __future__ import annotations

from pickmypit.auth.dependencies import Principal
from pickmypit.exceptions import AuthorizationError, ConflictError

INITIAL_STATUS = "pending"

VALID_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["available", "rejected", "banned"],
    "available": ["sold", "adopted", "banned"],
    "rejected": ["banned"],
    "sold": ["banned"],
    "adopted": ["banned"],
    "banned": [],
}

# Targets that only an admin may move a listing into.
ADMIN_TARGETS = frozenset({"available", "rejected", "banned"})
OWNER_TARGETS = frozenset({"sold", "adopted"})


def can_transition(current_status: str, target_status: str) -> bool:
    return target_status in VALID_TRANSITIONS.get(current_status, [])


def authorize_transition(principal: Principal, owner_id: int, target_status: str) -> None:
    """Role gate. Raises AuthorizationError when the principal may not set ``target_status``."""
    if principal.is_admin:
        return
    if target_status in ADMIN_TARGETS:
        raise AuthorizationError(f"Only admins can move a post to '{target_status}'")
    if target_status in OWNER_TARGETS and principal.kind == "user" and principal.id == owner_id:
        return
    raise AuthorizationError("You can only update your own posts")


def validate_transition(current_status: str, target_status: str) -> None:
    """Graph check. Raises ConflictError if the edge does not exist."""
    if not can_transition(current_status, target_status):
        valid = VALID_TRANSITIONS.get(current_status, [])
        raise ConflictError(
            f"Invalid status transition: {current_status} -> {target_status}",
            errors={"current": current_status, "target": target_status, "allowed": valid},
        )
