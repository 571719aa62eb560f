"""Role-based capability checks.

The same function answers "should the client show this button" and "may
this request go through"; route guards call it too, so hiding something
in a client is never the only thing standing in the way.
"""
from typing import NamedTuple, Optional

PUBLISHING_ROLES = ("facilitator", "admin")


class Capabilities(NamedTuple):
    can_view: bool
    can_edit: bool
    can_publish_directly: bool
    can_moderate: bool


def capabilities(role: Optional[str], owner_id: Optional[str] = None,
                 current_user_id: Optional[str] = None) -> Capabilities:
    is_admin = role == "admin"
    is_owner = bool(current_user_id) and owner_id is not None and owner_id == current_user_id
    return Capabilities(
        can_view=True,
        can_edit=is_admin or is_owner,
        can_publish_directly=role in PUBLISHING_ROLES,
        can_moderate=is_admin,
    )


def can_publish_directly(role: Optional[str]) -> bool:
    return capabilities(role).can_publish_directly


def can_moderate(role: Optional[str]) -> bool:
    return capabilities(role).can_moderate


def can_edit(role: Optional[str], owner_id: Optional[str], current_user_id: Optional[str]) -> bool:
    return capabilities(role, owner_id, current_user_id).can_edit
