"""
Role and ownership rules for leave and user operations.

`can` is a pure decision; `authorize` raises AuthorizationError on denial.
"""
from typing import Optional, Union
import enum
import logging

from leave_api.core.exceptions import AuthorizationError
from leave_api.models.leave import Leave
from leave_api.models.user import User
from leave_api.schemas.common import ListFilters

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    LIST = "list"
    VIEW = "view"
    CREATE = "create"
    DECIDE = "decide"
    DELETE = "delete"
    STATISTICS = "statistics"
    LIST_USERS = "list_users"
    VIEW_USER = "view_user"


DENIAL_MESSAGES = {
    Action.VIEW: "Unauthorized to view this leave request",
    Action.DECIDE: "Unauthorized to decide this leave request",
    Action.DELETE: "You can only delete your own pending leave requests",
}


def can(actor: User, action: Action, target: Optional[Union[Leave, User]] = None) -> bool:
    if action in (Action.LIST, Action.CREATE):
        return True

    if action in (Action.DECIDE, Action.STATISTICS, Action.LIST_USERS):
        return actor.is_admin

    if target is None:
        return False

    if action == Action.VIEW:
        return actor.is_admin or target.user_id == actor.id

    if action == Action.DELETE:
        # Admins never own leave records and hold no delete privilege
        return actor.is_employee and target.user_id == actor.id and target.is_pending

    if action == Action.VIEW_USER:
        return actor.is_admin or target.id == actor.id

    return False


def authorize(actor: User, action: Action, target: Optional[Union[Leave, User]] = None) -> None:
    if not can(actor, action, target):
        logger.warning(
            f"Denied {action.value} for user {actor.id}",
            extra={"action": action.value, "actor_id": str(actor.id), "target_id": str(getattr(target, "id", ""))},
        )
        raise AuthorizationError(action.value, DENIAL_MESSAGES.get(action))


def scope_leave_filters(actor: User, filters: ListFilters) -> ListFilters:
    """Restrict a leave listing to what the actor may see."""
    if actor.is_admin:
        return filters
    return filters.model_copy(update={"owner_id": actor.id})
