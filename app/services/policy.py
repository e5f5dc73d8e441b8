"""
Authorization gate.

One pure function decides, from the caller's role and id and the ownership
fields of the target, whether an operation is permitted and how a listing
must be scoped. Status preconditions (a ticket must be ``new`` to be claimed,
and so on) are not checked here; the lifecycle engine enforces those with
conditional writes and reports them as conflicts.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional
import logging

from app.core.errors import AuthorizationError
from app.schemas.client import ClientInDB
from app.schemas.declaration import DeclarationInDB
from app.schemas.user import CurrentUser, UserInDB, UserRole

logger = logging.getLogger(__name__)


class Resource(str, Enum):
    category = "category"
    client = "client"
    declaration = "declaration"
    user = "user"


class Action(str, Enum):
    list = "list"
    read = "read"
    create = "create"
    update = "update"
    delete = "delete"
    take = "take"
    resolve = "resolve"
    update_remarks = "update_remarks"
    set_status = "set_status"
    set_role = "set_role"


@dataclass(frozen=True)
class Target:
    """Ownership fields of the resource being acted on."""
    owner_id: Optional[str] = None
    assignee_id: Optional[str] = None
    role: Optional[UserRole] = None

    @classmethod
    def of_client(cls, client: ClientInDB) -> "Target":
        return cls(owner_id=client.commercial_id)

    @classmethod
    def of_declaration(cls, declaration: DeclarationInDB) -> "Target":
        return cls(owner_id=declaration.commercial_id, assignee_id=declaration.technician_id)

    @classmethod
    def of_user(cls, user: UserInDB) -> "Target":
        return cls(owner_id=user.id, role=user.role)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""
    # For list actions: restrict rows to this owner id; None means everything
    owner_scope: Optional[str] = None


PERMIT = Decision(True)


def _deny(reason: str) -> Decision:
    return Decision(False, reason)


def _owns(caller: CurrentUser, target: Optional[Target]) -> bool:
    return target is not None and target.owner_id == caller.id


def _category_rules(caller: Optional[CurrentUser], action: Action, target: Optional[Target]) -> Decision:
    if action in (Action.list, Action.read):
        return PERMIT
    return _deny("Categories are read-only")


def _client_rules(caller: CurrentUser, action: Action, target: Optional[Target]) -> Decision:
    role = caller.role
    if action == Action.list:
        if role == UserRole.commercial:
            return Decision(True, owner_scope=caller.id)
        if role == UserRole.admin:
            return PERMIT
        return _deny("Clients are reserved to commercials")
    if action == Action.read:
        if role == UserRole.admin or (role == UserRole.commercial and _owns(caller, target)):
            return PERMIT
        return _deny("You don't have permission to view this client")
    if action == Action.create:
        if role == UserRole.commercial:
            return PERMIT
        return _deny("Only commercials can create clients")
    if action in (Action.update, Action.delete):
        if role == UserRole.commercial and _owns(caller, target):
            return PERMIT
        return _deny("Only the owning commercial can modify this client")
    return _deny(f"Action '{action.value}' is not supported on clients")


def _declaration_rules(caller: CurrentUser, action: Action, target: Optional[Target]) -> Decision:
    role = caller.role
    if action == Action.list:
        if role == UserRole.commercial:
            return Decision(True, owner_scope=caller.id)
        return PERMIT
    if action == Action.read:
        if role in (UserRole.technician, UserRole.admin) or _owns(caller, target):
            return PERMIT
        return _deny("You don't have permission to view this declaration")
    if action == Action.create:
        if role == UserRole.commercial:
            return PERMIT
        return _deny("Only commercials can create declarations")
    if action in (Action.update, Action.delete):
        if role == UserRole.commercial and _owns(caller, target):
            return PERMIT
        return _deny("Only the commercial who created this declaration can modify it")
    if action == Action.take:
        if role == UserRole.technician:
            return PERMIT
        return _deny("Only technicians can take declarations")
    if action in (Action.resolve, Action.update_remarks):
        if role == UserRole.technician and target is not None and target.assignee_id == caller.id:
            return PERMIT
        return _deny("You are not the technician assigned to this declaration")
    return _deny(f"Action '{action.value}' is not supported on declarations")


def _user_rules(caller: CurrentUser, action: Action, target: Optional[Target]) -> Decision:
    if caller.role != UserRole.admin:
        return _deny("Administrator access required")
    if action in (Action.list, Action.read):
        return PERMIT
    if action in (Action.set_status, Action.set_role):
        if target is not None and target.role == UserRole.admin:
            return _deny("An administrator account cannot be modified")
        return PERMIT
    return _deny(f"Action '{action.value}' is not supported on users")


_RULES: Dict[Resource, Callable[..., Decision]] = {
    Resource.category: _category_rules,
    Resource.client: _client_rules,
    Resource.declaration: _declaration_rules,
    Resource.user: _user_rules,
}


def evaluate(
    caller: Optional[CurrentUser],
    resource: Resource,
    action: Action,
    target: Optional[Target] = None,
) -> Decision:
    """
    Decide whether ``caller`` may perform ``action`` on ``resource``.

    ``caller`` may be None only for public resources; anything else is
    denied (authentication itself is handled upstream).
    """
    if caller is None and resource != Resource.category:
        return _deny("Authentication required")
    return _RULES[resource](caller, action, target)


def authorize(
    caller: Optional[CurrentUser],
    resource: Resource,
    action: Action,
    target: Optional[Target] = None,
) -> Decision:
    """
    Same as ``evaluate`` but raises ``AuthorizationError`` on denial.
    """
    decision = evaluate(caller, resource, action, target)
    if not decision.allowed:
        caller_id = caller.id if caller else "anonymous"
        logger.warning(
            f"Denied {action.value} on {resource.value} for user {caller_id}: {decision.reason}"
        )
        raise AuthorizationError(decision.reason)
    return decision
