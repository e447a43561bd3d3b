"""
Authorization gate.

Roles map to a fixed set of operations; the map is total, so every
(role, operation) pair has a definite answer. Endpoints declare the
operation they perform with ``require_permission``.
"""

import enum
import logging
from typing import Dict, FrozenSet, Optional
from fastapi import Depends, HTTPException, status
from backend.app.models.enums import UserRole, ShipmentStatus
from backend.app.core.dependencies import get_current_user

logger = logging.getLogger(__name__)


class Operation(str, enum.Enum):
    """Operations guarded by role."""
    VIEW_SHIPMENTS = "view_shipments"
    CREATE_SHIPMENT = "create_shipment"
    UPDATE_SHIPMENT = "update_shipment"
    DELETE_SHIPMENT = "delete_shipment"
    CHANGE_SHIPMENT_STATUS = "change_shipment_status"
    EXPORT_SHIPMENTS = "export_shipments"
    MANAGE_USERS = "manage_users"


ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[Operation]] = {
    UserRole.MANAGER: frozenset(Operation),
    UserRole.OPERATOR: frozenset({
        Operation.VIEW_SHIPMENTS,
        Operation.CREATE_SHIPMENT,
        Operation.UPDATE_SHIPMENT,
        Operation.DELETE_SHIPMENT,
        Operation.CHANGE_SHIPMENT_STATUS,
        Operation.EXPORT_SHIPMENTS,
    }),
    UserRole.ACCOUNTANT: frozenset({
        Operation.VIEW_SHIPMENTS,
        Operation.CHANGE_SHIPMENT_STATUS,
        Operation.EXPORT_SHIPMENTS,
    }),
}

# Who may move a shipment INTO each status
STATUS_TRANSITION_ROLES: Dict[ShipmentStatus, FrozenSet[UserRole]] = {
    ShipmentStatus.IN_PROGRESS: frozenset({UserRole.MANAGER, UserRole.OPERATOR}),
    ShipmentStatus.READY_FOR_ACCOUNTANT: frozenset({UserRole.MANAGER, UserRole.OPERATOR}),
    ShipmentStatus.CLOSED: frozenset({UserRole.MANAGER, UserRole.ACCOUNTANT}),
}


def parse_role(value: Optional[str]) -> Optional[UserRole]:
    """Role from a token claim, or None if it is missing or unknown."""
    try:
        return UserRole(value)
    except ValueError:
        return None


def is_allowed(role: UserRole, operation: Operation) -> bool:
    """Whether ``role`` may perform ``operation``."""
    return operation in ROLE_PERMISSIONS.get(role, frozenset())


def can_set_status(role: UserRole, target: ShipmentStatus) -> bool:
    """Whether ``role`` may move a shipment into ``target``."""
    return role in STATUS_TRANSITION_ROLES.get(target, frozenset())


def require_permission(operation: Operation):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/shipments")
        async def create(current_user: dict = Depends(require_permission(Operation.CREATE_SHIPMENT))):
            ...

    Authentication runs first (401); a valid token with an insufficient
    role is answered with 403.
    """
    async def permission_checker(current_user: dict = Depends(get_current_user)) -> dict:
        role = parse_role(current_user.get("role"))

        if role is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if not is_allowed(role, operation):
            logger.warning(
                "Denied %s to user %s (role=%s)",
                operation.value, current_user.get("user_id"), role.value
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You don't have permission to perform this action"
            )

        return current_user

    return permission_checker
