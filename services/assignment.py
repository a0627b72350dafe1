# services/assignment.py

from typing import Optional, Union

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from core.errors import InvalidTransition, ValidationError
from core.logging_config import audit_logger
from core.permission_helpers import require_action
from models.enums import STAFF_ROLES, RequestAction, RequestStatus
from models.principal import Principal
from models.request import (
    Assignee,
    InternalUserAssignee,
    MaintenanceRequest,
    VendorAssignee,
)
from services.request_base import RequestServiceBase

_assignee_adapter = TypeAdapter(Assignee)

# Once the work is done the assignee is part of the record
REASSIGNMENT_LOCKED_STATUSES = frozenset({RequestStatus.completed, RequestStatus.verified})


def parse_assignee(value: Union[InternalUserAssignee, VendorAssignee, dict]):
    """Validate against the closed {internal_user, vendor} union."""
    if isinstance(value, (InternalUserAssignee, VendorAssignee)):
        return value
    try:
        return _assignee_adapter.validate_python(value)
    except PydanticValidationError:
        raise ValidationError(
            "Assignee must be {'kind': 'internal_user' | 'vendor', 'id': <id>}"
        )


class AssignmentResolver(RequestServiceBase):
    """Binds a request to exactly one assignee: an internal user or a vendor."""

    def assign(
        self,
        principal: Principal,
        request_id: str,
        assignee,
        expected_version: int,
    ) -> MaintenanceRequest:
        """
        Set `assigned_to`. A `new` request moves to `assigned` in the same
        write. Reassignment is allowed until the work is completed.
        """
        assignee = parse_assignee(assignee)
        request = self._load(request_id)

        # Terminal requests fail the same way for every role
        self._ensure_not_terminal(request, "assign")
        require_action(RequestAction.assign, principal, request)
        self._check_version(request, expected_version)

        if request.assigned_to is not None and request.status in REASSIGNMENT_LOCKED_STATUSES:
            raise InvalidTransition(
                f"Cannot reassign a request that is already {request.status}"
            )

        self._ensure_assignee_exists(assignee)

        changes = {"assigned_to": assignee}
        if request.status == RequestStatus.new:
            changes["status"] = RequestStatus.assigned

        previous = request.assigned_to
        updated = self._commit(request, changes)

        audit_logger.info(
            f"request={updated.id} assigned to {assignee.kind}:{assignee.id} "
            f"(was {_describe(previous)}) by {principal.id} status={updated.status} "
            f"v{updated.version}"
        )
        return updated

    def unassign(
        self, principal: Principal, request_id: str, expected_version: int
    ) -> MaintenanceRequest:
        """
        Clear the assignee. An `assigned` request falls back to `new` in the
        same write; any later status is left as is.
        """
        request = self._load(request_id)

        self._ensure_not_terminal(request, "unassign")
        require_action(RequestAction.assign, principal, request)
        self._check_version(request, expected_version)

        if request.assigned_to is None:
            return request
        if request.status in REASSIGNMENT_LOCKED_STATUSES:
            raise InvalidTransition(
                f"Cannot unassign a request that is already {request.status}"
            )

        previous = request.assigned_to
        changes = {"assigned_to": None}
        if request.status == RequestStatus.assigned:
            changes["status"] = RequestStatus.new

        updated = self._commit(request, changes)
        audit_logger.info(
            f"request={updated.id} unassigned (was {_describe(previous)}) by {principal.id} "
            f"status={updated.status} v{updated.version}"
        )
        return updated

    def _ensure_assignee_exists(self, assignee):
        if isinstance(assignee, VendorAssignee):
            if self._store.get_vendor(assignee.id) is None:
                raise ValidationError(f"Vendor {assignee.id} does not exist")
            return

        profile = self._store.get_user(assignee.id)
        if profile is None:
            raise ValidationError(f"User {assignee.id} does not exist")
        role = str(profile.get("role", "")).strip().lower().replace("_", "")
        if role not in {str(r) for r in STAFF_ROLES}:
            raise ValidationError(f"User {assignee.id} is not staff and cannot be assigned")


def _describe(assignee: Optional[Union[InternalUserAssignee, VendorAssignee]]) -> str:
    if assignee is None:
        return "unassigned"
    return f"{assignee.kind}:{assignee.id}"
