from typing import Iterable, Optional, Union

from core.errors import PermissionDenied
from core.permissions import ROLE_PERMISSIONS
from models.enums import AssigneeKind, RequestAction, Role
from models.principal import Principal
from models.request import MaintenanceRequest, RequestCreate

# Anything carrying property_id / unit_id (stored request or create payload)
RequestLike = Union[MaintenanceRequest, RequestCreate]

# Actions that need a staff role AND property scope
STAFF_SCOPED_ACTIONS = frozenset({
    RequestAction.advance,
    RequestAction.verify,
    RequestAction.reopen,
    RequestAction.archive,
    RequestAction.assign,
    RequestAction.manage_public_link,
})


# -----------------------------------------------------
# Role-level permissions
# -----------------------------------------------------
def get_effective_permissions(principal: Principal) -> set:
    return set(ROLE_PERMISSIONS.get(str(principal.role), []))


def has_permission(principal: Principal, permission: str) -> bool:
    effective = get_effective_permissions(principal)

    # Wildcard grants everything
    if "*" in effective:
        return True

    return permission in effective


def has_role(principal: Principal, required_roles: Iterable[Role]) -> bool:
    return principal.role in set(required_roles)


def is_admin(principal: Principal) -> bool:
    return principal.role == Role.admin


# ============================================================
# PROPERTY / UNIT SCOPE
# ============================================================

def has_property_access(principal: Principal, property_id: str) -> bool:
    """
    Admin: always. Landlord: owned. Property manager: managed.
    Tenant: any tenancy in the property. Vendor: never (vendors reach
    requests through assignment or public links only).
    """
    role = principal.role
    if role == Role.admin:
        return True
    if role == Role.landlord:
        return property_id in principal.owned_property_ids
    if role == Role.propertymanager:
        return property_id in principal.managed_property_ids
    if role == Role.tenant:
        return any(t.property_id == property_id for t in principal.tenancies)
    return False


def has_unit_access(principal: Principal, unit_id: str, property_id: Optional[str] = None) -> bool:
    """
    Landlords and property managers reach units through the parent property,
    so they need `property_id`; tenants need a tenancy on the unit itself.
    """
    role = principal.role
    if role == Role.admin:
        return True
    if role == Role.landlord:
        return property_id is not None and property_id in principal.owned_property_ids
    if role == Role.propertymanager:
        return property_id is not None and property_id in principal.managed_property_ids
    if role == Role.tenant:
        return any(t.unit_id == unit_id for t in principal.tenancies)
    return False


# ============================================================
# REQUEST-SPECIFIC FACTS
# ============================================================

def is_creator(principal: Principal, request: MaintenanceRequest) -> bool:
    return request.created_by == principal.id


def is_assignee(principal: Principal, request: MaintenanceRequest) -> bool:
    assignee = request.assigned_to
    if assignee is None:
        return False
    if assignee.kind == AssigneeKind.vendor:
        return principal.vendor_id is not None and assignee.id == principal.vendor_id
    return assignee.id == principal.id


def can_read(principal: Principal, request: MaintenanceRequest) -> bool:
    if not has_permission(principal, RequestAction.read.permission):
        return False
    if is_assignee(principal, request):
        return True

    role = principal.role
    if role in (Role.admin, Role.landlord, Role.propertymanager):
        return has_property_access(principal, request.property_id)
    if role == Role.tenant:
        if is_creator(principal, request):
            return True
        # Property-wide requests are not visible to tenants
        if request.unit_id is None:
            return False
        return any(
            t.unit_id == request.unit_id and t.property_id == request.property_id
            for t in principal.tenancies
        )
    return False


def _can_create(principal: Principal, draft: RequestLike) -> bool:
    if principal.role == Role.tenant:
        # Tenants always file against a unit they lease in that property
        if not draft.unit_id:
            return False
        return any(
            t.unit_id == draft.unit_id and t.property_id == draft.property_id
            for t in principal.tenancies
        )
    if draft.unit_id:
        return has_unit_access(principal, draft.unit_id, draft.property_id)
    return has_property_access(principal, draft.property_id)


# ============================================================
# ACTION GATE
# ============================================================

def can_perform(action: RequestAction, principal: Principal, request: RequestLike) -> bool:
    """
    Single decision point for every lifecycle, assignment and link operation.
    Pure: no I/O, same answer for the same inputs. Status-graph checks are
    NOT made here; they belong to the lifecycle engine.
    """
    action = RequestAction(action)

    if not has_permission(principal, action.permission):
        return False

    if action == RequestAction.create:
        return _can_create(principal, request)

    if action in (RequestAction.read, RequestAction.comment):
        return can_read(principal, request)

    if action in STAFF_SCOPED_ACTIONS:
        return has_property_access(principal, request.property_id)

    if action in (RequestAction.edit, RequestAction.manage_media):
        if principal.role == Role.tenant:
            return is_creator(principal, request)
        return has_property_access(principal, request.property_id)

    if action == RequestAction.cancel:
        return is_admin(principal) or is_creator(principal, request)

    if action == RequestAction.feedback:
        return is_admin(principal) or (
            principal.role == Role.tenant and is_creator(principal, request)
        )

    return False


def require_action(action: RequestAction, principal: Principal, request: RequestLike):
    """Raise PermissionDenied unless `principal` may perform `action` on `request`."""
    if not can_perform(action, principal, request):
        raise PermissionDenied(
            f"Role '{principal.role}' may not {RequestAction(action).value} this request"
        )

