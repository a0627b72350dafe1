from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    """Principal roles. Values are lowercase on the wire."""

    admin = "admin"
    landlord = "landlord"
    propertymanager = "propertymanager"
    tenant = "tenant"
    vendor = "vendor"


STAFF_ROLES = frozenset({Role.admin, Role.landlord, Role.propertymanager})


# -----------------------------------------------------
# REQUEST STATUS
# -----------------------------------------------------
class RequestStatus(BaseStrEnum):
    """Workflow state for a maintenance request."""

    new = "new"
    assigned = "assigned"
    in_progress = "in_progress"
    completed = "completed"
    verified = "verified"
    reopened = "reopened"
    archived = "archived"
    canceled = "canceled"


TERMINAL_STATUSES = frozenset({RequestStatus.archived, RequestStatus.canceled})

# Single display mapping for the presentation boundary
STATUS_DISPLAY = {
    RequestStatus.new: "New",
    RequestStatus.assigned: "Assigned",
    RequestStatus.in_progress: "In Progress",
    RequestStatus.completed: "Completed",
    RequestStatus.verified: "Verified",
    RequestStatus.reopened: "Reopened",
    RequestStatus.archived: "Archived",
    RequestStatus.canceled: "Canceled",
}


def display_status(status: RequestStatus) -> str:
    return STATUS_DISPLAY[RequestStatus(status)]


# -----------------------------------------------------
# REQUEST PRIORITY
# -----------------------------------------------------
class RequestPriority(BaseStrEnum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


# -----------------------------------------------------
# REQUEST CATEGORY
# -----------------------------------------------------
class RequestCategory(BaseStrEnum):
    """Trade / area the request belongs to."""

    plumbing = "plumbing"
    electrical = "electrical"
    hvac = "hvac"
    appliance = "appliance"
    structural = "structural"
    pest_control = "pest_control"
    cleaning = "cleaning"
    security = "security"
    landscaping = "landscaping"
    general = "general"
    scheduled = "scheduled"  # generated from scheduled maintenance
    other = "other"


# -----------------------------------------------------
# ASSIGNEE KIND
# -----------------------------------------------------
class AssigneeKind(BaseStrEnum):
    internal_user = "internal_user"
    vendor = "vendor"


# -----------------------------------------------------
# REQUEST ACTION (gate table rows)
# -----------------------------------------------------
class RequestAction(BaseStrEnum):
    create = "create"
    read = "read"
    advance = "advance"
    verify = "verify"
    reopen = "reopen"
    archive = "archive"
    cancel = "cancel"
    assign = "assign"
    edit = "edit"
    manage_media = "manage_media"
    manage_public_link = "manage_public_link"
    comment = "comment"
    feedback = "feedback"

    @property
    def permission(self) -> str:
        """RBAC string used in ROLE_PERMISSIONS, e.g. 'requests:advance'."""
        return f"requests:{self.value}"
