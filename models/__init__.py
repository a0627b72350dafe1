# -------------------------
# Enums
# -------------------------
from .enums import (
    AssigneeKind,
    RequestAction,
    RequestCategory,
    RequestPriority,
    RequestStatus,
    Role,
    STAFF_ROLES,
    STATUS_DISPLAY,
    TERMINAL_STATUSES,
    display_status,
)

# -------------------------
# Identity
# -------------------------
from .principal import Principal, Tenancy

# -------------------------
# Properties / Vendors
# -------------------------
from .property import Property, Unit
from .vendor import Vendor

# -------------------------
# Maintenance Requests
# -------------------------
from .request import (
    Assignee,
    AssignPayload,
    Feedback,
    FeedbackCreate,
    InternalUserAssignee,
    MaintenanceRequest,
    MediaAdd,
    MediaRemove,
    PublicLink,
    PublicLinkDisable,
    PublicLinkEnable,
    PublicRequestAccess,
    PublicRequestView,
    RequestCreate,
    RequestUpdate,
    StatusTransition,
    VendorAssignee,
    VersionedAction,
)

# -------------------------
# Comments
# -------------------------
from .comment import Comment, CommentCreate, PublicCommentCreate

__all__ = [
    # enums
    "AssigneeKind",
    "RequestAction",
    "RequestCategory",
    "RequestPriority",
    "RequestStatus",
    "Role",
    "STAFF_ROLES",
    "STATUS_DISPLAY",
    "TERMINAL_STATUSES",
    "display_status",

    # identity
    "Principal",
    "Tenancy",

    # properties / vendors
    "Property",
    "Unit",
    "Vendor",

    # requests
    "Assignee",
    "AssignPayload",
    "Feedback",
    "FeedbackCreate",
    "InternalUserAssignee",
    "MaintenanceRequest",
    "MediaAdd",
    "MediaRemove",
    "PublicLink",
    "PublicLinkDisable",
    "PublicLinkEnable",
    "PublicRequestAccess",
    "PublicRequestView",
    "RequestCreate",
    "RequestUpdate",
    "StatusTransition",
    "VendorAssignee",
    "VersionedAction",

    # comments
    "Comment",
    "CommentCreate",
    "PublicCommentCreate",
]
