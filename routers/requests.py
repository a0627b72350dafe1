# routers/requests.py

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from typing import List, Optional

from dependencies.auth import get_current_user
from dependencies.services import (
    get_assignment_resolver,
    get_lifecycle,
    get_outbox,
    get_public_link_issuer,
)
from models.comment import Comment, CommentCreate
from models.enums import RequestStatus
from models.principal import Principal
from models.request import (
    AssignPayload,
    FeedbackCreate,
    MaintenanceRequest,
    MediaAdd,
    MediaRemove,
    PublicLink,
    PublicLinkDisable,
    PublicLinkEnable,
    RequestCreate,
    RequestUpdate,
    StatusTransition,
    VersionedAction,
)
from services.assignment import AssignmentResolver
from services.outbox import NotificationOutbox, RequestEvent
from services.public_links import PublicLinkIssuer
from services.request_lifecycle import RequestLifecycle

router = APIRouter(
    prefix="/requests",
    tags=["Maintenance Requests"],
)

"""
MAINTENANCE REQUESTS ROUTER

Rules:
- Every mutation carries the `version` the caller last read; a stale
  version is answered with 409.
- Authorization lives in core.permission_helpers; this router only maps
  HTTP onto the request services.
- Notifications are queued after the write commits and sent after the
  response goes out.
"""


# -----------------------------------------------------
# Helper: queue a committed change for notification
# -----------------------------------------------------
def publish_event(
    background_tasks: BackgroundTasks,
    outbox: NotificationOutbox,
    request: MaintenanceRequest,
    kind: str,
    **payload,
):
    event = RequestEvent(request_id=request.id, version=request.version, kind=kind, payload=payload)
    if outbox.enqueue(event):
        background_tasks.add_task(outbox.flush)


# -----------------------------------------------------
# CREATE
# -----------------------------------------------------
@router.post("", response_model=MaintenanceRequest, status_code=201, summary="Create maintenance request")
def create_request(
    payload: RequestCreate,
    background_tasks: BackgroundTasks,
    current_user: Principal = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
    outbox: NotificationOutbox = Depends(get_outbox),
):
    """
    Tenants must pass a unit they hold a tenancy for.
    Landlords / property managers may omit `unit_id` for property-wide work.
    """
    created = lifecycle.create_request(current_user, payload)
    publish_event(background_tasks, outbox, created, "created", title=created.title)
    return created


# -----------------------------------------------------
# LIST
# -----------------------------------------------------
@router.get("", response_model=List[MaintenanceRequest], summary="List visible maintenance requests")
def list_requests(
    property_id: Optional[str] = Query(None),
    status: Optional[RequestStatus] = Query(None),
    assignee_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    current_user: Principal = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    return lifecycle.list_requests(
        current_user,
        property_id=property_id,
        status=status,
        assignee_id=assignee_id,
        page=page,
        limit=limit,
    )


# -----------------------------------------------------
# GET ONE
# -----------------------------------------------------
@router.get("/{request_id}", response_model=MaintenanceRequest, summary="Get maintenance request")
def get_request(
    request_id: str,
    current_user: Principal = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    return lifecycle.get_request(current_user, request_id)


# -----------------------------------------------------
# EDIT FIELDS
# -----------------------------------------------------
@router.put("/{request_id}", response_model=MaintenanceRequest, summary="Edit title / description / priority / category")
def update_request(
    request_id: str,
    payload: RequestUpdate,
    current_user: Principal = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    return lifecycle.update_request(current_user, request_id, payload)


# -----------------------------------------------------
# STATUS
# -----------------------------------------------------
@router.put("/{request_id}/status", response_model=MaintenanceRequest, summary="Move request to a new status")
def transition_status(
    request_id: str,
    payload: StatusTransition,
    background_tasks: BackgroundTasks,
    current_user: Principal = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
    outbox: NotificationOutbox = Depends(get_outbox),
):
    updated = lifecycle.transition_status(current_user, request_id, payload.status, payload.version)
    publish_event(background_tasks, outbox, updated, "status_changed", status=str(updated.status))
    return updated


def _transition_route(target: RequestStatus):
    def handler(
        request_id: str,
        payload: VersionedAction,
        background_tasks: BackgroundTasks,
        current_user: Principal = Depends(get_current_user),
        lifecycle: RequestLifecycle = Depends(get_lifecycle),
        outbox: NotificationOutbox = Depends(get_outbox),
    ):
        updated = lifecycle.transition_status(current_user, request_id, target, payload.version)
        publish_event(background_tasks, outbox, updated, "status_changed", status=str(updated.status))
        return updated

    return handler


for _path, _target in (
    ("start", RequestStatus.in_progress),
    ("complete", RequestStatus.completed),
    ("verify", RequestStatus.verified),
    ("reopen", RequestStatus.reopened),
    ("archive", RequestStatus.archived),
    ("cancel", RequestStatus.canceled),
):
    router.add_api_route(
        f"/{{request_id}}/{_path}",
        _transition_route(_target),
        methods=["PUT"],
        response_model=MaintenanceRequest,
        summary=f"Move request to {_target}",
        name=f"{_path}_request",
    )


# -----------------------------------------------------
# ASSIGNMENT
# -----------------------------------------------------
@router.post("/{request_id}/assign", response_model=MaintenanceRequest, summary="Assign staff member or vendor")
def assign_request(
    request_id: str,
    payload: AssignPayload,
    background_tasks: BackgroundTasks,
    current_user: Principal = Depends(get_current_user),
    resolver: AssignmentResolver = Depends(get_assignment_resolver),
    outbox: NotificationOutbox = Depends(get_outbox),
):
    updated = resolver.assign(current_user, request_id, payload.assignee, payload.version)
    publish_event(
        background_tasks, outbox, updated, "assigned",
        assignee=f"{payload.assignee.kind}:{payload.assignee.id}",
    )
    return updated


@router.delete("/{request_id}/assign", response_model=MaintenanceRequest, summary="Remove assignee")
def unassign_request(
    request_id: str,
    background_tasks: BackgroundTasks,
    version: int = Query(...),
    current_user: Principal = Depends(get_current_user),
    resolver: AssignmentResolver = Depends(get_assignment_resolver),
    outbox: NotificationOutbox = Depends(get_outbox),
):
    updated = resolver.unassign(current_user, request_id, version)
    publish_event(background_tasks, outbox, updated, "unassigned")
    return updated


# -----------------------------------------------------
# MEDIA
# -----------------------------------------------------
@router.post("/{request_id}/media", response_model=MaintenanceRequest, summary="Attach media URLs")
def add_media(
    request_id: str,
    payload: MediaAdd,
    current_user: Principal = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    return lifecycle.add_media(current_user, request_id, payload.urls, payload.version)


@router.delete("/{request_id}/media", response_model=MaintenanceRequest, summary="Detach a media URL")
def remove_media(
    request_id: str,
    payload: MediaRemove,
    current_user: Principal = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    return lifecycle.remove_media(current_user, request_id, payload.url, payload.version)


# -----------------------------------------------------
# FEEDBACK
# -----------------------------------------------------
@router.post("/{request_id}/feedback", response_model=MaintenanceRequest, summary="Rate completed work")
def submit_feedback(
    request_id: str,
    payload: FeedbackCreate,
    background_tasks: BackgroundTasks,
    current_user: Principal = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
    outbox: NotificationOutbox = Depends(get_outbox),
):
    updated = lifecycle.submit_feedback(
        current_user, request_id, payload.rating, payload.comment, payload.version
    )
    publish_event(background_tasks, outbox, updated, "feedback_submitted", rating=payload.rating)
    return updated


# -----------------------------------------------------
# COMMENTS
# -----------------------------------------------------
@router.get("/{request_id}/comments", response_model=List[Comment], summary="List comments")
def list_comments(
    request_id: str,
    current_user: Principal = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    return lifecycle.list_comments(current_user, request_id)


@router.post("/{request_id}/comments", response_model=Comment, status_code=201, summary="Add comment")
def add_comment(
    request_id: str,
    payload: CommentCreate,
    current_user: Principal = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    return lifecycle.add_comment(current_user, request_id, payload.body)


# -----------------------------------------------------
# PUBLIC LINKS (issue / revoke)
# -----------------------------------------------------
@router.post("/{request_id}/enable-public-link", response_model=PublicLink, summary="Issue public link")
def enable_public_link(
    request_id: str,
    background_tasks: BackgroundTasks,
    payload: Optional[PublicLinkEnable] = None,
    current_user: Principal = Depends(get_current_user),
    issuer: PublicLinkIssuer = Depends(get_public_link_issuer),
    outbox: NotificationOutbox = Depends(get_outbox),
):
    """Replaces any previous link; the old token stops working immediately."""
    payload = payload or PublicLinkEnable()
    link = issuer.enable_public_link(
        current_user, request_id, payload.expires_in_days, payload.version
    )
    request = issuer.store.get_request(request_id)
    if request is not None:
        publish_event(background_tasks, outbox, request, "public_link_enabled")
    return link


@router.post("/{request_id}/disable-public-link", response_model=MaintenanceRequest, summary="Revoke public link")
def disable_public_link(
    request_id: str,
    payload: Optional[PublicLinkDisable] = None,
    current_user: Principal = Depends(get_current_user),
    issuer: PublicLinkIssuer = Depends(get_public_link_issuer),
):
    payload = payload or PublicLinkDisable()
    return issuer.disable_public_link(current_user, request_id, payload.version)
