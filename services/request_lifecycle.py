# services/request_lifecycle.py

"""
Request Lifecycle Engine.

Owns the maintenance-request status graph and every mutation that is not an
assignment or a public-link change:

    new ──assign──▶ assigned
    new | assigned | reopened ──start──▶ in_progress
    in_progress ──complete──▶ completed
    completed ──verify──▶ verified
    completed | verified ──reopen──▶ reopened
    any non-terminal ──archive──▶ archived
    new ──cancel──▶ canceled            (creator or admin, unassigned only)

`archived` and `canceled` are terminal. Reads and comments stay available.

Guard order for every mutation:
    1. terminal status         → InvalidTransition
    2. action gate             → PermissionDenied
    3. caller's version        → Conflict
    4. graph / field rules     → InvalidTransition / ValidationError
    5. compare-and-swap write  → Conflict on a lost race
"""

from typing import Dict, FrozenSet, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from core.errors import InvalidTransition, NotFound, ValidationError
from core.logging_config import audit_logger, logger
from core.permission_helpers import can_read, require_action
from core.tokens import generate_id
from models.comment import Comment
from models.enums import RequestAction, RequestStatus, Role
from models.principal import Principal
from models.request import (
    Feedback,
    MaintenanceRequest,
    RequestCreate,
    RequestUpdate,
)
from services.request_base import RequestServiceBase


# -----------------------------------------------------
# Status graph
# -----------------------------------------------------
STATUS_GRAPH: Dict[RequestStatus, FrozenSet[RequestStatus]] = {
    RequestStatus.new: frozenset({
        RequestStatus.assigned,
        RequestStatus.in_progress,
        RequestStatus.archived,
        RequestStatus.canceled,
    }),
    RequestStatus.assigned: frozenset({RequestStatus.in_progress, RequestStatus.archived}),
    RequestStatus.in_progress: frozenset({RequestStatus.completed, RequestStatus.archived}),
    RequestStatus.completed: frozenset({
        RequestStatus.verified,
        RequestStatus.reopened,
        RequestStatus.archived,
    }),
    RequestStatus.verified: frozenset({RequestStatus.reopened, RequestStatus.archived}),
    RequestStatus.reopened: frozenset({RequestStatus.in_progress, RequestStatus.archived}),
    RequestStatus.archived: frozenset(),
    RequestStatus.canceled: frozenset(),
}

# Only the Assignment Resolver may take this edge
ASSIGNMENT_ONLY_EDGES = frozenset({(RequestStatus.new, RequestStatus.assigned)})

# Which gate-table row protects a move into each target status
TARGET_ACTION: Dict[RequestStatus, RequestAction] = {
    RequestStatus.new: RequestAction.advance,
    RequestStatus.assigned: RequestAction.assign,
    RequestStatus.in_progress: RequestAction.advance,
    RequestStatus.completed: RequestAction.advance,
    RequestStatus.verified: RequestAction.verify,
    RequestStatus.reopened: RequestAction.reopen,
    RequestStatus.archived: RequestAction.archive,
    RequestStatus.canceled: RequestAction.cancel,
}

FEEDBACK_STATUSES = frozenset({RequestStatus.completed, RequestStatus.verified})


def is_valid_transition(current: RequestStatus, target: RequestStatus) -> bool:
    """True if `current → target` is an explicit (non-assignment) edge."""
    if (current, target) in ASSIGNMENT_ONLY_EDGES:
        return False
    return target in STATUS_GRAPH.get(current, frozenset())


class RequestLifecycle(RequestServiceBase):
    """Create, read, transition and edit maintenance requests."""

    # =================================================
    # CREATE
    # =================================================
    def create_request(
        self, principal: Principal, payload: Union[RequestCreate, dict]
    ) -> MaintenanceRequest:
        if isinstance(payload, dict):
            try:
                payload = RequestCreate.model_validate(payload)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid request payload: {e.errors()[0]['msg']}")

        require_action(RequestAction.create, principal, payload)

        property_ = self._store.get_property(payload.property_id)
        if property_ is None:
            raise ValidationError(f"Property {payload.property_id} does not exist")

        if payload.unit_id is not None:
            unit = self._store.get_unit(payload.unit_id)
            if unit is None or unit.property_id != payload.property_id:
                raise ValidationError(
                    f"Unit {payload.unit_id} does not belong to property {payload.property_id}"
                )

        now = self._clock()
        request = MaintenanceRequest(
            id=generate_id(),
            property_id=payload.property_id,
            unit_id=payload.unit_id,
            title=payload.title,
            description=payload.description,
            priority=payload.priority,
            category=payload.category,
            media=list(payload.media),
            created_by=principal.id,
            status=RequestStatus.new,
            created_at=now,
            updated_at=now,
            version=1,
        )
        created = self._store.insert_request(request)

        audit_logger.info(
            f"request={created.id} created by {principal.id} ({principal.role}) "
            f"property={created.property_id} unit={created.unit_id}"
        )
        return created

    # =================================================
    # READ
    # =================================================
    def get_request(self, principal: Principal, request_id: str) -> MaintenanceRequest:
        request = self._load(request_id)
        require_action(RequestAction.read, principal, request)
        return request

    def list_requests(
        self,
        principal: Principal,
        property_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        assignee_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> List[MaintenanceRequest]:
        """
        The whole visibility scope goes to the store so paging counts only
        rows the caller can read. `can_read` stays as a final check.
        """
        page = max(page, 1)
        limit = min(max(limit, 1), 200)

        scope: Optional[FrozenSet[str]]
        unit_ids: Optional[FrozenSet[str]] = None
        created_by: Optional[str] = None
        if principal.role == Role.admin:
            scope = None
        elif principal.role == Role.landlord:
            scope = principal.owned_property_ids
        elif principal.role == Role.propertymanager:
            scope = principal.managed_property_ids
        elif principal.role == Role.tenant:
            scope = frozenset(t.property_id for t in principal.tenancies)
            unit_ids = frozenset(t.unit_id for t in principal.tenancies)
            created_by = principal.id
        else:
            # Vendors only ever see what is assigned to them
            if principal.vendor_id is None:
                return []
            scope = None
            assignee_id = principal.vendor_id

        if property_id is not None:
            scope = frozenset({property_id}) if scope is None else scope & {property_id}

        rows = self._store.query_requests(
            property_ids=scope,
            status=status,
            assignee_id=assignee_id,
            unit_ids=unit_ids,
            created_by=created_by,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return [r for r in rows if can_read(principal, r)]

    # =================================================
    # STATUS TRANSITIONS
    # =================================================
    def transition_status(
        self,
        principal: Principal,
        request_id: str,
        target: RequestStatus,
        expected_version: int,
    ) -> MaintenanceRequest:
        try:
            target = RequestStatus(target)
        except ValueError:
            raise ValidationError(f"Unknown status '{target}'")

        request = self._load(request_id)
        current = request.status

        self._ensure_not_terminal(request, f"move to {target}")
        require_action(TARGET_ACTION[target], principal, request)
        self._check_version(request, expected_version)

        if (current, target) in ASSIGNMENT_ONLY_EDGES:
            raise InvalidTransition("Requests become 'assigned' only by assigning someone")
        if not is_valid_transition(current, target):
            raise InvalidTransition(f"Cannot move request from {current} to {target}")
        if target == RequestStatus.canceled and request.assigned_to is not None:
            raise InvalidTransition("Only unassigned requests can be canceled")

        changes = {"status": target}
        if target == RequestStatus.completed:
            changes["resolved_at"] = self._clock()
        elif target == RequestStatus.reopened:
            changes["resolved_at"] = None

        updated = self._commit(request, changes)

        audit_logger.info(
            f"request={updated.id} status {current} -> {target} "
            f"by {principal.id} ({principal.role}) v{updated.version}"
        )
        return updated

    def start_progress(self, principal: Principal, request_id: str, expected_version: int) -> MaintenanceRequest:
        return self.transition_status(principal, request_id, RequestStatus.in_progress, expected_version)

    def complete(self, principal: Principal, request_id: str, expected_version: int) -> MaintenanceRequest:
        return self.transition_status(principal, request_id, RequestStatus.completed, expected_version)

    def verify(self, principal: Principal, request_id: str, expected_version: int) -> MaintenanceRequest:
        return self.transition_status(principal, request_id, RequestStatus.verified, expected_version)

    def reopen(self, principal: Principal, request_id: str, expected_version: int) -> MaintenanceRequest:
        return self.transition_status(principal, request_id, RequestStatus.reopened, expected_version)

    def archive(self, principal: Principal, request_id: str, expected_version: int) -> MaintenanceRequest:
        return self.transition_status(principal, request_id, RequestStatus.archived, expected_version)

    def cancel(self, principal: Principal, request_id: str, expected_version: int) -> MaintenanceRequest:
        return self.transition_status(principal, request_id, RequestStatus.canceled, expected_version)

    # =================================================
    # FIELD EDITS
    # =================================================
    def update_request(
        self, principal: Principal, request_id: str, changes: RequestUpdate
    ) -> MaintenanceRequest:
        request = self._load(request_id)

        self._ensure_not_terminal(request, "edit")
        require_action(RequestAction.edit, principal, request)
        self._check_version(request, changes.version)

        fields = changes.model_dump(exclude_unset=True, exclude_none=True, exclude={"version"})
        if not fields:
            return request

        updated = self._commit(request, fields)
        audit_logger.info(
            f"request={updated.id} edited {sorted(fields)} by {principal.id} v{updated.version}"
        )
        return updated

    def add_media(
        self, principal: Principal, request_id: str, urls: List[str], expected_version: int
    ) -> MaintenanceRequest:
        cleaned = [u.strip() for u in urls if u and u.strip()]
        if not cleaned:
            raise ValidationError("No media URLs provided")

        request = self._load(request_id)

        self._ensure_not_terminal(request, "add media")
        require_action(RequestAction.manage_media, principal, request)
        self._check_version(request, expected_version)

        media = list(request.media)
        for url in cleaned:
            if url not in media:
                media.append(url)
        updated = self._commit(request, {"media": media})

        logger.info(f"Added {len(cleaned)} media file(s) to request {request_id}")
        return updated

    def remove_media(
        self, principal: Principal, request_id: str, url: str, expected_version: int
    ) -> MaintenanceRequest:
        request = self._load(request_id)

        self._ensure_not_terminal(request, "remove media")
        require_action(RequestAction.manage_media, principal, request)
        self._check_version(request, expected_version)

        if url not in request.media:
            raise NotFound("Media file not found on this request")

        updated = self._commit(request, {"media": [m for m in request.media if m != url]})
        logger.info(f"Removed media from request {request_id}")
        return updated

    def submit_feedback(
        self,
        principal: Principal,
        request_id: str,
        rating: int,
        comment: Optional[str],
        expected_version: int,
    ) -> MaintenanceRequest:
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        request = self._load(request_id)

        self._ensure_not_terminal(request, "leave feedback")
        require_action(RequestAction.feedback, principal, request)
        self._check_version(request, expected_version)

        if request.status not in FEEDBACK_STATUSES:
            raise InvalidTransition("Feedback is only accepted once the work is completed")

        feedback = Feedback(
            rating=rating,
            comment=comment,
            submitted_by=principal.id,
            submitted_at=self._clock(),
        )
        updated = self._commit(request, {"feedback": feedback})
        audit_logger.info(f"request={updated.id} feedback {rating}/5 by {principal.id}")
        return updated

    # =================================================
    # COMMENTS (not part of the state machine)
    # =================================================
    def add_comment(self, principal: Principal, request_id: str, body: str) -> Comment:
        body = (body or "").strip()
        if not body:
            raise ValidationError("Comment body is required")

        request = self._load(request_id)
        require_action(RequestAction.comment, principal, request)

        comment = Comment(
            id=generate_id(),
            request_id=request.id,
            author_id=principal.id,
            author_name=principal.display_name,
            body=body,
            is_public=False,
            created_at=self._clock(),
        )
        return self._store.insert_comment(comment)

    def list_comments(self, principal: Principal, request_id: str) -> List[Comment]:
        request = self._load(request_id)
        require_action(RequestAction.read, principal, request)
        return self._store.list_comments(request.id)
