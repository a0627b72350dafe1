# services/public_links.py

from datetime import timedelta
from typing import Optional

from core.clock import Clock, utc_now
from core.config import settings
from core.errors import Expired, NotFound, ValidationError
from core.logging_config import audit_logger, logger
from core.permission_helpers import require_action
from core.store import DataStore
from core.tokens import TokenGenerator, generate_id, generate_public_token
from models.comment import Comment
from models.enums import RequestAction, RequestStatus
from models.principal import Principal
from models.request import MaintenanceRequest, PublicLink, PublicRequestAccess
from services.request_base import RequestServiceBase

# Everything a link holder can ever do
PUBLIC_CAPABILITIES = frozenset({RequestAction.read, RequestAction.comment})


class PublicLinkIssuer(RequestServiceBase):
    """
    Mints, revokes and verifies public-link tokens.

    A request holds at most one token. Issuing a new one overwrites the old
    token in the same write, so the previous token stops resolving at once.
    Expiry is checked lazily in `verify_public_token`; nothing sweeps.
    """

    def __init__(
        self,
        store: DataStore,
        clock: Clock = utc_now,
        token_generator: TokenGenerator = generate_public_token,
    ):
        super().__init__(store, clock)
        self._token_generator = token_generator

    # -----------------------------------------------------
    # Issue / revoke
    # -----------------------------------------------------
    def enable_public_link(
        self,
        principal: Principal,
        request_id: str,
        expires_in_days: Optional[int] = None,
        expected_version: Optional[int] = None,
    ) -> PublicLink:
        if expires_in_days is not None and (
            expires_in_days < 0 or expires_in_days > settings.PUBLIC_LINK_MAX_DAYS
        ):
            raise ValidationError(
                f"expires_in_days must be between 0 and {settings.PUBLIC_LINK_MAX_DAYS}"
            )

        request = self._load(request_id)
        self._ensure_not_terminal(request, "enable public link")
        require_action(RequestAction.manage_public_link, principal, request)
        self._check_version(request, expected_version)

        now = self._clock()
        expires_at = now + timedelta(days=expires_in_days) if expires_in_days else None
        link = PublicLink(token=self._token_generator(), expires_at=expires_at)

        updated = self._commit(request, {"public_link": link})
        audit_logger.info(
            f"request={updated.id} public link issued by {principal.id} "
            f"expires_at={expires_at.isoformat() if expires_at else 'never'} v{updated.version}"
        )
        return link

    def disable_public_link(
        self,
        principal: Principal,
        request_id: str,
        expected_version: Optional[int] = None,
    ) -> MaintenanceRequest:
        request = self._load(request_id)
        require_action(RequestAction.manage_public_link, principal, request)
        self._check_version(request, expected_version)

        if request.public_link is None:
            return request

        updated = self._commit(request, {"public_link": None})
        audit_logger.info(f"request={updated.id} public link revoked by {principal.id}")
        return updated

    # -----------------------------------------------------
    # Anonymous path
    # -----------------------------------------------------
    def verify_public_token(self, token: str) -> PublicRequestAccess:
        if not token:
            raise NotFound("Public link not found")

        request = self._store.find_request_by_token(token)
        if request is None or request.public_link is None:
            raise NotFound("Public link not found")

        expires_at = request.public_link.expires_at
        if expires_at is not None and self._clock() >= expires_at:
            logger.debug(f"Expired public link presented for request {request.id}")
            raise Expired("Public link has expired")

        # Archiving withdraws the request from every public link
        if request.status == RequestStatus.archived:
            raise NotFound("Public link not found")

        return PublicRequestAccess(request=request, capabilities=PUBLIC_CAPABILITIES)

    def add_public_comment(
        self,
        token: str,
        author_name: str,
        body: str,
        phone: Optional[str] = None,
    ) -> Comment:
        access = self.verify_public_token(token)
        if not access.allows(RequestAction.comment):
            raise NotFound("Public link not found")

        author_name = (author_name or "").strip()
        body = (body or "").strip()
        if not author_name:
            raise ValidationError("Name is required")
        if not body:
            raise ValidationError("Comment body is required")

        if phone:
            body = f"{body}\n\nContact: {phone.strip()}"

        comment = Comment(
            id=generate_id(),
            request_id=access.request.id,
            author_id=None,
            author_name=author_name,
            body=body,
            is_public=True,
            created_at=self._clock(),
        )
        saved = self._store.insert_comment(comment)
        audit_logger.info(f"request={access.request.id} public comment from '{author_name}'")
        return saved
