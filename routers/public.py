# routers/public.py

from fastapi import APIRouter, Depends

from dependencies.services import get_public_link_issuer
from models.comment import Comment, PublicCommentCreate
from models.request import PublicRequestView
from services.public_links import PublicLinkIssuer

router = APIRouter(
    prefix="/requests/public",
    tags=["Maintenance Requests - Public"],
)

"""
PUBLIC LINK ROUTER (no auth)

The token in the path is the only credential. Holders may read the request
and leave a comment; they can never transition, assign or re-issue links.
"""


# ============================================================
# GET: Request behind a public link
# ============================================================
@router.get("/{token}", response_model=PublicRequestView, summary="View request via public link")
def view_public_request(
    token: str,
    issuer: PublicLinkIssuer = Depends(get_public_link_issuer),
):
    access = issuer.verify_public_token(token)
    return PublicRequestView.from_request(access.request)


# ============================================================
# POST: Comment via public link
# ============================================================
@router.post("/{token}/comments", response_model=Comment, status_code=201, summary="Comment via public link")
def add_public_comment(
    token: str,
    payload: PublicCommentCreate,
    issuer: PublicLinkIssuer = Depends(get_public_link_issuer),
):
    """For vendors without an account: name is required, phone is optional."""
    return issuer.add_public_comment(token, payload.name, payload.body, payload.phone)
