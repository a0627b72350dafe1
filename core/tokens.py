# core/tokens.py

import secrets
import uuid
from typing import Callable

from core.config import settings

TokenGenerator = Callable[[], str]


def generate_public_token() -> str:
    """
    Opaque, URL-safe bearer token for public links.
    A capability, not an identifier: never derived from the request id.
    """
    return secrets.token_urlsafe(settings.PUBLIC_LINK_TOKEN_BYTES)


def generate_id() -> str:
    return str(uuid.uuid4())
