# dependencies/services.py

from fastapi import Depends

from core.clock import Clock, utc_now
from core.store import DataStore
from dependencies.store import get_data_store
from services.assignment import AssignmentResolver
from services.outbox import NotificationOutbox, outbox
from services.public_links import PublicLinkIssuer
from services.request_lifecycle import RequestLifecycle


def get_clock() -> Clock:
    return utc_now


def get_outbox() -> NotificationOutbox:
    return outbox


def get_lifecycle(
    store: DataStore = Depends(get_data_store),
    clock: Clock = Depends(get_clock),
) -> RequestLifecycle:
    return RequestLifecycle(store, clock)


def get_assignment_resolver(
    store: DataStore = Depends(get_data_store),
    clock: Clock = Depends(get_clock),
) -> AssignmentResolver:
    return AssignmentResolver(store, clock)


def get_public_link_issuer(
    store: DataStore = Depends(get_data_store),
    clock: Clock = Depends(get_clock),
) -> PublicLinkIssuer:
    return PublicLinkIssuer(store, clock)
