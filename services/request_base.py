# services/request_base.py

from typing import Optional

from core.clock import Clock, utc_now
from core.errors import Conflict, InvalidTransition, NotFound
from core.store import DataStore
from models.enums import TERMINAL_STATUSES
from models.request import MaintenanceRequest


class RequestServiceBase:
    """
    Shared load / guard / commit plumbing for the request services.

    Writes always go through `_commit`, which bumps `version` and performs a
    compare-and-swap against the snapshot that was checked. Guards run before
    `_commit`, so a failing guard never leaves a partial write behind.
    """

    def __init__(self, store: DataStore, clock: Clock = utc_now):
        self._store = store
        self._clock = clock

    @property
    def store(self) -> DataStore:
        return self._store

    def _load(self, request_id: str) -> MaintenanceRequest:
        request = self._store.get_request(request_id)
        if request is None:
            raise NotFound(f"Request {request_id} not found")
        return request

    @staticmethod
    def _ensure_not_terminal(request: MaintenanceRequest, operation: str):
        if request.status in TERMINAL_STATUSES:
            raise InvalidTransition(
                f"Cannot {operation}: request {request.id} is {request.status}"
            )

    @staticmethod
    def _check_version(request: MaintenanceRequest, expected_version: Optional[int]):
        # None → trust the snapshot just loaded; the CAS still guards the write
        if expected_version is not None and expected_version != request.version:
            raise Conflict(
                f"Request {request.id} is at version {request.version}, "
                f"you sent {expected_version}"
            )

    def _commit(self, request: MaintenanceRequest, changes: dict) -> MaintenanceRequest:
        updated = request.model_copy(
            update={
                **changes,
                "updated_at": self._clock(),
                "version": request.version + 1,
            }
        )
        return self._store.compare_and_swap_request(updated, expected_version=request.version)
