# core/store.py

"""
Data Store collaborator.

The core reads and writes every entity through `DataStore`. Two backends:

- `InMemoryDataStore`: process-local, lock-guarded (dev + tests)
- `SupabaseDataStore`: Supabase tables through the service-role client

Request writes are compare-and-swap on `version`: a write built from
version N only lands if the stored row is still at version N, otherwise
`Conflict` is raised and nothing changes.
"""

from abc import ABC, abstractmethod
from threading import Lock
from typing import Dict, FrozenSet, List, Optional

from core.errors import Conflict, NotFound, handle_supabase_error
from core.logging_config import logger
from models.comment import Comment
from models.enums import RequestStatus
from models.principal import Tenancy
from models.property import Property, Unit
from models.request import MaintenanceRequest
from models.vendor import Vendor


class DataStore(ABC):
    """Storage interface the maintenance core depends on."""

    # ---------------- identity ----------------
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[dict]:
        """Profile row: id, role, vendor_id, email, full_name."""

    @abstractmethod
    def list_owned_property_ids(self, user_id: str) -> FrozenSet[str]: ...

    @abstractmethod
    def list_managed_property_ids(self, user_id: str) -> FrozenSet[str]: ...

    @abstractmethod
    def list_tenancies(self, user_id: str) -> FrozenSet[Tenancy]: ...

    # ---------------- properties / vendors ----------------
    @abstractmethod
    def get_property(self, property_id: str) -> Optional[Property]: ...

    @abstractmethod
    def get_unit(self, unit_id: str) -> Optional[Unit]: ...

    @abstractmethod
    def get_vendor(self, vendor_id: str) -> Optional[Vendor]: ...

    # ---------------- requests ----------------
    @abstractmethod
    def get_request(self, request_id: str) -> Optional[MaintenanceRequest]: ...

    @abstractmethod
    def find_request_by_token(self, token: str) -> Optional[MaintenanceRequest]: ...

    @abstractmethod
    def insert_request(self, request: MaintenanceRequest) -> MaintenanceRequest: ...

    @abstractmethod
    def compare_and_swap_request(
        self, request: MaintenanceRequest, expected_version: int
    ) -> MaintenanceRequest:
        """Persist `request` only if the stored version equals `expected_version`."""

    @abstractmethod
    def query_requests(
        self,
        property_ids: Optional[FrozenSet[str]] = None,
        status: Optional[RequestStatus] = None,
        assignee_id: Optional[str] = None,
        unit_ids: Optional[FrozenSet[str]] = None,
        created_by: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[MaintenanceRequest]:
        """
        Filtered listing for callers. `property_ids=None` means all.

        `unit_ids` / `created_by` narrow to rows on one of those units OR
        filed by that user (tenant scope). Paging applies after every filter.
        """

    # ---------------- comments ----------------
    @abstractmethod
    def insert_comment(self, comment: Comment) -> Comment: ...

    @abstractmethod
    def list_comments(self, request_id: str) -> List[Comment]: ...

    def ping(self) -> dict:
        return {"service": type(self).__name__, "status": "ok"}


# ============================================================
# In-memory backend
# ============================================================

class InMemoryDataStore(DataStore):
    """
    Thread-safe for concurrent access. Every read returns a deep copy so
    callers can never mutate stored state behind the store's back.
    """

    def __init__(self):
        self._lock = Lock()
        self._users: Dict[str, dict] = {}
        self._owned: Dict[str, set] = {}
        self._managed: Dict[str, set] = {}
        self._tenancies: Dict[str, set] = {}
        self._properties: Dict[str, Property] = {}
        self._units: Dict[str, Unit] = {}
        self._vendors: Dict[str, Vendor] = {}
        self._requests: Dict[str, MaintenanceRequest] = {}
        self._comments: Dict[str, List[Comment]] = {}

    # -------------------------------------------------
    # Seeding (admin tooling, tests)
    # -------------------------------------------------
    def add_user(
        self,
        user_id: str,
        role: str,
        *,
        owned: Optional[List[str]] = None,
        managed: Optional[List[str]] = None,
        tenancies: Optional[List[Tenancy]] = None,
        vendor_id: Optional[str] = None,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
    ):
        with self._lock:
            self._users[user_id] = {
                "id": user_id,
                "role": role,
                "vendor_id": vendor_id,
                "email": email,
                "full_name": full_name,
            }
            self._owned[user_id] = set(owned or [])
            self._managed[user_id] = set(managed or [])
            self._tenancies[user_id] = set(tenancies or [])

    def add_property(self, property_id: str, name: Optional[str] = None, unit_ids: Optional[List[str]] = None):
        with self._lock:
            self._properties[property_id] = Property(
                id=property_id, name=name, unit_ids=frozenset(unit_ids or [])
            )
            for unit_id in unit_ids or []:
                self._units[unit_id] = Unit(id=unit_id, property_id=property_id)

    def add_vendor(self, vendor: Vendor):
        with self._lock:
            self._vendors[vendor.id] = vendor

    # -------------------------------------------------
    # Identity
    # -------------------------------------------------
    def get_user(self, user_id: str) -> Optional[dict]:
        with self._lock:
            row = self._users.get(user_id)
            return dict(row) if row else None

    def list_owned_property_ids(self, user_id: str) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._owned.get(user_id, ()))

    def list_managed_property_ids(self, user_id: str) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._managed.get(user_id, ()))

    def list_tenancies(self, user_id: str) -> FrozenSet[Tenancy]:
        with self._lock:
            return frozenset(self._tenancies.get(user_id, ()))

    # -------------------------------------------------
    # Properties / vendors
    # -------------------------------------------------
    def get_property(self, property_id: str) -> Optional[Property]:
        with self._lock:
            return self._properties.get(property_id)

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        with self._lock:
            return self._units.get(unit_id)

    def get_vendor(self, vendor_id: str) -> Optional[Vendor]:
        with self._lock:
            return self._vendors.get(vendor_id)

    # -------------------------------------------------
    # Requests
    # -------------------------------------------------
    def get_request(self, request_id: str) -> Optional[MaintenanceRequest]:
        with self._lock:
            stored = self._requests.get(request_id)
            return stored.model_copy(deep=True) if stored else None

    def find_request_by_token(self, token: str) -> Optional[MaintenanceRequest]:
        with self._lock:
            for stored in self._requests.values():
                if stored.public_link is not None and stored.public_link.token == token:
                    return stored.model_copy(deep=True)
            return None

    def insert_request(self, request: MaintenanceRequest) -> MaintenanceRequest:
        with self._lock:
            if request.id in self._requests:
                raise Conflict(f"Request {request.id} already exists")
            self._requests[request.id] = request.model_copy(deep=True)
            return request.model_copy(deep=True)

    def compare_and_swap_request(
        self, request: MaintenanceRequest, expected_version: int
    ) -> MaintenanceRequest:
        with self._lock:
            stored = self._requests.get(request.id)
            if stored is None:
                raise NotFound(f"Request {request.id} not found")
            if stored.version != expected_version:
                raise Conflict(
                    f"Request {request.id} is at version {stored.version}, "
                    f"write was based on {expected_version}"
                )
            self._requests[request.id] = request.model_copy(deep=True)
            return request.model_copy(deep=True)

    def query_requests(
        self,
        property_ids: Optional[FrozenSet[str]] = None,
        status: Optional[RequestStatus] = None,
        assignee_id: Optional[str] = None,
        unit_ids: Optional[FrozenSet[str]] = None,
        created_by: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[MaintenanceRequest]:
        with self._lock:
            rows = list(self._requests.values())

        if property_ids is not None:
            rows = [r for r in rows if r.property_id in property_ids]
        if status is not None:
            rows = [r for r in rows if r.status == status]
        if assignee_id is not None:
            rows = [r for r in rows if r.assigned_to is not None and r.assigned_to.id == assignee_id]
        if unit_ids is not None or created_by is not None:
            rows = [
                r for r in rows
                if (unit_ids is not None and r.unit_id in unit_ids)
                or (created_by is not None and r.created_by == created_by)
            ]

        rows.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy(deep=True) for r in rows[offset:offset + limit]]

    # -------------------------------------------------
    # Comments
    # -------------------------------------------------
    def insert_comment(self, comment: Comment) -> Comment:
        with self._lock:
            self._comments.setdefault(comment.request_id, []).append(comment.model_copy(deep=True))
            return comment.model_copy(deep=True)

    def list_comments(self, request_id: str) -> List[Comment]:
        with self._lock:
            rows = sorted(self._comments.get(request_id, []), key=lambda c: c.created_at)
            return [c.model_copy(deep=True) for c in rows]


# ============================================================
# Supabase backend
# ============================================================

REQUESTS_TABLE = "maintenance_requests"
COMMENTS_TABLE = "request_comments"


def request_to_row(request: MaintenanceRequest) -> dict:
    """Flatten the request for the maintenance_requests table."""
    row = request.model_dump(mode="json", exclude={"assigned_to", "public_link"})
    row["assigned_to_id"] = request.assigned_to.id if request.assigned_to else None
    row["assigned_to_kind"] = request.assigned_to.kind if request.assigned_to else None
    row["public_token"] = request.public_link.token if request.public_link else None
    row["public_token_expires_at"] = (
        request.public_link.expires_at.isoformat()
        if request.public_link and request.public_link.expires_at
        else None
    )
    return row


def row_to_request(row: dict) -> MaintenanceRequest:
    data = dict(row)
    assigned_id = data.pop("assigned_to_id", None)
    assigned_kind = data.pop("assigned_to_kind", None)
    token = data.pop("public_token", None)
    expires_at = data.pop("public_token_expires_at", None)

    data["assigned_to"] = {"kind": assigned_kind, "id": assigned_id} if assigned_id else None
    data["public_link"] = {"token": token, "expires_at": expires_at} if token else None
    data["id"] = str(data["id"])
    return MaintenanceRequest.model_validate(data)


class SupabaseDataStore(DataStore):
    """
    Expects a unique index on maintenance_requests.public_token and an
    integer `version` column. CAS is `UPDATE ... WHERE id = ? AND version = ?`.
    """

    def __init__(self, client):
        self._client = client

    def _select(self, table: str, operation: str, **filters) -> list:
        try:
            query = self._client.table(table).select("*")
            for key, val in filters.items():
                query = query.eq(key, val)
            result = query.execute()
            return result.data or []
        except Exception as e:
            raise handle_supabase_error(e, operation)

    # -------------------------------------------------
    # Identity
    # -------------------------------------------------
    def get_user(self, user_id: str) -> Optional[dict]:
        rows = self._select("profiles", "Failed to load profile", id=user_id)
        return rows[0] if rows else None

    def list_owned_property_ids(self, user_id: str) -> FrozenSet[str]:
        rows = self._select("property_owners", "Failed to load owned properties", user_id=user_id)
        return frozenset(str(r["property_id"]) for r in rows)

    def list_managed_property_ids(self, user_id: str) -> FrozenSet[str]:
        rows = self._select("property_managers", "Failed to load managed properties", user_id=user_id)
        return frozenset(str(r["property_id"]) for r in rows)

    def list_tenancies(self, user_id: str) -> FrozenSet[Tenancy]:
        rows = self._select("tenancies", "Failed to load tenancies", user_id=user_id)
        return frozenset(
            Tenancy(property_id=str(r["property_id"]), unit_id=str(r["unit_id"])) for r in rows
        )

    # -------------------------------------------------
    # Properties / vendors
    # -------------------------------------------------
    def get_property(self, property_id: str) -> Optional[Property]:
        rows = self._select("properties", "Failed to load property", id=property_id)
        if not rows:
            return None
        units = self._select("units", "Failed to load units", property_id=property_id)
        return Property(
            id=str(rows[0]["id"]),
            name=rows[0].get("name"),
            unit_ids=frozenset(str(u["id"]) for u in units),
        )

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        rows = self._select("units", "Failed to load unit", id=unit_id)
        if not rows:
            return None
        row = rows[0]
        return Unit(id=str(row["id"]), property_id=str(row["property_id"]), unit_name=row.get("unit_name"))

    def get_vendor(self, vendor_id: str) -> Optional[Vendor]:
        rows = self._select("vendors", "Failed to load vendor", id=vendor_id)
        return Vendor.model_validate(rows[0]) if rows else None

    # -------------------------------------------------
    # Requests
    # -------------------------------------------------
    def get_request(self, request_id: str) -> Optional[MaintenanceRequest]:
        rows = self._select(REQUESTS_TABLE, "Failed to load request", id=request_id)
        return row_to_request(rows[0]) if rows else None

    def find_request_by_token(self, token: str) -> Optional[MaintenanceRequest]:
        rows = self._select(REQUESTS_TABLE, "Failed to resolve public link", public_token=token)
        return row_to_request(rows[0]) if rows else None

    def insert_request(self, request: MaintenanceRequest) -> MaintenanceRequest:
        try:
            result = (
                self._client.table(REQUESTS_TABLE)
                .insert(request_to_row(request))
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to create request")
        return row_to_request(result.data[0]) if result.data else request

    def compare_and_swap_request(
        self, request: MaintenanceRequest, expected_version: int
    ) -> MaintenanceRequest:
        try:
            result = (
                self._client.table(REQUESTS_TABLE)
                .update(request_to_row(request))
                .eq("id", request.id)
                .eq("version", expected_version)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to update request")

        if result.data:
            return row_to_request(result.data[0])

        # Zero rows matched: either gone or moved on
        if self.get_request(request.id) is None:
            raise NotFound(f"Request {request.id} not found")
        logger.info(f"CAS miss on request {request.id} (expected version {expected_version})")
        raise Conflict(f"Request {request.id} was modified concurrently")

    def query_requests(
        self,
        property_ids: Optional[FrozenSet[str]] = None,
        status: Optional[RequestStatus] = None,
        assignee_id: Optional[str] = None,
        unit_ids: Optional[FrozenSet[str]] = None,
        created_by: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[MaintenanceRequest]:
        if property_ids is not None and not property_ids:
            return []
        try:
            query = self._client.table(REQUESTS_TABLE).select("*")
            if property_ids is not None:
                query = query.in_("property_id", sorted(property_ids))
            if status is not None:
                query = query.eq("status", str(status))
            if assignee_id is not None:
                query = query.eq("assigned_to_id", assignee_id)
            tenant_filters = []
            if unit_ids:
                tenant_filters.append(f"unit_id.in.({','.join(sorted(unit_ids))})")
            if created_by is not None:
                tenant_filters.append(f"created_by.eq.{created_by}")
            if tenant_filters:
                query = query.or_(",".join(tenant_filters))
            result = (
                query.order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to list requests")
        return [row_to_request(r) for r in (result.data or [])]

    # -------------------------------------------------
    # Comments
    # -------------------------------------------------
    def insert_comment(self, comment: Comment) -> Comment:
        try:
            result = (
                self._client.table(COMMENTS_TABLE)
                .insert(comment.model_dump(mode="json"))
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to add comment")
        return Comment.model_validate(result.data[0]) if result.data else comment

    def list_comments(self, request_id: str) -> List[Comment]:
        try:
            result = (
                self._client.table(COMMENTS_TABLE)
                .select("*")
                .eq("request_id", request_id)
                .order("created_at", desc=False)
                .execute()
            )
        except Exception as e:
            raise handle_supabase_error(e, "Failed to list comments")
        return [Comment.model_validate(r) for r in (result.data or [])]

    def ping(self) -> dict:
        tables = [REQUESTS_TABLE, COMMENTS_TABLE, "properties", "vendors"]
        results = {}

        for t in tables:
            try:
                res = self._client.table(t).select("id").limit(1).execute()
                results[t] = {"status": "ok", "rows_found": len(res.data or [])}
            except Exception as err:
                results[t] = {"status": "error", "detail": str(err)}

        status = "ok" if all(r["status"] == "ok" for r in results.values()) else "degraded"
        return {"service": "Supabase", "status": status, "tables": results}
