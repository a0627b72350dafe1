# routers/access.py

from fastapi import APIRouter, Depends

from core.permission_helpers import has_property_access, has_unit_access
from core.errors import NotFound
from core.store import DataStore
from dependencies.auth import get_current_user
from dependencies.store import get_data_store
from models.principal import Principal

router = APIRouter(
    prefix="/access",
    tags=["Access Management"],
)


# ============================================================
# GET: Can the caller act on this property?
# ============================================================
@router.get("/properties/{property_id}", summary="Check caller's access to a property")
def check_property_access(
    property_id: str,
    current_user: Principal = Depends(get_current_user),
    store: DataStore = Depends(get_data_store),
):
    if store.get_property(property_id) is None:
        raise NotFound(f"Property {property_id} not found")

    return {
        "property_id": property_id,
        "role": str(current_user.role),
        "has_access": has_property_access(current_user, property_id),
    }


# ============================================================
# GET: Can the caller act on this unit?
# ============================================================
@router.get("/units/{unit_id}", summary="Check caller's access to a unit")
def check_unit_access(
    unit_id: str,
    current_user: Principal = Depends(get_current_user),
    store: DataStore = Depends(get_data_store),
):
    unit = store.get_unit(unit_id)
    if unit is None:
        raise NotFound(f"Unit {unit_id} not found")

    return {
        "unit_id": unit_id,
        "property_id": unit.property_id,
        "role": str(current_user.role),
        "has_access": has_unit_access(current_user, unit_id, unit.property_id),
    }
