# models/principal.py

from typing import FrozenSet, Optional
from pydantic import BaseModel, ConfigDict, field_validator

from .enums import Role


# ===============================================================
# TENANCY: (property, unit) leased by a tenant
# ===============================================================
class Tenancy(BaseModel):
    model_config = ConfigDict(frozen=True)

    property_id: str
    unit_id: str


# ===============================================================
# PRINCIPAL: the authenticated actor
# ===============================================================
class Principal(BaseModel):
    """
    Role plus association sets, loaded fresh per request.
    Frozen: nothing in the core may mutate the caller's identity.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    role: Role

    owned_property_ids: FrozenSet[str] = frozenset()
    managed_property_ids: FrozenSet[str] = frozenset()
    tenancies: FrozenSet[Tenancy] = frozenset()

    # Vendor entity a vendor-role login acts for
    vendor_id: Optional[str] = None

    email: Optional[str] = None
    full_name: Optional[str] = None

    @field_validator("role", mode="before")
    def normalize_role(cls, v):
        if isinstance(v, str):
            return v.strip().lower().replace("_", "")
        return v

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or self.id
