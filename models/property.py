# models/property.py

from typing import FrozenSet, Optional
from pydantic import BaseModel


# -------------------------------------------------
# Property
# -------------------------------------------------
class Property(BaseModel):
    id: str
    name: Optional[str] = None
    unit_ids: FrozenSet[str] = frozenset()


# -------------------------------------------------
# Unit
# -------------------------------------------------
class Unit(BaseModel):
    id: str
    property_id: str
    unit_name: Optional[str] = None
