# models/vendor.py

from typing import FrozenSet, Optional
from pydantic import BaseModel


class Vendor(BaseModel):
    """External service provider. Rating aggregation lives elsewhere."""
    id: str
    name: str
    services: FrozenSet[str] = frozenset()
    email: Optional[str] = None
    phone: Optional[str] = None
