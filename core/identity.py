# core/identity.py

from core.errors import NotFound
from core.store import DataStore
from models.principal import Principal


def load_principal(store: DataStore, principal_id: str) -> Principal:
    """
    Assemble the Principal (role + association sets) for `principal_id`.
    Read-through: every call goes to the store, nothing is cached here.
    """
    profile = store.get_user(principal_id)
    if not profile:
        raise NotFound(f"User {principal_id} not found")

    return Principal(
        id=principal_id,
        role=profile["role"],
        owned_property_ids=store.list_owned_property_ids(principal_id),
        managed_property_ids=store.list_managed_property_ids(principal_id),
        tenancies=store.list_tenancies(principal_id),
        vendor_id=profile.get("vendor_id"),
        email=profile.get("email"),
        full_name=profile.get("full_name"),
    )
