# tests/test_assignment.py

"""
Tests for the assignment resolver.
"""

import pytest

from core.errors import Conflict, InvalidTransition, PermissionDenied, ValidationError
from models.enums import AssigneeKind, RequestStatus
from models.request import InternalUserAssignee, VendorAssignee
from services.assignment import parse_assignee


def test_assigning_new_request_moves_it_to_assigned(resolver, new_request, pm):
    r = resolver.assign(pm, new_request.id, VendorAssignee(id="vendor-1"), 1)
    assert r.status == RequestStatus.assigned
    assert r.assigned_to.kind == AssigneeKind.vendor
    assert r.assigned_to.id == "vendor-1"
    # One write for both changes
    assert r.version == 2


def test_assign_accepts_tagged_dict(resolver, new_request, landlord):
    r = resolver.assign(landlord, new_request.id, {"kind": "internal_user", "id": "pm-1"}, 1)
    assert isinstance(r.assigned_to, InternalUserAssignee)


def test_unknown_assignee_kind_rejected():
    with pytest.raises(ValidationError):
        parse_assignee({"kind": "contractor", "id": "x"})


def test_assignee_must_exist(resolver, new_request, pm):
    with pytest.raises(ValidationError):
        resolver.assign(pm, new_request.id, VendorAssignee(id="vendor-404"), 1)


def test_internal_assignee_must_be_staff(resolver, new_request, pm):
    with pytest.raises(ValidationError):
        resolver.assign(pm, new_request.id, InternalUserAssignee(id="tenant-2"), 1)


def test_assignment_in_progress_keeps_status(resolver, lifecycle, new_request, pm):
    r = lifecycle.start_progress(pm, new_request.id, 1)
    r = resolver.assign(pm, r.id, InternalUserAssignee(id="pm-1"), r.version)
    assert r.status == RequestStatus.in_progress


def test_reassignment_before_completion(resolver, lifecycle, new_request, pm):
    r = resolver.assign(pm, new_request.id, VendorAssignee(id="vendor-1"), 1)
    r = resolver.assign(pm, r.id, VendorAssignee(id="vendor-2"), r.version)
    assert r.assigned_to.id == "vendor-2"
    assert r.status == RequestStatus.assigned


def test_reassignment_after_completion_rejected(resolver, lifecycle, new_request, pm):
    r = resolver.assign(pm, new_request.id, VendorAssignee(id="vendor-1"), 1)
    r = lifecycle.start_progress(pm, r.id, r.version)
    r = lifecycle.complete(pm, r.id, r.version)
    with pytest.raises(InvalidTransition):
        resolver.assign(pm, r.id, VendorAssignee(id="vendor-2"), r.version)


def test_tenant_cannot_assign(resolver, new_request, tenant):
    with pytest.raises(PermissionDenied):
        resolver.assign(tenant, new_request.id, VendorAssignee(id="vendor-1"), 1)


def test_pm_outside_property_cannot_assign(resolver, new_request, other_pm):
    with pytest.raises(PermissionDenied):
        resolver.assign(other_pm, new_request.id, VendorAssignee(id="vendor-1"), 1)


def test_assign_on_terminal_request_is_invalid_for_every_role(
    resolver, lifecycle, new_request, pm, tenant
):
    r = lifecycle.cancel(tenant, new_request.id, 1)
    for principal in (pm, tenant):
        with pytest.raises(InvalidTransition):
            resolver.assign(principal, r.id, VendorAssignee(id="vendor-1"), r.version)


def test_stale_assign_is_conflict(resolver, new_request, pm, landlord):
    resolver.assign(pm, new_request.id, VendorAssignee(id="vendor-1"), 1)
    with pytest.raises(Conflict):
        resolver.assign(landlord, new_request.id, VendorAssignee(id="vendor-2"), 1)


def test_assigned_vendor_can_read(resolver, lifecycle, new_request, pm, vendor_user):
    with pytest.raises(PermissionDenied):
        lifecycle.get_request(vendor_user, new_request.id)

    resolver.assign(pm, new_request.id, VendorAssignee(id="vendor-1"), 1)
    assert lifecycle.get_request(vendor_user, new_request.id).id == new_request.id
    assert [r.id for r in lifecycle.list_requests(vendor_user)] == [new_request.id]


def test_unassign_returns_assigned_request_to_new(resolver, new_request, pm):
    r = resolver.assign(pm, new_request.id, VendorAssignee(id="vendor-1"), 1)
    r = resolver.unassign(pm, r.id, r.version)
    assert r.assigned_to is None
    assert r.status == RequestStatus.new
    assert r.version == 3


def test_unassign_keeps_later_status(resolver, lifecycle, new_request, pm):
    r = resolver.assign(pm, new_request.id, VendorAssignee(id="vendor-1"), 1)
    r = lifecycle.start_progress(pm, r.id, r.version)
    r = resolver.unassign(pm, r.id, r.version)
    assert r.assigned_to is None
    assert r.status == RequestStatus.in_progress
