# tests/test_api.py

"""
HTTP surface: routing, status codes and error mapping.
"""

from fastapi.testclient import TestClient
from starlette.routing import BaseRoute


def create_via_api(client: TestClient, login, user="tenant-1", **overrides):
    login(user)
    body = {"property_id": "prop-1", "unit_id": "unit-101", "title": "Clogged drain"}
    body.update(overrides)
    return client.post("/requests", json=body)


def test_health_app(client: TestClient):
    response = client.get("/health/app")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_startup_tolerates_routes_without_a_path(app):
    # Newer routers expose included sub-routers in app.routes with no `path`
    app.router.routes.append(BaseRoute())

    with TestClient(app) as client:
        assert client.get("/health/app").status_code == 200


def test_health_db_memory_store(client: TestClient):
    response = client.get("/health/db")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_and_get(client: TestClient, login):
    response = create_via_api(client, login)
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "new"
    assert created["version"] == 1

    response = client.get(f"/requests/{created['id']}")
    assert response.status_code == 200
    assert response.json()["title"] == "Clogged drain"


def test_create_forbidden_for_wrong_unit(client: TestClient, login):
    response = create_via_api(client, login, unit_id="unit-102")
    assert response.status_code == 403
    assert "detail" in response.json()


def test_create_payload_validation(client: TestClient, login):
    login("tenant-1")
    response = client.post("/requests", json={"property_id": "prop-1"})
    assert response.status_code == 422


def test_get_missing_request(client: TestClient, login):
    login("admin-1")
    assert client.get("/requests/does-not-exist").status_code == 404


def test_list_requests(client: TestClient, login):
    create_via_api(client, login)
    login("pm-1")
    response = client.get("/requests", params={"status": "new"})
    assert response.status_code == 200
    assert len(response.json()) == 1

    login("pm-2")
    assert client.get("/requests").json() == []


def test_transitions_and_conflict(client: TestClient, login):
    request_id = create_via_api(client, login).json()["id"]
    login("pm-1")

    response = client.put(f"/requests/{request_id}/start", json={"version": 1})
    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"

    # Stale version
    response = client.put(f"/requests/{request_id}/complete", json={"version": 1})
    assert response.status_code == 409

    response = client.put(f"/requests/{request_id}/status", json={"status": "completed", "version": 2})
    assert response.status_code == 200
    assert response.json()["resolved_at"] is not None


def test_invalid_transition_is_409(client: TestClient, login):
    request_id = create_via_api(client, login).json()["id"]
    login("pm-1")
    response = client.put(f"/requests/{request_id}/verify", json={"version": 1})
    assert response.status_code == 409


def test_tenant_cannot_archive(client: TestClient, login):
    request_id = create_via_api(client, login).json()["id"]
    response = client.put(f"/requests/{request_id}/archive", json={"version": 1})
    assert response.status_code == 403


def test_update_rejects_status_in_body(client: TestClient, login):
    request_id = create_via_api(client, login).json()["id"]
    response = client.put(f"/requests/{request_id}", json={"status": "completed", "version": 1})
    assert response.status_code == 422

    response = client.put(f"/requests/{request_id}", json={"description": "Kitchen sink", "version": 1})
    assert response.status_code == 200
    assert response.json()["description"] == "Kitchen sink"


def test_assign_and_unassign(client: TestClient, login):
    request_id = create_via_api(client, login).json()["id"]
    login("pm-1")

    response = client.post(
        f"/requests/{request_id}/assign",
        json={"assignee": {"kind": "vendor", "id": "vendor-1"}, "version": 1},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "assigned"
    assert response.json()["assigned_to"] == {"kind": "vendor", "id": "vendor-1"}

    response = client.delete(f"/requests/{request_id}/assign", params={"version": 2})
    assert response.status_code == 200
    assert response.json()["assigned_to"] is None
    assert response.json()["status"] == "new"


def test_assign_rejects_unknown_kind(client: TestClient, login):
    request_id = create_via_api(client, login).json()["id"]
    login("pm-1")
    response = client.post(
        f"/requests/{request_id}/assign",
        json={"assignee": {"kind": "robot", "id": "r2"}, "version": 1},
    )
    assert response.status_code == 422


def test_media_endpoints(client: TestClient, login):
    request_id = create_via_api(client, login).json()["id"]

    response = client.post(f"/requests/{request_id}/media", json={"urls": ["https://cdn.test/p.jpg"], "version": 1})
    assert response.status_code == 200
    assert response.json()["media"] == ["https://cdn.test/p.jpg"]

    response = client.request(
        "DELETE", f"/requests/{request_id}/media", json={"url": "https://cdn.test/p.jpg", "version": 2}
    )
    assert response.status_code == 200
    assert response.json()["media"] == []


def test_comments_endpoints(client: TestClient, login):
    request_id = create_via_api(client, login).json()["id"]

    response = client.post(f"/requests/{request_id}/comments", json={"body": "Still dripping"})
    assert response.status_code == 201

    login("tenant-2")
    assert client.get(f"/requests/{request_id}/comments").status_code == 403

    login("pm-1")
    comments = client.get(f"/requests/{request_id}/comments").json()
    assert [c["body"] for c in comments] == ["Still dripping"]


def test_feedback_endpoint(client: TestClient, login):
    request_id = create_via_api(client, login).json()["id"]
    login("pm-1")
    client.put(f"/requests/{request_id}/start", json={"version": 1})
    client.put(f"/requests/{request_id}/complete", json={"version": 2})

    login("tenant-1")
    response = client.post(f"/requests/{request_id}/feedback", json={"rating": 4, "version": 3})
    assert response.status_code == 200
    assert response.json()["feedback"]["rating"] == 4


def test_public_link_flow(client: TestClient, login, clock):
    request_id = create_via_api(client, login).json()["id"]
    login("pm-1")

    response = client.post(f"/requests/{request_id}/enable-public-link", json={"expires_in_days": 2})
    assert response.status_code == 200
    token = response.json()["token"]

    # No auth on the public routes
    response = client.get(f"/requests/public/{token}")
    assert response.status_code == 200
    view = response.json()
    assert view["id"] == request_id
    assert view["status_display"] == "New"
    assert "public_link" not in view
    assert "created_by" not in view

    response = client.post(
        f"/requests/public/{token}/comments",
        json={"name": "Kimo", "body": "Arriving 10am", "phone": "808-555-0199"},
    )
    assert response.status_code == 201
    assert response.json()["is_public"] is True

    clock.advance(days=3)
    assert client.get(f"/requests/public/{token}").status_code == 410


def test_public_link_disable_and_unknown_token(client: TestClient, login):
    request_id = create_via_api(client, login).json()["id"]
    login("pm-1")
    token = client.post(f"/requests/{request_id}/enable-public-link").json()["token"]

    response = client.post(f"/requests/{request_id}/disable-public-link")
    assert response.status_code == 200
    assert response.json()["public_link"] is None

    assert client.get(f"/requests/public/{token}").status_code == 404
    assert client.get("/requests/public/not-a-token").status_code == 404


def test_access_endpoints(client: TestClient, login):
    login("tenant-1")
    assert client.get("/access/properties/prop-1").json()["has_access"] is True
    assert client.get("/access/units/unit-101").json()["has_access"] is True
    assert client.get("/access/units/unit-102").json()["has_access"] is False
    assert client.get("/access/units/nope").status_code == 404

    login("pm-2")
    assert client.get("/access/properties/prop-1").json()["has_access"] is False


def test_committed_changes_are_queued_for_notification(client: TestClient, login, outbox, webhook_sink):
    request_id = create_via_api(client, login).json()["id"]

    # Background task already ran once the response was returned
    webhook_sink.assert_called_once()
    kind, payload = webhook_sink.call_args.args
    assert kind == "created"
    assert payload["request_id"] == request_id
    assert outbox.pending() == []
