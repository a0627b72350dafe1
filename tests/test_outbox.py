# tests/test_outbox.py

"""
Tests for the notification outbox and webhook delivery.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from core.notifications import NotificationError, format_request_event, send_webhook_message
from services.outbox import NotificationOutbox, RequestEvent


def make_event(kind="status_changed", version=2, **payload):
    return RequestEvent(request_id="req-1", version=version, kind=kind, payload=payload or {"status": "in_progress"})


def test_enqueue_is_idempotent():
    outbox = NotificationOutbox(sink=Mock())
    assert outbox.enqueue(make_event()) is True
    assert outbox.enqueue(make_event()) is False
    assert len(outbox.pending()) == 1


def test_idempotency_key_format():
    assert make_event().idempotency_key == "req-1:2:status_changed"


def test_dispatch_marks_delivered():
    sink = Mock(return_value=True)
    outbox = NotificationOutbox(sink=sink)
    outbox.enqueue(make_event())

    assert outbox.dispatch_pending() == {"delivered": 1, "failed": 0}
    sink.assert_called_once_with("status_changed", {"request_id": "req-1", "status": "in_progress"})
    assert outbox.pending() == []

    # Nothing left to send
    outbox.dispatch_pending()
    assert sink.call_count == 1


def test_failure_leaves_entry_pending_then_gives_up():
    sink = Mock(side_effect=NotificationError("webhook down"))
    outbox = NotificationOutbox(sink=sink, max_attempts=2)
    event = make_event()
    outbox.enqueue(event)

    assert outbox.dispatch_pending() == {"delivered": 0, "failed": 1}
    assert outbox.pending() == [event]
    assert outbox.entry(event.idempotency_key).last_error == "webhook down"

    outbox.dispatch_pending()
    assert outbox.pending() == []
    assert outbox.entry(event.idempotency_key).delivered is False


def test_retry_succeeds_after_transient_failure():
    sink = Mock(side_effect=[NotificationError("timeout"), True])
    outbox = NotificationOutbox(sink=sink, max_attempts=3)
    outbox.enqueue(make_event())

    outbox.dispatch_pending()
    outbox.dispatch_pending()
    assert outbox.pending() == []
    assert outbox.purge_settled() == 1


def test_exhausted_entries_are_purged():
    sink = Mock(side_effect=NotificationError("webhook down"))
    outbox = NotificationOutbox(sink=sink, max_attempts=1)
    events = [make_event(version=v) for v in range(1, 51)]
    for event in events:
        outbox.enqueue(event)

    outbox.dispatch_pending()
    assert outbox.purge_settled() == 50
    assert outbox.entry(events[0].idempotency_key) is None


def test_flush_keeps_only_retryable_entries():
    sink = Mock(side_effect=[True, NotificationError("timeout")])
    outbox = NotificationOutbox(sink=sink, max_attempts=3)
    delivered, failing = make_event(version=1), make_event(version=2)
    outbox.enqueue(delivered)
    outbox.enqueue(failing)

    assert outbox.flush() == {"delivered": 1, "failed": 1}
    assert outbox.entry(delivered.idempotency_key) is None
    assert outbox.pending() == [failing]


def test_api_dispatch_purges_delivered_entries(client, login, outbox):
    login("tenant-1")
    response = client.post("/requests", json={"property_id": "prop-1", "unit_id": "unit-101", "title": "Loose tile"})

    key = f"{response.json()['id']}:1:created"
    assert outbox.entry(key) is None


def test_dispatch_failure_does_not_touch_committed_request(client, login, outbox, webhook_sink, store):
    webhook_sink.side_effect = NotificationError("webhook down")
    login("tenant-1")
    response = client.post("/requests", json={"property_id": "prop-1", "unit_id": "unit-101", "title": "Loose tile"})

    assert response.status_code == 201
    stored = store.get_request(response.json()["id"])
    assert stored.version == 1
    assert len(outbox.pending()) == 1


# -----------------------------------------------------
# Webhook
# -----------------------------------------------------
def test_webhook_skipped_without_url():
    with patch("core.notifications.settings") as mock_settings, \
         patch("core.notifications.requests.post") as mock_post:
        mock_settings.SYNC_WEBHOOK_URL = None
        assert send_webhook_message("hello") is False
        mock_post.assert_not_called()


def test_webhook_posts_content():
    with patch("core.notifications.requests.post") as mock_post:
        mock_post.return_value = Mock(status_code=204)
        assert send_webhook_message("hello", webhook_url="https://hooks.test/x") is True

        args, kwargs = mock_post.call_args
        assert args[0] == "https://hooks.test/x"
        assert kwargs["json"] == {"content": "hello"}
        assert kwargs["timeout"] > 0


def test_webhook_error_raises_notification_error():
    with patch("core.notifications.requests.post", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(NotificationError):
            send_webhook_message("hello", webhook_url="https://hooks.test/x")


def test_format_request_event():
    assert format_request_event("assigned", {"request_id": "r1", "assignee": "vendor:v1"}).endswith(
        "Request r1 assigned to vendor:v1"
    )
    # Missing template keys fall back to a plain line
    assert format_request_event("assigned", {"request_id": "r1"}) == "Request r1: assigned"
