# core/notifications.py
import requests

from core.config import settings
from core.logging_config import logger


class NotificationError(Exception):
    """Delivery failed. Raised so the outbox can keep the entry for retry."""


# -----------------------------------------------------
# 📨 Send webhook (Discord, Slack, etc.)
# -----------------------------------------------------
def send_webhook_message(message: str, webhook_url: str = None) -> bool:
    """
    POST `{"content": message}` to the configured webhook.
    Returns False when no webhook is configured (nothing to deliver).
    """
    webhook_url = webhook_url or settings.SYNC_WEBHOOK_URL
    if not webhook_url:
        logger.debug("Webhook URL not configured, skipping.")
        return False

    try:
        response = requests.post(
            webhook_url,
            json={"content": message},
            timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise NotificationError(f"Webhook failed: {e}") from e

    logger.info(f"Webhook sent (status {response.status_code})")
    return True


# -----------------------------------------------------
# Request events → human-readable message
# -----------------------------------------------------
EVENT_TEMPLATES = {
    "created": "🛠️ New maintenance request {request_id}: {title}",
    "status_changed": "🔄 Request {request_id} is now {status}",
    "assigned": "👷 Request {request_id} assigned to {assignee}",
    "unassigned": "Request {request_id} unassigned",
    "public_link_enabled": "🔗 Public link enabled for request {request_id}",
    "feedback_submitted": "⭐ Feedback ({rating}/5) on request {request_id}",
}


def format_request_event(kind: str, payload: dict) -> str:
    template = EVENT_TEMPLATES.get(kind, "Request {request_id}: " + kind)
    try:
        return template.format(**payload)
    except KeyError:
        return f"Request {payload.get('request_id')}: {kind}"


def notify_request_event(kind: str, payload: dict) -> bool:
    """Default sink used by the outbox."""
    return send_webhook_message(format_request_event(kind, payload))
