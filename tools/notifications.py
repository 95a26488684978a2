from datetime import datetime
from typing import Optional
from loguru import logger

from tools.devrev import DevRevClient

ACTIVITY_DESCRIPTIONS = {
    "event_entry": "joined the event",
    "cta_click": "clicked a CTA in",
    "registration": "registered for",
}


class NotificationService:
    """Posts high-intent activity alerts as private timeline comments on DevRev accounts."""

    def __init__(self, client: DevRevClient, app_url: str = "https://app.devrev.ai"):
        self.client = client
        self.app_url = app_url.rstrip("/")

    def notify_account_owner(
        self,
        account_id: str,
        contact_id: str,
        contact_name: str,
        event_name: str,
        activity_type: str,
        timestamp: str,
    ) -> Optional[str]:
        """
        Leave a timeline comment for the owners of ``account_id``.

        Returns:
            Timeline entry id, or None if the comment could not be posted
        """
        message = self.format_message(contact_id, contact_name, event_name, activity_type, timestamp)

        try:
            response = self.client.post("/timeline-entries.create", {
                "object": account_id,
                "type": "timeline_comment",
                "body": message,
                "visibility": "private",
            })
        except Exception as e:
            # Alerts are best-effort; the activity is already recorded
            logger.error(f"Owner notification for account {account_id} failed: {e}")
            return None

        entry_id = (response.get("timeline_entry") or {}).get("id")
        logger.info(f"Owner notification posted on account {account_id}: {entry_id}")
        return entry_id

    def format_message(
        self,
        contact_id: str,
        contact_name: str,
        event_name: str,
        activity_type: str,
        timestamp: str,
    ) -> str:
        description = ACTIVITY_DESCRIPTIONS.get(activity_type, "interacted with")
        return (
            "🔔 High Intent Activity Alert!\n\n"
            f"Contact {contact_name} {description} \"{event_name}\" at {_readable(timestamp)}.\n"
            f"View contact: {self.app_url}/contacts/{contact_id}"
        )


def _readable(timestamp: str) -> str:
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return str(timestamp)
    return parsed.strftime("%Y-%m-%d %H:%M %Z").strip()
