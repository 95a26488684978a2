from datetime import datetime, timezone

from graph.state import SyncState
from tools.notifications import NotificationService
from loguru import logger


def notify(state: SyncState, notifier: NotificationService) -> SyncState:
    """Alert the account owner about a high-intent activity; never fails the webhook."""
    payload = state["payload"]
    resolution = state["resolution"]
    logger.info(f"Starting owner notification for account {resolution.account_id}")

    try:
        state["notification_id"] = notifier.notify_account_owner(
            account_id=resolution.account_id,
            contact_id=resolution.contact_id,
            contact_name=payload.display_name() or payload.email,
            event_name=payload.airmeet_name or (state.get("enrichment") or {}).get("event_name") or payload.airmeet_id,
            activity_type=state["kind"],
            timestamp=getattr(payload, "timestamp", None) or datetime.now(timezone.utc).isoformat(),
        )
    except Exception as e:
        error_msg = f"Owner notification failed: {str(e)}"
        logger.error(error_msg)
        state.setdefault("errors", []).append(error_msg)
        state["notification_id"] = None

    return state
