from typing import TypedDict, Optional, List, Dict, Any

from graph.payloads import WebhookPayload
from tools.accounts import Resolution


class SyncState(TypedDict, total=False):
    """State shape for the webhook sync workflow."""
    kind: str                        # "registration" | "event_entry" | "cta_click"
    raw: Dict[str, Any]              # original webhook body
    payload: WebhookPayload          # validated variant for `kind`
    resolution: Resolution           # contact (and account) ids
    enrichment: Dict[str, Any]       # event window, registration link, event name
    record_id: Optional[str]         # DevRev custom object id
    replayed: bool                   # record already existed under its key
    notification_id: Optional[str]   # timeline entry id
    errors: List[str]                # swallowed, non-fatal failures
