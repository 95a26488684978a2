from graph.payloads import parse_payload
from graph.state import SyncState
from tools.activities import require_cta_fields
from tools.domains import extract_domain, normalize_email
from tools.scoring import CTA_CLICK
from loguru import logger


def capture(state: SyncState) -> SyncState:
    """Validate the raw webhook body into its typed payload and normalize the email."""
    kind = state.get("kind", "")
    raw = state.get("raw")
    email = raw.get("email", "unknown") if isinstance(raw, dict) else "unknown"
    logger.info(f"Starting capture for {kind} webhook: {email}")

    payload = parse_payload(kind, raw)
    payload.email = normalize_email(payload.email)
    extract_domain(payload.email)

    # Reject before any contact is created
    if kind == CTA_CLICK:
        require_cta_fields(payload.cta_link, payload.cta_text)

    state["payload"] = payload
    state.setdefault("errors", [])

    logger.info(f"Capture completed for {payload.email} on event {payload.airmeet_id}")
    return state
