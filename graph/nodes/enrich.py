from graph.state import SyncState
from tools.airmeet import AirmeetClient
from loguru import logger


def enrich(state: SyncState, airmeet: AirmeetClient) -> SyncState:
    """Attach live event metadata from Airmeet; failures leave the fields out."""
    payload = state["payload"]
    logger.info(f"Starting enrichment for event {payload.airmeet_id}")

    enrichment = {}

    try:
        event = airmeet.get_event(payload.airmeet_id)
        enrichment["event_name"] = event.get("name")
        enrichment["event_start_date"] = event.get("startDate")
        enrichment["event_end_date"] = event.get("endDate")
    except Exception as e:
        error_msg = f"Event lookup failed: {str(e)}"
        logger.warning(error_msg)
        state.setdefault("errors", []).append(error_msg)

    try:
        participant = airmeet.get_participant_registration(payload.airmeet_id, payload.email)
        if participant:
            enrichment["registration_link"] = participant.get("registration_link")
    except Exception as e:
        error_msg = f"Registration link lookup failed: {str(e)}"
        logger.warning(error_msg)
        state.setdefault("errors", []).append(error_msg)

    state["enrichment"] = {k: v for k, v in enrichment.items() if v}
    logger.info(f"Enrichment completed with {sorted(state['enrichment'])}")
    return state
