from datetime import datetime, timezone

from graph.state import SyncState
from tools.activities import ActivityRecorder, EngagementActivity, RegistrationActivity
from tools.scoring import REGISTRATION
from loguru import logger


def build_activity(state: SyncState):
    """Assemble the recorder input for the state's webhook kind."""
    payload = state["payload"]
    resolution = state["resolution"]
    enrichment = state.get("enrichment") or {}
    event_name = payload.airmeet_name or enrichment.get("event_name") or payload.airmeet_id

    if state["kind"] == REGISTRATION:
        return RegistrationActivity(
            contact_id=resolution.contact_id,
            event_id=payload.airmeet_id,
            event_name=event_name,
            email=payload.email,
            registered_at=payload.registration_date_time or datetime.now(timezone.utc).isoformat(),
            first_name=payload.first_name or "",
            last_name=payload.last_name or "",
            attendance_type=payload.attendance_type or "VIRTUAL",
            registration_link=enrichment.get("registration_link"),
            phone=payload.phone,
            city=payload.city,
            country=payload.country,
            job_title=payload.designation,
            organization=payload.organisation,
            utm_source=payload.utm_source,
            utm_medium=payload.utm_medium,
            utm_campaign=payload.utm_campaign,
            utm_term=payload.utm_term,
            utm_content=payload.utm_content,
            custom_fields=[answer.model_dump(by_alias=True) for answer in payload.custom_fields],
        )

    return EngagementActivity(
        contact_id=resolution.contact_id,
        event_id=payload.airmeet_id,
        event_name=event_name,
        email=payload.email,
        occurred_at=payload.timestamp,
        cta_link=getattr(payload, "cta_link", None),
        cta_text=getattr(payload, "cta_text", None),
        event_start_date=enrichment.get("event_start_date"),
        event_end_date=enrichment.get("event_end_date"),
        registration_link=enrichment.get("registration_link"),
        utm_source=payload.utm_source,
        utm_medium=payload.utm_medium,
        utm_campaign=payload.utm_campaign,
    )


def record(state: SyncState, recorder: ActivityRecorder) -> SyncState:
    """Persist the activity record for this webhook."""
    kind = state["kind"]
    logger.info(f"Starting {kind} record for contact {state['resolution'].contact_id}")

    state["record_id"], created = recorder.record(kind, build_activity(state))
    state["replayed"] = not created

    logger.info(f"Record completed: {state['record_id']}")
    return state
