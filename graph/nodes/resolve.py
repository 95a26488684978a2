from graph.state import SyncState
from tools.accounts import AccountResolver, ContactDetails
from tools.errors import ContactResolutionFailed
from loguru import logger


def resolve(state: SyncState, resolver: AccountResolver) -> SyncState:
    """Find or create the DevRev account and contact behind the webhook's email."""
    payload = state["payload"]
    logger.info(f"Starting resolution for {payload.email}")

    details = ContactDetails(
        display_name=payload.display_name(),
        phone=payload.phone,
        city=payload.city,
        country=payload.country,
        job_title=payload.designation,
    )
    resolution = resolver.resolve(payload.email, details)

    if not resolution or not resolution.contact_id:
        raise ContactResolutionFailed(f"No contact resolved for {payload.email}")

    state["resolution"] = resolution
    logger.info(
        f"Resolved {payload.email} to contact {resolution.contact_id} "
        f"(account {resolution.account_id or 'none'}, new contact: {resolution.is_new_contact})"
    )
    return state
