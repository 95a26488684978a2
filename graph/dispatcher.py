from typing import Dict, Any, List, Optional
from loguru import logger

from graph.workflow import build_workflow
from tools.accounts import AccountResolver
from tools.activities import ActivityRecorder
from tools.airmeet import AirmeetClient
from tools.notifications import NotificationService
from tools.scoring import CTA_CLICK, EVENT_ENTRY, REGISTRATION


def webhook_descriptors(base_url: str, airmeet_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """The three Airmeet webhooks this service listens on, pointed at ``base_url``."""
    base_url = base_url.rstrip("/")
    descriptors = [
        {
            "name": "Registration Sync",
            "description": "Sync new registrations with DevRev",
            "triggerMetaInfoId": "trigger.airmeet.attendee.added",
            "url": f"{base_url}/webhooks/registration",
            "platformName": "DevRev",
        },
        {
            "name": "Event Entry Tracking",
            "description": "Track when attendees enter the event",
            "triggerMetaInfoId": "trigger.attendee.entered_airmeet",
            "url": f"{base_url}/webhooks/event-entry",
            "platformName": "DevRev",
        },
        {
            "name": "CTA Click Tracking",
            "description": "Track when attendees click CTAs",
            "triggerMetaInfoId": "trigger.attendee.clicked_cta",
            "url": f"{base_url}/webhooks/cta-click",
            "platformName": "DevRev",
        },
    ]
    # Registration sync stays community-wide
    if airmeet_id:
        for descriptor in descriptors[1:]:
            descriptor["airmeetId"] = airmeet_id
    return descriptors


class WebhookDispatcher:
    """
    Routes Airmeet webhooks through the sync workflow.

    One dispatcher is meant to live for the whole process: the Airmeet token cache and
    the recorder's registered-schema set are shared by every webhook it handles.
    """

    def __init__(
        self,
        airmeet: AirmeetClient,
        resolver: AccountResolver,
        recorder: ActivityRecorder,
        notifier: NotificationService,
    ):
        self.airmeet = airmeet
        self.resolver = resolver
        self.recorder = recorder
        self.notifier = notifier
        self.graph = build_workflow(airmeet, resolver, recorder, notifier)

    def handle(self, kind: str, raw: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run one webhook delivery through the workflow.

        Raises:
            InvalidPayload, InvalidEmail, MissingCTAFields: bad input
            ContactResolutionFailed, RecordCreationFailed: store gave no usable id
            httpx.HTTPError: store failures, unchanged
        """
        logger.info(f"Handling {kind} webhook")
        result = self.graph.invoke({"kind": kind, "raw": raw, "errors": []})

        if result.get("errors"):
            logger.warning(f"{kind} webhook completed with degraded data: {result['errors']}")
        return {"success": True, "contact_id": result["resolution"].contact_id}

    def handle_registration(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        return self.handle(REGISTRATION, raw)

    def handle_event_entry(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        return self.handle(EVENT_ENTRY, raw)

    def handle_cta_click(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        return self.handle(CTA_CLICK, raw)

    def register_webhooks(self, base_url: str, airmeet_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Register every descriptor in order; the first failure stops the rest and propagates."""
        registered = []
        for descriptor in webhook_descriptors(base_url, airmeet_id):
            try:
                registered.append(self.airmeet.register_webhook(descriptor))
            except Exception as e:
                logger.error(f"Failed to register webhook {descriptor['name']}: {e}")
                raise
            logger.info(f"Registered webhook: {descriptor['name']}")
        return registered

    def list_webhooks(self, airmeet_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return self.airmeet.list_webhooks(airmeet_id)

    def get_registration(self, airmeet_id: str, email: str) -> Optional[Dict[str, Any]]:
        return self.recorder.get_registration(airmeet_id, email)
