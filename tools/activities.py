import httpx
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Set, Tuple
from loguru import logger

from tools.devrev import DevRevClient
from tools.domains import normalize_email
from tools.errors import MissingCTAFields, RecordCreationFailed
from tools.schemas import ENGAGEMENT_LEAF_TYPE, REGISTRATION_LEAF_TYPE, SCHEMAS
from tools.scoring import CTA_CLICK, EVENT_ENTRY, REGISTRATION, score


@dataclass
class RegistrationActivity:
    contact_id: str
    event_id: str
    event_name: str
    email: str
    registered_at: str
    first_name: str = ""
    last_name: str = ""
    attendance_type: str = "VIRTUAL"
    registration_link: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    job_title: Optional[str] = None
    organization: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None
    custom_fields: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class EngagementActivity:
    contact_id: str
    event_id: str
    event_name: str
    email: str
    # Timestamp reported by Airmeet; None when the webhook carried none
    occurred_at: Optional[str] = None
    cta_link: Optional[str] = None
    cta_text: Optional[str] = None
    event_start_date: Optional[str] = None
    event_end_date: Optional[str] = None
    registration_link: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None


def registration_key(event_id: str, email: str) -> str:
    return f"{event_id}:{normalize_email(email)}"


def engagement_key(
    activity_type: str,
    event_id: str,
    email: str,
    occurred_at: Optional[str] = None,
    cta_link: Optional[str] = None,
) -> str:
    """Idempotency key built only from webhook input, so redeliveries collide in the store."""
    parts = [activity_type, event_id, normalize_email(email)]
    if occurred_at:
        parts.append(occurred_at)
    if cta_link:
        parts.append(cta_link)
    return ":".join(parts)


def require_cta_fields(cta_link: Optional[str], cta_text: Optional[str]):
    missing = [name for name, value in (("cta_link", cta_link), ("cta_text", cta_text))
               if not (value or "").strip()]
    if missing:
        raise MissingCTAFields(f"CTA click requires {', '.join(missing)}")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _put_optional(target: Dict[str, Any], **values):
    for key, value in values.items():
        if value:
            target[key] = value


class ActivityRecorder:
    """Writes registration and engagement custom objects to DevRev."""

    def __init__(self, client: DevRevClient):
        self.client = client
        # Leaf types whose schema is known to exist; lives as long as this recorder
        self._registered_leaf_types: Set[str] = set()

    def ensure_schema(self, leaf_type: str):
        """Register the leaf type's schema once; a 409 means another writer already did."""
        if leaf_type in self._registered_leaf_types:
            return

        try:
            self.client.post("/schemas.custom.set", SCHEMAS[leaf_type])
            logger.info(f"Registered schema for {leaf_type}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code != 409:
                raise
            logger.info(f"Schema for {leaf_type} already registered")

        self._registered_leaf_types.add(leaf_type)

    def record_registration(self, data: RegistrationActivity) -> str:
        """
        Persist one registration record.

        The key is ``event_id:email``, so replaying the same registration resolves to
        the record created the first time.

        Returns:
            DevRev id of the registration record
        """
        return self._record_registration(data)[0]

    def record_event_entry(self, data: EngagementActivity) -> str:
        return self._record_engagement(EVENT_ENTRY, data)[0]

    def record_cta_click(self, data: EngagementActivity) -> str:
        require_cta_fields(data.cta_link, data.cta_text)
        return self._record_engagement(CTA_CLICK, data)[0]

    def record(self, activity_type: str, data) -> Tuple[str, bool]:
        """
        Dispatch to the recorder for ``activity_type``.

        Returns:
            (record id, True if this call created the record, False on a replay)
        """
        if activity_type == REGISTRATION:
            return self._record_registration(data)
        if activity_type == EVENT_ENTRY:
            return self._record_engagement(EVENT_ENTRY, data)
        if activity_type == CTA_CLICK:
            require_cta_fields(data.cta_link, data.cta_text)
            return self._record_engagement(CTA_CLICK, data)
        raise ValueError(f"Unknown activity type: {activity_type}")

    def _record_registration(self, data: RegistrationActivity) -> Tuple[str, bool]:
        custom_fields: Dict[str, Any] = {
            "contact_id": data.contact_id,
            "registered_datetime": data.registered_at,
            "airmeet_id": data.event_id,
            "airmeet_name": data.event_name,
            "email": normalize_email(data.email),
            "first_name": data.first_name,
            "last_name": data.last_name,
            "attendance_type": data.attendance_type or "VIRTUAL",
            "engagement_score": score(REGISTRATION),
        }
        _put_optional(
            custom_fields,
            registration_link=data.registration_link,
            phone_number=data.phone,
            city=data.city,
            country=data.country,
            job_title=data.job_title,
            organization=data.organization,
            utm_source=data.utm_source,
            utm_medium=data.utm_medium,
            utm_campaign=data.utm_campaign,
            utm_term=data.utm_term,
            utm_content=data.utm_content,
        )
        if data.custom_fields:
            custom_fields["airmeet_custom_fields"] = {
                f["fieldId"]: f.get("value") for f in data.custom_fields if f.get("fieldId")
            }

        name = f"{data.first_name} {data.last_name}".strip() or data.email
        return self._create(
            REGISTRATION_LEAF_TYPE,
            registration_key(data.event_id, data.email),
            f"Registration: {name} - {data.event_name}",
            custom_fields,
        )

    def _record_engagement(self, activity_type: str, data: EngagementActivity) -> Tuple[str, bool]:
        custom_fields: Dict[str, Any] = {
            "contact_id": data.contact_id,
            "event_id": data.event_id,
            "event_name": data.event_name,
            "activity_type": activity_type,
            "activity_timestamp": data.occurred_at or _utc_now(),
            "engagement_score": score(activity_type),
        }
        _put_optional(
            custom_fields,
            cta_link=data.cta_link,
            cta_text=data.cta_text,
            event_start_date=data.event_start_date,
            event_end_date=data.event_end_date,
            registration_link=data.registration_link,
            utm_source=data.utm_source,
            utm_medium=data.utm_medium,
            utm_campaign=data.utm_campaign,
        )

        key = engagement_key(activity_type, data.event_id, data.email, data.occurred_at, data.cta_link)
        title = f"{activity_type.replace('_', ' ').title()}: {normalize_email(data.email)} - {data.event_name}"
        return self._create(ENGAGEMENT_LEAF_TYPE, key, title, custom_fields)

    def _create(
        self, leaf_type: str, unique_key: str, title: str, custom_fields: Dict[str, Any]
    ) -> Tuple[str, bool]:
        """Create the object, or return the one already stored under ``unique_key`` (created=False)."""
        self.ensure_schema(leaf_type)

        try:
            response = self.client.post("/custom-objects.create", {
                "leaf_type": leaf_type,
                "unique_key": unique_key,
                "title": title,
                "custom_schema_spec": {"tenant_fragment": True},
                "custom_fields": custom_fields,
            })
        except httpx.HTTPStatusError as e:
            if e.response.status_code != 409:
                raise
            logger.info(f"{leaf_type} {unique_key} already recorded, reusing existing record")
            existing = self.find_by_key(leaf_type, unique_key)
            if not existing or not existing.get("id"):
                raise RecordCreationFailed(
                    f"{leaf_type} {unique_key} conflicted but no existing record was found"
                ) from e
            return existing["id"], False

        record = response.get("custom_object") or {}
        if not record.get("id"):
            raise RecordCreationFailed(f"{leaf_type} {unique_key} creation returned no id")

        logger.info(f"Recorded {leaf_type} {record['id']} ({unique_key})")
        return record["id"], True

    def find_by_key(self, leaf_type: str, unique_key: str) -> Optional[Dict[str, Any]]:
        response = self.client.post("/custom-objects.list", {
            "leaf_type": leaf_type,
            "filter": {"unique_key": [unique_key]},
            "limit": 1,
        })
        objects = response.get("custom_objects") or []
        return objects[0] if objects else None

    def get_registration(self, event_id: str, email: str) -> Optional[Dict[str, Any]]:
        return self.find_by_key(REGISTRATION_LEAF_TYPE, registration_key(event_id, email))
