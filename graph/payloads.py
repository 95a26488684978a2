"""Inbound Airmeet webhook payloads, one model per webhook kind."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tools.errors import InvalidPayload
from tools.scoring import CTA_CLICK, EVENT_ENTRY, REGISTRATION


class CustomFieldAnswer(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    field_id: str = Field(alias="fieldId")
    value: Any = None


class WebhookPayload(BaseModel):
    """Fields shared by every Airmeet attendee webhook."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: str
    airmeet_id: str = Field(alias="airmeetId")
    airmeet_name: Optional[str] = Field(default=None, alias="airmeetName")
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    designation: Optional[str] = None
    organisation: Optional[str] = None
    utm_source: Optional[str] = Field(default=None, alias="utmSource")
    utm_medium: Optional[str] = Field(default=None, alias="utmMedium")
    utm_campaign: Optional[str] = Field(default=None, alias="utmCampaign")

    @field_validator("email", "airmeet_id")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    def display_name(self) -> Optional[str]:
        full = " ".join(p.strip() for p in (self.first_name, self.last_name) if p and p.strip())
        return full or self.name or None


class RegistrationPayload(WebhookPayload):
    kind: Literal["registration"] = REGISTRATION
    registration_date_time: Optional[str] = Field(default=None, alias="registrationDateTime")
    attendance_type: Optional[str] = Field(default=None, alias="attendanceType")
    utm_term: Optional[str] = Field(default=None, alias="utmTerm")
    utm_content: Optional[str] = Field(default=None, alias="utmContent")
    custom_fields: List[CustomFieldAnswer] = Field(default_factory=list, alias="customFields")


class EventEntryPayload(WebhookPayload):
    kind: Literal["event_entry"] = EVENT_ENTRY
    timestamp: Optional[str] = None


class CTAClickPayload(WebhookPayload):
    kind: Literal["cta_click"] = CTA_CLICK
    timestamp: Optional[str] = None
    cta_link: Optional[str] = Field(default=None, alias="ctaLink")
    cta_text: Optional[str] = Field(default=None, alias="ctaText")


PAYLOAD_TYPES = {
    REGISTRATION: RegistrationPayload,
    EVENT_ENTRY: EventEntryPayload,
    CTA_CLICK: CTAClickPayload,
}


def parse_payload(kind: str, raw: Any) -> WebhookPayload:
    """Validate a raw webhook body into the model for ``kind``; raise InvalidPayload otherwise."""
    model = PAYLOAD_TYPES.get(kind)
    if model is None:
        raise InvalidPayload(f"Unknown webhook kind: {kind}")
    if not isinstance(raw, dict):
        raise InvalidPayload(f"{kind} webhook body must be a JSON object")

    body: Dict[str, Any] = {k: v for k, v in raw.items() if k != "kind"}
    try:
        return model.model_validate(body)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise InvalidPayload(f"Invalid {kind} payload: {'; '.join(problems)}") from e
