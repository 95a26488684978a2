"""Leaf-type schemas registered with DevRev before the first record of each kind."""

REGISTRATION_LEAF_TYPE = "airmeet_registration"
ENGAGEMENT_LEAF_TYPE = "airmeet_engagement"


def _field(name, field_type, description, required=True, **extra):
    field = {"name": name, "field_type": field_type, "description": description}
    if not required:
        field["required"] = False
    field.update(extra)
    return field


_UTM_FIELDS = [
    _field("utm_source", "string", "UTM source parameter from registration", required=False),
    _field("utm_medium", "string", "UTM medium parameter from registration", required=False),
    _field("utm_campaign", "string", "UTM campaign parameter from registration", required=False),
]

REGISTRATION_SCHEMA = {
    "type": "tenant_fragment",
    "description": "Attributes for Airmeet registration tracking",
    "leaf_type": REGISTRATION_LEAF_TYPE,
    "fields": [
        _field("contact_id", "string", "ID of the associated contact"),
        _field("registered_datetime", "datetime", "When the registration occurred"),
        _field("airmeet_id", "string", "Airmeet event ID"),
        _field("airmeet_name", "string", "Name of the Airmeet event"),
        _field("email", "string", "Registrant email address"),
        _field("first_name", "string", "Registrant first name", required=False),
        _field("last_name", "string", "Registrant last name", required=False),
        _field("attendance_type", "enum", "How the registrant attends",
               allowed_values=["IN-PERSON", "VIRTUAL"]),
        _field("engagement_score", "int", "Intent weight of the activity"),
        _field("registration_link", "string", "Link used for event registration", required=False),
        _field("phone_number", "string", "Registrant phone number", required=False),
        _field("city", "string", "Registrant city", required=False),
        _field("country", "string", "Registrant country", required=False),
        _field("job_title", "string", "Registrant job title", required=False),
        _field("organization", "string", "Registrant organisation", required=False),
        *_UTM_FIELDS,
        _field("utm_term", "string", "UTM term parameter from registration", required=False),
        _field("utm_content", "string", "UTM content parameter from registration", required=False),
        _field("airmeet_custom_fields", "json", "Registration form answers keyed by field id",
               required=False),
    ],
    "is_custom_leaf_type": True,
    "id_prefix": "AMREG",
}

ENGAGEMENT_SCHEMA = {
    "type": "tenant_fragment",
    "description": "Attributes for Airmeet engagement tracking",
    "leaf_type": ENGAGEMENT_LEAF_TYPE,
    "fields": [
        _field("contact_id", "string", "ID of the associated contact"),
        _field("event_id", "string", "Airmeet event ID"),
        _field("event_name", "string", "Name of the Airmeet event"),
        _field("activity_type", "enum", "Type of engagement activity",
               allowed_values=["event_entry", "cta_click"]),
        _field("activity_timestamp", "datetime", "When the activity occurred"),
        _field("engagement_score", "int", "Intent weight of the activity"),
        _field("cta_link", "string", "URL of the CTA button (for CTA clicks only)", required=False),
        _field("cta_text", "string", "Text of the CTA button (for CTA clicks only)", required=False),
        _field("event_start_date", "datetime", "Scheduled start of the event", required=False),
        _field("event_end_date", "datetime", "Scheduled end of the event", required=False),
        _field("registration_link", "string", "Link used for event registration", required=False),
        *_UTM_FIELDS,
    ],
    "is_custom_leaf_type": True,
    "id_prefix": "AMENG",
}

SCHEMAS = {
    REGISTRATION_LEAF_TYPE: REGISTRATION_SCHEMA,
    ENGAGEMENT_LEAF_TYPE: ENGAGEMENT_SCHEMA,
}
