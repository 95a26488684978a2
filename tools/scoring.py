REGISTRATION = "registration"
EVENT_ENTRY = "event_entry"
CTA_CLICK = "cta_click"

# Intent weights per activity; anything not listed carries no signal
ENGAGEMENT_SCORES = {
    EVENT_ENTRY: 10,
    CTA_CLICK: 25,
}


def score(activity_type: str) -> int:
    """Fixed engagement score for an activity type (0 for unknown types)."""
    return ENGAGEMENT_SCORES.get(activity_type, 0)
