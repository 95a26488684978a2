class SyncError(Exception):
    """Base class for registration/engagement sync failures."""


class InvalidEmail(SyncError):
    """Email address has no usable domain part."""


class InvalidPayload(SyncError):
    """Inbound webhook payload is missing required fields."""


class AuthenticationFailed(SyncError):
    """Event platform refused the key/secret exchange."""


class RecordCreationFailed(SyncError):
    """Record store answered a create call without an id."""


class MissingCTAFields(SyncError):
    """CTA click recorded without a link or text."""


class ContactResolutionFailed(SyncError):
    """No contact id could be resolved for the inbound actor."""
