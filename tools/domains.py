import os
import re
from typing import FrozenSet, Iterable, Optional

from tools.errors import InvalidEmail

DEFAULT_GENERIC_DOMAINS = frozenset({
    "gmail.com",
    "yahoo.com",
    "hotmail.com",
    "outlook.com",
    "aol.com",
    "icloud.com",
    "protonmail.com",
    "mail.com",
    "zoho.com",
    "yandex.com",
    "live.com",
    "msn.com",
})


def load_generic_domains() -> FrozenSet[str]:
    """Deny-list of consumer mail providers, overridable via GENERIC_EMAIL_DOMAINS."""
    override = os.getenv("GENERIC_EMAIL_DOMAINS")
    if not override:
        return DEFAULT_GENERIC_DOMAINS
    return frozenset(d.strip().lower() for d in override.split(",") if d.strip())


def normalize_email(email: str) -> str:
    return email.strip().lower()


def extract_domain(email: str) -> str:
    """Return the lower-cased part after ``@``; raise InvalidEmail when there is none."""
    local, sep, domain = email.strip().rpartition("@")
    if not sep or not local or not domain:
        raise InvalidEmail(f"Not a valid email address: {email!r}")
    return domain.lower()


def local_part(email: str) -> str:
    return email.strip().rpartition("@")[0]


def is_business_domain(email: str, generic_domains: Optional[Iterable[str]] = None) -> bool:
    """
    Decide whether an email belongs to an organisation rather than a consumer provider.

    Args:
        email: Email address, any case
        generic_domains: Deny-list to check against (defaults to the configured list)

    Returns:
        False for deny-listed domains, True otherwise
    """
    domains = generic_domains if generic_domains is not None else load_generic_domains()
    return extract_domain(email) not in {d.lower() for d in domains}


def account_display_name(domain: str) -> str:
    """Readable company name from a domain, e.g. ``acme-corp.com`` -> ``Acme Corp``."""
    first_label = domain.split(".")[0]
    words = [w for w in re.split(r"[-_]", first_label) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)
