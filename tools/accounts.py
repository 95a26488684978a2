from dataclasses import dataclass
from typing import Dict, Any, Optional, Iterable
from loguru import logger

from tools.devrev import DevRevClient
from tools.domains import (
    account_display_name,
    extract_domain,
    is_business_domain,
    load_generic_domains,
    local_part,
    normalize_email,
)
from tools.errors import RecordCreationFailed


@dataclass
class ContactDetails:
    """Optional person details carried into a newly created contact."""
    display_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    job_title: Optional[str] = None


@dataclass
class Resolution:
    contact_id: str
    account_id: Optional[str] = None
    is_new_account: bool = False
    is_new_contact: bool = False


class AccountResolver:
    """
    Finds or creates the DevRev account (by domain) and contact (by email) for an actor.

    There is no compare-and-swap on the store side: two concurrent first sightings of
    the same domain or email can both miss the lookup and create duplicates.
    """

    def __init__(self, client: DevRevClient, generic_domains: Optional[Iterable[str]] = None):
        self.client = client
        self.generic_domains = frozenset(generic_domains) if generic_domains is not None else load_generic_domains()

    def resolve(self, email: str, details: Optional[ContactDetails] = None) -> Resolution:
        """
        Resolve an email to a contact id, and to an account id for business domains.

        Args:
            email: Actor email, any case or surrounding whitespace
            details: Person details used only when the contact has to be created

        Returns:
            Resolution with is_new_* flags set for records created by this call
        """
        normalized = normalize_email(email)
        domain = extract_domain(normalized)
        details = details or ContactDetails()

        if not is_business_domain(normalized, self.generic_domains):
            logger.info(f"Generic domain {domain}, skipping account resolution")
            contact_id, is_new_contact = self._find_or_create_contact(normalized, details, None)
            return Resolution(contact_id=contact_id, is_new_contact=is_new_contact)

        account = self._find_account_by_domain(domain)
        is_new_account = False
        if account:
            account_id = account["id"]
        else:
            account_id = self._create_account(domain)
            is_new_account = True

        contact_id, is_new_contact = self._find_or_create_contact(normalized, details, account_id)
        return Resolution(
            contact_id=contact_id,
            account_id=account_id,
            is_new_account=is_new_account,
            is_new_contact=is_new_contact,
        )

    def _find_account_by_domain(self, domain: str) -> Optional[Dict[str, Any]]:
        """Domain index first, then the external-ref index for stores that only index one."""
        by_domain = self.client.post("/accounts.list", {"domains": [domain], "limit": 1})
        accounts = by_domain.get("accounts") or []
        if accounts:
            return accounts[0]

        by_ref = self.client.post("/accounts.list", {"external_refs": [domain], "limit": 1})
        accounts = by_ref.get("accounts") or []
        if accounts:
            logger.warning(
                f"Account {accounts[0].get('id')} found by external ref {domain} "
                f"but not by domain index"
            )
            return accounts[0]
        return None

    def _create_account(self, domain: str) -> str:
        display_name = account_display_name(domain)
        response = self.client.post("/accounts.create", {
            "display_name": display_name,
            "domains": [domain],
            "external_refs": [domain],
        })

        # Older API versions return the account at the top level
        account = response.get("account") or response
        if not account.get("id"):
            raise RecordCreationFailed(f"Account creation for {domain} returned no id")

        logger.info(f"Created account {account['id']} ({display_name}) for {domain}")
        return account["id"]

    def _find_or_create_contact(self, email: str, details: ContactDetails, account_id: Optional[str]):
        response = self.client.post("/rev-users.list", {"email": [email], "limit": 1})
        contacts = response.get("rev_users") or []
        if contacts:
            return contacts[0]["id"], False
        return self._create_contact(email, details, account_id), True

    def _create_contact(self, email: str, details: ContactDetails, account_id: Optional[str]) -> str:
        contact_data: Dict[str, Any] = {
            "display_name": details.display_name or local_part(email),
            "email": email,
        }
        if account_id:
            contact_data["account"] = account_id
        if details.phone:
            contact_data["phone_numbers"] = [details.phone]
        if details.city:
            contact_data["city"] = details.city
        if details.country:
            contact_data["country"] = details.country
        if details.job_title:
            contact_data["job_title"] = details.job_title

        response = self.client.post("/rev-users.create", contact_data)
        contact = response.get("rev_user") or {}
        if not contact.get("id"):
            raise RecordCreationFailed(f"Contact creation for {email} returned no id")

        logger.info(f"Created contact {contact['id']} for {email}")
        return contact["id"]
