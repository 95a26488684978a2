"""
DevRev function entry point for the direct registration path.

Creates a ticket per Airmeet registrant instead of syncing custom objects, optionally
skipping registrants on consumer mail domains.
"""

import httpx
import os
from typing import Dict, Any, List, Optional
from loguru import logger

from tools.devrev import DevRevClient
from tools.domains import extract_domain, is_business_domain, normalize_email


def _ticket_body(registrant: Dict[str, Any], email: str) -> str:
    return "\n".join([
        "Contact Information:",
        f"Email: {email}",
        f"Name: {registrant.get('firstName', '')} {registrant.get('lastName', '')}".rstrip(),
        f"Phone: {registrant.get('phone') or 'Not provided'}",
        f"City: {registrant.get('city') or 'Not provided'}",
        f"Country: {registrant.get('country') or 'Not provided'}",
        f"Job Title: {registrant.get('jobTitle') or 'Not provided'}",
        "Source: Airmeet Registration",
        f"UTM Source: {registrant.get('utm_source') or 'direct'}",
        f"UTM Medium: {registrant.get('utm_medium') or 'none'}",
        f"UTM Campaign: {registrant.get('utm_campaign') or 'none'}",
    ])


def handle_event(event: Dict[str, Any], http_client: Optional[httpx.Client] = None) -> Optional[Dict[str, Any]]:
    token = (event.get("context") or {}).get("secrets", {}).get("service_account_token")
    if not token:
        logger.error("Missing DevRev service account token")
        return None

    endpoint = (event.get("execution_metadata") or {}).get("devrev_endpoint")
    if not endpoint:
        logger.error("Missing DevRev API endpoint")
        return None

    client = DevRevClient(token=token, base_url=endpoint, http_client=http_client)

    registrant = (event.get("event") or {}).get("payload") or {}
    email = normalize_email(registrant.get("email", ""))
    domain = extract_domain(email)

    linking_enabled = ((event.get("inputs") or {}).get("organization") or {}).get("account_linking_enabled")
    if linking_enabled and not is_business_domain(email):
        logger.info(f"Skipping generic domain: {domain}")
        return None

    feature_id = os.getenv("DEVREV_DEFAULT_FEATURE_ID")
    owner_id = os.getenv("DEVREV_DEFAULT_OWNER_ID")
    if not feature_id or not owner_id:
        raise ValueError("Missing required environment variables: DEVREV_DEFAULT_FEATURE_ID and/or DEVREV_DEFAULT_OWNER_ID")

    try:
        logger.info(f"Checking for existing account with domain: {domain}")
        accounts = client.post("/accounts.list", {"display_name": [domain]}).get("accounts") or []
        account_id = accounts[0]["id"] if accounts else None
        if account_id:
            logger.info(f"Found existing account for domain {domain}: {account_id}")

        work = {
            "applies_to_part": feature_id,
            "owned_by": [owner_id],
            "title": f"New Contact Registration: {registrant.get('firstName', '')} {registrant.get('lastName', '')}".rstrip(),
            "type": "ticket",
            "body": _ticket_body(registrant, email),
        }
        if account_id:
            work["applies_to_account"] = account_id

        response = client.post("/works.create", work)
        logger.info(f"Created work item for {email}: {(response.get('work') or {}).get('id')}")
        return response
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 401:
            logger.error("Authentication failed. Please check your DevRev service account token.")
            return None
        raise


def run(events: List[Dict[str, Any]], http_client: Optional[httpx.Client] = None) -> Optional[Dict[str, Any]]:
    return handle_event(events[0], http_client=http_client)
