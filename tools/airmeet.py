import httpx
import os
import time
from typing import Dict, Any, List, Optional
from loguru import logger

from tools.errors import AuthenticationFailed

# Airmeet returns expiresIn in seconds; tokens default to 29 days
DEFAULT_TOKEN_TTL = 29 * 24 * 60 * 60


class AirmeetClient:
    """Airmeet event-platform client with a lazily refreshed bearer token."""

    AUTH_PATH = "/v2/auth/token"
    WEBHOOK_REGISTER_PATH = "/platform-integration/v1/webhook-register"
    WEBHOOK_LIST_PATH = "/platform-integration/v1/webhook-list"

    def __init__(
        self,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        community_id: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.access_key = access_key or os.getenv("AIRMEET_ACCESS_KEY")
        self.secret_key = secret_key or os.getenv("AIRMEET_SECRET_KEY")
        self.base_url = (base_url or os.getenv("AIRMEET_BASE_URL", "https://api-gateway.airmeet.com/prod")).rstrip("/")
        self.community_id = community_id or os.getenv("AIRMEET_COMMUNITY_ID", "")
        self._http = http_client or httpx.Client(timeout=20)

        # Shared by every request made through this instance
        self.access_token: Optional[str] = None
        self.token_expiry: Optional[float] = None

        if not self.access_key or not self.secret_key:
            logger.warning("No Airmeet access/secret key provided, authentication will fail")

    def authenticate(self) -> Dict[str, Any]:
        """
        Exchange the access/secret key pair for a bearer token.

        Returns:
            ``{"token": ..., "expiry": <epoch seconds>}``
        """
        logger.info("Authenticating with Airmeet")
        response = self._http.post(
            f"{self.base_url}{self.AUTH_PATH}",
            headers={
                "Content-Type": "application/json",
                "X-Airmeet-Access-Key": self.access_key or "",
                "X-Airmeet-Secret-Key": self.secret_key or "",
            },
            json={},
        )
        if response.status_code in (401, 403):
            logger.error(f"Airmeet authentication rejected: {response.status_code}")
            raise AuthenticationFailed(f"Airmeet rejected credentials ({response.status_code})")
        response.raise_for_status()

        data = response.json() if response.content else {}
        token = data.get("token")
        if not token:
            raise AuthenticationFailed("Airmeet authentication response carried no token")

        self.access_token = token
        self.token_expiry = time.time() + (data.get("expiresIn") or DEFAULT_TOKEN_TTL)
        logger.info("Successfully authenticated with Airmeet")
        return {"token": self.access_token, "expiry": self.token_expiry}

    def _ensure_authenticated(self):
        if not self.access_token or not self.token_expiry or time.time() >= self.token_expiry:
            self.authenticate()

    def _request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """Send an authenticated request; a 401 triggers one re-auth and retry."""
        self._ensure_authenticated()
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        response = self._http.request(method, url, headers=self._get_headers(), **kwargs)
        if response.status_code == 401:
            logger.warning(f"Airmeet token rejected on {method} {endpoint}, re-authenticating")
            self.authenticate()
            response = self._http.request(method, url, headers=self._get_headers(), **kwargs)

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Airmeet API error on {method} {endpoint}: {e.response.status_code} {e.response.text}")
            raise
        return response

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json"
        }

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self._request("GET", endpoint, params=params)
        return response.json() if response.content else {}

    def post(self, endpoint: str, data: Dict[str, Any], params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self._request("POST", endpoint, json=data, params=params)
        return response.json() if response.content else {}

    def _community_path(self, suffix: str = "") -> str:
        return f"/v2/community/{self.community_id}/events{suffix}"

    def list_events(self) -> List[Dict[str, Any]]:
        return self.get(self._community_path()).get("events", [])

    def get_event(self, event_id: str) -> Dict[str, Any]:
        return self.get(self._community_path(f"/{event_id}"))

    def get_event_attendees(self, event_id: str) -> List[Dict[str, Any]]:
        return self.get(self._community_path(f"/{event_id}/attendees")).get("attendees", [])

    def get_session_attendance(self, event_id: str, session_id: str) -> List[Dict[str, Any]]:
        path = self._community_path(f"/{event_id}/sessions/{session_id}/attendance")
        return self.get(path).get("attendance", [])

    def get_booth_activity(self, event_id: str) -> List[Dict[str, Any]]:
        return self.get(self._community_path(f"/{event_id}/booth-activities")).get("activities", [])

    def get_participant_registration(self, event_id: str, email: str) -> Optional[Dict[str, Any]]:
        """Registration link for one participant, or None when Airmeet has no match."""
        data = self.get(self._community_path(f"/{event_id}/participants"), params={"email": email})
        participants = data.get("participants") or []
        if not participants:
            return None
        return {"registration_link": participants[0].get("registrationLink")}

    def get_all_event_data(self, event_id: str) -> Dict[str, Any]:
        """Event details, attendees, per-session attendance and booth activity in one bundle."""
        event = self.get_event(event_id)
        attendees = self.get_event_attendees(event_id)

        session_attendance = []
        for session in event.get("sessions") or []:
            session_attendance.extend(self.get_session_attendance(event_id, session["id"]))

        return {
            "event": event,
            "attendees": attendees,
            "session_attendance": session_attendance,
            "booth_activity": self.get_booth_activity(event_id),
        }

    def register_webhook(self, descriptor: Dict[str, Any]) -> Dict[str, Any]:
        """Register one webhook descriptor, scoped to an event when it names one."""
        airmeet_id = descriptor.get("airmeetId")
        params = {"airmeetId": airmeet_id} if airmeet_id else None
        return self.post(self.WEBHOOK_REGISTER_PATH, descriptor, params=params)

    def list_webhooks(self, airmeet_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"airmeetId": airmeet_id} if airmeet_id else None
        return self.get(self.WEBHOOK_LIST_PATH, params=params).get("webhookDTOList", [])

    def close(self):
        self._http.close()
