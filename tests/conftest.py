import json
from typing import Dict, Any, List

import httpx
import pytest

from tools.airmeet import AirmeetClient
from tools.devrev import DevRevClient

DEVREV_URL = "https://devrev.test"
AIRMEET_URL = "https://airmeet.test"
COMMUNITY_ID = "community-1"


class FakeDevRev:
    """In-memory stand-in for the DevRev endpoints the sync engine calls."""

    def __init__(self):
        self.accounts: List[Dict[str, Any]] = []
        self.contacts: List[Dict[str, Any]] = []
        self.custom_objects: List[Dict[str, Any]] = []
        self.schemas: List[str] = []
        self.timeline: List[Dict[str, Any]] = []
        self.works: List[Dict[str, Any]] = []
        self.requests: List[tuple] = []
        # path -> (status, json body), answered instead of the fake logic
        self.overrides: Dict[str, tuple] = {}
        self._next_id = 0

    def _id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}-{self._next_id}"

    def paths(self) -> List[str]:
        return [path for path, _ in self.requests]

    def bodies(self, path: str) -> List[Dict[str, Any]]:
        return [body for p, body in self.requests if p == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.lstrip("/")
        body = json.loads(request.content or b"{}")
        self.requests.append((path, body))

        if path in self.overrides:
            status, payload = self.overrides[path]
            return httpx.Response(status, json=payload)

        if path == "accounts.list":
            matches = [
                a for a in self.accounts
                if any(d in a.get("domains", []) for d in body.get("domains", []))
                or any(r in a.get("external_refs", []) for r in body.get("external_refs", []))
                or a.get("display_name") in body.get("display_name", [])
            ]
            return httpx.Response(200, json={"accounts": matches[: body.get("limit", 50)]})

        if path == "accounts.create":
            account = dict(body, id=self._id("account"))
            self.accounts.append(account)
            return httpx.Response(201, json={"account": account})

        if path == "rev-users.list":
            matches = [c for c in self.contacts if c["email"] in body.get("email", [])]
            return httpx.Response(200, json={"rev_users": matches[: body.get("limit", 50)]})

        if path == "rev-users.create":
            contact = dict(body, id=self._id("contact"))
            self.contacts.append(contact)
            return httpx.Response(201, json={"rev_user": contact})

        if path == "schemas.custom.set":
            if body["leaf_type"] in self.schemas:
                return httpx.Response(409, json={"message": "schema exists"})
            self.schemas.append(body["leaf_type"])
            return httpx.Response(200, json={})

        if path == "custom-objects.create":
            if any(o["unique_key"] == body["unique_key"] for o in self.custom_objects):
                return httpx.Response(409, json={"message": "unique_key conflict"})
            record = dict(body, id=self._id("object"))
            self.custom_objects.append(record)
            return httpx.Response(201, json={"custom_object": record})

        if path == "custom-objects.list":
            keys = body.get("filter", {}).get("unique_key", [])
            matches = [
                o for o in self.custom_objects
                if o["leaf_type"] == body["leaf_type"] and o["unique_key"] in keys
            ]
            return httpx.Response(200, json={"custom_objects": matches})

        if path == "timeline-entries.create":
            entry = dict(body, id=self._id("timeline"))
            self.timeline.append(entry)
            return httpx.Response(201, json={"timeline_entry": entry})

        if path == "works.create":
            work = dict(body, id=self._id("work"))
            self.works.append(work)
            return httpx.Response(201, json={"work": work})

        return httpx.Response(404, json={"message": f"unknown endpoint {path}"})

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def client(self) -> DevRevClient:
        return DevRevClient(token="devrev-token", base_url=DEVREV_URL, http_client=self.http_client())


class FakeAirmeet:
    """In-memory stand-in for the Airmeet auth, event and webhook endpoints."""

    def __init__(self):
        self.events: Dict[str, Dict[str, Any]] = {}
        self.participants: Dict[tuple, Dict[str, Any]] = {}
        self.webhooks: List[Dict[str, Any]] = []
        self.requests: List[httpx.Request] = []
        self.auth_calls = 0
        self.valid_tokens = set()
        self.issue_tokens = True
        self.reject_all = False
        self.fail_paths: Dict[str, int] = {}

    def revoke_tokens(self):
        self.valid_tokens.clear()

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/v2/auth/token":
            self.auth_calls += 1
            if not self.issue_tokens:
                return httpx.Response(200, json={})
            token = f"tok-{self.auth_calls}"
            self.valid_tokens.add(token)
            return httpx.Response(200, json={"token": token, "expiresIn": 3600})

        token = request.headers.get("Authorization", "").replace("Bearer ", "")
        if self.reject_all or token not in self.valid_tokens:
            return httpx.Response(401, json={"message": "token expired"})

        if path in self.fail_paths:
            return httpx.Response(self.fail_paths[path], json={"message": "forced failure"})

        prefix = f"/v2/community/{COMMUNITY_ID}/events"
        if path == prefix:
            return httpx.Response(200, json={"events": list(self.events.values())})
        if path.startswith(prefix):
            parts = path[len(prefix) + 1:].split("/")
            event = self.events.get(parts[0])
            if event is None:
                return httpx.Response(404, json={"message": "event not found"})
            if len(parts) == 1:
                return httpx.Response(200, json=event)
            if parts[1] == "participants":
                participant = self.participants.get((parts[0], request.url.params.get("email")))
                return httpx.Response(200, json={"participants": [participant] if participant else []})
            if parts[1] == "attendees":
                return httpx.Response(200, json={"attendees": event.get("attendees", [])})
            if parts[1] == "sessions":
                return httpx.Response(200, json={"attendance": [{"sessionId": parts[2], "attendeeId": "att-1"}]})
            if parts[1] == "booth-activities":
                return httpx.Response(200, json={"activities": []})

        if path == AirmeetClient.WEBHOOK_REGISTER_PATH:
            self.webhooks.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True})
        if path == AirmeetClient.WEBHOOK_LIST_PATH:
            return httpx.Response(200, json={"webhookDTOList": self.webhooks})

        return httpx.Response(404, json={"message": f"unknown endpoint {path}"})

    def client(self) -> AirmeetClient:
        return AirmeetClient(
            access_key="access",
            secret_key="secret",
            base_url=AIRMEET_URL,
            community_id=COMMUNITY_ID,
            http_client=httpx.Client(transport=httpx.MockTransport(self.handler)),
        )


@pytest.fixture
def devrev() -> FakeDevRev:
    return FakeDevRev()


@pytest.fixture
def airmeet() -> FakeAirmeet:
    fake = FakeAirmeet()
    fake.events["am-1"] = {
        "id": "am-1",
        "name": "Launch Week",
        "startDate": "2024-05-01T15:00:00Z",
        "endDate": "2024-05-01T17:00:00Z",
        "sessions": [{"id": "s-1"}, {"id": "s-2"}],
    }
    return fake

