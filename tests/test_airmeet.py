import time

import httpx
import pytest

from tools.errors import AuthenticationFailed


class TestAirmeetClient:
    """Test token handling and endpoint wrappers of the Airmeet client."""

    @pytest.fixture(autouse=True)
    def setup(self, airmeet):
        self.platform = airmeet
        self.client = airmeet.client()

    def test_authenticates_lazily_and_caches_token(self):
        assert self.platform.auth_calls == 0

        self.client.get_event("am-1")
        self.client.list_events()

        assert self.platform.auth_calls == 1
        assert self.client.access_token == "tok-1"

    def test_authenticate_returns_token_and_expiry(self):
        before = time.time()
        result = self.client.authenticate()

        assert result["token"] == "tok-1"
        assert before + 3600 <= result["expiry"] <= time.time() + 3600
        auth_request = self.platform.requests[0]
        assert auth_request.headers["X-Airmeet-Access-Key"] == "access"
        assert auth_request.headers["X-Airmeet-Secret-Key"] == "secret"

    def test_expired_token_is_refreshed(self):
        self.client.get_event("am-1")
        self.client.token_expiry = time.time() - 1

        self.client.get_event("am-1")

        assert self.platform.auth_calls == 2

    def test_401_triggers_one_reauth_and_retry(self):
        self.client.get_event("am-1")
        self.platform.revoke_tokens()

        event = self.client.get_event("am-1")

        assert event["name"] == "Launch Week"
        assert self.platform.auth_calls == 2

    def test_second_401_propagates(self):
        self.platform.reject_all = True

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            self.client.get_event("am-1")

        assert exc_info.value.response.status_code == 401
        assert self.platform.auth_calls == 2

    def test_auth_response_without_token_fails(self):
        self.platform.issue_tokens = False

        with pytest.raises(AuthenticationFailed):
            self.client.get_event("am-1")

    def test_participant_registration(self):
        self.platform.participants[("am-1", "jane@acme.com")] = {"registrationLink": "https://airmeet.test/r/1"}

        assert self.client.get_participant_registration("am-1", "jane@acme.com") == {
            "registration_link": "https://airmeet.test/r/1"
        }
        assert self.client.get_participant_registration("am-1", "bob@acme.com") is None

    def test_get_all_event_data_walks_sessions(self):
        data = self.client.get_all_event_data("am-1")

        assert data["event"]["id"] == "am-1"
        assert [a["sessionId"] for a in data["session_attendance"]] == ["s-1", "s-2"]
        assert data["booth_activity"] == []

    def test_register_webhook_scopes_to_event(self):
        self.client.register_webhook({"name": "Event Entry Tracking", "airmeetId": "am-1"})
        self.client.register_webhook({"name": "Registration Sync"})

        register_requests = [r for r in self.platform.requests if r.url.path.endswith("webhook-register")]
        assert register_requests[0].url.params.get("airmeetId") == "am-1"
        assert "airmeetId" not in register_requests[1].url.params

    def test_list_webhooks(self):
        self.client.register_webhook({"name": "Registration Sync"})

        assert self.client.list_webhooks() == [{"name": "Registration Sync"}]
