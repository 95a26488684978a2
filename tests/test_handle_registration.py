import pytest

from functions.handle_registration import run


def make_event(email="jane@acme.com", linking=True, token="pat", endpoint="https://devrev.test"):
    return {
        "context": {"secrets": {"service_account_token": token}},
        "execution_metadata": {"devrev_endpoint": endpoint},
        "inputs": {"organization": {"account_linking_enabled": linking}},
        "event": {"payload": {
            "email": email,
            "firstName": "Jane",
            "lastName": "Doe",
            "city": "Austin",
            "utm_source": "newsletter",
        }},
    }


class TestHandleRegistrationFunction:
    """Test the direct ticket-creation registration path."""

    @pytest.fixture(autouse=True)
    def setup(self, devrev, monkeypatch):
        self.store = devrev
        monkeypatch.setenv("DEVREV_DEFAULT_FEATURE_ID", "FEAT-1")
        monkeypatch.setenv("DEVREV_DEFAULT_OWNER_ID", "DEVU-1")

    def test_creates_ticket_linked_to_account(self):
        self.store.accounts.append({"id": "account-1", "display_name": "acme.com"})

        run([make_event()], http_client=self.store.http_client())

        work = self.store.works[0]
        assert work["applies_to_part"] == "FEAT-1"
        assert work["owned_by"] == ["DEVU-1"]
        assert work["type"] == "ticket"
        assert work["title"] == "New Contact Registration: Jane Doe"
        assert work["applies_to_account"] == "account-1"
        assert "City: Austin" in work["body"]
        assert "UTM Source: newsletter" in work["body"]
        assert "UTM Medium: none" in work["body"]

    def test_creates_ticket_without_account(self):
        run([make_event()], http_client=self.store.http_client())

        assert "applies_to_account" not in self.store.works[0]

    def test_generic_domain_skipped_when_linking_enabled(self):
        result = run([make_event(email="jane@gmail.com")], http_client=self.store.http_client())

        assert result is None
        assert self.store.requests == []

    def test_generic_domain_processed_when_linking_disabled(self):
        run([make_event(email="jane@gmail.com", linking=False)], http_client=self.store.http_client())

        assert len(self.store.works) == 1

    @pytest.mark.parametrize("overrides", [{"token": None}, {"endpoint": None}])
    def test_missing_context_returns_none(self, overrides):
        assert run([make_event(**overrides)], http_client=self.store.http_client()) is None
        assert self.store.requests == []

    def test_missing_environment_raises(self, monkeypatch):
        monkeypatch.delenv("DEVREV_DEFAULT_OWNER_ID")

        with pytest.raises(ValueError):
            run([make_event()], http_client=self.store.http_client())

    def test_unauthorized_returns_none(self):
        self.store.overrides["accounts.list"] = (401, {"message": "bad token"})

        assert run([make_event()], http_client=self.store.http_client()) is None
        assert self.store.works == []
