import pytest

from tools.domains import (
    DEFAULT_GENERIC_DOMAINS,
    account_display_name,
    extract_domain,
    is_business_domain,
    load_generic_domains,
    normalize_email,
)
from tools.errors import InvalidEmail


class TestDomainClassifier:
    """Test generic vs business domain classification."""

    @pytest.mark.parametrize("domain", sorted(DEFAULT_GENERIC_DOMAINS))
    def test_generic_domains_are_not_business(self, domain):
        assert is_business_domain(f"someone@{domain}") is False

    def test_generic_check_is_case_insensitive(self):
        assert is_business_domain("Someone@GMail.COM") is False
        assert is_business_domain("Someone@Acme.COM") is True

    def test_business_domain(self):
        assert is_business_domain("jane@acme-corp.com") is True

    def test_missing_at_sign_raises(self):
        with pytest.raises(InvalidEmail):
            is_business_domain("not-an-email")

    def test_empty_domain_raises(self):
        with pytest.raises(InvalidEmail):
            extract_domain("jane@")

    def test_explicit_deny_list(self):
        assert is_business_domain("jane@acme.com", generic_domains=["acme.com"]) is False
        assert is_business_domain("jane@gmail.com", generic_domains=["acme.com"]) is True

    def test_deny_list_from_environment(self, monkeypatch):
        monkeypatch.setenv("GENERIC_EMAIL_DOMAINS", "Example.org, partner.io")
        assert load_generic_domains() == frozenset({"example.org", "partner.io"})
        assert is_business_domain("jane@example.org") is False
        assert is_business_domain("jane@gmail.com") is True


class TestDomainHelpers:
    def test_normalize_email(self):
        assert normalize_email("  Jane.Doe@Acme.com ") == "jane.doe@acme.com"

    @pytest.mark.parametrize("domain,expected", [
        ("acme.com", "Acme"),
        ("acme-corp.com", "Acme Corp"),
        ("big_data-labs.io", "Big Data Labs"),
    ])
    def test_account_display_name(self, domain, expected):
        assert account_display_name(domain) == expected
