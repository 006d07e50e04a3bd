"""
Unit tests for versioned API contracts and constants.
"""

import pytest

from cashfree_proof import PAYOUT_V1, PAYOUT_V2, TransferStatus
from cashfree_proof.constants import (
    CASHFREE_ALLOWED_URL_PATTERNS,
    CASHFREE_AUTH_DOMAINS,
    CASHFREE_DOMAINS,
    CASHFREE_ENDPOINTS,
    DEFAULT_API_VERSION,
)
from cashfree_proof.contract import ApiContract


class TestConstants:
    """Published constants."""

    def test_domains(self):
        assert CASHFREE_DOMAINS["production"] == "https://api.cashfree.com"
        assert CASHFREE_DOMAINS["sandbox"] == "https://sandbox.cashfree.com"

    def test_auth_domains(self):
        assert CASHFREE_AUTH_DOMAINS["production"] == "https://payout-api.cashfree.com"
        assert CASHFREE_AUTH_DOMAINS["sandbox"] == "https://payout-gamma.cashfree.com"

    def test_endpoints(self):
        assert CASHFREE_ENDPOINTS["createTransfer"] == "/payout/transfers"
        assert CASHFREE_ENDPOINTS["getTransferStatus"] == "/payout/transfers"
        assert CASHFREE_ENDPOINTS["batchTransfer"] == "/payout/transfers/batch"
        assert CASHFREE_ENDPOINTS["authorize"] == "/payout/v1/authorize"

    def test_api_version_format(self):
        assert len(DEFAULT_API_VERSION.split("-")) == 3

    def test_allowed_patterns(self):
        assert len(CASHFREE_ALLOWED_URL_PATTERNS["production"]) == 1
        assert len(CASHFREE_ALLOWED_URL_PATTERNS["sandbox"]) == 1
        assert len(CASHFREE_ALLOWED_URL_PATTERNS["all"]) == 2

    def test_transfer_statuses(self):
        assert {s.value for s in TransferStatus} == {
            "RECEIVED", "PROCESSING", "PENDING", "SUCCESS", "FAILED", "REJECTED", "REVERSED",
        }


class TestPayoutV1:
    """Default contract URLs."""

    @pytest.mark.parametrize("environment", ["production", "sandbox"])
    def test_base_url_matches_domain(self, environment):
        assert PAYOUT_V1.base_url(environment) == CASHFREE_DOMAINS[environment]

    def test_domains_distinct(self):
        assert PAYOUT_V1.base_url("production") != PAYOUT_V1.base_url("sandbox")

    def test_status_url_uses_query(self):
        assert (
            PAYOUT_V1.transfer_status_url("production", "txn 1&x")
            == "https://api.cashfree.com/payout/transfers?transfer_id=txn+1%26x"
        )

    def test_create_url(self):
        assert PAYOUT_V1.create_transfer_url("sandbox") == "https://sandbox.cashfree.com/payout/transfers"

    def test_authorize_url(self):
        assert PAYOUT_V1.authorize_url("sandbox") == "https://payout-gamma.cashfree.com/payout/v1/authorize"

    def test_unknown_environment(self):
        with pytest.raises(ValueError, match="staging"):
            PAYOUT_V1.base_url("staging")

    def test_empty_transfer_id(self):
        with pytest.raises(ValueError):
            PAYOUT_V1.transfer_status_url("sandbox", "")

    def test_url_allow_list(self):
        assert PAYOUT_V1.is_url_allowed("https://sandbox.cashfree.com/payout/transfers", "sandbox")
        assert not PAYOUT_V1.is_url_allowed("https://api.cashfree.com/payout/transfers", "sandbox")
        assert not PAYOUT_V1.is_url_allowed("https://evil.example.com/payout/transfers", "production")


class TestPayoutV2:
    """Older revision."""

    def test_status_url_uses_path(self):
        assert (
            PAYOUT_V2.transfer_status_url("sandbox", "txn/1")
            == "https://sandbox.cashfree.com/payout/v2/transfers/txn%2F1"
        )

    def test_no_bearer_token(self):
        assert PAYOUT_V2.requires_bearer_token is False

    def test_creation_fields_enveloped(self):
        assert PAYOUT_V2.creation_fields[0].path == "$.data.transfer_id"


class TestCustomContract:
    """Contracts are plain configuration."""

    def test_bad_status_lookup(self):
        with pytest.raises(ValueError):
            ApiContract(
                name="x", domains={"prod": "https://a"}, auth_domains={"prod": "https://b"},
                authorize_path="/auth", create_transfer_path="/t", transfer_status_path="/t",
                status_lookup="header",
            )

    def test_default_allow_list_is_domain(self):
        contract = ApiContract(
            name="x", domains={"prod": "https://a.example"}, auth_domains={"prod": "https://b.example"},
            authorize_path="/auth", create_transfer_path="/t", transfer_status_path="/t",
        )
        assert contract.is_url_allowed("https://a.example/t", "prod")
        assert not contract.is_url_allowed("https://b.example/t", "prod")
