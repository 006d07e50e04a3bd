"""
Shared pytest fixtures for cashfree_proof tests.
"""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from cashfree_proof import Credentials
from cashfree_proof.testing import FixtureProofEngine


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


SAMPLE_STATUS_RESPONSE = (
    '{"transfer_id":"txn_123","cf_transfer_id":"CF456","status":"SUCCESS","transfer_amount":100.50}'
)


@pytest.fixture
def clock() -> FakeClock:
    """Fixed clock starting at 2023-11-14T22:13:20Z."""
    return FakeClock()


@pytest.fixture(scope="session")
def rsa_private_key():
    """RSA key standing in for the Cashfree 2FA key pair."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_public_pem(rsa_private_key) -> str:
    """PEM of the test RSA public key."""
    return (
        rsa_private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("ascii")
    )


@pytest.fixture
def credentials() -> Credentials:
    """Credentials without key or token."""
    return Credentials(client_id="CF_TEST_CLIENT_ID", client_secret="cf_test_client_secret_value")


@pytest.fixture
def signed_credentials(rsa_public_pem) -> Credentials:
    """Credentials with an RSA public key for X-Cf-Signature."""
    return Credentials(
        client_id="CF_TEST_CLIENT_ID",
        client_secret="cf_test_client_secret_value",
        rsa_public_key=rsa_public_pem,
    )


@pytest.fixture
def token_credentials() -> Credentials:
    """Credentials carrying a pre-obtained bearer token."""
    return Credentials(
        client_id="my_client_id",
        client_secret="my_client_secret",
        bearer_token="test_bearer_token",
    )


@pytest.fixture
def sample_status_response() -> str:
    """Transfer status body as returned by Cashfree."""
    return SAMPLE_STATUS_RESPONSE


@pytest.fixture
def engine() -> FixtureProofEngine:
    """Fixture engine with no canned responses."""
    return FixtureProofEngine()
