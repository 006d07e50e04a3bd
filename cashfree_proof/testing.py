"""
Testing utilities for cashfree_proof.

``FixtureProofEngine`` stands in for a real attestation engine: it answers
from canned response bodies, enforces the secret descriptor's match rules the
way a real engine does (no proof when any assertion fails) and extracts
values with the same resolver the package uses.

Example:
    >>> engine = FixtureProofEngine(responses={
    ...     "https://sandbox.cashfree.com/payout/transfers?transfer_id=t1":
    ...         '{"transfer_id":"t1","status":"PENDING","cf_transfer_id":"cf1"}',
    ... })
    >>> client = PayoutProofClient(credentials, engine, environment="sandbox")
"""

import logging
import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from cashfree_proof.descriptors import PublicDescriptor, SecretDescriptor
from cashfree_proof.engine import ProofEngine
from cashfree_proof.models import Proof
from cashfree_proof.rules import check_matches, extract_values

logger = logging.getLogger(__name__)


@dataclass
class RecordedCall:
    """One generate_proof() invocation as seen by the fixture engine."""

    url: str
    public: PublicDescriptor
    secret: SecretDescriptor
    retries: int
    retry_interval: int


@dataclass
class FixtureProofEngine(ProofEngine):
    """
    Offline proof engine backed by canned responses.

    Attributes:
        responses: URL -> response body. Unknown URLs use ``default_response``.
        default_response: Body for URLs not in ``responses``.
        proof: When set, returned as-is (after match rules pass) instead of a
            proof built from the response.
        supports_json_path: Reported to the client to pick a rule strategy.
        error: Raised from generate_proof() when set, to simulate engine failure.
    """

    responses: Dict[str, str] = field(default_factory=dict)
    default_response: Optional[str] = None
    proof: Optional[Proof] = None
    supports_json_path: bool = True
    error: Optional[BaseException] = None
    calls: List[RecordedCall] = field(default_factory=list)

    async def generate_proof(
        self,
        url: str,
        public: PublicDescriptor,
        secret: SecretDescriptor,
        retries: int = 1,
        retry_interval: int = 1000,
    ) -> Optional[Proof]:
        self.calls.append(RecordedCall(url, public, secret, retries, retry_interval))
        if self.error is not None:
            raise self.error

        body = self.responses.get(url, self.default_response)
        if body is None:
            logger.debug(f"No fixture response for {url}")
            return None

        if not check_matches(secret.response_matches, body):
            logger.debug(f"Response match failed for {url}")
            return None

        if self.proof is not None:
            return self.proof

        return Proof(
            identifier="0x" + hashlib.sha256(f"{url}\n{body}".encode("utf-8")).hexdigest(),
            claim_data=_claim_data(url, public),
            signatures=["0x" + "0" * 130],
            witnesses=[{"id": "fixture-witness", "url": "wss://witness.invalid/ws"}],
            extracted_parameter_values=extract_values(secret.response_redactions, body),
        )

    @property
    def last_call(self) -> Optional[RecordedCall]:
        return self.calls[-1] if self.calls else None


def _claim_data(url: str, public: PublicDescriptor) -> Dict[str, Any]:
    # Only the public half is ever reflected into the claim
    options: Mapping[str, Any] = public.to_options()
    return {
        "provider": "http",
        "parameters": {
            "url": url,
            "method": options["method"],
            "headers": options["headers"],
            "body": options.get("body", ""),
        },
        "context": options.get("context", {}),
    }
