"""
Attestation engine boundary.

The engine performs the TLS interception, builds the zero-knowledge proof
and returns a signed claim. It lives outside this package; adapters for a
concrete engine implement ``ProofEngine``.
"""

from abc import ABC, abstractmethod
from typing import Optional

from cashfree_proof.descriptors import PublicDescriptor, SecretDescriptor
from cashfree_proof.models import Proof


class ProofEngine(ABC):
    """Abstract interface for zkTLS proof engines."""

    #: Whether the engine evaluates JSON-path redactions. Engines that do not
    #: are sent the named-capture regex form of every default rule.
    supports_json_path: bool = True

    @abstractmethod
    async def generate_proof(
        self,
        url: str,
        public: PublicDescriptor,
        secret: SecretDescriptor,
        retries: int = 1,
        retry_interval: int = 1000,
    ) -> Optional[Proof]:
        """
        Perform the request and prove its response.

        Args:
            url: Target URL, disclosed in the proof.
            public: Disclosed request parameters.
            secret: Hidden headers and response rules.
            retries: Attempts the engine may make.
            retry_interval: Milliseconds between attempts.

        Returns:
            The proof, or None when a response match failed or attempts ran out.
        """
        pass
