"""
Exception hierarchy for cashfree_proof.

None of these errors ever carry a credential, token or signature in their
message; at most they name the header or field involved.
"""

from typing import Optional


class CashfreeProofError(Exception):
    """Base exception for all cashfree_proof errors."""

    pass


class CryptoError(CashfreeProofError):
    """Raised when key material cannot be used to compute X-Cf-Signature."""

    def __init__(self, message: str = "Invalid RSA public key for X-Cf-Signature"):
        super().__init__(message)


class AuthorizationError(CashfreeProofError):
    """
    Raised when the authorize endpoint does not return a bearer token.

    Attributes:
        status_code: HTTP status of the authorize response, if one was received.
        sub_code: Cashfree ``subCode`` from the response body, if present.
    """

    def __init__(
        self,
        message: str = "Cashfree authorization failed",
        status_code: Optional[int] = None,
        sub_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.sub_code = sub_code


class ProofGenerationError(CashfreeProofError):
    """Raised when the attestation engine returns no proof."""

    def __init__(self, message: str = "Failed to generate proof"):
        super().__init__(message)


class DescriptorLeakError(CashfreeProofError, ValueError):
    """Raised when secret material would end up in a public descriptor."""

    pass
