"""
Data model for Cashfree payout proofs.

Credentials and tokens hide their secret fields from ``repr`` so they can be
logged or printed in tracebacks without leaking.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from cashfree_proof.constants import DEFAULT_API_VERSION


class Environment(str, Enum):
    """Cashfree API environment."""

    PRODUCTION = "production"
    SANDBOX = "sandbox"


class TransferStatus(str, Enum):
    """Transfer status values reported by Cashfree."""

    RECEIVED = "RECEIVED"
    PROCESSING = "PROCESSING"
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REJECTED = "REJECTED"
    REVERSED = "REVERSED"


class TransferMode(str, Enum):
    """Transfer mode accepted by the create-transfer endpoint."""

    BANKTRANSFER = "banktransfer"
    UPI = "upi"


@dataclass(frozen=True)
class Credentials:
    """
    Cashfree authentication credentials. Never placed in a public descriptor.

    Attributes:
        client_id: Cashfree x-client-id.
        client_secret: Cashfree x-client-secret.
        rsa_public_key: PEM public key from the Cashfree dashboard (Two-Factor
            Auth > Public Key), used for X-Cf-Signature. Optional when the
            caller's IP is whitelisted.
        bearer_token: Pre-obtained token from /payout/v1/authorize. Skips the
            first authorize call when provided.
        api_version: Value for the x-api-version header.
    """

    client_id: str
    client_secret: str = field(repr=False)
    rsa_public_key: Optional[str] = field(default=None, repr=False)
    bearer_token: Optional[str] = field(default=None, repr=False)
    api_version: str = DEFAULT_API_VERSION

    def __post_init__(self):
        if not self.client_id:
            raise ValueError("Credentials require 'client_id'")
        if not self.client_secret:
            raise ValueError("Credentials require 'client_secret'")


@dataclass
class CachedToken:
    """A bearer token and the local instant after which it is no longer used."""

    token: str = field(repr=False)
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class ProofContext:
    """Context bound into the proof (for example an on-chain address and a message)."""

    context_address: str
    context_message: str

    @classmethod
    def coerce(cls, value: Any) -> Optional["ProofContext"]:
        """Accept a ProofContext, a camelCase/snake_case mapping, or None."""
        if value is None or isinstance(value, ProofContext):
            return value
        if isinstance(value, Mapping):
            return cls(
                context_address=value.get("contextAddress", value.get("context_address", "")),
                context_message=value.get("contextMessage", value.get("context_message", "")),
            )
        raise TypeError(f"Unsupported proof context type: {type(value).__name__}")

    def to_dict(self) -> Dict[str, str]:
        return {"contextAddress": self.context_address, "contextMessage": self.context_message}


@dataclass(frozen=True)
class Proof:
    """
    Signed claim returned by the attestation engine.

    Treated as read-only: the client only reads ``extracted_parameter_values``.
    """

    identifier: str
    claim_data: Dict[str, Any] = field(default_factory=dict)
    signatures: List[str] = field(default_factory=list)
    witnesses: List[Dict[str, Any]] = field(default_factory=list)
    extracted_parameter_values: Dict[str, str] = field(default_factory=dict)
    public_data: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Proof":
        """Build a Proof from the engine's camelCase JSON."""
        return cls(
            identifier=data.get("identifier", ""),
            claim_data=dict(data.get("claimData") or {}),
            signatures=list(data.get("signatures") or []),
            witnesses=list(data.get("witnesses") or []),
            extracted_parameter_values=dict(data.get("extractedParameterValues") or {}),
            public_data=data.get("publicData"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "claimData": dict(self.claim_data),
            "signatures": list(self.signatures),
            "witnesses": list(self.witnesses),
            "extractedParameterValues": dict(self.extracted_parameter_values),
            "publicData": self.public_data,
        }


@dataclass
class TransferStatusResult:
    """Parsed result of a transfer status proof."""

    proof: Proof
    transfer_id: str
    status: str
    cf_transfer_id: str
    transfer_amount: Optional[str] = None


@dataclass
class TransferCreationResult:
    """Parsed result of a transfer creation proof."""

    proof: Proof
    transfer_id: str
    status: str
    cf_transfer_id: str
    status_code: Optional[str] = None
