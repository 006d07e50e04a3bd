"""
cashfree_proof - zkTLS proofs for the Cashfree Payout API.

Proves that Cashfree reported a transfer status, or created a transfer,
without revealing the API credentials used to ask.
"""

__version__ = "0.1.0"

# Client
from .client import PayoutProofClient
from .engine import ProofEngine

# Credentials and tokens
from .authority import TokenAuthority
from .signature import SignatureGenerator
from .token_cache import TokenCache

# Request descriptors and rules
from .descriptors import PublicDescriptor, SecretDescriptor, RequestDescriptorBuilder
from .rules import (
    FieldSpec,
    MatchRule,
    PathRule,
    PatternRule,
    RuleStrategy,
    extract_values,
    transfer_creation_matches,
    transfer_creation_redactions,
    transfer_status_matches,
    transfer_status_redactions,
)
from .contract import ApiContract, PAYOUT_V1, PAYOUT_V2

# Models
from .models import (
    Credentials,
    Environment,
    Proof,
    ProofContext,
    TransferCreationResult,
    TransferMode,
    TransferStatus,
    TransferStatusResult,
)

# Errors
from .exceptions import (
    AuthorizationError,
    CashfreeProofError,
    CryptoError,
    DescriptorLeakError,
    ProofGenerationError,
)


def __getattr__(name):
    """Lazy loading of test helpers."""
    if name in ("FixtureProofEngine", "RecordedCall"):
        from . import testing

        return getattr(testing, name)
    raise AttributeError(f"module 'cashfree_proof' has no attribute '{name}'")


__all__ = [
    "__version__",
    # Client
    "PayoutProofClient",
    "ProofEngine",
    # Credentials and tokens
    "TokenAuthority",
    "SignatureGenerator",
    "TokenCache",
    # Descriptors
    "PublicDescriptor",
    "SecretDescriptor",
    "RequestDescriptorBuilder",
    # Rules
    "FieldSpec",
    "MatchRule",
    "PathRule",
    "PatternRule",
    "RuleStrategy",
    "extract_values",
    "transfer_creation_matches",
    "transfer_creation_redactions",
    "transfer_status_matches",
    "transfer_status_redactions",
    "ApiContract",
    "PAYOUT_V1",
    "PAYOUT_V2",
    # Models
    "Credentials",
    "Environment",
    "Proof",
    "ProofContext",
    "TransferCreationResult",
    "TransferMode",
    "TransferStatus",
    "TransferStatusResult",
    # Errors
    "AuthorizationError",
    "CashfreeProofError",
    "CryptoError",
    "DescriptorLeakError",
    "ProofGenerationError",
    # Testing (lazy loaded)
    "FixtureProofEngine",
    "RecordedCall",
]
