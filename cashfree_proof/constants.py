"""
Cashfree Payout API constants.

Domains, endpoint paths and URL allow-lists for both revisions of the
payout API. The active revision is selected through ``cashfree_proof.contract``.
"""

from typing import Dict, Final, Tuple

# =============================================================================
# Domains
# =============================================================================

# Payout API base URLs
CASHFREE_DOMAINS: Final[Dict[str, str]] = {
    "production": "https://api.cashfree.com",
    "sandbox": "https://sandbox.cashfree.com",
}

# Token authorization base URLs (/payout/v1/authorize lives here)
CASHFREE_AUTH_DOMAINS: Final[Dict[str, str]] = {
    "production": "https://payout-api.cashfree.com",
    "sandbox": "https://payout-gamma.cashfree.com",
}

# =============================================================================
# Endpoints
# =============================================================================

CASHFREE_ENDPOINTS: Final[Dict[str, str]] = {
    "authorize": "/payout/v1/authorize",
    "createTransfer": "/payout/transfers",
    "getTransferStatus": "/payout/transfers",
    "batchTransfer": "/payout/transfers/batch",
}

# Older revision, addressed by transfer id in the path
CASHFREE_V2_ENDPOINTS: Final[Dict[str, str]] = {
    "createTransfer": "/payout/v2/transfers",
    "getTransferStatus": "/payout/v2/transfers",
    "batchTransfer": "/payout/v2/transfers/batch",
}

DEFAULT_API_VERSION: Final[str] = "2024-01-01"

# =============================================================================
# URL allow-lists
# =============================================================================

CASHFREE_ALLOWED_URL_PATTERNS: Final[Dict[str, Tuple[str, ...]]] = {
    "production": ("https://api.cashfree.com/payout/*",),
    "sandbox": ("https://sandbox.cashfree.com/payout/*",),
    "all": (
        "https://api.cashfree.com/payout/*",
        "https://sandbox.cashfree.com/payout/*",
    ),
}

# =============================================================================
# Headers
# =============================================================================

CONTENT_TYPE_JSON: Final[str] = "application/json"

# Header names that carry authentication material and must never be public
AUTH_HEADER_NAMES: Final[Tuple[str, ...]] = (
    "Authorization",
    "x-client-id",
    "x-client-secret",
    "X-Cf-Signature",
)

SIGNATURE_HEADER: Final[str] = "X-Cf-Signature"
