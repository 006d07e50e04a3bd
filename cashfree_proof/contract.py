"""
Versioned Cashfree Payout API contracts.

Cashfree has shipped more than one shape of the payout API: paths, required
headers and the location of fields in responses all differ between
revisions. Rather than hard-coding one of them, the client takes an
``ApiContract`` and every URL, header requirement and extraction path is
read from it.

Two presets are provided:

- ``PAYOUT_V1``: bearer-token auth via /payout/v1/authorize, transfers at
  /payout/transfers (status looked up with ?transfer_id=), fields at the
  response root. This is the default.
- ``PAYOUT_V2``: client id/secret headers only, transfers at
  /payout/v2/transfers/{transfer_id}, creation fields under "data".

Usage:
    >>> from cashfree_proof.contract import PAYOUT_V1
    >>> PAYOUT_V1.transfer_status_url("sandbox", "txn_123")
    'https://sandbox.cashfree.com/payout/transfers?transfer_id=txn_123'
"""

import fnmatch
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import quote, urlencode

from cashfree_proof.constants import (
    CASHFREE_ALLOWED_URL_PATTERNS,
    CASHFREE_AUTH_DOMAINS,
    CASHFREE_DOMAINS,
    CASHFREE_ENDPOINTS,
    CASHFREE_V2_ENDPOINTS,
)
from cashfree_proof.rules import (
    FieldSpec,
    TRANSFER_CREATION_FIELDS,
    TRANSFER_CREATION_FIELDS_V2,
    TRANSFER_STATUS_FIELDS,
)


@dataclass(frozen=True)
class ApiContract:
    """
    Endpoint, header and response-layout description of one API revision.

    Attributes:
        name: Revision label, used in logs.
        domains: Environment -> API base URL.
        auth_domains: Environment -> authorization base URL.
        authorize_path: Path of the token endpoint.
        create_transfer_path: Path of the create-transfer endpoint.
        transfer_status_path: Path of the transfer-status endpoint.
        status_lookup: "query" (?transfer_id=) or "path" (/{transfer_id}).
        requires_bearer_token: Whether data requests carry Authorization: Bearer.
        requires_signature: Whether data requests must carry X-Cf-Signature.
        status_fields: Fields extracted from a status response.
        creation_fields: Fields extracted from a creation response.
        allowed_url_patterns: Environment -> glob patterns a proof URL must match.
    """

    name: str
    domains: Dict[str, str]
    auth_domains: Dict[str, str]
    authorize_path: str
    create_transfer_path: str
    transfer_status_path: str
    status_lookup: str = "query"
    requires_bearer_token: bool = True
    requires_signature: bool = False
    status_fields: Tuple[FieldSpec, ...] = TRANSFER_STATUS_FIELDS
    creation_fields: Tuple[FieldSpec, ...] = TRANSFER_CREATION_FIELDS
    allowed_url_patterns: Optional[Dict[str, Tuple[str, ...]]] = None

    def __post_init__(self):
        if self.status_lookup not in ("query", "path"):
            raise ValueError(f"status_lookup must be 'query' or 'path', got {self.status_lookup!r}")
        if set(self.domains) != set(self.auth_domains):
            raise ValueError("domains and auth_domains must cover the same environments")

    @property
    def environments(self) -> Tuple[str, ...]:
        return tuple(self.domains)

    def _check_environment(self, environment: str) -> str:
        env = getattr(environment, "value", environment)
        if env not in self.domains:
            raise ValueError(
                f"Unknown environment {env!r} for contract {self.name} "
                f"(expected one of {', '.join(self.domains)})"
            )
        return env

    def base_url(self, environment: str) -> str:
        return self.domains[self._check_environment(environment)]

    def authorize_url(self, environment: str) -> str:
        return f"{self.auth_domains[self._check_environment(environment)]}{self.authorize_path}"

    def create_transfer_url(self, environment: str) -> str:
        return f"{self.base_url(environment)}{self.create_transfer_path}"

    def transfer_status_url(self, environment: str, transfer_id: str) -> str:
        if not transfer_id:
            raise ValueError("transfer_id is required")
        base = f"{self.base_url(environment)}{self.transfer_status_path}"
        if self.status_lookup == "path":
            return f"{base}/{quote(transfer_id, safe='')}"
        return f"{base}?{urlencode({'transfer_id': transfer_id})}"

    def is_url_allowed(self, url: str, environment: str) -> bool:
        """True when ``url`` matches one of the environment's allowed patterns."""
        env = self._check_environment(environment)
        patterns = (self.allowed_url_patterns or {}).get(env)
        if patterns is None:
            patterns = (f"{self.domains[env]}/*",)
        return any(fnmatch.fnmatchcase(url, pattern) for pattern in patterns)


PAYOUT_V1 = ApiContract(
    name="payout-v1",
    domains=dict(CASHFREE_DOMAINS),
    auth_domains=dict(CASHFREE_AUTH_DOMAINS),
    authorize_path=CASHFREE_ENDPOINTS["authorize"],
    create_transfer_path=CASHFREE_ENDPOINTS["createTransfer"],
    transfer_status_path=CASHFREE_ENDPOINTS["getTransferStatus"],
    status_lookup="query",
    requires_bearer_token=True,
    status_fields=TRANSFER_STATUS_FIELDS,
    creation_fields=TRANSFER_CREATION_FIELDS,
    allowed_url_patterns=dict(CASHFREE_ALLOWED_URL_PATTERNS),
)

PAYOUT_V2 = ApiContract(
    name="payout-v2",
    domains=dict(CASHFREE_DOMAINS),
    auth_domains=dict(CASHFREE_AUTH_DOMAINS),
    authorize_path=CASHFREE_ENDPOINTS["authorize"],
    create_transfer_path=CASHFREE_V2_ENDPOINTS["createTransfer"],
    transfer_status_path=CASHFREE_V2_ENDPOINTS["getTransferStatus"],
    status_lookup="path",
    requires_bearer_token=False,
    status_fields=TRANSFER_STATUS_FIELDS,
    creation_fields=TRANSFER_CREATION_FIELDS_V2,
    allowed_url_patterns=dict(CASHFREE_ALLOWED_URL_PATTERNS),
)

CONTRACTS: Dict[str, ApiContract] = {
    PAYOUT_V1.name: PAYOUT_V1,
    PAYOUT_V2.name: PAYOUT_V2,
}
