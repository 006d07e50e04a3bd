"""
Cashfree Payout proof client.

Produces zkTLS proofs that Cashfree reported a given transfer status or
created a given transfer. Each call runs the same steps:

1. AcquireToken: resolve secret headers, refreshing the bearer token if stale.
2. BuildDescriptors: assemble the public and secret descriptors.
3. Generate: hand both to the attestation engine.
4. ParseResult: map the proof's extracted values to a typed result.

Credentials only ever travel in the secret descriptor.
"""

import time
import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

from cashfree_proof import config
from cashfree_proof.authority import TokenAuthority
from cashfree_proof.constants import SIGNATURE_HEADER
from cashfree_proof.contract import ApiContract, PAYOUT_V1
from cashfree_proof.descriptors import PublicDescriptor, RequestDescriptorBuilder, SecretDescriptor
from cashfree_proof.engine import ProofEngine
from cashfree_proof.exceptions import CashfreeProofError, ProofGenerationError
from cashfree_proof.models import (
    Credentials,
    Environment,
    Proof,
    ProofContext,
    TransferCreationResult,
    TransferStatus,
    TransferStatusResult,
)
from cashfree_proof.rules import (
    ExtractionRule,
    MatchRule,
    RuleLike,
    RuleStrategy,
    transfer_creation_matches,
    transfer_creation_redactions,
    transfer_status_matches,
    transfer_status_redactions,
)
from cashfree_proof.signature import SignatureGenerator
from cashfree_proof.token_cache import TokenCache

logger = logging.getLogger(__name__)

ContextLike = Union[ProofContext, Mapping[str, str]]


class PayoutProofClient:
    """
    High-level client for Cashfree payout proofs.

    Example:
        >>> client = PayoutProofClient(
        ...     credentials=Credentials(client_id="CF_ID", client_secret="CF_SECRET",
        ...                             rsa_public_key=pem),
        ...     engine=engine,
        ...     environment="sandbox",
        ... )
        >>> async with client:
        ...     result = await client.prove_transfer_status(
        ...         "transfer_123", expected_status=TransferStatus.SUCCESS
        ...     )
        >>> result.status
        'SUCCESS'
    """

    def __init__(
        self,
        credentials: Credentials,
        engine: ProofEngine,
        environment: Union[str, Environment] = config.CASHFREE_ENVIRONMENT,
        contract: ApiContract = PAYOUT_V1,
        authority: Optional[TokenAuthority] = None,
        token_cache: Optional[TokenCache] = None,
        signature_generator: Optional[SignatureGenerator] = None,
        clock: Optional[Callable[[], float]] = None,
        use_tee: bool = False,
        geo_location: Optional[str] = None,
        token_ttl_seconds: float = config.TOKEN_TTL_SECONDS,
        seeded_token_ttl_seconds: float = config.SEEDED_TOKEN_TTL_SECONDS,
        http_timeout: float = config.HTTP_TIMEOUT,
    ):
        """
        Initialize the client.

        Args:
            credentials: Cashfree credentials; kept out of every public descriptor.
            engine: Attestation engine that performs the request and proves it.
            environment: "production" or "sandbox". Defaults to CASHFREE_ENVIRONMENT.
            contract: API revision to target.
            authority: Token authority; built from ``contract`` when omitted.
            token_cache: Token cache; built with ``token_ttl_seconds`` when omitted.
            signature_generator: X-Cf-Signature generator.
            clock: Time source shared by the default cache and signature generator.
            use_tee: Ask the engine to run the request in a TEE.
            geo_location: ISO country code the engine should request from.
            token_ttl_seconds: Local lifetime of an authorized token.
            seeded_token_ttl_seconds: Lifetime assumed for ``credentials.bearer_token``.
            http_timeout: Timeout for the authorize call.

        Raises:
            ValueError: On an unknown environment, or when the contract
                requires X-Cf-Signature and no RSA key is configured.
        """
        if engine is None:
            raise ValueError("PayoutProofClient requires a proof engine")

        self._credentials = credentials
        self._engine = engine
        self._contract = contract
        self._environment = getattr(environment, "value", environment)
        self._base_url = contract.base_url(self._environment)

        if contract.requires_signature and not credentials.rsa_public_key:
            raise ValueError(f"Contract {contract.name} requires an RSA public key for {SIGNATURE_HEADER}")

        clock = clock or time.time
        self._authority = authority or TokenAuthority(contract=contract, timeout=http_timeout)
        self._token_cache = token_cache or TokenCache(ttl_seconds=token_ttl_seconds, clock=clock)
        self._signatures = signature_generator or SignatureGenerator(clock=clock)
        self._builder = RequestDescriptorBuilder(
            api_version=credentials.api_version, use_tee=use_tee, geo_location=geo_location
        )

        if credentials.bearer_token:
            self._token_cache.seed(credentials.bearer_token, ttl_seconds=seeded_token_ttl_seconds)

        self._stats = {
            "authorizations": 0,
            "proofs_requested": 0,
            "proofs_generated": 0,
            "proofs_failed": 0,
        }

    async def __aenter__(self):
        await self._authority.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self._authority.__aexit__(exc_type, exc_val, exc_tb)

    # -------------------------------------------------------------------------
    # Credentials
    # -------------------------------------------------------------------------

    def _signature(self) -> Optional[str]:
        if not self._credentials.rsa_public_key:
            return None
        return self._signatures.sign(self._credentials.client_id, self._credentials.rsa_public_key)

    async def _authorize(self) -> str:
        self._stats["authorizations"] += 1
        logger.debug(f"Requesting bearer token ({self._contract.name}, {self._environment})")
        return await self._authority.authorize(
            self._credentials.client_id,
            self._credentials.client_secret,
            self._environment,
            signature=self._signature(),
        )

    async def get_secret_headers(self) -> Dict[str, str]:
        """
        Resolve the authentication headers for a data request.

        A new dict is built on every call, so callers may modify the result
        freely. The bearer token is refreshed first if the cached one is stale,
        and X-Cf-Signature is recomputed every time.
        """
        headers: Dict[str, str] = {}
        if self._contract.requires_bearer_token:
            token = await self._token_cache.ensure_fresh(self._authorize)
            headers["Authorization"] = f"Bearer {token}"
        headers["x-client-id"] = self._credentials.client_id
        headers["x-client-secret"] = self._credentials.client_secret

        signature = self._signature()
        if signature:
            headers[SIGNATURE_HEADER] = signature
        return headers

    # -------------------------------------------------------------------------
    # Descriptors
    # -------------------------------------------------------------------------

    def build_public_descriptor(
        self,
        method: str,
        body: Optional[Union[str, Mapping[str, Any]]] = None,
        context: Optional[ContextLike] = None,
    ) -> PublicDescriptor:
        """Public descriptor for a custom request against the payout API."""
        return self._builder.build_public(method, body, context)

    async def build_secret_descriptor(
        self,
        response_matches: Iterable[MatchRule],
        response_redactions: Iterable[ExtractionRule],
    ) -> SecretDescriptor:
        """Secret descriptor with freshly resolved authentication headers."""
        headers = await self.get_secret_headers()
        return self._builder.build_secret(headers, response_matches, response_redactions)

    @property
    def rule_strategy(self) -> RuleStrategy:
        if getattr(self._engine, "supports_json_path", True):
            return RuleStrategy.PATH
        return RuleStrategy.PATTERN

    # -------------------------------------------------------------------------
    # Proofs
    # -------------------------------------------------------------------------

    async def prove_transfer_status(
        self,
        transfer_id: str,
        expected_status: Optional[Union[str, TransferStatus]] = None,
        additional_extractions: Optional[Iterable[RuleLike]] = None,
        context: Optional[ContextLike] = None,
        retries: int = 1,
        retry_interval: int = 1000,
    ) -> TransferStatusResult:
        """
        Prove a transfer's current status.

        Args:
            transfer_id: Merchant transfer id to look up.
            expected_status: When given, the engine only produces a proof if
                Cashfree reports exactly this status.
            additional_extractions: Extra rules appended after the defaults.
            context: Context bound into the proof.
            retries: Attempts the engine may make.
            retry_interval: Milliseconds between engine attempts.

        Returns:
            TransferStatusResult with transfer_id, status, cf_transfer_id and
            transfer_amount (None when not extracted).

        Raises:
            AuthorizationError: If a bearer token could not be obtained.
            CryptoError: If X-Cf-Signature could not be computed.
            ProofGenerationError: If the engine returned no proof.
        """
        url = self._contract.transfer_status_url(self._environment, transfer_id)
        self._check_url(url)
        self._check_retries(retries, retry_interval)

        logger.debug(f"AcquireToken: transfer status {transfer_id}")
        headers = await self.get_secret_headers()

        logger.debug("BuildDescriptors: transfer status")
        public = self._builder.build_public("GET", None, context)
        secret = self._builder.build_secret(
            headers,
            transfer_status_matches(expected_status),
            transfer_status_redactions(
                additional_extractions, self.rule_strategy, self._contract.status_fields
            ),
        )
        self._builder.ensure_disjoint(public, secret)

        proof = await self._generate(url, public, secret, retries, retry_interval, "transfer status")

        logger.debug("ParseResult: transfer status")
        extracted = proof.extracted_parameter_values or {}
        return TransferStatusResult(
            proof=proof,
            transfer_id=extracted.get("transfer_id") or transfer_id,
            status=extracted.get("status") or "",
            cf_transfer_id=extracted.get("cf_transfer_id") or "",
            transfer_amount=extracted.get("transfer_amount") or None,
        )

    async def prove_transfer_creation(
        self,
        transfer_request: Mapping[str, Any],
        context: Optional[ContextLike] = None,
        retries: int = 1,
        retry_interval: int = 1000,
        additional_extractions: Optional[Iterable[RuleLike]] = None,
    ) -> TransferCreationResult:
        """
        Create a transfer and prove Cashfree's response.

        This executes a real money transfer. The engine is called exactly
        once; any retrying happens inside it, bounded by ``retries``.

        Args:
            transfer_request: Create-transfer body (transfer_id,
                transfer_amount, transfer_mode, beneficiary_details, ...).
            context: Context bound into the proof.
            retries: Attempts the engine may make.
            retry_interval: Milliseconds between engine attempts.
            additional_extractions: Extra rules appended after the defaults.

        Raises:
            ValueError: If the body has no transfer_id.
            AuthorizationError, CryptoError, ProofGenerationError: As for
                prove_transfer_status().
        """
        request_transfer_id = transfer_request.get("transfer_id") if transfer_request else None
        if not request_transfer_id:
            raise ValueError("transfer_request must include 'transfer_id'")

        url = self._contract.create_transfer_url(self._environment)
        self._check_url(url)
        self._check_retries(retries, retry_interval)

        logger.debug(f"AcquireToken: transfer creation {request_transfer_id}")
        headers = await self.get_secret_headers()

        logger.debug("BuildDescriptors: transfer creation")
        public = self._builder.build_public("POST", dict(transfer_request), context)
        secret = self._builder.build_secret(
            headers,
            transfer_creation_matches(),
            transfer_creation_redactions(
                additional_extractions, self.rule_strategy, self._contract.creation_fields
            ),
        )
        self._builder.ensure_disjoint(public, secret)

        logger.info(f"Submitting transfer {request_transfer_id} for proof ({self._environment})")
        proof = await self._generate(url, public, secret, retries, retry_interval, "transfer creation")

        logger.debug("ParseResult: transfer creation")
        extracted = proof.extracted_parameter_values or {}
        return TransferCreationResult(
            proof=proof,
            transfer_id=extracted.get("transfer_id") or str(request_transfer_id),
            status=extracted.get("status") or "",
            cf_transfer_id=extracted.get("cf_transfer_id") or "",
            status_code=extracted.get("status_code") or None,
        )

    async def _generate(
        self,
        url: str,
        public: PublicDescriptor,
        secret: SecretDescriptor,
        retries: int,
        retry_interval: int,
        operation: str,
    ) -> Proof:
        logger.debug(f"Generate: {operation} via {type(self._engine).__name__}")
        self._stats["proofs_requested"] += 1
        try:
            proof = await self._engine.generate_proof(url, public, secret, retries, retry_interval)
        except CashfreeProofError:
            self._stats["proofs_failed"] += 1
            raise
        except Exception as e:
            self._stats["proofs_failed"] += 1
            raise ProofGenerationError(
                f"Proof engine failed for {operation}: {type(e).__name__}"
            ) from e

        if proof is None:
            self._stats["proofs_failed"] += 1
            logger.warning(f"No proof generated for {operation} at {url}")
            raise ProofGenerationError(f"Failed to generate proof for {operation}")

        self._stats["proofs_generated"] += 1
        return proof

    @staticmethod
    def _check_retries(retries: int, retry_interval: int) -> None:
        if retries < 1:
            raise ValueError("retries must be at least 1")
        if retry_interval < 0:
            raise ValueError("retry_interval must not be negative")

    def _check_url(self, url: str) -> None:
        if not self._contract.is_url_allowed(url, self._environment):
            raise ValueError(f"URL {url} is not allowed for environment {self._environment}")

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        """Resolved API base URL for the configured environment."""
        return self._base_url

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def contract(self) -> ApiContract:
        return self._contract

    @property
    def engine(self) -> ProofEngine:
        """The underlying attestation engine, for advanced usage."""
        return self._engine

    @property
    def stats(self) -> Dict[str, int]:
        """Return client statistics."""
        return self._stats.copy()
