"""
Cashfree bearer token authorization.

Exchanges the client id/secret (plus an optional X-Cf-Signature) for a
short-lived bearer token via POST /payout/v1/authorize. A single request is
made per call; retrying is left to the caller.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from cashfree_proof.constants import CONTENT_TYPE_JSON, SIGNATURE_HEADER
from cashfree_proof.contract import ApiContract, PAYOUT_V1
from cashfree_proof.exceptions import AuthorizationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0  # seconds


class TokenAuthority:
    """
    Client for the Cashfree authorize endpoint.

    Example:
        >>> authority = TokenAuthority()
        >>> async with authority:
        ...     token = await authority.authorize(client_id, client_secret, "sandbox", signature)
    """

    def __init__(
        self,
        contract: ApiContract = PAYOUT_V1,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Args:
            contract: API revision providing the authorize URL.
            http_client: Shared client to use. When omitted, one is opened by
                ``async with`` or created per request.
            timeout: Request timeout in seconds for clients created here.
        """
        self._contract = contract
        self._http_client = http_client
        self._owns_client = False
        self._timeout = timeout

    async def __aenter__(self):
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None
            self._owns_client = False

    async def authorize(
        self,
        client_id: str,
        client_secret: str,
        environment: str,
        signature: Optional[str] = None,
    ) -> str:
        """
        Request a bearer token.

        Args:
            client_id: Cashfree x-client-id.
            client_secret: Cashfree x-client-secret.
            environment: "production" or "sandbox".
            signature: Freshly computed X-Cf-Signature, when the account uses
                two-factor auth instead of IP whitelisting.

        Returns:
            The bearer token string.

        Raises:
            AuthorizationError: On transport failure, a non-JSON body, or any
                body other than {"status": "SUCCESS", "data": {"token": ...}}.
        """
        url = self._contract.authorize_url(environment)
        headers = {
            "X-Client-Id": client_id,
            "X-Client-Secret": client_secret,
            "Content-Type": CONTENT_TYPE_JSON,
        }
        if signature:
            headers[SIGNATURE_HEADER] = signature

        client = self._http_client or httpx.AsyncClient(timeout=self._timeout)
        try:
            response = await client.post(url, headers=headers)
        except httpx.HTTPError as e:
            raise AuthorizationError(f"Authorize request to {url} failed: {type(e).__name__}") from e
        finally:
            if not self._http_client:
                await client.aclose()

        token = self._parse_token(response)
        logger.debug(f"Authorized against {url}")
        return token

    @staticmethod
    def _parse_token(response: httpx.Response) -> str:
        try:
            body: Dict[str, Any] = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise AuthorizationError(
                f"Authorize response is not JSON (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from e

        if not isinstance(body, dict):
            raise AuthorizationError(
                "Authorize response is not a JSON object", status_code=response.status_code
            )

        data = body.get("data")
        token = data.get("token") if isinstance(data, dict) else None
        if body.get("status") == "SUCCESS" and isinstance(token, str) and token:
            return token

        message = body.get("message") or "Cashfree authorization failed"
        sub_code = body.get("subCode")
        logger.warning(
            f"Authorization rejected: status={body.get('status')} subCode={sub_code} "
            f"http={response.status_code}"
        )
        raise AuthorizationError(
            f"Cashfree authorization failed: {message}",
            status_code=response.status_code,
            sub_code=str(sub_code) if sub_code is not None else None,
        )
