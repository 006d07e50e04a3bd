# cashfree_proof/config.py
"""
Centralized configuration for cashfree_proof.

Settings are read from environment variables with defaults suited to
production use. Credentials are never given module-level defaults; they are
read on demand by ``credentials_from_env``.

Usage:
    from cashfree_proof.config import credentials_from_env

    # environment defaults to CASHFREE_ENVIRONMENT
    client = PayoutProofClient(credentials_from_env(), engine)

Environment Variables:
    CASHFREE_ENVIRONMENT: "production" or "sandbox" (default: production)
    CASHFREE_API_VERSION: x-api-version header value (default: 2024-01-01)
    CASHFREE_TOKEN_TTL_SECONDS: Local lifetime of an authorized token (default: 240)
    CASHFREE_SEEDED_TOKEN_TTL_SECONDS: Lifetime assumed for a pre-obtained token (default: 120)
    CASHFREE_HTTP_TIMEOUT: Authorize request timeout in seconds (default: 10)
    CASHFREE_CLIENT_ID / CASHFREE_CLIENT_SECRET: API credentials
    CASHFREE_RSA_PUBLIC_KEY: RSA public key PEM, or a path to a PEM file
    CASHFREE_BEARER_TOKEN: Pre-obtained bearer token
    APP_ID / APP_SECRET: Attestation application identity
"""

import os
import logging
from pathlib import Path
from typing import Final, Mapping, Optional, Tuple

from cashfree_proof.constants import DEFAULT_API_VERSION
from cashfree_proof.models import Credentials

logger = logging.getLogger(__name__)

# =============================================================================
# Environment
# =============================================================================

CASHFREE_ENVIRONMENT: Final[str] = os.getenv("CASHFREE_ENVIRONMENT", "production")

API_VERSION: Final[str] = os.getenv("CASHFREE_API_VERSION", DEFAULT_API_VERSION)

# =============================================================================
# Token lifetimes
# =============================================================================

# Tokens live 300s server-side; keep a margin
TOKEN_TTL_SECONDS: Final[float] = float(os.getenv("CASHFREE_TOKEN_TTL_SECONDS", "240"))

SEEDED_TOKEN_TTL_SECONDS: Final[float] = float(os.getenv("CASHFREE_SEEDED_TOKEN_TTL_SECONDS", "120"))

# =============================================================================
# HTTP
# =============================================================================

HTTP_TIMEOUT: Final[float] = float(os.getenv("CASHFREE_HTTP_TIMEOUT", "10.0"))

# =============================================================================
# Helper Functions
# =============================================================================


def resolve_rsa_public_key(raw: Optional[str]) -> Optional[str]:
    """
    Resolve CASHFREE_RSA_PUBLIC_KEY, which may hold PEM text or a file path.

    Args:
        raw: The variable's value.

    Returns:
        PEM text, or None when ``raw`` is empty. A value that is neither PEM
        nor a readable file is returned unchanged so signing reports it.
    """
    if not raw:
        return None
    if "-----BEGIN" in raw:
        return raw
    path = Path(raw.strip()).expanduser()
    if path.is_file():
        return path.read_text(encoding="utf-8")
    logger.warning("CASHFREE_RSA_PUBLIC_KEY is neither PEM text nor a readable file")
    return raw


def credentials_from_env(environ: Optional[Mapping[str, str]] = None) -> Credentials:
    """
    Build Credentials from environment variables.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Raises:
        ValueError: If CASHFREE_CLIENT_ID or CASHFREE_CLIENT_SECRET is missing.

    The API version falls back to API_VERSION when ``environ`` has none.
    """
    env = os.environ if environ is None else environ
    client_id = env.get("CASHFREE_CLIENT_ID", "")
    client_secret = env.get("CASHFREE_CLIENT_SECRET", "")
    if not client_id or not client_secret:
        raise ValueError("CASHFREE_CLIENT_ID and CASHFREE_CLIENT_SECRET must be set")

    return Credentials(
        client_id=client_id,
        client_secret=client_secret,
        rsa_public_key=resolve_rsa_public_key(env.get("CASHFREE_RSA_PUBLIC_KEY")),
        bearer_token=env.get("CASHFREE_BEARER_TOKEN") or None,
        api_version=env.get("CASHFREE_API_VERSION") or API_VERSION,
    )


def application_identity_from_env(environ: Optional[Mapping[str, str]] = None) -> Tuple[str, str]:
    """
    Read the attestation application identity (APP_ID, APP_SECRET).

    These belong to whoever constructs the proof engine.
    """
    env = os.environ if environ is None else environ
    app_id = env.get("APP_ID", "")
    app_secret = env.get("APP_SECRET", "")
    if not app_id or not app_secret:
        raise ValueError("APP_ID and APP_SECRET must be set")
    return app_id, app_secret


# =============================================================================
# Configuration Summary (for debugging)
# =============================================================================


def print_config() -> None:
    """Print non-secret configuration (useful for debugging)."""
    print("cashfree_proof Configuration:")
    print(f"  CASHFREE_ENVIRONMENT:      {CASHFREE_ENVIRONMENT}")
    print(f"  API_VERSION:               {API_VERSION}")
    print(f"  TOKEN_TTL_SECONDS:         {TOKEN_TTL_SECONDS}")
    print(f"  SEEDED_TOKEN_TTL_SECONDS:  {SEEDED_TOKEN_TTL_SECONDS}")
    print(f"  HTTP_TIMEOUT:              {HTTP_TIMEOUT}")
    print(f"  CASHFREE_CLIENT_ID set:    {bool(os.getenv('CASHFREE_CLIENT_ID'))}")
    print(f"  CASHFREE_RSA_PUBLIC_KEY:   {'set' if os.getenv('CASHFREE_RSA_PUBLIC_KEY') else 'unset'}")
    print(f"  CASHFREE_BEARER_TOKEN:     {'set' if os.getenv('CASHFREE_BEARER_TOKEN') else 'unset'}")


if __name__ == "__main__":
    print_config()
