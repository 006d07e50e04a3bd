"""
X-Cf-Signature generation.

Cashfree's two-factor scheme proves possession of the dashboard-issued RSA
public key: the plaintext ``"{client_id}.{unix_timestamp}"`` is encrypted with
RSA-OAEP and sent base64-encoded. The embedded timestamp limits the signature
to a short validity window, so a signature is computed for every request
and never cached.
"""

import base64
import time
import logging
from typing import Callable, Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from jwcrypto import jwk

from cashfree_proof.exceptions import CryptoError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def load_rsa_public_key(pem: str) -> jwk.JWK:
    """
    Load an RSA key from PEM text.

    Args:
        pem: PEM-encoded RSA public key (a private key is accepted too; only
            its public half is used).

    Raises:
        CryptoError: If the PEM cannot be parsed or is not an RSA key.
    """
    if not pem:
        raise CryptoError("X-Cf-Signature requires an RSA public key")
    try:
        key = jwk.JWK.from_pem(pem.encode("utf-8") if isinstance(pem, str) else pem)
    except Exception as e:
        raise CryptoError(f"Invalid RSA public key: {e}") from e
    if key.get("kty") != "RSA":
        raise CryptoError("X-Cf-Signature requires an RSA key")
    return key


class SignatureGenerator:
    """
    Computes X-Cf-Signature values.

    Example:
        >>> generator = SignatureGenerator()
        >>> signature = generator.sign("CF_CLIENT_ID", public_key_pem)
    """

    def __init__(self, clock: Optional[Clock] = None):
        """
        Args:
            clock: Returns the current Unix time in seconds. Defaults to time.time.
        """
        self._clock = clock or time.time

    def plaintext(self, client_id: str) -> str:
        """The ``client_id.timestamp`` string that gets encrypted."""
        return f"{client_id}.{int(self._clock())}"

    def sign(self, client_id: str, public_key_pem: str) -> str:
        """
        Encrypt ``client_id.timestamp`` with RSA-OAEP and base64-encode it.

        Args:
            client_id: Cashfree x-client-id.
            public_key_pem: RSA public key PEM from the Cashfree dashboard.

        Returns:
            Base64 string for the X-Cf-Signature header.

        Raises:
            CryptoError: If the key is unusable.
        """
        if not client_id:
            raise ValueError("client_id is required to compute X-Cf-Signature")

        key = load_rsa_public_key(public_key_pem)
        try:
            public_key = key.get_op_key("encrypt")
            ciphertext = public_key.encrypt(
                self.plaintext(client_id).encode("utf-8"),
                padding.OAEP(
                    mgf=padding.MGF1(algorithm=hashes.SHA1()),
                    algorithm=hashes.SHA1(),
                    label=None,
                ),
            )
        except Exception as e:
            raise CryptoError(f"Failed to compute X-Cf-Signature: {e}") from e

        logger.debug(f"Computed X-Cf-Signature with key {key.thumbprint()[:12]}")
        return base64.b64encode(ciphertext).decode("ascii")
