#!/usr/bin/env python3
"""
Example: Prove a Cashfree transfer status

Runs the full flow offline: credentials from the environment, a fixture
engine standing in for the attestation network, and error handling for each
failure mode. Swap FixtureProofEngine for a real ProofEngine adapter to
produce verifiable proofs.

    CASHFREE_CLIENT_ID=... CASHFREE_CLIENT_SECRET=... CASHFREE_BEARER_TOKEN=... \
        python examples/prove_transfer.py
"""

import asyncio
import logging

from cashfree_proof import (
    AuthorizationError,
    CashfreeProofError,
    CryptoError,
    PayoutProofClient,
    ProofGenerationError,
    TransferStatus,
)
from cashfree_proof.config import credentials_from_env
from cashfree_proof.testing import FixtureProofEngine


SANDBOX_RESPONSE = (
    '{"transfer_id":"transfer_123","cf_transfer_id":"CF456",'
    '"status":"SUCCESS","transfer_amount":100.50}'
)


async def main() -> int:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(name)s: %(message)s")

    engine = FixtureProofEngine(default_response=SANDBOX_RESPONSE)

    async with PayoutProofClient(credentials_from_env(), engine, environment="sandbox") as client:
        try:
            result = await client.prove_transfer_status(
                "transfer_123",
                expected_status=TransferStatus.SUCCESS,
                context={
                    "contextAddress": "0x0000000000000000000000000000000000000000",
                    "contextMessage": "cashfree_transfer_success",
                },
            )
        except AuthorizationError as e:
            # Bad credentials, IP not whitelisted, or missing X-Cf-Signature
            print(f"Authorization failed: {e}")
            return 1
        except CryptoError as e:
            print(f"CASHFREE_RSA_PUBLIC_KEY is unusable: {e}")
            return 1
        except ProofGenerationError as e:
            # Status did not match, or the engine ran out of retries
            print(f"No proof: {e}")
            return 1
        except CashfreeProofError as e:
            print(f"{type(e).__name__}: {e}")
            return 1

    print(f"Transfer {result.transfer_id} ({result.cf_transfer_id}): {result.status}, amount {result.transfer_amount}")
    print(f"Proof {result.proof.identifier}")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
