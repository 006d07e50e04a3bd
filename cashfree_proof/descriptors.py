"""
Public and secret request descriptors.

Every request handed to the attestation engine is split in two:

- ``PublicDescriptor``: method, non-secret headers, body and context. It is
  disclosed inside the generated proof.
- ``SecretDescriptor``: authentication headers plus the response match and
  redaction rules. The engine enforces it but never reveals it.

The two are separate types. A PublicDescriptor refuses authentication
headers at construction, and ``ensure_disjoint`` checks that no credential
value occurs in the caller-supplied body or context.
"""

import re
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from cashfree_proof.constants import (
    AUTH_HEADER_NAMES,
    CONTENT_TYPE_JSON,
    DEFAULT_API_VERSION,
    SIGNATURE_HEADER,
)
from cashfree_proof.exceptions import DescriptorLeakError
from cashfree_proof.models import ProofContext
from cashfree_proof.rules import ExtractionRule, MatchRule

logger = logging.getLogger(__name__)

_AUTH_HEADERS_LOWER = frozenset(name.lower() for name in AUTH_HEADER_NAMES)

# Headers whose values are credentials; x-client-id only names the account
_CREDENTIAL_HEADERS_LOWER = frozenset({"authorization", "x-client-secret", SIGNATURE_HEADER.lower()})

# Characters that can appear inside a token, secret or base64 signature
_TOKEN_CHARS = r"A-Za-z0-9_.+/=-"

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


@dataclass(frozen=True)
class PublicDescriptor:
    """Request parameters disclosed in the proof."""

    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    context: Optional[ProofContext] = None
    use_tee: bool = False
    geo_location: Optional[str] = None

    def __post_init__(self):
        method = self.method.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {self.method!r}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "headers", dict(self.headers))

        leaked = [name for name in self.headers if name.lower() in _AUTH_HEADERS_LOWER]
        if leaked:
            raise DescriptorLeakError(
                f"Authentication header(s) not allowed in public descriptor: {', '.join(leaked)}"
            )

    def to_options(self) -> Dict[str, Any]:
        """Serialize to the engine's public options (camelCase)."""
        options: Dict[str, Any] = {
            "method": self.method,
            "headers": dict(self.headers),
            "useTee": self.use_tee,
        }
        if self.body is not None:
            options["body"] = self.body
        if self.context is not None:
            options["context"] = self.context.to_dict()
        if self.geo_location:
            options["geoLocation"] = self.geo_location
        return options


@dataclass(frozen=True)
class SecretDescriptor:
    """Authentication headers and response rules hidden from the proof."""

    headers: Dict[str, str] = field(default_factory=dict, repr=False)
    response_matches: Tuple[MatchRule, ...] = ()
    response_redactions: Tuple[ExtractionRule, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "headers", dict(self.headers))
        object.__setattr__(self, "response_matches", tuple(self.response_matches))
        object.__setattr__(self, "response_redactions", tuple(self.response_redactions))

    def __repr__(self) -> str:
        return (
            f"SecretDescriptor(headers=<{', '.join(self.headers)}>, "
            f"response_matches={list(self.response_matches)!r}, "
            f"response_redactions={list(self.response_redactions)!r})"
        )

    def to_options(self) -> Dict[str, Any]:
        """Serialize to the engine's secret options (camelCase)."""
        return {
            "headers": dict(self.headers),
            "responseMatches": [rule.to_dict() for rule in self.response_matches],
            "responseRedactions": [rule.to_dict() for rule in self.response_redactions],
        }


class RequestDescriptorBuilder:
    """
    Assembles the public and secret halves of a request.

    The builder never sees credentials, only header maps that have already
    been resolved by the caller.
    """

    def __init__(
        self,
        api_version: str = DEFAULT_API_VERSION,
        use_tee: bool = False,
        geo_location: Optional[str] = None,
    ):
        self.api_version = api_version
        self.use_tee = use_tee
        self.geo_location = geo_location

    def build_public(
        self,
        method: str,
        body: Optional[Union[str, Mapping[str, Any]]] = None,
        context: Optional[Union[ProofContext, Mapping[str, str]]] = None,
    ) -> PublicDescriptor:
        """Public descriptor with only Content-Type and x-api-version headers."""
        if body is not None and not isinstance(body, str):
            body = json.dumps(body, separators=(",", ":"))
        return PublicDescriptor(
            method=method,
            headers={"Content-Type": CONTENT_TYPE_JSON, "x-api-version": self.api_version},
            body=body,
            context=ProofContext.coerce(context),
            use_tee=self.use_tee,
            geo_location=self.geo_location,
        )

    def build_secret(
        self,
        headers: Mapping[str, str],
        response_matches: Iterable[MatchRule],
        response_redactions: Iterable[ExtractionRule],
    ) -> SecretDescriptor:
        """Secret descriptor holding its own copy of ``headers``."""
        return SecretDescriptor(
            headers=dict(headers),
            response_matches=tuple(response_matches),
            response_redactions=tuple(response_redactions),
        )

    @staticmethod
    def ensure_disjoint(public: PublicDescriptor, secret: SecretDescriptor) -> None:
        """
        Raise DescriptorLeakError if a credential value appears in ``public``.

        Only caller-controlled content is scanned: the body and the context
        values. The builder's own headers are fixed and cannot carry a
        credential. A value counts as leaked when it equals a JSON leaf or
        appears as a whole token inside one, so a short token is not
        mistaken for part of an unrelated word. The client id identifies
        the account and is not checked.
        """
        if not isinstance(public, PublicDescriptor) or not isinstance(secret, SecretDescriptor):
            raise TypeError("ensure_disjoint() expects (PublicDescriptor, SecretDescriptor)")

        leaves = _caller_leaves(public)
        if not leaves:
            return

        for name, value in secret.headers.items():
            if not value or name.lower() not in _CREDENTIAL_HEADERS_LOWER:
                continue
            candidates = {value}
            if value.startswith("Bearer "):
                candidates.add(value[len("Bearer "):])
            if any(_contains_token(leaf, candidate) for leaf in leaves for candidate in candidates):
                raise DescriptorLeakError(f"Value of secret header {name!r} found in public descriptor")


def _contains_token(leaf: str, value: str) -> bool:
    pattern = rf"(?<![{_TOKEN_CHARS}]){re.escape(value)}(?![{_TOKEN_CHARS}])"
    return re.search(pattern, leaf) is not None


def _caller_leaves(public: PublicDescriptor) -> List[str]:
    leaves: List[str] = []
    if public.body is not None:
        try:
            _collect_leaves(json.loads(public.body), leaves)
        except ValueError:
            leaves.append(public.body)
    if public.context is not None:
        leaves.extend(str(v) for v in public.context.to_dict().values() if v)
    return leaves


def _collect_leaves(node: Any, leaves: List[str]) -> None:
    if isinstance(node, dict):
        for key, value in node.items():
            leaves.append(str(key))
            _collect_leaves(value, leaves)
    elif isinstance(node, list):
        for item in node:
            _collect_leaves(item, leaves)
    elif node is not None:
        leaves.append(str(node))
