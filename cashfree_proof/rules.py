"""
Response match and extraction rules for Cashfree payout proofs.

Every extracted field can be expressed two ways:

- a structural JSON path (``$.transfer_id``), preferred because it survives
  field reordering, whitespace changes and newly added fields;
- a regex with a named capture group, used when the attestation engine
  cannot evaluate JSON paths.

Both forms of a field yield the same string for the same response, and both
are evaluated locally through ``extract_values``.
"""

import json
import re
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

# JavaScript-style named group "(?<name>", but not lookbehind "(?<=" / "(?<!"
_JS_NAMED_GROUP = re.compile(r"\(\?<(?![=!])")
_PATH_TOKEN = re.compile(r"\.([A-Za-z_][\w-]*)|\[(\d+)\]|\['([^']*)'\]|\[\"([^\"]*)\"\]")

_UNPARSED = object()


class RuleStrategy(str, Enum):
    """Which extraction mechanism to send to the engine."""

    PATH = "path"
    PATTERN = "pattern"


def to_python_pattern(pattern: str) -> str:
    """Translate JavaScript named groups to Python's ``(?P<name>...)`` form."""
    return _JS_NAMED_GROUP.sub("(?P<", pattern)


class ResponseDocument:
    """Raw response text with a lazily parsed JSON view."""

    def __init__(self, text: str):
        self.text = text
        self._parsed: Any = _UNPARSED

    @property
    def json(self) -> Any:
        if self._parsed is _UNPARSED:
            try:
                # Keep numeric literals verbatim so 100.50 stays "100.50"
                self._parsed = json.loads(self.text, parse_float=str, parse_int=str)
            except (json.JSONDecodeError, TypeError):
                self._parsed = None
        return self._parsed


class ExtractionRule(ABC):
    """A rule naming one response field to redact and extract."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Key under which the engine reports the extracted value."""
        pass

    @abstractmethod
    def extract(self, document: ResponseDocument) -> Optional[str]:
        """Return the field's value in ``document`` or None if absent."""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, str]:
        """Serialize to the engine's responseRedactions entry."""
        pass


def _parse_path(path: str) -> List[Union[str, int]]:
    if not path.startswith("$"):
        raise ValueError(f"JSON path must start with '$': {path!r}")

    segments: List[Union[str, int]] = []
    pos = 1
    while pos < len(path):
        m = _PATH_TOKEN.match(path, pos)
        if not m:
            raise ValueError(f"Unsupported JSON path syntax at offset {pos}: {path!r}")
        key, index, single, double = m.groups()
        if index is not None:
            segments.append(int(index))
        else:
            segments.append(next(s for s in (key, single, double) if s is not None))
        pos = m.end()
    return segments


def _stringify(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value, separators=(",", ":"))


@dataclass(frozen=True)
class PathRule(ExtractionRule):
    """Structural rule locating a field by JSON path."""

    path: str
    label: Optional[str] = None

    def __post_init__(self):
        segments = _parse_path(self.path)
        if self.label is None and not (segments and isinstance(segments[-1], str)):
            raise ValueError(f"JSON path {self.path!r} needs an explicit label")

    @property
    def name(self) -> str:
        if self.label:
            return self.label
        return str(_parse_path(self.path)[-1])

    def extract(self, document: ResponseDocument) -> Optional[str]:
        node = document.json
        for segment in _parse_path(self.path):
            if isinstance(segment, int):
                if not isinstance(node, list) or segment >= len(node):
                    return None
                node = node[segment]
            else:
                if not isinstance(node, dict) or segment not in node:
                    return None
                node = node[segment]
        return _stringify(node)

    def to_dict(self) -> Dict[str, str]:
        return {"jsonPath": self.path}


@dataclass(frozen=True)
class PatternRule(ExtractionRule):
    """Fallback rule extracting a field through a named capture group."""

    pattern: str

    def __post_init__(self):
        try:
            compiled = re.compile(to_python_pattern(self.pattern))
        except re.error as e:
            raise ValueError(f"Invalid extraction pattern: {e}")
        if not compiled.groupindex:
            raise ValueError(f"Extraction pattern needs a named capture group: {self.pattern!r}")

    @property
    def name(self) -> str:
        groups = re.compile(to_python_pattern(self.pattern)).groupindex
        return min(groups, key=groups.get)

    def extract(self, document: ResponseDocument) -> Optional[str]:
        m = re.search(to_python_pattern(self.pattern), document.text)
        if not m:
            return None
        return m.group(self.name)

    def to_dict(self) -> Dict[str, str]:
        return {"regex": self.pattern}


@dataclass(frozen=True)
class MatchRule:
    """
    Assertion the response must satisfy, or the engine returns no proof.

    ``contains`` is a literal substring test, ``regex`` a pattern search.
    """

    type: str
    value: str

    def __post_init__(self):
        if self.type not in ("contains", "regex"):
            raise ValueError(f"Unknown match type: {self.type!r}")

    def matches(self, text: str) -> bool:
        if self.type == "contains":
            return self.value in text
        return re.search(to_python_pattern(self.value), text) is not None

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "value": self.value}


@dataclass(frozen=True)
class FieldSpec:
    """One response field with its structural and fallback forms."""

    name: str
    path: str
    pattern: str

    def __post_init__(self):
        if self.pattern_rule().name != self.name:
            raise ValueError(f"Pattern for {self.name!r} must capture a group named {self.name!r}")

    def path_rule(self) -> PathRule:
        rule = PathRule(self.path)
        if rule.name == self.name:
            return rule
        return PathRule(self.path, label=self.name)

    def pattern_rule(self) -> PatternRule:
        return PatternRule(self.pattern)

    def rule(self, strategy: RuleStrategy) -> ExtractionRule:
        if strategy == RuleStrategy.PATTERN:
            return self.pattern_rule()
        return self.path_rule()


# =============================================================================
# Default fields
# =============================================================================

TRANSFER_STATUS_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec("transfer_id", "$.transfer_id", r'"transfer_id"\s*:\s*"(?<transfer_id>[^"]+)"'),
    FieldSpec("cf_transfer_id", "$.cf_transfer_id", r'"cf_transfer_id"\s*:\s*"(?<cf_transfer_id>[^"]+)"'),
    FieldSpec("status", "$.status", r'"status"\s*:\s*"(?<status>[^"]+)"'),
    FieldSpec("transfer_amount", "$.transfer_amount", r'"transfer_amount"\s*:\s*(?<transfer_amount>[\d.]+)'),
)

TRANSFER_CREATION_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec("transfer_id", "$.transfer_id", r'"transfer_id"\s*:\s*"(?<transfer_id>[^"]+)"'),
    FieldSpec("cf_transfer_id", "$.cf_transfer_id", r'"cf_transfer_id"\s*:\s*"(?<cf_transfer_id>[^"]+)"'),
    FieldSpec("status", "$.status", r'"status"\s*:\s*"(?<status>[^"]+)"'),
    FieldSpec("status_code", "$.status_code", r'"status_code"\s*:\s*"(?<status_code>[^"]+)"'),
)

# Older revision wraps the created transfer in a "data" envelope
TRANSFER_CREATION_FIELDS_V2: Tuple[FieldSpec, ...] = (
    FieldSpec(
        "transfer_id",
        "$.data.transfer_id",
        r'"data"\s*:\s*\{[^}]*"transfer_id"\s*:\s*"(?<transfer_id>[^"]+)"',
    ),
    FieldSpec(
        "cf_transfer_id",
        "$.data.cf_transfer_id",
        r'"data"\s*:\s*\{[^}]*"cf_transfer_id"\s*:\s*"(?<cf_transfer_id>[^"]+)"',
    ),
    # top-level status precedes the data envelope in this revision's responses
    FieldSpec("status", "$.status", r'"status"\s*:\s*"(?<status>[^"]+)"'),
    FieldSpec(
        "data_status",
        "$.data.status",
        r'"data"\s*:\s*\{[^}]*"status"\s*:\s*"(?<data_status>[^"]+)"',
    ),
)


# =============================================================================
# Builders
# =============================================================================

RuleLike = Union[ExtractionRule, Mapping[str, str]]


def coerce_rule(value: RuleLike) -> ExtractionRule:
    """Accept a rule object or a ``{"jsonPath": ...}`` / ``{"regex": ...}`` dict."""
    if isinstance(value, ExtractionRule):
        return value
    if isinstance(value, Mapping):
        if value.get("jsonPath"):
            return PathRule(value["jsonPath"], label=value.get("name"))
        if value.get("regex"):
            return PatternRule(value["regex"])
    raise ValueError(f"Extraction rule needs 'jsonPath' or 'regex': {value!r}")


def default_redactions(
    fields: Sequence[FieldSpec],
    additional: Optional[Iterable[RuleLike]] = None,
    strategy: RuleStrategy = RuleStrategy.PATH,
) -> List[ExtractionRule]:
    """Default rules for ``fields`` followed by caller extras."""
    rules = [spec.rule(strategy) for spec in fields]
    if additional:
        rules.extend(coerce_rule(extra) for extra in additional)
    return rules


def transfer_status_redactions(
    additional: Optional[Iterable[RuleLike]] = None,
    strategy: RuleStrategy = RuleStrategy.PATH,
    fields: Sequence[FieldSpec] = TRANSFER_STATUS_FIELDS,
) -> List[ExtractionRule]:
    """Redactions for a transfer status response: id, cf id, status, amount, then extras."""
    return default_redactions(fields, additional, strategy)


def transfer_creation_redactions(
    additional: Optional[Iterable[RuleLike]] = None,
    strategy: RuleStrategy = RuleStrategy.PATH,
    fields: Sequence[FieldSpec] = TRANSFER_CREATION_FIELDS,
) -> List[ExtractionRule]:
    """Redactions for a transfer creation response."""
    return default_redactions(fields, additional, strategy)


def transfer_status_matches(expected_status: Optional[Any] = None) -> List[MatchRule]:
    """
    Match rules for a transfer status response.

    With ``expected_status`` the first rule asserts it literally, so the engine
    refuses to produce a proof for any other status. A check that the body is a
    transfer object (has ``transfer_id``) is always included.
    """
    matches: List[MatchRule] = []
    if expected_status:
        status = getattr(expected_status, "value", expected_status)
        matches.append(MatchRule("contains", f'"status":"{status}"'))
    matches.append(MatchRule("contains", '"transfer_id"'))
    return matches


def transfer_creation_matches() -> List[MatchRule]:
    """Match rules for a transfer creation response."""
    return [MatchRule("contains", '"cf_transfer_id"')]


# =============================================================================
# Resolver
# =============================================================================


def extract_values(rules: Iterable[ExtractionRule], response_text: str) -> Dict[str, str]:
    """Evaluate any mix of rules against a response; absent fields are omitted."""
    document = ResponseDocument(response_text)
    values: Dict[str, str] = {}
    for rule in rules:
        value = rule.extract(document)
        if value is None:
            logger.debug(f"No value for extraction rule {rule.name!r}")
            continue
        values.setdefault(rule.name, value)
    return values


def check_matches(matches: Iterable[MatchRule], response_text: str) -> bool:
    """True when every match rule holds for the response."""
    return all(rule.matches(response_text) for rule in matches)
