"""
Unit tests for response match and extraction rules.
"""

import re

import pytest

from cashfree_proof import (
    MatchRule,
    PathRule,
    PatternRule,
    RuleStrategy,
    TransferStatus,
    extract_values,
    transfer_creation_matches,
    transfer_creation_redactions,
    transfer_status_matches,
    transfer_status_redactions,
)
from cashfree_proof.rules import (
    FieldSpec,
    TRANSFER_CREATION_FIELDS,
    TRANSFER_CREATION_FIELDS_V2,
    TRANSFER_STATUS_FIELDS,
    check_matches,
    coerce_rule,
    to_python_pattern,
)


class TestStatusMatches:
    """transfer_status_matches()."""

    def test_expected_status_is_first(self):
        """With an expected status the first rule asserts it exactly."""
        matches = transfer_status_matches(TransferStatus.SUCCESS)
        assert matches[0] == MatchRule("contains", '"status":"SUCCESS"')

    def test_plain_string_status(self):
        """Expected status may be given as a string."""
        assert transfer_status_matches("FAILED")[0].value == '"status":"FAILED"'

    def test_without_expected_status(self):
        """Without a status the rules still require a transfer_id field."""
        matches = transfer_status_matches()
        assert len(matches) == 1
        assert matches[0].value == '"transfer_id"'

    def test_transfer_id_check_always_present(self):
        """The transfer_id existence check follows the status assertion."""
        matches = transfer_status_matches(TransferStatus.PENDING)
        assert MatchRule("contains", '"transfer_id"') in matches

    def test_status_assertion_rejects_other_status(self, sample_status_response):
        """A SUCCESS response fails a FAILED assertion."""
        assert check_matches(transfer_status_matches("SUCCESS"), sample_status_response)
        assert not check_matches(transfer_status_matches("FAILED"), sample_status_response)

    def test_creation_matches(self):
        """Creation proofs require cf_transfer_id."""
        assert "cf_transfer_id" in transfer_creation_matches()[0].value


class TestRedactionBuilders:
    """Default redactions and caller extras."""

    def test_status_defaults(self):
        """Exactly four default status rules."""
        rules = transfer_status_redactions()
        assert len(rules) == 4
        assert [r.name for r in rules] == ["transfer_id", "cf_transfer_id", "status", "transfer_amount"]

    def test_status_extras_appended(self):
        """k extras give 4 + k rules, defaults first."""
        rules = transfer_status_redactions([{"jsonPath": "$.x"}, PatternRule(r'"y":"(?<y>[^"]+)"')])
        assert len(rules) == 6
        assert rules[:4] == transfer_status_redactions()
        assert rules[4] == PathRule("$.x")

    def test_creation_defaults(self):
        """Creation proofs extract four fields."""
        rules = transfer_creation_redactions()
        assert len(rules) == 4
        assert rules[3].name == "status_code"

    def test_pattern_strategy(self):
        """The pattern strategy yields regex rules for the same fields."""
        rules = transfer_status_redactions(strategy=RuleStrategy.PATTERN)
        assert all(isinstance(r, PatternRule) for r in rules)
        assert [r.name for r in rules] == [r.name for r in transfer_status_redactions()]

    def test_serialization(self):
        """Rules serialize to the engine's jsonPath / regex entries."""
        assert PathRule("$.status").to_dict() == {"jsonPath": "$.status"}
        assert PatternRule(r'"a":"(?<a>\w+)"').to_dict() == {"regex": r'"a":"(?<a>\w+)"'}
        assert MatchRule("contains", "x").to_dict() == {"type": "contains", "value": "x"}

    def test_coerce_rejects_empty_dict(self):
        """A dict without jsonPath or regex is rejected."""
        with pytest.raises(ValueError):
            coerce_rule({})


class TestRoundTrip:
    """Both mechanisms extract identical values."""

    EXPECTED = {
        "transfer_id": "txn_123",
        "cf_transfer_id": "CF456",
        "status": "SUCCESS",
        "transfer_amount": "100.50",
    }

    def test_every_pattern_matches_sample(self, sample_status_response):
        """Every fallback pattern compiles and matches a Cashfree response."""
        for spec in TRANSFER_STATUS_FIELDS:
            assert re.search(to_python_pattern(spec.pattern), sample_status_response)

    def test_path_rules(self, sample_status_response):
        """Structural rules extract all four fields."""
        values = extract_values(transfer_status_redactions(), sample_status_response)
        assert values == self.EXPECTED

    def test_pattern_rules(self, sample_status_response):
        """Fallback rules extract the same four values."""
        values = extract_values(
            transfer_status_redactions(strategy=RuleStrategy.PATTERN), sample_status_response
        )
        assert values == self.EXPECTED

    def test_path_rules_survive_reordering(self):
        """Paths are unaffected by key order, whitespace and extra fields."""
        body = (
            '{\n  "added_field": {"status": "IGNORED"},\n  "transfer_amount": 100.50,\n'
            '  "status": "SUCCESS", "cf_transfer_id": "CF456", "transfer_id": "txn_123"\n}'
        )
        assert extract_values(transfer_status_redactions(), body) == self.EXPECTED

    def test_creation_fields_agree(self):
        """Creation fields agree across mechanisms as well."""
        body = '{"transfer_id":"t9","cf_transfer_id":"cf9","status":"RECEIVED","status_code":"RECEIVED"}'
        by_path = extract_values(transfer_creation_redactions(), body)
        by_pattern = extract_values(transfer_creation_redactions(strategy=RuleStrategy.PATTERN), body)
        assert by_path == by_pattern == {
            "transfer_id": "t9",
            "cf_transfer_id": "cf9",
            "status": "RECEIVED",
            "status_code": "RECEIVED",
        }

    def test_v2_creation_fields_agree(self):
        """The enveloped creation layout extracts consistently."""
        body = (
            '{"status":"SUCCESS","subCode":"200","message":"Transfer created",'
            '"data":{"transfer_id":"t9","cf_transfer_id":"cf9","status":"RECEIVED"}}'
        )
        by_path = extract_values(transfer_creation_redactions(fields=TRANSFER_CREATION_FIELDS_V2), body)
        by_pattern = extract_values(
            transfer_creation_redactions(strategy=RuleStrategy.PATTERN, fields=TRANSFER_CREATION_FIELDS_V2),
            body,
        )
        assert by_path == by_pattern == {
            "transfer_id": "t9",
            "cf_transfer_id": "cf9",
            "status": "SUCCESS",
            "data_status": "RECEIVED",
        }

    def test_missing_field_omitted(self):
        """Absent fields are left out instead of extracted as empty."""
        values = extract_values(transfer_status_redactions(), '{"transfer_id":"t1","status":"PENDING"}')
        assert "transfer_amount" not in values
        assert "cf_transfer_id" not in values


class TestRuleValidation:
    """Construction-time checks."""

    def test_path_must_start_with_root(self):
        with pytest.raises(ValueError):
            PathRule("transfer_id")

    def test_index_path_needs_label(self):
        with pytest.raises(ValueError, match="label"):
            PathRule("$.items[0]")

    def test_index_and_quoted_paths(self):
        """Array indexes and quoted keys are supported."""
        body = '{"items":[{"transfer id":"a"}]}'
        assert extract_values([PathRule("$.items[0]['transfer id']", label="tid")], body) == {"tid": "a"}

    def test_pattern_needs_named_group(self):
        with pytest.raises(ValueError, match="named capture"):
            PatternRule(r'"status":"([^"]+)"')

    def test_invalid_pattern(self):
        with pytest.raises(ValueError):
            PatternRule("(?<broken")

    def test_lookbehind_untouched(self):
        """Only named groups are translated, not lookbehinds."""
        assert to_python_pattern(r"(?<=a)(?<name>b)") == r"(?<=a)(?P<name>b)"

    def test_unknown_match_type(self):
        with pytest.raises(ValueError):
            MatchRule("equals", "x")

    def test_field_spec_names_must_agree(self):
        with pytest.raises(ValueError):
            FieldSpec("status", "$.status", r'"status":"(?<other>[^"]+)"')

    def test_default_specs_are_consistent(self):
        """Default field specs produce path and pattern rules with the same names."""
        for spec in TRANSFER_STATUS_FIELDS + TRANSFER_CREATION_FIELDS + TRANSFER_CREATION_FIELDS_V2:
            assert spec.path_rule().name == spec.pattern_rule().name == spec.name
