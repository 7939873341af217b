"""Tests for the policy rule evaluator."""

from __future__ import annotations

import pytest

from conftest import ORG_ID, policy

from changerisk.schemas.policy import Policy, PolicyRule
from changerisk.services.risk_assessment.evaluator import (
    PolicyRiskEvaluator,
    create_violation,
    evaluate_rule,
    parse_rules,
)
from changerisk.services.risk_assessment.policy import InMemoryPolicyProvider


class FailingProvider:
    async def list_active_policies(self, organization_id: str):
        raise ConnectionError("policy store unavailable")


def count_rule(**overrides):
    rule = {
        "id": "too-many-changes",
        "title": "Too many changes",
        "category": "complexity",
        "severity": 4,
        "matcher": {"type": "count", "field": "totalChanges", "threshold": 5},
        "message": "{{value}} changes exceed {{threshold}}",
    }
    rule.update(overrides)
    return rule


class TestEmptyAndDegraded:
    async def test_no_active_policies(self, make_change):
        evaluator = PolicyRiskEvaluator(InMemoryPolicyProvider())
        result = await evaluator.evaluate_policies(make_change(), ORG_ID)
        assert result.violations == []
        assert result.auto_block_detected is False
        assert result.auto_block_rules == []
        assert result.total_violations == 0
        assert result.severity_score == 0

    async def test_fetch_failure_degrades_to_empty(self, make_change):
        evaluator = PolicyRiskEvaluator(FailingProvider())
        result = await evaluator.evaluate_policies(make_change(), ORG_ID)
        assert result.total_violations == 0
        assert result.severity_score == 0

    async def test_inactive_policies_are_ignored(self, make_change, make_provider):
        provider = make_provider(policy([count_rule()], isActive=False))
        result = await PolicyRiskEvaluator(provider).evaluate_policies(
            make_change(totalChanges=10), ORG_ID
        )
        assert result.total_violations == 0


class TestCountMatcher:
    async def test_threshold_exceeded(self, make_change, make_provider):
        provider = make_provider(policy([count_rule()]))
        result = await PolicyRiskEvaluator(provider).evaluate_policies(
            make_change(totalChanges=10), ORG_ID
        )
        assert result.total_violations == 1
        violation = result.violations[0]
        assert violation.evidence == [
            {"field": "totalChanges", "value": 10, "threshold": 5, "exceeded": 5}
        ]
        assert violation.message == "10 changes exceed 5"
        assert violation.policy_id == "pol-1"
        assert violation.policy_name == "Policy pol-1"

    async def test_equal_to_threshold_is_not_a_violation(self, make_change, make_provider):
        provider = make_provider(policy([count_rule()]))
        result = await PolicyRiskEvaluator(provider).evaluate_policies(
            make_change(totalChanges=5), ORG_ID
        )
        assert result.total_violations == 0

    def test_default_field_is_total_changes(self, make_change):
        rule = PolicyRule.model_validate(
            count_rule(matcher={"type": "count", "threshold": 1})
        )
        violations = evaluate_rule(rule, Policy(id="p"), make_change(totalChanges=3))
        assert violations[0].evidence[0]["field"] == "totalChanges"
        assert violations[0].evidence[0]["exceeded"] == 2

    def test_extra_summary_fields_are_addressable(self, make_change):
        rule = PolicyRule.model_validate(
            count_rule(matcher={"type": "count", "field": "deleted", "threshold": 0})
        )
        violations = evaluate_rule(rule, Policy(id="p"), make_change(deleted=2))
        assert len(violations) == 1


class TestJsonPathMatcher:
    def test_wildcard_pattern(self, make_change, sample_operations):
        rule = PolicyRule.model_validate(
            {"id": "r", "matcher": {"type": "jsonpath", "pattern": "/screens/*/controls"}}
        )
        violations = evaluate_rule(rule, Policy(id="p"), make_change(sample_operations))
        assert len(violations) == 1
        assert violations[0].evidence[0]["path"] == "/screens/Login/controls/0/text"

    def test_substring_pattern_and_path_alias(self, make_change, sample_operations):
        rule = PolicyRule.model_validate(
            {"id": "r", "matcher": {"type": "jsonpath", "path": "/screens/"}}
        )
        violations = evaluate_rule(rule, Policy(id="p"), make_change(sample_operations))
        assert [e["path"] for e in violations[0].evidence] == [
            "/screens/Login/controls/0/text",
            "/screens/Legacy",
        ]

    def test_value_pattern_adds_second_hit(self, make_change, sample_operations):
        rule = PolicyRule.model_validate(
            {
                "id": "external-http",
                "matcher": {
                    "type": "jsonpath",
                    "pattern": "/connectors",
                    "valuePattern": "API\\.PARTNER",
                },
                "message": "External call to {{value.url}}",
            }
        )
        violations = evaluate_rule(rule, Policy(id="p"), make_change(sample_operations))
        assert len(violations[0].evidence) == 2
        assert violations[0].message == "External call to https://api.partner.com/orders"


class TestRegexMatcher:
    def test_value_field(self, make_change, sample_operations):
        rule = PolicyRule.model_validate(
            {"id": "r", "matcher": {"type": "regex", "field": "value", "pattern": "sign in"}}
        )
        violations = evaluate_rule(rule, Policy(id="p"), make_change(sample_operations))
        evidence = violations[0].evidence
        assert len(evidence) == 1
        assert evidence[0]["matchedField"] == "value"
        assert evidence[0]["matchedValue"] == '"Sign in"'

    def test_component_name_from_after_metadata(self, make_change, sample_operations):
        rule = PolicyRule.model_validate(
            {
                "id": "r",
                "matcher": {"type": "regex", "field": "componentName", "pattern": "^payment"},
                "message": "Touches {{matchedValue}}",
            }
        )
        change = make_change(sample_operations, afterMetadata={"name": "PaymentScreen"})
        violations = evaluate_rule(rule, Policy(id="p"), change)
        assert len(violations[0].evidence) == 3
        assert violations[0].message == "Touches PaymentScreen"

    def test_component_name_without_metadata(self, make_change, sample_operations):
        rule = PolicyRule.model_validate(
            {"id": "r", "matcher": {"type": "regex", "field": "componentName", "pattern": "."}}
        )
        assert evaluate_rule(rule, Policy(id="p"), make_change(sample_operations)) == []


class TestOperationMatcher:
    def test_evidence_is_truncated_to_five(self, make_change):
        operations = [{"op": "add", "path": f"/entities/{i}", "value": i + 1} for i in range(7)]
        rule = PolicyRule.model_validate(
            {"id": "r", "matcher": {"type": "operation", "op": "add"}}
        )
        violations = evaluate_rule(rule, Policy(id="p"), make_change(operations))
        assert len(violations) == 1
        assert len(violations[0].evidence) == 5

    def test_no_op_configured_never_hits(self, make_change, sample_operations):
        rule = PolicyRule.model_validate({"id": "r", "matcher": {"type": "operation"}})
        assert evaluate_rule(rule, Policy(id="p"), make_change(sample_operations)) == []


class TestInvert:
    def rule(self, path: str) -> PolicyRule:
        return PolicyRule.model_validate(
            {
                "id": "changelog-required",
                "invert": True,
                "matcher": {"type": "jsonpath", "pattern": path},
            }
        )

    def test_no_hits_is_a_violation(self, make_change, sample_operations):
        violations = evaluate_rule(
            self.rule("/changelog"), Policy(id="p"), make_change(sample_operations)
        )
        assert len(violations) == 1
        assert violations[0].evidence == [{"message": "Expected condition not met"}]

    def test_hits_suppress_the_violation(self, make_change, sample_operations):
        violations = evaluate_rule(
            self.rule("/screens"), Policy(id="p"), make_change(sample_operations)
        )
        assert violations == []

    def test_unknown_matcher_type_with_invert(self, make_change):
        rule = PolicyRule.model_validate(
            {"id": "r", "invert": True, "matcher": {"type": "xpath"}}
        )
        assert rule.matcher is None
        assert len(evaluate_rule(rule, Policy(id="p"), make_change())) == 1


class TestRuleDocuments:
    @pytest.mark.parametrize(
        "document, expected",
        [
            ([count_rule(id="a"), count_rule(id="b")], ["a", "b"]),
            ({"version": "1.0", "rules": [count_rule(id="a")]}, ["a"]),
            (count_rule(id="single"), ["single"]),
            ({"conditions": []}, []),
            ("not-a-document", []),
            (None, []),
        ],
    )
    def test_encodings_normalize(self, document, expected):
        rules = parse_rules(Policy(id="p", rules=document))
        assert [r.id for r in rules] == expected

    def test_malformed_rule_is_dropped(self):
        document = [count_rule(id="ok"), count_rule(id="bad", severity=15)]
        assert [r.id for r in parse_rules(Policy(id="p", rules=document))] == ["ok"]

    def test_defaults_for_sparse_rule(self):
        rule = PolicyRule.model_validate({"severity": 0, "autoBlock": "yes"})
        assert rule.id == "unknown"
        assert rule.title == "Unnamed rule"
        assert rule.category == "governance"
        assert rule.severity == 5
        assert rule.auto_block is False


class TestAggregation:
    async def test_bad_rule_does_not_abort_batch(self, make_change, make_provider, sample_operations):
        rules = [
            {"id": "broken", "matcher": {"type": "regex", "pattern": "(unclosed"}},
            {"id": "removes", "severity": 3, "matcher": {"type": "operation", "op": "remove"}},
        ]
        provider = make_provider(policy(rules))
        result = await PolicyRiskEvaluator(provider).evaluate_policies(
            make_change(sample_operations), ORG_ID
        )
        assert [v.rule_id for v in result.violations] == ["removes"]

    async def test_auto_block_and_severity_score(self, make_change, make_provider, sample_operations):
        first = policy(
            [
                {
                    "id": "external-http",
                    "title": "External HTTP endpoint",
                    "category": "security",
                    "severity": 8,
                    "autoBlock": True,
                    "matcher": {"type": "jsonpath", "pattern": "/connectors"},
                },
                {"id": "removes", "severity": 3, "matcher": {"type": "operation", "op": "remove"}},
            ],
            policy_id="pol-a",
        )
        second = policy(count_rule(id="volume", severity=2, matcher={"type": "count", "threshold": 1}), policy_id="pol-b")
        result = await PolicyRiskEvaluator(make_provider(first, second)).evaluate_policies(
            make_change(sample_operations), ORG_ID
        )
        assert [v.rule_id for v in result.violations] == ["external-http", "removes", "volume"]
        assert result.auto_block_detected is True
        assert result.auto_block_rules == ["external-http"]
        assert result.total_violations == 3
        assert result.severity_score == sum(v.severity for v in result.violations) == 13
        assert result.violations[2].policy_id == "pol-b"


class TestViolationMessage:
    def test_unresolved_placeholder_is_left_verbatim(self):
        rule = PolicyRule(id="r", message="{{path}} via {{missing.key}}")
        violation = create_violation(rule, Policy(id="p"), [{"path": "/a"}])
        assert violation.message == "/a via {{missing.key}}"

    def test_falls_back_to_title(self):
        rule = PolicyRule(id="r", title="Screen removed")
        violation = create_violation(rule, Policy(id="p"), [{"path": "/a"}])
        assert violation.message == "Screen removed"


class TestFalsyOperationValues:
    operations = [
        {"op": "add", "path": "/settings/retries", "value": 0},
        {"op": "replace", "path": "/settings/enabled", "value": False},
        {"op": "replace", "path": "/settings/label", "value": ""},
    ]

    def test_value_pattern_skips_falsy_values(self, make_change):
        rule = PolicyRule.model_validate(
            {
                "id": "r",
                "matcher": {
                    "type": "jsonpath",
                    "pattern": "/nomatch",
                    "valuePattern": '^(0|false|"")$',
                },
            }
        )
        assert evaluate_rule(rule, Policy(id="p"), make_change(self.operations)) == []

    def test_regex_value_field_skips_falsy_values(self, make_change):
        rule = PolicyRule.model_validate(
            {"id": "r", "matcher": {"type": "regex", "field": "value", "pattern": "^(0|false)$"}}
        )
        assert evaluate_rule(rule, Policy(id="p"), make_change(self.operations)) == []

    def test_inverted_rule_still_fires(self, make_change):
        rule = PolicyRule.model_validate(
            {
                "id": "r",
                "invert": True,
                "matcher": {"type": "jsonpath", "pattern": "/nomatch", "valuePattern": "^0$"},
            }
        )
        violations = evaluate_rule(rule, Policy(id="p"), make_change(self.operations))
        assert len(violations) == 1
