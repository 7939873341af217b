"""Tests for policy providers and rule document validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import ORG_ID

from changerisk.core.exceptions import PolicyFetchError
from changerisk.services.risk_assessment.evaluator import PolicyRiskEvaluator
from changerisk.services.risk_assessment.policy import (
    InMemoryPolicyProvider,
    YamlPolicyProvider,
    validate_rule_document,
)

POLICY_YAML = """\
organizations:
  org-1:
    policies:
      - id: pol-volume
        name: Change volume
        rules:
          - id: large-change
            title: Large change set
            severity: 4
            matcher:
              type: count
              threshold: 2
      - id: pol-off
        name: Disabled
        isActive: false
        rules: []
      - name: missing id
        rules: []
"""


@pytest.fixture
def policy_file(tmp_path: Path) -> Path:
    path = tmp_path / "policies.yaml"
    path.write_text(POLICY_YAML)
    return path


class TestYamlPolicyProvider:
    async def test_lists_active_policies(self, policy_file):
        provider = YamlPolicyProvider(str(policy_file))
        policies = await provider.list_active_policies(ORG_ID)
        assert [p.id for p in policies] == ["pol-volume"]
        assert policies[0].raw_rules[0]["id"] == "large-change"

    async def test_unknown_organization(self, policy_file):
        provider = YamlPolicyProvider(str(policy_file))
        assert await provider.list_active_policies("org-unknown") == []

    async def test_missing_file_raises_fetch_error(self, tmp_path):
        provider = YamlPolicyProvider(str(tmp_path / "absent.yaml"))
        with pytest.raises(PolicyFetchError):
            await provider.list_active_policies(ORG_ID)

    async def test_evaluator_degrades_on_missing_file(self, tmp_path, make_change):
        evaluator = PolicyRiskEvaluator(YamlPolicyProvider(str(tmp_path / "absent.yaml")))
        result = await evaluator.evaluate_policies(make_change(totalChanges=10), ORG_ID)
        assert result.total_violations == 0

    async def test_evaluates_against_yaml_policies(self, policy_file, make_change):
        evaluator = PolicyRiskEvaluator(YamlPolicyProvider(str(policy_file)))
        result = await evaluator.evaluate_policies(make_change(totalChanges=3), ORG_ID)
        assert [v.rule_id for v in result.violations] == ["large-change"]
        assert result.violations[0].message == "Large change set"

    async def test_bundled_sample_file(self):
        policies = await YamlPolicyProvider().list_active_policies("default")
        assert [p.id for p in policies] == ["pol-security-baseline", "pol-change-volume"]
        for p in policies:
            assert validate_rule_document(p.rules) == []


class TestInMemoryPolicyProvider:
    async def test_filters_inactive(self):
        provider = InMemoryPolicyProvider(
            {ORG_ID: [{"id": "a", "rules": []}, {"id": "b", "isActive": False}]}
        )
        assert [p.id for p in await provider.list_active_policies(ORG_ID)] == ["a"]


class TestValidateRuleDocument:
    def test_clean_document(self):
        document = {
            "version": "1.0",
            "rules": [
                {"id": "a", "matcher": {"type": "operation", "op": "remove"}},
                {"id": "b", "matcher": {"type": "jsonpath", "pattern": "/screens/*"}},
            ],
        }
        assert validate_rule_document(document) == []

    def test_unknown_shape(self):
        problems = validate_rule_document({"conditions": []})
        assert len(problems) == 1
        assert "Rule document must be" in problems[0]

    def test_reports_each_problem(self):
        document = [
            {"id": "no-matcher"},
            {"id": "bad-type", "matcher": {"type": "xpath"}},
            {"id": "bad-regex", "matcher": {"type": "regex", "pattern": "(open"}},
            {"id": "bad-severity", "severity": 42, "matcher": {"type": "count"}},
            "not-a-rule",
        ]
        problems = validate_rule_document(document)
        assert any("(no-matcher): matcher type is missing" in p for p in problems)
        assert any("unknown matcher type 'xpath'" in p for p in problems)
        assert any("(bad-regex): invalid pattern" in p for p in problems)
        assert any("(bad-severity): severity" in p for p in problems)
        assert any("rules[4]: rule must be a mapping" in p for p in problems)
