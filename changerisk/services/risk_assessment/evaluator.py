"""
Policy rule evaluator.

Matches a change's diff against an organization's active policies and
reports violations and auto-block signals.
"""

import re
from typing import List

from pydantic import ValidationError

from changerisk.core.exceptions import ChangeRiskError, RuleEvaluationError
from changerisk.core.logging import get_logger
from changerisk.schemas.assessment import PolicyEvaluationResult, PolicyRuleResult
from changerisk.schemas.change import Change
from changerisk.schemas.policy import Policy, PolicyRule
from changerisk.services.risk_assessment.interpolation import interpolate
from changerisk.services.risk_assessment.matchers import Evidence, find_hits
from changerisk.services.risk_assessment.policy.provider import ActivePolicyProvider

logger = get_logger(__name__)

MAX_EVIDENCE = 5
INVERTED_EVIDENCE: Evidence = {"message": "Expected condition not met"}
DEFAULT_MESSAGE = "Policy violation detected"


def parse_rules(policy: Policy) -> List[PolicyRule]:
    """
    Normalize a policy's rule document into validated rules.

    Entries that fail validation are logged and dropped; the rest keep their
    document order.
    """
    rules: List[PolicyRule] = []
    for index, entry in enumerate(policy.raw_rules):
        try:
            rules.append(PolicyRule.model_validate(entry))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed rule #%d in policy %s: %s", index, policy.id, e
            )
    return rules


def create_violation(
    rule: PolicyRule, policy: Policy, evidence: List[Evidence]
) -> PolicyRuleResult:
    """Build a violation, interpolating the message from the first evidence item."""
    message = rule.message or rule.title or DEFAULT_MESSAGE
    if evidence:
        message = interpolate(message, evidence[0])

    return PolicyRuleResult(
        policy_id=policy.id,
        policy_name=policy.name,
        rule_id=rule.id,
        title=rule.title,
        category=rule.category,
        severity=rule.severity,
        auto_block=rule.auto_block,
        evidence=evidence[:MAX_EVIDENCE],
        message=message,
    )


def evaluate_rule(rule: PolicyRule, policy: Policy, change: Change) -> List[PolicyRuleResult]:
    """
    Evaluate one rule against a change.

    Returns zero or one violation. Inverted rules flip the outcome: no hits is
    a violation, any hit suppresses it.

    Raises:
        RuleEvaluationError: if the rule's matcher cannot be evaluated.
    """
    try:
        hits = find_hits(rule.matcher, change)
    except re.error as e:
        raise RuleEvaluationError(rule.id, f"invalid pattern: {e}") from e
    except TypeError as e:
        raise RuleEvaluationError(rule.id, str(e)) from e

    if rule.invert:
        if hits:
            return []
        return [create_violation(rule, policy, [dict(INVERTED_EVIDENCE)])]

    if hits:
        return [create_violation(rule, policy, hits)]
    return []


class PolicyRiskEvaluator:
    """Evaluates active organization policies as risk rules."""

    def __init__(self, provider: ActivePolicyProvider):
        self.provider = provider

    async def evaluate_policies(
        self, change: Change, organization_id: str
    ) -> PolicyEvaluationResult:
        """
        Evaluate every active policy of ``organization_id`` against ``change``.

        Never raises: a failed policy fetch degrades to the empty result and a
        broken rule is skipped.
        """
        logger.info("Evaluating policies for change %s", change.id)

        try:
            policies = await self.provider.list_active_policies(organization_id)
        except Exception as e:
            logger.error(
                "Failed to fetch policies for organization %s: %s",
                organization_id,
                e,
                exc_info=True,
            )
            return PolicyEvaluationResult.empty()

        if not policies:
            logger.info("No active policies found for organization %s", organization_id)
            return PolicyEvaluationResult.empty()

        violations: List[PolicyRuleResult] = []
        for policy in policies:
            for rule in parse_rules(policy):
                violations.extend(self._evaluate_safely(rule, policy, change))

        result = PolicyEvaluationResult.from_violations(violations)
        logger.info(
            "Found %d policy violations (%d autoBlock) for change %s",
            result.total_violations,
            len(result.auto_block_rules),
            change.id,
        )
        return result

    def _evaluate_safely(
        self, rule: PolicyRule, policy: Policy, change: Change
    ) -> List[PolicyRuleResult]:
        try:
            return evaluate_rule(rule, policy, change)
        except ChangeRiskError as e:
            logger.warning("Failed to evaluate rule in policy %s: %s", policy.id, e)
        except Exception as e:
            logger.warning(
                "Failed to evaluate rule %s in policy %s: %s",
                rule.id,
                policy.id,
                e,
                exc_info=True,
            )
        return []