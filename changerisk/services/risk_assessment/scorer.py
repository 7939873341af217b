"""
Risk scorer.

Combines policy violations, formula analysis and impact analysis into a single
deterministic assessment that gates the approval workflow.
"""

import math
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from changerisk.core.logging import get_logger
from changerisk.schemas.assessment import (
    EnhancedRiskAssessment,
    FormulaAnalysisResult,
    ImpactAnalysis,
    PolicyEvaluationResult,
    RiskFactor,
    RiskLevel,
    RiskScoreBreakdown,
)
from changerisk.schemas.change import Change, DiffSummary
from changerisk.services.risk_assessment.numeric import clamp, js_round

logger = get_logger(__name__)

SENIOR_REVIEWER = "senior-pro-developer"
SECURITY_TEAM = "security-team"
REVIEWER = "pro-developer"


class ScoringWeights(BaseModel):
    """Tunable scoring parameters."""

    model_config = ConfigDict(frozen=True)

    policy_severity_multiplier: int = 5
    auto_block_bonus: int = 10
    complexity_multiplier: int = 4  # log(1 + added nodes) x 4
    formula_multiplier: int = 2
    breaking_change_multiplier: int = 8
    affected_component_multiplier: int = 2
    affected_component_cap: int = 20
    risk_factor_weights: Dict[str, int] = Field(
        default_factory=lambda: {"low": 2, "medium": 5, "high": 10, "critical": 15}
    )


DEFAULT_WEIGHTS = ScoringWeights()


def determine_risk_level(score: int) -> RiskLevel:
    """Map a 0-100 score to a level; boundaries belong to the higher level."""
    if score >= 80:
        return "critical"
    if score >= 60:
        return "high"
    if score >= 30:
        return "medium"
    return "low"


def determine_reviewers(level: str, auto_block: bool) -> List[str]:
    """Reviewers required for a level. Low risk needs none (auto-approve)."""
    if auto_block or level == "critical":
        return [SENIOR_REVIEWER, SECURITY_TEAM]
    if level == "high":
        return [SENIOR_REVIEWER]
    if level == "medium":
        return [REVIEWER]
    return []


def generate_recommendations(
    policy_result: PolicyEvaluationResult,
    formula_analysis: Optional[FormulaAnalysisResult],
    impact_analysis: ImpactAnalysis,
    level: str,
) -> List[str]:
    """Actionable recommendations, in order, without duplicates."""
    recommendations: List[str] = []

    for violation in policy_result.violations:
        if violation.category == "security":
            title = violation.title.lower()
            if "external" in title:
                recommendations.append(
                    "Remove external API call or move to approved connector list"
                )
            elif "pii" in title:
                recommendations.append(
                    "Review PII handling and ensure proper encryption/masking"
                )

        if violation.auto_block:
            recommendations.append(
                f"Address critical policy violation: {violation.title}"
            )

    if formula_analysis and formula_analysis.has_formulas:
        if formula_analysis.complexity_score > 60:
            recommendations.append(
                "Consider refactoring complex formulas for maintainability"
            )
        for risk in formula_analysis.risks_with_severity("critical", "high"):
            recommendations.append(f"Formula risk: {risk.description}")

    if impact_analysis.breaking_changes > 0:
        recommendations.append(
            f"Review {impact_analysis.breaking_changes} breaking changes "
            "and update dependent components"
        )

    if impact_analysis.affected_components > 5:
        recommendations.append(
            f"{impact_analysis.affected_components} components affected "
            "- thorough testing recommended"
        )

    if level in ("critical", "high"):
        recommendations.append("Request security review before deployment")
        recommendations.append("Create rollback plan in case of issues")
        recommendations.append("Monitor deployment closely and have team on standby")

    return list(dict.fromkeys(recommendations))


class RiskScorer:
    """Weighted, deterministic risk scoring."""

    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS):
        self.weights = weights

    def calculate_enhanced_risk_score(
        self,
        change: Change,
        policy_result: PolicyEvaluationResult,
        formula_analysis: Optional[FormulaAnalysisResult],
        impact_analysis: ImpactAnalysis,
    ) -> EnhancedRiskAssessment:
        """
        Calculate the composite risk assessment for a change.

        Args:
            change: The change being assessed (its diff summary drives the
                complexity penalty).
            policy_result: Output of the policy evaluator.
            formula_analysis: Output of the formula analyzer, or None.
            impact_analysis: Impact analysis from the structural collaborator.

        Returns:
            EnhancedRiskAssessment with score clamped to [0, 100].
        """
        logger.info("Calculating enhanced risk score for change %s", change.id)
        w = self.weights

        breakdown = RiskScoreBreakdown(
            policy_score=self.apply_policy_weights(policy_result),
            complexity_penalty=self.apply_complexity_penalty(change.diff_summary),
            formula_penalty=(
                self.apply_formula_penalty(formula_analysis)
                if formula_analysis and formula_analysis.has_formulas
                else 0
            ),
            auto_block_bonus=len(policy_result.auto_block_rules) * w.auto_block_bonus,
            breaking_changes=impact_analysis.breaking_changes * w.breaking_change_multiplier,
            affected_components=min(
                impact_analysis.affected_components * w.affected_component_multiplier,
                w.affected_component_cap,
            ),
            risk_factor_score=self.calculate_risk_factor_score(impact_analysis.risk_factors),
        )
        breakdown.total = (
            breakdown.policy_score
            + breakdown.complexity_penalty
            + breakdown.formula_penalty
            + breakdown.auto_block_bonus
            + breakdown.breaking_changes
            + breakdown.affected_components
            + breakdown.risk_factor_score
        )

        score = clamp(js_round(breakdown.total))
        level = determine_risk_level(score)
        requires_approval = policy_result.auto_block_detected or level in ("high", "critical")

        assessment = EnhancedRiskAssessment(
            score=score,
            level=level,
            requires_approval=requires_approval,
            auto_block_rules=list(policy_result.auto_block_rules),
            policy_violations=list(policy_result.violations),
            formula_analysis=formula_analysis,
            impact_analysis=impact_analysis,
            score_breakdown=breakdown,
            recommendations=generate_recommendations(
                policy_result, formula_analysis, impact_analysis, level
            ),
            reviewers=determine_reviewers(level, policy_result.auto_block_detected),
        )

        logger.info(
            "Risk score for change %s: score=%d level=%s autoBlock=%s",
            change.id,
            score,
            level,
            policy_result.auto_block_detected,
        )
        return assessment

    def apply_policy_weights(self, policy_result: PolicyEvaluationResult) -> int:
        return policy_result.severity_score * self.weights.policy_severity_multiplier

    def apply_complexity_penalty(self, diff_summary: Optional[DiffSummary]) -> int:
        """Logarithmic penalty on added nodes plus a step on total changes."""
        if diff_summary is None:
            return 0

        new_nodes = max(diff_summary.added or 0, 0)
        total_changes = diff_summary.total_changes or 0

        node_penalty = math.log(1 + new_nodes) * self.weights.complexity_multiplier
        if total_changes > 50:
            change_penalty = 10
        elif total_changes > 20:
            change_penalty = 5
        else:
            change_penalty = 0

        return js_round(node_penalty + change_penalty)

    def apply_formula_penalty(self, formula_analysis: FormulaAnalysisResult) -> int:
        penalty = (formula_analysis.complexity_score / 100) * 20  # max 20 points
        penalty += len(formula_analysis.unsafe_functions) * 3
        penalty += len(formula_analysis.external_connectors) * 2
        penalty += len(formula_analysis.risks_with_severity("critical")) * 8
        penalty += len(formula_analysis.risks_with_severity("high")) * 5

        return js_round(penalty * self.weights.formula_multiplier)

    def calculate_risk_factor_score(self, risk_factors: List[RiskFactor]) -> int:
        weights = self.weights.risk_factor_weights
        return sum(weights.get(factor.severity, 0) for factor in risk_factors)
