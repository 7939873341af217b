"""
Risk assessment service.

Entry point for callers that want the full pipeline: policy evaluation,
formula analysis and scoring for one change.
"""

from typing import Optional

from changerisk.core.config import settings
from changerisk.core.logging import get_logger, setup_logging
from changerisk.schemas.assessment import EnhancedRiskAssessment, ImpactAnalysis
from changerisk.schemas.change import Change
from changerisk.services.risk_assessment.context import Ctx
from changerisk.services.risk_assessment.formula_analyzer import FormulaAnalyzer
from changerisk.services.risk_assessment.graph import risk_assessment_graph
from changerisk.services.risk_assessment.policy.provider import (
    ActivePolicyProvider,
    YamlPolicyProvider,
)
from changerisk.services.risk_assessment.scorer import RiskScorer

logger = get_logger(__name__)


class RiskAssessmentService:
    def __init__(
        self,
        policy_provider: ActivePolicyProvider,
        formula_analyzer: Optional[FormulaAnalyzer] = None,
        risk_scorer: Optional[RiskScorer] = None,
    ):
        self.ctx = Ctx(
            policy_provider=policy_provider,
            formula_analyzer=formula_analyzer or FormulaAnalyzer(),
            risk_scorer=risk_scorer or RiskScorer(),
        )

    @classmethod
    def from_settings(cls) -> "RiskAssessmentService":
        """Configure logging and build a service backed by the configured policy file."""
        setup_logging(settings.LOG_LEVEL)
        logger.info(
            "Starting %s with policies from %s",
            settings.PROJECT_NAME,
            settings.POLICY_FILE,
        )
        return cls(YamlPolicyProvider(settings.POLICY_FILE))

    async def assess_change(
        self,
        change: Change,
        organization_id: Optional[str] = None,
        impact_analysis: Optional[ImpactAnalysis] = None,
    ) -> Optional[EnhancedRiskAssessment]:
        """
        Run the complete assessment pipeline for a change.

        Args:
            change: The change to assess.
            organization_id: Organization whose policies apply; defaults to the
                change's own organization.
            impact_analysis: Impact analysis for the change; defaults to an
                empty analysis.

        Returns:
            The assessment, or None if the change cannot be assessed. Failures
            are logged, never raised.
        """
        organization_id = organization_id or change.organization_id
        if not organization_id:
            logger.warning("Change %s has no organization, skipping assessment.", change.id)
            return None

        try:
            result = await risk_assessment_graph.ainvoke(
                {
                    "change": change,
                    "organization_id": organization_id,
                    "impact_analysis": impact_analysis or ImpactAnalysis(),
                },
                context=self.ctx,
            )
        except Exception as e:
            logger.error(
                "Failed to assess change %s: %s", change.id, e, exc_info=True
            )
            return None

        assessment: EnhancedRiskAssessment = result["assessment"]
        if assessment.auto_block_rules:
            logger.warning(
                "Change %s blocked by %d critical policies: %s",
                change.id,
                len(assessment.auto_block_rules),
                ", ".join(assessment.auto_block_rules),
            )
        return assessment
