"""
Graph state for the risk assessment pipeline.

Pure graph state, no service-layer imports.
"""

from typing import Optional

from sqlmodel import SQLModel, Field

from changerisk.schemas.assessment import (
    EnhancedRiskAssessment,
    FormulaAnalysisResult,
    ImpactAnalysis,
    PolicyEvaluationResult,
)
from changerisk.schemas.change import Change


class AssessmentState(SQLModel):
    """
    State of one risk assessment run.

    This is used by LangGraph to manage workflow state, not a database table.
    """

    change: Change = Field(description="The change being assessed.")
    organization_id: str = Field(description="Organization whose policies apply.")
    impact_analysis: ImpactAnalysis = Field(
        default_factory=ImpactAnalysis,
        description="Impact analysis supplied by the structural collaborator.",
    )
    policy_result: Optional[PolicyEvaluationResult] = Field(
        default=None, description="Output of the policy evaluator."
    )
    formula_analysis: Optional[FormulaAnalysisResult] = Field(
        default=None, description="Output of the formula analyzer, if code changed."
    )
    assessment: Optional[EnhancedRiskAssessment] = Field(
        default=None, description="Final composite assessment."
    )
