"""
Change risk assessment: policy evaluation, formula analysis and scoring.
"""

from changerisk.services.risk_assessment.evaluator import PolicyRiskEvaluator
from changerisk.services.risk_assessment.formula_analyzer import (
    FormulaAnalyzer,
    FormulaDialect,
)
from changerisk.services.risk_assessment.scorer import (
    RiskScorer,
    ScoringWeights,
    determine_reviewers,
    determine_risk_level,
)
from changerisk.services.risk_assessment.service import RiskAssessmentService

__all__ = [
    "PolicyRiskEvaluator",
    "FormulaAnalyzer",
    "FormulaDialect",
    "RiskScorer",
    "ScoringWeights",
    "determine_reviewers",
    "determine_risk_level",
    "RiskAssessmentService",
]
