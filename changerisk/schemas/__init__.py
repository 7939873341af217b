"""
Schema and DTO package.
"""

from changerisk.schemas.change import Change, DiffOperation, DiffSummary
from changerisk.schemas.policy import (
    CountMatcher,
    JsonPathMatcher,
    OperationMatcher,
    Policy,
    PolicyRule,
    RegexMatcher,
)
from changerisk.schemas.assessment import (
    EnhancedRiskAssessment,
    FormulaAnalysisResult,
    FormulaRisk,
    ImpactAnalysis,
    PolicyEvaluationResult,
    PolicyRuleResult,
    RiskFactor,
    RiskScoreBreakdown,
)

__all__ = [
    "Change",
    "DiffOperation",
    "DiffSummary",
    "CountMatcher",
    "JsonPathMatcher",
    "OperationMatcher",
    "Policy",
    "PolicyRule",
    "RegexMatcher",
    "EnhancedRiskAssessment",
    "FormulaAnalysisResult",
    "FormulaRisk",
    "ImpactAnalysis",
    "PolicyEvaluationResult",
    "PolicyRuleResult",
    "RiskFactor",
    "RiskScoreBreakdown",
]
