"""
LangGraph Runtime Context for risk assessment.

Defines the context schema for dependency injection into LangGraph nodes.
"""

from dataclasses import dataclass, field

from changerisk.services.risk_assessment.formula_analyzer import FormulaAnalyzer
from changerisk.services.risk_assessment.policy.provider import ActivePolicyProvider
from changerisk.services.risk_assessment.scorer import RiskScorer


@dataclass
class Ctx:
    """Runtime context for LangGraph nodes.

    Attributes:
        policy_provider: Source of the organization's active policies.
        formula_analyzer: Analyzer for formula and microflow source.
        risk_scorer: Scorer combining the stage outputs.
    """

    policy_provider: ActivePolicyProvider
    formula_analyzer: FormulaAnalyzer = field(default_factory=FormulaAnalyzer)
    risk_scorer: RiskScorer = field(default_factory=RiskScorer)
