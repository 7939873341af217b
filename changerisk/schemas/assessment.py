"""
Result models for the risk engine.

All result types in one place:
- PolicyRuleResult / PolicyEvaluationResult: policy evaluator output
- FormulaRisk / FormulaAnalysisResult: formula analyzer output
- RiskFactor / ImpactAnalysis: impact analysis input (external)
- RiskScoreBreakdown / EnhancedRiskAssessment: risk scorer output
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from changerisk.schemas.policy import RuleCategory

RiskSeverity = Literal["low", "medium", "high", "critical"]
RiskLevel = Literal["low", "medium", "high", "critical"]

_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------------------------------------------------------
# Policy evaluation
# -----------------------------------------------------------------------------
class PolicyRuleResult(BaseModel):
    """One violation of one policy rule."""

    model_config = _CONFIG

    policy_id: str = ""
    policy_name: str = ""
    rule_id: str
    title: str
    category: RuleCategory
    severity: int
    auto_block: bool = False
    evidence: List[Dict[str, Any]] = Field(
        default_factory=list, description="At most five evidence items."
    )
    message: str


class PolicyEvaluationResult(BaseModel):
    """Aggregate outcome of evaluating every active policy against a change."""

    model_config = _CONFIG

    violations: List[PolicyRuleResult] = Field(default_factory=list)
    auto_block_detected: bool = False
    auto_block_rules: List[str] = Field(default_factory=list)
    total_violations: int = 0
    severity_score: int = Field(
        default=0, description="Sum of severities over all violations."
    )

    @classmethod
    def empty(cls) -> "PolicyEvaluationResult":
        return cls()

    @classmethod
    def from_violations(
        cls, violations: List[PolicyRuleResult]
    ) -> "PolicyEvaluationResult":
        auto_block_rules = [v.rule_id for v in violations if v.auto_block]
        return cls(
            violations=violations,
            auto_block_detected=len(auto_block_rules) > 0,
            auto_block_rules=auto_block_rules,
            total_violations=len(violations),
            severity_score=sum(v.severity for v in violations),
        )


# -----------------------------------------------------------------------------
# Formula analysis
# -----------------------------------------------------------------------------
class FormulaRisk(BaseModel):
    """A single risk found in formula or microflow source."""

    model_config = _CONFIG

    type: str
    severity: RiskSeverity
    function: Optional[str] = None
    action: Optional[str] = None
    description: str
    line: Optional[int] = None


class FormulaAnalysisResult(BaseModel):
    """Static analysis outcome for one piece of formula/workflow source."""

    model_config = _CONFIG

    has_formulas: bool = False
    platform: Optional[Literal["powerapps", "mendix"]] = None
    complexity_score: int = Field(default=0, ge=0, le=100)
    unsafe_functions: List[str] = Field(default_factory=list)
    nesting_depth: int = 0
    function_call_count: int = 0
    external_connectors: List[str] = Field(default_factory=list)
    risks: List[FormulaRisk] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "FormulaAnalysisResult":
        return cls()

    def risks_with_severity(self, *severities: str) -> List[FormulaRisk]:
        return [r for r in self.risks if r.severity in severities]


# -----------------------------------------------------------------------------
# Impact analysis (external)
# -----------------------------------------------------------------------------
class RiskFactor(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    severity: RiskSeverity
    factor: Optional[str] = None
    description: Optional[str] = None


class ImpactAnalysis(BaseModel):
    """
    Structural impact of a change, computed by the impact collaborator.

    Extra keys are preserved so the caller can round-trip its own fields.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    breaking_changes: int = 0
    affected_components: int = 0
    risk_factors: List[RiskFactor] = Field(default_factory=list)
    overall_impact: Optional[RiskSeverity] = None
    complexity_score: Optional[int] = None
    dependencies: List[Dict[str, Any]] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Risk scoring
# -----------------------------------------------------------------------------
class RiskScoreBreakdown(BaseModel):
    """Per-term contributions to the composite score, before clamping."""

    model_config = _CONFIG

    policy_score: int = 0
    complexity_penalty: int = 0
    formula_penalty: int = 0
    auto_block_bonus: int = 0
    breaking_changes: int = 0
    affected_components: int = 0
    risk_factor_score: int = 0
    total: int = 0


class EnhancedRiskAssessment(BaseModel):
    """Composite risk assessment handed to the review workflow."""

    model_config = _CONFIG

    score: int = Field(ge=0, le=100)
    level: RiskLevel
    requires_approval: bool
    auto_block_rules: List[str] = Field(default_factory=list)
    policy_violations: List[PolicyRuleResult] = Field(default_factory=list)
    formula_analysis: Optional[FormulaAnalysisResult] = None
    impact_analysis: ImpactAnalysis
    score_breakdown: RiskScoreBreakdown
    recommendations: List[str] = Field(default_factory=list)
    reviewers: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
