"""Stage nodes for the risk assessment pipeline."""

from typing import Optional

from langgraph.runtime import Runtime

from changerisk.core.logging import get_logger
from changerisk.schemas.assessment import PolicyEvaluationResult
from changerisk.services.risk_assessment.context import Ctx
from changerisk.services.risk_assessment.evaluator import PolicyRiskEvaluator
from changerisk.services.risk_assessment.formula_analyzer import FormulaDialect
from changerisk.services.risk_assessment.state import AssessmentState

logger = get_logger(__name__)


def select_dialect(platform: Optional[str]) -> FormulaDialect:
    """Mendix apps carry microflow XML; everything else is treated as PowerFx."""
    if (platform or "").lower() == "mendix":
        return FormulaDialect.WORKFLOW_XML
    return FormulaDialect.EXPRESSION


async def evaluate_policies(state: AssessmentState, runtime: Runtime[Ctx]) -> dict:
    """Evaluate the organization's active policies against the change."""
    evaluator = PolicyRiskEvaluator(runtime.context.policy_provider)
    result = await evaluator.evaluate_policies(state.change, state.organization_id)
    return {"policy_result": result}


def analyze_formula(state: AssessmentState, runtime: Runtime[Ctx]) -> dict:
    """Analyze the changed formula, preferring the after-image over the before-image."""
    code = state.change.after_code or state.change.before_code
    if not code:
        logger.debug("No formula source on change %s, skipping analysis.", state.change.id)
        return {}

    dialect = select_dialect(state.change.platform)
    analysis = runtime.context.formula_analyzer.analyze_formula(code, dialect)
    return {"formula_analysis": analysis}


def score_risk(state: AssessmentState, runtime: Runtime[Ctx]) -> dict:
    """Combine stage outputs into the final assessment."""
    assessment = runtime.context.risk_scorer.calculate_enhanced_risk_score(
        state.change,
        state.policy_result or PolicyEvaluationResult.empty(),
        state.formula_analysis,
        state.impact_analysis,
    )
    return {"assessment": assessment}
