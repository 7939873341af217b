"""
Nodes package for the risk assessment pipeline.
"""

from changerisk.services.risk_assessment.nodes.stages import (
    evaluate_policies,
    analyze_formula,
    score_risk,
    select_dialect,
)

__all__ = [
    "evaluate_policies",
    "analyze_formula",
    "score_risk",
    "select_dialect",
]
