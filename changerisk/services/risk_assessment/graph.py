"""
Risk Assessment Graph.

Builds the LangGraph StateGraph for the risk assessment pipeline. Policy
evaluation and formula analysis are independent and run in the same step;
scoring waits for both.
"""

from langgraph.graph import StateGraph, START, END

from changerisk.services.risk_assessment.state import AssessmentState
from changerisk.services.risk_assessment.context import Ctx
from changerisk.services.risk_assessment.nodes import (
    evaluate_policies,
    analyze_formula,
    score_risk,
)


# 1. Initialize Graph with context schema
workflow = StateGraph(AssessmentState, context_schema=Ctx)

# 2. Add Nodes
workflow.add_node("evaluate_policies", evaluate_policies)
workflow.add_node("analyze_formula", analyze_formula)
workflow.add_node("score_risk", score_risk)

# 3. Add Edges
workflow.add_edge(START, "evaluate_policies")
workflow.add_edge(START, "analyze_formula")
workflow.add_edge(["evaluate_policies", "analyze_formula"], "score_risk")
workflow.add_edge("score_risk", END)

# 4. Compile
risk_assessment_graph = workflow.compile()
