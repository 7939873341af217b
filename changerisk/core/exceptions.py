"""Exceptions raised inside the risk engine.

None of these escape the public operations: the evaluator, analyzer and
pipeline catch them, log them and degrade to partial results.
"""


class ChangeRiskError(Exception):
    """Base exception for all risk engine errors."""


class PolicyFetchError(ChangeRiskError):
    """Active policies could not be loaded for an organization."""


class RuleEvaluationError(ChangeRiskError):
    """A single policy rule could not be evaluated (bad pattern, bad field)."""

    def __init__(self, rule_id: str, reason: str):
        self.rule_id = rule_id
        super().__init__(f"Rule '{rule_id}': {reason}")
