"""
Policy access for the risk engine.
"""

from changerisk.services.risk_assessment.policy.provider import (
    ActivePolicyProvider,
    InMemoryPolicyProvider,
    YamlPolicyProvider,
    load_policy_file,
)
from changerisk.services.risk_assessment.policy.validation import validate_rule_document

__all__ = [
    "ActivePolicyProvider",
    "InMemoryPolicyProvider",
    "YamlPolicyProvider",
    "load_policy_file",
    "validate_rule_document",
]
