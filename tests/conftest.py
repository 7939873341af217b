"""Shared test fixtures for the risk engine."""

from __future__ import annotations

from typing import Any

import pytest

from changerisk.schemas.change import Change
from changerisk.services.risk_assessment.policy import InMemoryPolicyProvider

ORG_ID = "org-1"


@pytest.fixture
def make_change():
    """Factory for changes built from camelCase wire dicts, as collaborators send them."""

    def _make(
        operations: list[dict[str, Any]] | None = None,
        **summary_and_fields: Any,
    ) -> Change:
        fields = {
            key: summary_and_fields.pop(key)
            for key in list(summary_and_fields)
            if key
            in (
                "afterMetadata",
                "beforeMetadata",
                "afterCode",
                "beforeCode",
                "platform",
                "organizationId",
            )
        }
        operations = operations or []
        summary = {
            "operations": operations,
            "added": sum(1 for op in operations if op["op"] == "add"),
            "removed": sum(1 for op in operations if op["op"] == "remove"),
            "totalChanges": len(operations),
        }
        summary.update(summary_and_fields)
        return Change.model_validate({"id": "chg-1", "diffSummary": summary, **fields})

    return _make


@pytest.fixture
def sample_operations() -> list[dict[str, Any]]:
    return [
        {
            "op": "add",
            "path": "/connectors/http/0",
            "value": {"url": "https://api.partner.com/orders"},
        },
        {"op": "replace", "path": "/screens/Login/controls/0/text", "value": "Sign in"},
        {"op": "remove", "path": "/screens/Legacy"},
    ]


@pytest.fixture
def make_provider():
    """Factory for an in-memory provider serving the given policies to ORG_ID."""

    def _make(*policies: dict[str, Any]) -> InMemoryPolicyProvider:
        return InMemoryPolicyProvider({ORG_ID: list(policies)})

    return _make


def policy(rules: Any, policy_id: str = "pol-1", **kwargs: Any) -> dict[str, Any]:
    """Build a policy wire dict."""
    return {"id": policy_id, "name": f"Policy {policy_id}", "rules": rules, **kwargs}
