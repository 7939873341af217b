"""
Active policy providers.

The evaluator only needs ``list_active_policies``; anything that implements it
(a database repository, an HTTP client, a fixture) can be plugged in.
"""

from functools import lru_cache
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

import yaml
from pydantic import ValidationError

from changerisk.core.config import settings
from changerisk.core.exceptions import PolicyFetchError
from changerisk.core.logging import get_logger
from changerisk.schemas.policy import Policy

logger = get_logger(__name__)


class ActivePolicyProvider(Protocol):
    """Read-only access to an organization's active policies."""

    async def list_active_policies(self, organization_id: str) -> List[Policy]: ...


class InMemoryPolicyProvider:
    """Serves policies from a dict of organization id -> policies."""

    def __init__(self, policies: Optional[Mapping[str, Iterable[Any]]] = None):
        self._policies: Dict[str, List[Policy]] = {
            org_id: [_coerce_policy(p) for p in items]
            for org_id, items in (policies or {}).items()
        }

    async def list_active_policies(self, organization_id: str) -> List[Policy]:
        return [p for p in self._policies.get(organization_id, []) if p.is_active]


@lru_cache(maxsize=8)
def load_policy_file(policy_path: str) -> Dict[str, Any]:
    """
    Load a policy file from YAML.

    Args:
        policy_path: Path to the policy YAML file.

    Returns:
        Dictionary containing the decoded file.
    """
    with open(policy_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class YamlPolicyProvider:
    """
    Serves policies from a YAML file of the form::

        organizations:
          <organization id>:
            policies:
              - id: ...
                name: ...
                rules: [...]
    """

    def __init__(self, policy_path: Optional[str] = None):
        self.policy_path = policy_path or settings.POLICY_FILE

    async def list_active_policies(self, organization_id: str) -> List[Policy]:
        try:
            document = load_policy_file(self.policy_path)
        except (OSError, yaml.YAMLError) as e:
            raise PolicyFetchError(
                f"Cannot load policy file {self.policy_path}: {e}"
            ) from e

        organizations = document.get("organizations") or {}
        entries = (organizations.get(organization_id) or {}).get("policies") or []

        policies: List[Policy] = []
        for entry in entries:
            try:
                policy = Policy.model_validate(entry)
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed policy in %s for %s: %s",
                    self.policy_path,
                    organization_id,
                    e,
                )
                continue
            if policy.is_active:
                policies.append(policy)
        return policies


def _coerce_policy(policy: Any) -> Policy:
    if isinstance(policy, Policy):
        return policy
    return Policy.model_validate(policy)
