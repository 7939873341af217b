"""
Policy and rule models.

Policies are organization-scoped documents owned by the governance
collaborator. Their ``rules`` field arrives in one of three encodings, which
are resolved once here into an ordered list of raw rule mappings.
"""

from enum import Enum
from typing import Annotated, Any, List, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

RuleCategory = Literal["security", "operational", "complexity", "governance", "dependency"]

_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------------------------------------------------------
# Matchers
# -----------------------------------------------------------------------------
class JsonPathMatcher(BaseModel):
    """Match diff operation paths, optionally also their serialized values."""

    model_config = _CONFIG

    type: Literal["jsonpath"] = "jsonpath"
    pattern: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("pattern", "path"),
        description="Path substring, or a pattern where '*' matches anything.",
    )
    value_pattern: Optional[str] = Field(
        default=None, description="Regex tested against the JSON-encoded value."
    )


class RegexMatcher(BaseModel):
    """Match a regex against one selected field of each operation."""

    model_config = _CONFIG

    type: Literal["regex"] = "regex"
    pattern: Optional[str] = None
    field: Literal["path", "value", "componentName"] = "path"


class OperationMatcher(BaseModel):
    """Match operations by op-code."""

    model_config = _CONFIG

    type: Literal["operation"] = "operation"
    op: Optional[str] = None


class CountMatcher(BaseModel):
    """Match when a diff summary counter exceeds a threshold."""

    model_config = _CONFIG

    type: Literal["count"] = "count"
    field: str = "totalChanges"
    threshold: Union[int, float] = 0

    @field_validator("field", mode="before")
    @classmethod
    def _default_field(cls, v: Any) -> Any:
        return v or "totalChanges"

    @field_validator("threshold", mode="before")
    @classmethod
    def _default_threshold(cls, v: Any) -> Any:
        return v or 0


Matcher = Annotated[
    Union[JsonPathMatcher, RegexMatcher, OperationMatcher, CountMatcher],
    Field(discriminator="type"),
]

MATCHER_TYPES = frozenset({"jsonpath", "regex", "operation", "count"})


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------
class PolicyRule(BaseModel):
    """
    A single rule inside a policy document.

    Missing or falsy fields fall back to the defaults below; a matcher with a
    missing or unknown ``type`` is dropped and the rule never hits.
    """

    model_config = _CONFIG

    id: str = Field(default="unknown", description="The id of the rule.")
    title: str = Field(default="Unnamed rule")
    category: RuleCategory = Field(default="governance")
    severity: int = Field(default=5, ge=1, le=10)
    auto_block: bool = Field(
        default=False, description="Force review/rejection when violated."
    )
    invert: bool = Field(
        default=False, description="Violation when the matcher finds nothing."
    )
    matcher: Optional[Matcher] = None
    message: Optional[str] = Field(
        default=None, description="Message template with {{key}} placeholders."
    )

    @field_validator("id", "title", "category", mode="before")
    @classmethod
    def _drop_empty(cls, v: Any, info) -> Any:
        if v:
            return v
        return cls.model_fields[info.field_name].default

    @field_validator("severity", mode="before")
    @classmethod
    def _default_severity(cls, v: Any) -> Any:
        return v or 5

    @field_validator("auto_block", "invert", mode="before")
    @classmethod
    def _strict_true(cls, v: Any) -> bool:
        return v is True

    @field_validator("matcher", mode="before")
    @classmethod
    def _known_matcher(cls, v: Any) -> Any:
        if isinstance(v, Mapping) and v.get("type") in MATCHER_TYPES:
            return v
        if isinstance(v, BaseModel):
            return v
        return None


# -----------------------------------------------------------------------------
# Rule documents
# -----------------------------------------------------------------------------
class RuleDocumentShape(str, Enum):
    """The encodings a policy's ``rules`` field may use."""

    LIST = "list"
    WRAPPED = "wrapped"
    SINGLE = "single"
    UNKNOWN = "unknown"


def classify_rule_document(document: Any) -> RuleDocumentShape:
    """
    Classify a rule document.

    - ``[...]``: bare list of rules
    - ``{"rules": [...]}``: wrapped, optionally with a ``version`` key
    - ``{"id": ..., ...}``: a single rule
    """
    if isinstance(document, list):
        return RuleDocumentShape.LIST
    if isinstance(document, Mapping):
        if isinstance(document.get("rules"), list):
            return RuleDocumentShape.WRAPPED
        if document.get("id"):
            return RuleDocumentShape.SINGLE
    return RuleDocumentShape.UNKNOWN


def extract_rules(document: Any) -> List[Any]:
    """Resolve a rule document into its ordered list of raw rule entries."""
    shape = classify_rule_document(document)
    if shape is RuleDocumentShape.LIST:
        return list(document)
    if shape is RuleDocumentShape.WRAPPED:
        return list(document["rules"])
    if shape is RuleDocumentShape.SINGLE:
        return [document]
    return []


# -----------------------------------------------------------------------------
# Policies
# -----------------------------------------------------------------------------
class Policy(BaseModel):
    """
    An organization policy as returned by the governance collaborator.
    """

    model_config = _CONFIG

    id: str = Field(description="The id of the policy.")
    name: str = Field(default="", description="Display name of the policy.")
    description: Optional[str] = None
    is_active: bool = Field(default=True)
    rules: Any = Field(
        default=None,
        description="Raw rule document: list, {rules: [...]} or a single rule.",
    )

    @property
    def raw_rules(self) -> List[Any]:
        return extract_rules(self.rules)

