"""
Change and diff models consumed by the risk engine.

Produced by the diff/change-detection collaborator; the engine only reads them.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DiffOperation(BaseModel):
    """
    One atomic JSON-patch style edit applied to an application document.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    op: Literal["add", "remove", "replace", "move", "copy", "test"] = Field(
        description="The operation code."
    )
    path: str = Field(description="JSON pointer of the edited node.")
    value: Any = Field(default=None, description="The new value, if any.")
    old_value: Any = Field(
        default=None, description="The previous value for remove/replace."
    )
    category: Optional[str] = Field(
        default=None, description="Top-level path segment, e.g. 'screens'."
    )
    impact: Optional[Literal["low", "medium", "high", "critical"]] = Field(
        default=None, description="Impact tag assigned by the diff collaborator."
    )

    def to_evidence(self) -> Dict[str, Any]:
        """Render-safe dict used as violation evidence."""
        return self.model_dump(by_alias=True, exclude_none=True)


class DiffSummary(BaseModel):
    """
    Summary of a structured diff.

    Unknown keys are kept so that count matchers can address any field by name.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    operations: List[DiffOperation] = Field(default_factory=list)
    added: int = Field(default=0, description="Number of added nodes.")
    removed: int = Field(default=0, description="Number of removed nodes.")
    modified: int = Field(default=0, description="Number of replaced nodes.")
    total_changes: int = Field(default=0, description="Total operation count.")

    def get(self, field: str, default: Any = None) -> Any:
        """
        Look up a summary field by its wire name (``totalChanges``) or its
        attribute name (``total_changes``).
        """
        for name, info in type(self).model_fields.items():
            if name != "operations" and field in (name, info.alias):
                return getattr(self, name)
        return (self.model_extra or {}).get(field, default)


class Change(BaseModel):
    """
    A proposed modification to a managed application.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(description="The id of the change.")
    organization_id: Optional[str] = Field(
        default=None, description="Owning organization."
    )
    platform: Optional[str] = Field(
        default=None, description="Source platform of the app, e.g. 'powerapps'."
    )
    diff_summary: Optional[DiffSummary] = Field(
        default=None, description="Diff between before and after snapshots."
    )
    before_metadata: Optional[Dict[str, Any]] = Field(default=None)
    after_metadata: Optional[Dict[str, Any]] = Field(default=None)
    before_code: Optional[str] = Field(
        default=None, description="Formula or microflow source before the change."
    )
    after_code: Optional[str] = Field(
        default=None, description="Formula or microflow source after the change."
    )

    @property
    def operations(self) -> List[DiffOperation]:
        return self.diff_summary.operations if self.diff_summary else []
