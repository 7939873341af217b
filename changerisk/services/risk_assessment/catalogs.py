"""
Fixed lookup tables for the formula analyzer.

Read-only at runtime: tuples for catalogs, MappingProxyType for severity tables.
"""

from types import MappingProxyType
from typing import Mapping, NamedTuple


class RiskEntry(NamedTuple):
    severity: str
    description: str


# PowerFx functions that mutate data, call out, or change navigation
POWERAPPS_UNSAFE_FUNCTIONS = (
    "HTTP",
    "Patch",
    "Remove",
    "RemoveIf",
    "Clear",
    "Collect",
    "ClearCollect",
    "UpdateContext",
    "Navigate",
    "Back",
    "Exit",
    "Launch",
    "Param",
)

POWERAPPS_EXTERNAL_CONNECTORS = (
    "Office365",
    "Office365Users",
    "Office365Outlook",
    "SharePoint",
    "OneDrive",
    "Dynamics",
    "SQL",
    "Excel",
    "PowerBI",
)

MENDIX_UNSAFE_ACTIONS = (
    "CallREST",
    "CallWebService",
    "Delete",
    "Create",
    "Change",
    "Commit",
    "Rollback",
    "DeleteObject",
    "ChangeObject",
)

POWERAPPS_FUNCTION_RISKS: Mapping[str, RiskEntry] = MappingProxyType(
    {
        "HTTP": RiskEntry(
            "high", "Makes external HTTP API calls - security and reliability risk"
        ),
        "Patch": RiskEntry("medium", "Modifies data records - ensure proper validation"),
        "Remove": RiskEntry("high", "Deletes data records - irreversible operation"),
        "RemoveIf": RiskEntry(
            "high", "Conditionally deletes data records - verify conditions"
        ),
        "Clear": RiskEntry("medium", "Clears collection or data - ensure intentional"),
        "Collect": RiskEntry("low", "Adds data to collection - monitor memory usage"),
        "ClearCollect": RiskEntry(
            "medium", "Replaces entire collection - verify data loss acceptable"
        ),
        "Navigate": RiskEntry("low", "Changes screen navigation - verify user flow"),
        "Launch": RiskEntry("medium", "Launches external URL or app - verify target"),
    }
)

MENDIX_ACTION_RISKS: Mapping[str, RiskEntry] = MappingProxyType(
    {
        "CallREST": RiskEntry(
            "high", "Makes external REST API call - verify security and error handling"
        ),
        "CallWebService": RiskEntry(
            "high", "Calls external web service - verify security"
        ),
        "Delete": RiskEntry("high", "Deletes entity objects - irreversible operation"),
        "Create": RiskEntry("low", "Creates new entity objects - monitor data growth"),
        "Change": RiskEntry("medium", "Modifies entity objects - ensure validation"),
        "Commit": RiskEntry(
            "medium", "Commits database transaction - ensure data integrity"
        ),
        "Rollback": RiskEntry("medium", "Rolls back transaction - verify error handling"),
    }
)

# URL markers that keep a REST call from counting as external
INTERNAL_URL_MARKERS = ("localhost", "internal.")


def function_risk(name: str) -> RiskEntry:
    return POWERAPPS_FUNCTION_RISKS.get(name) or RiskEntry("medium", f"Uses function: {name}")


def action_risk(name: str) -> RiskEntry:
    return MENDIX_ACTION_RISKS.get(name) or RiskEntry("medium", f"Uses action: {name}")
