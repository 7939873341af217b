"""
Rule document validation for policy authoring.

Reports every problem the evaluator would silently skip at assessment time.
"""

import re
from typing import Any, List, Mapping

from pydantic import ValidationError

from changerisk.schemas.policy import (
    MATCHER_TYPES,
    PolicyRule,
    RuleDocumentShape,
    classify_rule_document,
    extract_rules,
)


def validate_rule_document(document: Any) -> List[str]:
    """
    Validate a policy rule document.

    Args:
        document: A list of rules, a {rules: [...]} mapping or a single rule.

    Returns:
        Human-readable problems, empty when the document is clean.
    """
    if classify_rule_document(document) is RuleDocumentShape.UNKNOWN:
        return ["Rule document must be a list, a {rules: [...]} mapping or a rule with an id"]

    problems: List[str] = []
    for index, entry in enumerate(extract_rules(document)):
        label = f"rules[{index}]"
        if not isinstance(entry, Mapping):
            problems.append(f"{label}: rule must be a mapping")
            continue
        if entry.get("id"):
            label = f"{label} ({entry['id']})"

        matcher = entry.get("matcher")
        if not isinstance(matcher, Mapping) or not matcher.get("type"):
            problems.append(f"{label}: matcher type is missing")
        elif matcher["type"] not in MATCHER_TYPES:
            problems.append(f"{label}: unknown matcher type '{matcher['type']}'")
        else:
            problems.extend(_check_patterns(label, matcher))

        try:
            PolicyRule.model_validate(entry)
        except ValidationError as e:
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"])
                problems.append(f"{label}: {location}: {error['msg']}")

    return problems


def _check_patterns(label: str, matcher: Mapping) -> List[str]:
    problems = []
    for key in ("pattern", "valuePattern", "value_pattern"):
        pattern = matcher.get(key)
        if pattern is None or (matcher["type"] == "jsonpath" and key == "pattern"):
            continue
        try:
            re.compile(pattern)
        except (re.error, TypeError) as e:
            problems.append(f"{label}: invalid {key} '{pattern}': {e}")
    return problems
