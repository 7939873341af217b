"""
Matcher evaluation for policy rules.

One function per matcher variant, selected by the matcher's ``type`` tag.
Each returns the list of evidence items (hits); an empty list means no match.
"""

import json
import re
from typing import Any, Callable, Dict, List, Optional

from changerisk.schemas.change import Change, DiffOperation, DiffSummary
from changerisk.schemas.policy import (
    CountMatcher,
    JsonPathMatcher,
    OperationMatcher,
    RegexMatcher,
)

Evidence = Dict[str, Any]


def to_json(value: Any) -> str:
    """Compact JSON encoding used for value matching."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def match_jsonpath(
    matcher: JsonPathMatcher, change: Change, summary: Optional[DiffSummary]
) -> List[Evidence]:
    """
    Match operation paths against a pattern.

    Patterns containing ``*`` become a case-insensitive regex with ``*`` as
    ``.*``; other patterns are plain substrings. A value pattern, when set,
    is an independent second test against the JSON-encoded value; empty,
    zero and false values are never tested.
    """
    hits: List[Evidence] = []
    pattern = matcher.pattern
    if not pattern:
        return hits

    wildcard = re.compile(pattern.replace("*", ".*"), re.IGNORECASE) if "*" in pattern else None
    value_regex = (
        re.compile(matcher.value_pattern, re.IGNORECASE) if matcher.value_pattern else None
    )

    for op in change.operations:
        if wildcard is not None:
            if wildcard.search(op.path):
                hits.append(op.to_evidence())
        elif pattern in op.path:
            hits.append(op.to_evidence())

        if value_regex is not None and op.value:
            if value_regex.search(to_json(op.value)):
                hits.append(op.to_evidence())

    return hits


def _component_name(change: Change) -> Optional[str]:
    metadata = change.after_metadata
    if not metadata:
        return None
    return metadata.get("componentName") or metadata.get("name") or None


def _select_field(matcher: RegexMatcher, op: DiffOperation, change: Change) -> Optional[str]:
    if matcher.field == "path":
        return op.path
    if matcher.field == "value":
        return to_json(op.value) if op.value else None
    return _component_name(change)


def match_regex(
    matcher: RegexMatcher, change: Change, summary: Optional[DiffSummary]
) -> List[Evidence]:
    """Case-insensitive regex test against the selected field of each operation."""
    hits: List[Evidence] = []
    if not matcher.pattern:
        return hits

    regex = re.compile(matcher.pattern, re.IGNORECASE)
    for op in change.operations:
        test_value = _select_field(matcher, op, change)
        if test_value and regex.search(test_value):
            hits.append(
                {
                    **op.to_evidence(),
                    "matchedField": matcher.field,
                    "matchedValue": test_value,
                }
            )
    return hits


def match_operation(
    matcher: OperationMatcher, change: Change, summary: Optional[DiffSummary]
) -> List[Evidence]:
    if not matcher.op:
        return []
    return [op.to_evidence() for op in change.operations if op.op == matcher.op]


def match_count(
    matcher: CountMatcher, change: Change, summary: Optional[DiffSummary]
) -> List[Evidence]:
    """Hit only when the summary counter is strictly above the threshold."""
    value = (summary.get(matcher.field) if summary else None) or 0
    if value > matcher.threshold:
        return [
            {
                "field": matcher.field,
                "value": value,
                "threshold": matcher.threshold,
                "exceeded": value - matcher.threshold,
            }
        ]
    return []


MATCHER_EVALUATORS: Dict[str, Callable[..., List[Evidence]]] = {
    "jsonpath": match_jsonpath,
    "regex": match_regex,
    "operation": match_operation,
    "count": match_count,
}


def find_hits(matcher: Any, change: Change) -> List[Evidence]:
    """Dispatch to the evaluator registered for the matcher's tag."""
    if matcher is None:
        return []
    return MATCHER_EVALUATORS[matcher.type](matcher, change, change.diff_summary)
