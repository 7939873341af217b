"""Message template interpolation over generic key-value trees."""

import json
import re
from typing import Any, Mapping, Sequence

_PLACEHOLDER = re.compile(r"\{\{([^}]+)\}\}")
_MISSING = object()


def resolve_path(tree: Any, keys: Sequence[str]) -> Any:
    """
    Walk ``keys`` down a tree of mappings and sequences.

    Returns a sentinel (see ``is_missing``) when any step does not resolve.
    """
    if not keys:
        return tree
    head, rest = keys[0], keys[1:]
    if isinstance(tree, Mapping):
        child = tree.get(head, _MISSING)
    elif isinstance(tree, Sequence) and not isinstance(tree, str) and head.isdigit():
        index = int(head)
        child = tree[index] if index < len(tree) else _MISSING
    else:
        return _MISSING
    if child is _MISSING:
        return _MISSING
    return resolve_path(child, rest)


def is_missing(value: Any) -> bool:
    return value is _MISSING


def to_text(value: Any) -> str:
    """Render a value the way it should appear inside a message."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


def interpolate(template: str, context: Any) -> str:
    """
    Replace ``{{key}}`` and ``{{nested.key}}`` placeholders from ``context``.

    Placeholders that do not resolve, or resolve to None or an empty string,
    are left verbatim.
    """

    def _replace(match: re.Match) -> str:
        value = resolve_path(context, match.group(1).split("."))
        if is_missing(value) or value is None:
            return match.group(0)
        return to_text(value) or match.group(0)

    return _PLACEHOLDER.sub(_replace, template)
