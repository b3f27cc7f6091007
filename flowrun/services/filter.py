"""Condition evaluation for filter actions and branch paths."""

from __future__ import annotations

from typing import Any, Callable, Dict


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _contains(target: Any, value: Any) -> bool:
    if target is None:
        return False
    if isinstance(target, (list, tuple, dict)):
        return value in target
    return str(value) in str(target)


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "exists": lambda target, _: target is not None,
    "does-not-exist": lambda target, _: target is None,
    "equals": lambda target, value: target == value,
    "does-not-equal": lambda target, value: target != value,
    "contains": _contains,
    "does-not-contain": lambda target, value: not _contains(target, value),
    "starts-with": lambda target, value: str(target or "").startswith(str(value)),
    "ends-with": lambda target, value: str(target or "").endswith(str(value)),
    "is-true": lambda target, _: target is True or target == "true",
    "is-false": lambda target, _: target is False or target == "false",
    "is-empty": lambda target, _: _is_empty(target),
    "is-not-empty": lambda target, _: not _is_empty(target),
    "greater-than": lambda target, value: float(target) > float(value),
    "less-than": lambda target, value: float(target) < float(value),
}


class ConditionFilter:
    """Evaluate a condition set whose targets are already template-filled.

    A condition set is either ``{"and": [...]}``, ``{"or": [...]}`` or a leaf
    ``{"target": ..., "operator": ..., "value": ...}``; sets nest freely.
    """

    def evaluate(self, conditions: Dict[str, Any]) -> Dict[str, Any]:
        return {"can_continue": self._check(conditions)}

    def _check(self, condition: Dict[str, Any]) -> bool:
        if "and" in condition:
            return all(self._check(c) for c in condition["and"])
        if "or" in condition:
            return any(self._check(c) for c in condition["or"])
        operator = condition.get("operator")
        if operator not in OPERATORS:
            raise ValueError(f"Unknown filter operator: {operator}")
        return OPERATORS[operator](condition.get("target"), condition.get("value"))
