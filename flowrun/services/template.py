"""Template binding of action parameters with Jinja2."""

from __future__ import annotations

import re
from typing import Any, Dict

from jinja2 import ChainableUndefined
from jinja2.sandbox import SandboxedEnvironment

_SINGLE_EXPRESSION = re.compile(r"^\s*\{\{\s*(.+?)\s*\}\}\s*$", re.DOTALL)


class JinjaTemplateFiller:
    """Resolve ``{{ trigger.body.name }}`` style bindings.

    A string made of a single expression evaluates to the native value it
    references (dicts, lists and numbers keep their type) and missing
    references resolve to ``None``; any other string containing bindings
    renders to text. Dicts and lists are filled recursively, other values
    are returned untouched.
    """

    def __init__(self, environment: SandboxedEnvironment | None = None) -> None:
        self._env = environment or SandboxedEnvironment(undefined=ChainableUndefined)

    def fill(self, params: Any, context: Dict[str, Any]) -> Any:
        if isinstance(params, dict):
            return {key: self.fill(value, context) for key, value in params.items()}
        if isinstance(params, list):
            return [self.fill(value, context) for value in params]
        if isinstance(params, str) and "{{" in params:
            return self._fill_string(params, context)
        return params

    def _fill_string(self, template: str, context: Dict[str, Any]) -> Any:
        match = _SINGLE_EXPRESSION.match(template)
        if match and "{{" not in match.group(1):
            expression = self._env.compile_expression(match.group(1))
            return expression(**context)
        return self._env.from_string(template).render(**context)
