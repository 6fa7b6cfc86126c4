"""Status and media-type predicates given as callables or expression strings.

Expression strings use a tiny language shared with JavaScript-flavoured
configuration files::

    status >= 200 && status < 300
    mediaType === "application/json" || mediaType.includes("+json")

They are translated to a Python expression and evaluated over a whitelisted
subset of the `ast` module, so no arbitrary code ever runs.
"""

from __future__ import annotations

import ast
import operator
import re
from dataclasses import dataclass
from typing import Any, Callable, Final, Mapping

from openapi_tools.shared.errors import ConfigurationError

ExpressionEvaluator = Callable[[str, Mapping[str, Any]], Any]

_STRING_LITERAL_RE: Final[re.Pattern[str]] = re.compile(r"(\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*')")

_JS_OPERATORS: Final[tuple[tuple[str, str], ...]] = (
    (r"===", "=="),
    (r"!==", "!="),
    (r"&&", " and "),
    (r"\|\|", " or "),
    (r"!(?!=)", " not "),
)

_CONSTANTS: Final[dict[str, Any]] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
    "True": True,
    "False": False,
    "None": None,
}

_COMPARE_OPS: Final[dict[type[ast.cmpop], Callable[[Any, Any], bool]]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
}

_BINARY_OPS: Final[dict[type[ast.operator], Callable[[Any, Any], Any]]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
}

_STRING_METHODS: Final[dict[str, Callable[[str, Any], bool]]] = {
    "includes": lambda value, arg: arg in value,
    "startsWith": lambda value, arg: value.startswith(arg),
    "endsWith": lambda value, arg: value.endswith(arg),
}


def translate_expression(expression: str) -> str:
    """Rewrite JavaScript operators to Python ones, leaving string literals intact."""
    parts = _STRING_LITERAL_RE.split(expression)
    for index in range(0, len(parts), 2):
        for pattern, replacement in _JS_OPERATORS:
            parts[index] = re.sub(pattern, replacement, parts[index])
    return "".join(parts).strip()


def _evaluate(node: ast.AST, variables: Mapping[str, Any], source: str) -> Any:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body, variables, source)

    if isinstance(node, ast.Constant):
        return node.value

    if isinstance(node, ast.Name):
        if node.id in variables:
            return variables[node.id]
        if node.id in _CONSTANTS:
            return _CONSTANTS[node.id]
        raise ConfigurationError(f"Unknown name '{node.id}' in expression: {source}")

    if isinstance(node, ast.BoolOp):
        if isinstance(node.op, ast.And):
            return all(_evaluate(value, variables, source) for value in node.values)
        return any(_evaluate(value, variables, source) for value in node.values)

    if isinstance(node, ast.UnaryOp):
        operand = _evaluate(node.operand, variables, source)
        if isinstance(node.op, ast.Not):
            return not operand
        if isinstance(node.op, ast.USub):
            return -operand

    if isinstance(node, ast.Compare):
        left = _evaluate(node.left, variables, source)
        for op, comparator in zip(node.ops, node.comparators):
            compare = _COMPARE_OPS.get(type(op))
            if compare is None:
                break
            right = _evaluate(comparator, variables, source)
            if not compare(left, right):
                return False
            left = right
        else:
            return True

    if isinstance(node, ast.BinOp):
        binary = _BINARY_OPS.get(type(node.op))
        if binary is not None:
            return binary(
                _evaluate(node.left, variables, source),
                _evaluate(node.right, variables, source),
            )

    if (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Attribute)
        and node.func.attr in _STRING_METHODS
        and len(node.args) == 1
        and not node.keywords
    ):
        target = _evaluate(node.func.value, variables, source)
        argument = _evaluate(node.args[0], variables, source)
        return _STRING_METHODS[node.func.attr](str(target), argument)

    raise ConfigurationError(f"Unsupported syntax in expression: {source}")


def evaluate_expression(expression: str, variables: Mapping[str, Any]) -> Any:
    """Evaluate a predicate expression against the given variables.

    Raises:
        ConfigurationError: If the expression cannot be parsed or uses
            anything outside the supported subset.
    """
    translated = translate_expression(expression)
    try:
        tree = ast.parse(translated, mode="eval")
    except SyntaxError as exc:
        raise ConfigurationError(f"Invalid expression '{expression}': {exc.msg}") from exc
    return _evaluate(tree, variables, expression)


@dataclass(frozen=True, slots=True)
class Predicate:
    """Either a callable or an expression string over one named variable."""

    variable: str
    function: Callable[[Any], bool] | None = None
    expression: str | None = None
    evaluator: ExpressionEvaluator = evaluate_expression

    def __post_init__(self) -> None:
        if (self.function is None) == (self.expression is None):
            raise ConfigurationError("A predicate needs exactly one of a function or an expression")

    @classmethod
    def from_option(
        cls,
        option: Predicate | str | Callable[[Any], bool] | None,
        variable: str,
        default: Callable[[Any], bool],
        evaluator: ExpressionEvaluator = evaluate_expression,
    ) -> Predicate:
        if isinstance(option, Predicate):
            return option
        if option is None:
            return cls(variable=variable, function=default)
        if isinstance(option, str):
            return cls(variable=variable, expression=option, evaluator=evaluator)
        if callable(option):
            return cls(variable=variable, function=option)
        raise ConfigurationError(f"Invalid predicate for '{variable}': {option!r}")

    def __call__(self, value: Any) -> bool:
        if self.function is not None:
            return bool(self.function(value))
        return bool(self.evaluator(self.expression or "", {self.variable: value}))


def is_success_status(status: int) -> bool:
    return 200 <= status < 300


def is_not_success_status(status: int) -> bool:
    return not is_success_status(status)


def is_json_media_type(media_type: str) -> bool:
    return media_type == "application/json"
