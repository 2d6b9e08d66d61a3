"""Evaluation of the Terraform expression subset used by the lab.

Supported forms: integer, boolean and string literals, list literals,
``count.index``, ``var.<name>`` and ``local.<name>`` references with
``[...]`` subscripts or ``.attr`` access, ``${...}`` string interpolation and
the built-in functions defined on ``tf_function_handlers``.
"""

import re
from typing import Any, Dict, List, Optional

from modules.exceptions import ExpressionError, VariableResolutionError
from modules.utils.string_utils import find_closing, split_top_level, strip_interpolation

FUNCTION_CALL = re.compile(r"^([a-z_][a-z0-9_]*)\(")
IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*(\.[A-Za-z_][A-Za-z0-9_\-]*)*")
INTEGER = re.compile(r"^-?\d+$")
UNKNOWN = "(known after apply)"


def evaluate(expr: str, tfdata: Dict[str, Any], index: Optional[int] = None) -> Any:
    """Evaluate a bare Terraform expression.

    Args:
        expr: Expression without ``${}`` wrapper, e.g. ``length(var.user_names)``
        tfdata: Parsed data holding ``variable_values`` and ``local_values``
        index: Value of ``count.index``; None outside counted resources

    Returns:
        The Python value of the expression

    Raises:
        ExpressionError: For unsupported syntax, functions or bad indexes
        VariableResolutionError: For variables without a value
    """
    expr = str(expr).strip()
    if not expr:
        raise ExpressionError("Empty expression")

    if expr.startswith("${"):
        return evaluate_template(expr, tfdata, index)

    match = FUNCTION_CALL.match(expr)
    if match and find_closing(expr, match.end() - 1) == len(expr) - 1:
        name = match.group(1)
        handler = getattr(tf_function_handlers, name, None)
        if handler is None or name.startswith("_"):
            raise ExpressionError(
                "Call to unsupported function", context={"function": name}
            )
        args = [
            evaluate(arg, tfdata, index)
            for arg in split_top_level(expr[match.end() : -1])
        ]
        return handler(*args)

    if expr.startswith("[") and find_closing(expr, 0) == len(expr) - 1:
        return [evaluate(item, tfdata, index) for item in split_top_level(expr[1:-1])]

    if expr.startswith('"') and expr.endswith('"') and len(expr) >= 2:
        return evaluate_template(expr[1:-1], tfdata, index)

    if INTEGER.match(expr):
        return int(expr)
    if expr in ("true", "false"):
        return expr == "true"
    if expr == "null":
        return None

    return resolve_reference(expr, tfdata, index)


def evaluate_template(
    text: Any, tfdata: Dict[str, Any], index: Optional[int] = None
) -> Any:
    """Evaluate a string that may contain ``${...}`` interpolations.

    A value consisting of exactly one interpolation keeps the type of the
    expression ("${length(var.x)}" gives an int). Otherwise each
    interpolation is rendered into the surrounding text.
    """
    if isinstance(text, list):
        return [evaluate_template(item, tfdata, index) for item in text]
    if isinstance(text, dict):
        return {k: evaluate_template(v, tfdata, index) for k, v in text.items()}
    if not isinstance(text, str) or "${" not in text:
        return text

    inner = strip_interpolation(text)
    if inner != text.strip():
        return evaluate(inner, tfdata, index)

    rendered = ""
    position = 0
    while True:
        start = text.find("${", position)
        if start == -1:
            rendered += text[position:]
            break
        end = find_closing(text, start + 1)
        if end == -1:
            raise ExpressionError(
                "Unterminated template interpolation", context={"value": text}
            )
        rendered += text[position:start]
        value = evaluate(text[start + 2 : end], tfdata, index)
        rendered += tf_function_handlers.tostring(value)
        position = end + 1
    return rendered


def split_subscripts(expr: str) -> List[str]:
    """Split ``var.x[count.index][0]`` into its trailing subscript bodies."""
    head = IDENTIFIER.match(expr)
    rest = expr[head.end() :] if head else expr
    subscripts = []
    while rest:
        if not rest.startswith("["):
            raise ExpressionError("Unsupported expression", context={"expression": expr})
        end = find_closing(rest, 0)
        if end == -1:
            raise ExpressionError(
                "Invalid access path: missing closing bracket",
                context={"expression": expr},
            )
        subscripts.append(rest[1:end])
        rest = rest[end + 1 :]
    return subscripts


def resolve_reference(expr: str, tfdata: Dict[str, Any], index: Optional[int]) -> Any:
    head = IDENTIFIER.match(expr)
    if not head:
        raise ExpressionError("Unsupported expression", context={"expression": expr})
    parts = head.group(0).split(".")
    if parts[0] == "data" or (parts[0] not in ("var", "local") and "_" in parts[0]):
        # Attributes of other resources and data sources come from the engine
        return UNKNOWN
    subscripts = split_subscripts(expr)

    if parts == ["count", "index"]:
        if index is None:
            raise ExpressionError(
                "count.index is only valid in resources that set count",
                context={"expression": expr},
            )
        value: Any = index
    elif parts[0] == "var" and len(parts) >= 2:
        value = lookup_variable(parts[1], tfdata)
        value = access_attributes(value, parts[2:], expr)
    elif parts[0] == "local" and len(parts) >= 2:
        value = lookup_local(parts[1], tfdata)
        value = access_attributes(value, parts[2:], expr)
    else:
        raise ExpressionError("Unsupported reference", context={"expression": expr})

    for subscript in subscripts:
        key = evaluate(subscript, tfdata, index)
        value = subscript_value(value, key, expr)
    return value


def lookup_variable(name: str, tfdata: Dict[str, Any]) -> Any:
    if name not in tfdata.get("variable_types", {}):
        raise VariableResolutionError(
            "Reference to undeclared input variable", context={"variable": name}
        )
    values = tfdata.get("variable_values", {})
    if name not in values:
        raise VariableResolutionError(
            "No value for required variable",
            context={"variable": name},
        )
    return values[name]


def lookup_local(name: str, tfdata: Dict[str, Any]) -> Any:
    local_values = tfdata.get("local_values", {})
    if name not in local_values:
        raise ExpressionError(
            "Reference to undeclared local value", context={"local": name}
        )
    return evaluate_template(local_values[name], tfdata)


def access_attributes(value: Any, attributes: List[str], expr: str) -> Any:
    for attr in attributes:
        if not isinstance(value, dict) or attr not in value:
            raise ExpressionError(
                "Unsupported attribute", context={"expression": expr, "attribute": attr}
            )
        value = value[attr]
    return value


def subscript_value(value: Any, key: Any, expr: str) -> Any:
    if isinstance(value, list):
        if not isinstance(key, int) or isinstance(key, bool):
            raise ExpressionError(
                "List index must be a whole number",
                context={"expression": expr, "index": key},
            )
        if key < 0 or key >= len(value):
            raise ExpressionError(
                "Invalid index",
                context={"expression": expr, "index": key, "length": len(value)},
            )
        return value[key]
    if isinstance(value, dict):
        if str(key) not in value:
            raise ExpressionError(
                "Invalid index", context={"expression": expr, "key": key}
            )
        return value[str(key)]
    raise ExpressionError(
        "Cannot index a non-collection value", context={"expression": expr}
    )


class tf_function_handlers:
    """Terraform built-in functions, called with already evaluated arguments."""

    @staticmethod
    def length(value):
        if isinstance(value, (list, dict, str)):
            return len(value)
        raise ExpressionError(
            "Invalid function argument: length() needs a collection or string",
            context={"value": value},
        )

    @staticmethod
    def element(values, position):
        if not isinstance(values, list) or not values:
            raise ExpressionError(
                "Invalid function argument: element() needs a non-empty list",
                context={"value": values},
            )
        return values[int(position) % len(values)]

    @staticmethod
    def concat(*lists):
        final_list = []
        for item in lists:
            final_list.extend(item)
        return final_list

    @staticmethod
    def distinct(values):
        return list(dict.fromkeys(values))

    @staticmethod
    def join(separator, values):
        return separator.join(tf_function_handlers.tostring(v) for v in values)

    @staticmethod
    def upper(value):
        return str(value).upper()

    @staticmethod
    def lower(value):
        return str(value).lower()

    @staticmethod
    def tostring(value):
        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return ""
        return str(value)

    @staticmethod
    def tonumber(value):
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ExpressionError(
                "Invalid function argument: cannot convert to number",
                context={"value": value},
            )
