"""Translation of filter expressions (properties, literals, arithmetic, functions) to SQL."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET

from .context import FilterEncoding, element_children, first_element, local_name
from .errors import FilterError, FilterErrorCode

_ARITHMETIC = {"Add": " + ", "Sub": " - ", "Mul": " * ", "Div": " / "}

_SCALAR_FUNCTIONS = {
    "abs": "abs",
    "acos": "acos",
    "asin": "asin",
    "atan": "atan",
    "cbrt": "cbrt",
    "ceil": "ceil",
    "ceiling": "ceil",
    "cos": "cos",
    "cot": "cot",
    "degrees": "degrees",
    "exp": "exp",
    "floor": "floor",
    "length": "length",
    "ln": "ln",
    "log": "log",
    "radians": "radians",
    "round": "round",
    "sin": "sin",
    "sqrt": "sqrt",
    "tan": "tan",
    "trunc": "trunc",
}

_AGGREGATE_FUNCTIONS = {
    "avg": "avg",
    "count": "count",
    "min": "Min",
    "max": "Max",
}

_LEADING_INT = re.compile(r"\s*[+-]?\d+")


def _text(node: ET.Element) -> str:
    return "".join(node.itertext())


def _has_child_nodes(node: ET.Element) -> bool:
    return len(node) > 0 or bool(node.text)


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group()) if match else 0


def _literal(fe: FilterEncoding, node: ET.Element) -> str:
    escaped = fe.catalog.escape_string(_text(node))
    return escaped if fe.is_numeric else f"'{escaped}'"


def _operation(fe: FilterEncoding, node: ET.Element, operator: str) -> str:
    operands = element_children(node)
    if not operands:
        return ""
    left = operands[0]
    right = operands[1] if len(operands) > 1 else None

    opened = _has_child_nodes(left) or (right is not None and _has_child_nodes(right))
    parts = ["(" if opened else "", expression(fe, left), operator]
    if right is not None:
        parts.append(expression(fe, right))
    if opened:
        parts.append(")")
    return "".join(parts)


def expression(fe: FilterEncoding, node: ET.Element | None) -> str:
    """Return the SQL for an expression element; an empty string for None."""
    if node is None:
        return ""
    name = local_name(node)
    if name == "Function":
        return function(fe, node)
    if name == "PropertyName":
        return f'"{property_name(fe, node, False, True)}"'
    if name == "Literal":
        return _literal(fe, node)
    return _operation(fe, node, _ARITHMETIC.get(name, ""))


def function(fe: FilterEncoding, node: ET.Element) -> str:
    """Return the SQL call for a filter Function element."""
    name = node.get("name")
    if name in _SCALAR_FUNCTIONS:
        argument = expression(fe, first_element(node))
        return f"{_SCALAR_FUNCTIONS[name]}({argument})"
    if name in _AGGREGATE_FUNCTIONS:
        argument = expression(fe, first_element(node))
        return f"(SELECT {_AGGREGATE_FUNCTIONS[name]}({argument}) from {fe.typename})"
    raise FilterError(FilterErrorCode.FUNCTION)


def xpath_property_name(fe: FilterEncoding, prop: str) -> str:
    """Resolve an XPath positional property such as '*[2]' to a column name."""
    if re.search(r"\*\[position", prop):
        prop = prop[len("*[position()="):]
    else:
        prop = prop[len("*["):]
    prop = prop[:-1]
    return fe.catalog.column_name(fe.layer(), _atoi(prop))


def _strip_namespace_prefix(name: str) -> str:
    return name.rsplit(":", 1)[-1]


def property_name(
    fe: FilterEncoding,
    node: ET.Element,
    check_geom_column: bool,
    mandatory: bool,
) -> str:
    """Return the column a PropertyName refers to, validated against the layer.

    A missing property is an error when mandatory, otherwise an empty string.
    Records on ``fe`` whether the column holds numbers.
    """
    layer = fe.layer()
    table = fe.catalog.describe_table(layer)

    name = _text(node).strip()
    if re.search(r"\*\[", name):
        name = xpath_property_name(fe, name)
    if re.search(r".*\[[0-9]+\]", name):
        name = name.split("[", 1)[0]
    name = _strip_namespace_prefix(name)

    found = name in table
    if found:
        fe.is_numeric = fe.catalog.is_numeric_type(table[name]) or name == "intProperty"

    if mandatory:
        if check_geom_column and not fe.catalog.is_geometry_column(layer, name):
            raise FilterError(FilterErrorCode.GEOM_PROPERTYNAME)
        if not found:
            raise FilterError(FilterErrorCode.PROPERTYNAME)

    return name if found else ""