"""Translation of filter comparison operators to SQL."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from .context import FilterEncoding, element_children, local_name
from .errors import FilterError, FilterErrorCode
from .expression import expression, property_name

_BINARY_OPERATORS = {
    "PropertyIsEqualTo": " = ",
    "PropertyIsNotEqualTo": " != ",
    "PropertyIsLessThan": " < ",
    "PropertyIsGreaterThan": " > ",
    "PropertyIsLessThanOrEqualTo": " <= ",
    "PropertyIsGreaterThanOrEqualTo": " >= ",
}

_EQUALITY_OPERATORS = frozenset({"PropertyIsEqualTo", "PropertyIsNotEqualTo"})

_BOOLEAN_LITERALS = {"'1'": "'t'", "'0'": "'f'"}

COMPARISON_OPERATORS = frozenset(
    set(_BINARY_OPERATORS) | {"PropertyIsLike", "PropertyIsNull", "PropertyIsBetween"}
)


def is_comparison_op(name: str) -> bool:
    """Tell whether an element name is a comparison operator (case sensitive)."""
    return name in COMPARISON_OPERATORS


def _case_sensitive(node: ET.Element) -> bool:
    """Comparisons are case sensitive unless matchCase is explicitly 'false'."""
    return node.get("matchCase") != "false"


def _operands(node: ET.Element, count: int) -> list[ET.Element]:
    operands = element_children(node)
    if len(operands) < count:
        raise FilterError(FilterErrorCode.FILTER)
    return operands


def _unwrap(sql: str) -> str:
    """Strip the brackets or quotation marks surrounding an operand."""
    if sql.startswith("("):
        if len(sql) < 3:
            raise FilterError(FilterErrorCode.FILTER)
        return sql[2:-2]
    if not sql:
        raise FilterError(FilterErrorCode.FILTER)
    return sql[1:-1]


def _lower(sql: str, sensitive: bool) -> str:
    return sql if sensitive else f"lower({sql})"


def _binary_comparison(fe: FilterEncoding, node: ET.Element, name: str) -> str:
    sensitive = _case_sensitive(node)
    left_node, right_node = _operands(node, 2)[:2]

    left = expression(fe, left_node)
    is_bool = False
    if name in _EQUALITY_OPERATORS:
        column = _unwrap(left)
        is_bool = fe.catalog.column_type(fe.layer(), column) == "bool"

    right = expression(fe, right_node)
    if is_bool:
        # Boolean columns receive '1'/'0' from XML; anything else is dropped.
        right = _BOOLEAN_LITERALS.get(right, "")

    return f"{_lower(left, sensitive)}{_BINARY_OPERATORS[name]}{_lower(right, sensitive)}"


def _property_is_like(fe: FilterEncoding, node: ET.Element) -> str:
    wildcard = node.get("wildCard")
    single_char = node.get("singleChar")
    escape = node.get("escape" if fe.version == 100 else "escapeChar")
    sensitive = _case_sensitive(node)

    prop_node, literal_node = _operands(node, 2)[:2]

    column = property_name(fe, prop_node, False, True)
    cast = f' CAST("{column}" AS varchar)'

    if wildcard is None or single_char is None or escape is None:
        raise FilterError(FilterErrorCode.FILTER)

    pattern = "".join(literal_node.itertext())
    if escape:
        pattern = pattern.replace(escape, "\\\\")
    if wildcard:
        pattern = pattern.replace(wildcard, "%")
    if single_char:
        pattern = pattern.replace(single_char, "_")

    literal = f"'{fe.catalog.escape_string(pattern)}'"
    if sensitive:
        return f"{cast} LIKE E{literal}"
    return f"LOWER({cast}) LIKE LOWER(E{literal})"


def _property_is_null(fe: FilterEncoding, node: ET.Element) -> str:
    prop_node = _operands(node, 1)[0]
    return f'"{property_name(fe, prop_node, False, True)}" isnull'


def _boundary(fe: FilterEncoding, boundary: ET.Element) -> str:
    children = element_children(boundary)
    return expression(fe, children[0] if children else None)


def _property_is_between(fe: FilterEncoding, node: ET.Element) -> str:
    value_node, lower_node, upper_node = _operands(node, 3)[:3]
    value = expression(fe, value_node)
    lower = _boundary(fe, lower_node)
    upper = _boundary(fe, upper_node)
    return f"{value} Between {lower} And {upper}"


def comparison_op(fe: FilterEncoding, node: ET.Element) -> str:
    """Translate a comparison element, append the SQL to ``fe.sql`` and return it.

    Raises FilterError when the element is not a comparison operator or
    cannot be translated.
    """
    name = local_name(node)
    if name in _BINARY_OPERATORS:
        sql = _binary_comparison(fe, node, name)
    elif name == "PropertyIsLike":
        sql = _property_is_like(fe, node)
    elif name == "PropertyIsNull":
        sql = _property_is_null(fe, node)
    elif name == "PropertyIsBetween":
        sql = _property_is_between(fe, node)
    else:
        raise FilterError(FilterErrorCode.FILTER)
    fe.sql += sql
    return sql