"""Translation of filter logical operators (And, Or, Not) to SQL."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from .comparison import comparison_op, is_comparison_op
from .context import FilterEncoding, element_children, first_element, local_name
from .errors import FilterError, FilterErrorCode
from .spatial import is_spatial_op, spatial_op

LOGICAL_OPERATORS = frozenset({"And", "Or", "Not"})


def is_logical_op(name: str) -> bool:
    """Tell whether an element name is a logical operator (case sensitive)."""
    return name in LOGICAL_OPERATORS


def _dispatch(fe: FilterEncoding, node: ET.Element) -> None:
    """Translate one operand; elements that are not operators are ignored."""
    name = local_name(node)
    if is_logical_op(name):
        logical_op(fe, node)
    elif is_spatial_op(name):
        spatial_op(fe, node)
    elif is_comparison_op(name):
        comparison_op(fe, node)


def _separator(fe: FilterEncoding, name: str) -> str:
    # Inside a Not the boolean operators are swapped.
    if name == "And":
        return " OR " if fe.in_not else " AND "
    return " AND " if fe.in_not else " OR "


def _binary_logical_op(fe: FilterEncoding, node: ET.Element, name: str) -> None:
    operands = element_children(node)
    if not operands:
        raise FilterError(FilterErrorCode.FILTER)
    fe.sql += "("
    _dispatch(fe, operands[0])
    for operand in operands[1:]:
        fe.sql += _separator(fe, name)
        _dispatch(fe, operand)
    fe.sql += ")"


def _unary_logical_op(fe: FilterEncoding, node: ET.Element) -> None:
    operand = first_element(node)
    fe.sql += "not("
    fe.in_not = True
    try:
        _dispatch(fe, operand)
    finally:
        fe.in_not = False
    fe.sql += ")"


def logical_op(fe: FilterEncoding, node: ET.Element) -> str:
    """Translate an And, Or or Not element, append the SQL to ``fe.sql`` and return it.

    Raises FilterError when the element is not a logical operator.
    """
    name = local_name(node)
    start = len(fe.sql)
    if name in ("And", "Or"):
        _binary_logical_op(fe, node, name)
    elif name == "Not":
        _unary_logical_op(fe, node)
    else:
        raise FilterError(FilterErrorCode.FILTER)
    return fe.sql[start:]