"""Filter capabilities documents advertised by the service."""

from __future__ import annotations

import re

FUNCTIONS = (
    "abs", "acos", "asin", "atan", "avg", "cbrt", "ceil", "ceiling", "cos",
    "cot", "count", "degrees", "exp", "floor", "length", "ln", "log", "min",
    "max", "radians", "round", "sin", "sqrt", "tan", "trunc",
)

_SPATIAL_OPERATORS_110 = (
    "Disjoint", "Equals", "DWithin", "Beyond", "Intersects", "Touches",
    "Crosses", "Within", "Contains", "Overlaps", "BBOX",
)

_SPATIAL_OPERATORS_100 = (
    "Disjoint", "Equals", "DWithin", "Beyond", "Intersect", "Touches",
    "Crosses", "Within", "Contains", "Overlaps", "BBOX",
)

_COMPARISON_OPERATORS_110 = (
    "EqualTo", "NotEqualTo", "LessThan", "GreaterThan", "LessThanEqualTo",
    "GreaterThanEqualTo", "Between", "Like", "NullCheck",
)


def _version_number(version: int | str) -> int:
    """Turn a dotted version such as '2.0.1' into 201; integers pass through."""
    if isinstance(version, int):
        return version
    digits = []
    for part in str(version).split(".")[:3]:
        match = re.match(r"\d+", part)
        digits.append(int(match.group()) if match else 0)
    digits += [0] * (3 - len(digits))
    major, minor, release = digits
    return major * 100 + minor * 10 + release


def functions_capabilities(version: int | str) -> str:
    """Describe the functions supported in filters."""
    tag = "Function_Name" if _version_number(version) == 100 else "FunctionName"
    lines = ["   <ogc:Functions>\n", f"    <ogc:{tag}s>\n"]
    lines += [f"     <ogc:{tag} nArgs='1'>{name}</ogc:{tag}>\n" for name in FUNCTIONS]
    lines += [f"    </ogc:{tag}s>\n", "   </ogc:Functions>\n"]
    return "".join(lines)


def filter_capabilities_100() -> str:
    """Filter capabilities for Filter Encoding 1.0.0."""
    parts = [
        "<ogc:Filter_Capabilities>\n",
        " <ogc:Spatial_Capabilities>\n",
        "  <ogc:Spatial_Operators>\n",
    ]
    parts += [f"   <ogc:{name}/>\n" for name in _SPATIAL_OPERATORS_100]
    parts += [
        "  </ogc:Spatial_Operators>\n",
        " </ogc:Spatial_Capabilities>\n",
        " <ogc:Scalar_Capabilities>\n",
        "  <ogc:Logical_Operators/>\n",
        "  <ogc:Comparison_Operators>\n",
        "   <ogc:Simple_Comparisons/>\n",
        "   <ogc:Between/>\n",
        "   <ogc:Like/>\n",
        "   <ogc:NullCheck/>\n",
        "  </ogc:Comparison_Operators>\n",
        "  <ogc:Arithmetic_Operators>\n",
        "   <ogc:Simple_Arithmetic/>\n",
        functions_capabilities(100),
        "  </ogc:Arithmetic_Operators>\n",
        " </ogc:Scalar_Capabilities>\n",
        "</ogc:Filter_Capabilities>\n",
    ]
    return "".join(parts)


def filter_capabilities_110(postgis_version: int | str) -> str:
    """Filter capabilities for Filter Encoding 1.1.0.

    Triangle, PolyhedralSurface and Tin operands need PostGIS 2.0 or later.
    """
    operands = ["gml:Envelope", "gml:Point", "gml:LineString", "gml:Polygon"]
    if _version_number(postgis_version) >= 200:
        operands += ["gml:Triangle", "gml:PolyhedralSurface", "gml:Tin"]

    parts = [
        "<ogc:Filter_Capabilities>\n",
        " <ogc:Spatial_Capabilities>\n",
        "  <ogc:GeometryOperands>\n",
    ]
    parts += [
        f"   <ogc:GeometryOperand>{operand}</ogc:GeometryOperand>\n" for operand in operands
    ]
    parts += ["  </ogc:GeometryOperands>\n", "  <ogc:SpatialOperators>\n"]
    parts += [
        f"  <ogc:SpatialOperator name='{name}'/>\n" for name in _SPATIAL_OPERATORS_110
    ]
    parts += [
        " </ogc:SpatialOperators>\n",
        " </ogc:Spatial_Capabilities>\n",
        " <ogc:Scalar_Capabilities>\n",
        "  <ogc:LogicalOperators/>\n",
        "  <ogc:ComparisonOperators>\n",
    ]
    parts += [
        f"   <ogc:ComparisonOperator>{name}</ogc:ComparisonOperator>\n"
        for name in _COMPARISON_OPERATORS_110
    ]
    parts += [
        "  </ogc:ComparisonOperators>\n",
        "  <ogc:ArithmeticOperators>\n",
        "   <ogc:SimpleArithmetic/>\n",
        functions_capabilities(110),
        "  </ogc:ArithmeticOperators>\n",
        " </ogc:Scalar_Capabilities>\n",
        " <ogc:Id_Capabilities>\n",
        "  <ogc:EID/>\n",
        "  <ogc:FID/>\n",
        " </ogc:Id_Capabilities>\n",
        "</ogc:Filter_Capabilities>\n",
    ]
    return "".join(parts)