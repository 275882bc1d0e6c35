"""Translation of filter spatial operators (geometry predicates, distances, BBOX) to SQL."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET

from .context import Bbox, FilterEncoding, element_children, first_element, local_name
from .errors import FilterError, FilterErrorCode
from .expression import property_name

_SPATIAL_FUNCTIONS = {
    "Equals": "ST_Equals",
    "Disjoint": "ST_Disjoint",
    "Touches": "ST_Touches",
    "Within": "ST_Within",
    "Overlaps": "ST_Overlaps",
    "Crosses": "ST_Crosses",
    "Intersects": "ST_Intersects",
    "Contains": "ST_Contains",
}

_DISTANCE_OPERATORS = {"Beyond": " > ", "DWithin": " < "}

SPATIAL_OPERATORS = frozenset(
    set(_SPATIAL_FUNCTIONS) | set(_DISTANCE_OPERATORS) | {"BBOX"}
)

_ENVELOPES = frozenset({"Box", "Envelope"})

_METER_UNITS = frozenset({"meters", "#metre"})
_KILOMETER_UNITS = frozenset({"kilometers", "#kilometre"})

_NUMBER = r"[-]?[0-9]+([.][0-9]+)?([eE][-]?[0-9]+)?"
_CORNER = re.compile(f"{_NUMBER} {_NUMBER}")
_GML2_BOX = re.compile(f"{_NUMBER},{_NUMBER}[ ]{_NUMBER},{_NUMBER}")
_GML2_FIRST_COMMA = re.compile(r"^[0-9.-]+,")
_LEADING_FLOAT = re.compile(r"\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")
_GML2_SWAP = str.maketrans({" ": ",", ",": " "})


def is_spatial_op(name: str) -> bool:
    """Tell whether an element name is a spatial operator (case sensitive)."""
    return name in SPATIAL_OPERATORS


def _text(node: ET.Element) -> str:
    return "".join(node.itertext())


def _atof(text: str) -> float:
    match = _LEADING_FLOAT.match(text)
    return float(match.group()) if match else 0.0


def _format_number(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def _operands(node: ET.Element, count: int) -> list[ET.Element]:
    operands = element_children(node)
    if len(operands) < count:
        raise FilterError(FilterErrorCode.FILTER)
    return operands


def gml2_to_psql_coords(coord: str) -> str:
    """Turn GML 2 coordinates 'x1,y1 x2,y2' into PostGIS order 'x1 y1,x2 y2'.

    Text whose first separator is not a comma is returned unchanged.
    """
    if _GML2_FIRST_COMMA.search(coord):
        return coord.translate(_GML2_SWAP)
    return coord


def envelope(fe: FilterEncoding, node: ET.Element) -> str:
    """Return the SQL polygon for a GML Box or Envelope element."""
    srs = None
    srsname = node.get("srsName")
    if srsname is not None:
        srs = fe.catalog.srs_from_srsname(srsname)
        if srs is None:
            raise FilterError(FilterErrorCode.SRS)
        srid = srs.srid
    elif fe.request_srs is not None:
        srid = fe.request_srs.srid
    else:
        srid = fe.catalog.layer_srid(fe.layer())

    children = element_children(node)
    if not children:
        raise FilterError(FilterErrorCode.BBOX)
    first = children[0]
    kind = local_name(first)

    if kind == "lowerCorner":
        lower_text = _text(first)
        if not _CORNER.search(lower_text) or len(children) < 2:
            raise FilterError(FilterErrorCode.BBOX)
        upper_text = _text(children[1])
        if not _CORNER.search(upper_text):
            raise FilterError(FilterErrorCode.BBOX)
        lower = lower_text.split(" ")
        upper = upper_text.split(" ")
    elif kind == "coordinates":
        text = _text(first)
        if not _GML2_BOX.fullmatch(text):
            raise FilterError(FilterErrorCode.BBOX)
        lower_pair, upper_pair = gml2_to_psql_coords(text).split(",")[:2]
        lower = lower_pair.split(" ")
        upper = upper_pair.split(" ")
    else:
        raise FilterError(FilterErrorCode.BBOX)

    xmin, ymin = _atof(lower[0]), _atof(lower[1])
    xmax, ymax = _atof(upper[0]), _atof(upper[1])
    if srs is not None and srs.swaps_axes:
        xmin, ymin, xmax, ymax = ymin, xmin, ymax, xmax

    try:
        box = Bbox(xmin, ymin, xmax, ymax, srid)
    except ValueError:
        raise FilterError(FilterErrorCode.BBOX) from None
    return box.to_sql()


def _spatial_function(fe: FilterEncoding, node: ET.Element, name: str) -> str:
    prop_node, geometry_node = _operands(node, 2)[:2]
    catalog = fe.catalog
    layer_srid = catalog.layer_srid(fe.layer())

    if local_name(geometry_node) in _ENVELOPES:
        srid = -1
        srsname = geometry_node.get("srsName")
        if srsname is not None:
            srs = catalog.srs_from_srsname(srsname)
            if srs is not None:
                srid = srs.srid
        column = property_name(fe, prop_node, True, True)
        target = envelope(fe, geometry_node)
        if srid != layer_srid:
            target = f"ST_Transform({target},{layer_srid})"
    else:
        parent_srs = fe.request_srs
        if parent_srs is None and layer_srid > 0:
            parent_srs = catalog.srs_from_srid(layer_srid)
        geometry = catalog.gml_to_sql(geometry_node, parent_srs)
        if geometry is None:
            raise FilterError(FilterErrorCode.GEOMETRY)
        srid = catalog.geometry_srid(geometry)
        column = property_name(fe, prop_node, True, True)
        target = f"ST_SetSRID('{geometry}'::geometry,{srid})"
        if srid != layer_srid:
            target = f"ST_Transform({target},{layer_srid})"

    return f' {_SPATIAL_FUNCTIONS[name]}("{column}",{target})'


def _distance_function(fe: FilterEncoding, node: ET.Element, name: str) -> str:
    prop_node, geometry_node, distance_node = _operands(node, 3)[:3]
    meters = fe.catalog.uses_meter_units(fe.layer())

    column = property_name(fe, prop_node, True, True)
    geometry = fe.catalog.gml_to_sql(geometry_node, None)
    if geometry is None:
        raise FilterError(FilterErrorCode.GEOMETRY)

    units = distance_node.get("units")
    content = _text(distance_node)
    if units in _METER_UNITS:
        distance = content
    elif units in _KILOMETER_UNITS:
        distance = _format_number(_atof(content) * 1000.0)
    else:
        raise FilterError(FilterErrorCode.UNITS)

    prop_sql = f'"{column}"'
    geometry_sql = geometry
    if not meters:
        prop_sql = f"ST_Transform({prop_sql}, 4326)::geography"
        geometry_sql = f"ST_Transform({geometry_sql}, 4326)::geography"

    return f"ST_Distance({prop_sql}),('{geometry_sql}')){_DISTANCE_OPERATORS[name]}{distance}"


def _bbox_layer(fe: FilterEncoding, column: str, box: str) -> str:
    def wrap(sql: str) -> str:
        if fe.request_srs is None:
            return sql
        return f"ST_Transform({sql},{fe.request_srs.srid})"

    col = wrap(f'"{column}"')
    env = wrap(box)
    return f"(_ST_Intersects({col},{env}) AND {col} && {env})"


def _bbox(fe: FilterEncoding, node: ET.Element) -> str:
    first = first_element(node)
    columns = fe.catalog.geometry_columns(fe.layer())
    column = property_name(fe, first, True, False)

    if not column:
        # Without a property name every geometry column is tested.
        if local_name(first) not in _ENVELOPES:
            raise FilterError(FilterErrorCode.FILTER)
        box = envelope(fe, first)
        separator = " AND " if fe.in_not else " OR "
        parts = [_bbox_layer(fe, geometry_column, box) for geometry_column in columns]
        return "(" + separator.join(parts) + (")" if parts else "")

    children = element_children(node)
    if len(children) < 2 or local_name(children[1]) not in _ENVELOPES:
        raise FilterError(FilterErrorCode.FILTER)
    if column not in columns:
        raise FilterError(FilterErrorCode.GEOM_PROPERTYNAME)
    return _bbox_layer(fe, column, envelope(fe, children[1]))


def spatial_op(fe: FilterEncoding, node: ET.Element) -> str:
    """Translate a spatial element, append the SQL to ``fe.sql`` and return it.

    Raises FilterError when the element is not a spatial operator or
    cannot be translated.
    """
    name = local_name(node)
    if name in _SPATIAL_FUNCTIONS:
        sql = _spatial_function(fe, node, name)
    elif name in _DISTANCE_OPERATORS:
        sql = _distance_function(fe, node, name)
    elif name == "BBOX":
        sql = _bbox(fe, node)
    else:
        raise FilterError(FilterErrorCode.FILTER)
    fe.sql += sql
    return sql