"""Whole filters, feature identifiers and key-value bbox/featureid parameters to SQL."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterable

from .comparison import comparison_op, is_comparison_op
from .context import (
    Bbox,
    Catalog,
    FilterEncoding,
    Srs,
    element_children,
    first_element,
    local_name,
)
from .errors import FilterError, FilterErrorCode
from .logical import is_logical_op, logical_op
from .spatial import is_spatial_op, spatial_op


def _attribute(node: ET.Element, name: str) -> str | None:
    """Return an attribute whatever its namespace."""
    value = node.get(name)
    if value is not None:
        return value
    for key, candidate in node.attrib.items():
        if key.rsplit("}", 1)[-1] == name:
            return candidate
    return None


def feature_id(fe: FilterEncoding, node: ET.Element) -> str:
    """Translate the FeatureId or GmlObjectId children of a filter element.

    Appends the SQL to ``fe.sql`` and returns it. Identifiers of another
    layer turn into FALSE; mixing both kinds of identifier is an error.
    """
    layer = fe.layer()
    layer_name = fe.catalog.layer_name(layer)
    seen_feature_id = seen_gml_id = False
    parts: list[str] = []

    for child in element_children(node):
        name = local_name(child)
        fid: str | None = None
        if name == "FeatureId":
            seen_feature_id = True
            if seen_gml_id:
                raise FilterError(FilterErrorCode.FID)
            fid = child.get("fid")
        elif name == "GmlObjectId":
            seen_gml_id = True
            if seen_feature_id:
                raise FilterError(FilterErrorCode.FID)
            fid = _attribute(child, "id")

        pieces = (fid or "").split(".")
        if pieces[0] != layer_name:
            # The query still runs, it just matches nothing for this identifier.
            parts.append(" FALSE")
            continue

        id_column = fe.catalog.id_column(layer)
        if not id_column:
            raise FilterError(FilterErrorCode.FEATUREID)
        parts.append(f"{id_column} = '{fe.catalog.escape_string(pieces[-1])}'")

    sql = " OR ".join(parts)
    fe.sql += sql
    return sql


def translate_filter(fe: FilterEncoding, xml: str | bytes) -> FilterEncoding:
    """Translate an XML filter into a SQL condition held in ``fe.sql``.

    Raises FilterError when the document is not a valid filter.
    """
    try:
        root = ET.fromstring(xml)
    except (ET.ParseError, ValueError):
        raise FilterError(FilterErrorCode.FILTER) from None

    node = first_element(root)
    name = local_name(node)

    if is_comparison_op(name):
        comparison_op(fe, node)
    if is_spatial_op(name):
        spatial_op(fe, node)
    if is_logical_op(name):
        logical_op(fe, node)
    if name == "FeatureId" or (name == "GmlObjectId" and fe.version == 110):
        feature_id(fe, root)

    return fe


def _transformed(sql: str, srid: int, transform: bool) -> str:
    return f"ST_Transform({sql},{srid})" if transform else sql


def kvp_bbox(
    catalog: Catalog,
    layer: str,
    bbox: Bbox,
    request_srs: Srs | None = None,
) -> str:
    """Return the WHERE clause selecting features of a layer that meet a box."""
    srid = -1
    transform = False
    if request_srs is not None:
        srid = catalog.layer_srid(layer)
        transform = True
        if bbox.srid is not None and bbox.srid != request_srs.srid:
            srid = request_srs.srid

    box = _transformed(bbox.to_sql(), srid, transform)
    clauses = []
    for column in catalog.geometry_columns(layer):
        col = _transformed(f'"{column}"', srid, transform)
        clauses.append(f" (_ST_Intersects({col},{box}) AND {col} && {box})")
    return " WHERE" + " OR".join(clauses)


def kvp_featureid(catalog: Catalog, layer: str, fids: Iterable[str]) -> str:
    """Return the WHERE clause selecting features by identifier.

    Empty when the layer has no identifier column.
    """
    id_column = catalog.id_column(layer)
    if not id_column:
        return ""
    conditions = [
        f"{id_column} = '{catalog.escape_string(fid.split('.')[-1])}'" for fid in fids
    ]
    return " WHERE " + " OR ".join(conditions)