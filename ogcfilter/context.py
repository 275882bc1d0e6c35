"""What a filter is translated against: catalog, reference systems, boxes, state."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace

from .errors import FilterError, FilterErrorCode

_NUMERIC_TYPES = frozenset(
    {
        "int2", "int4", "int8", "float4", "float8", "numeric", "decimal",
        "smallint", "integer", "bigint", "real", "double precision",
        "serial", "bigserial", "smallserial",
    }
)
_GEOMETRY_TYPES = frozenset({"geometry", "geography"})

_EPSG_CODE = re.compile(r"^EPSG:(\d+)$", re.IGNORECASE)
_URN_CODE = re.compile(r"^urn:(?:x-)?ogc:def:crs:EPSG:(?:[^:]*:)?(\d+)$", re.IGNORECASE)
_FRAGMENT_CODE = re.compile(r"#(\d+)$")
_EWKT_SRID = re.compile(r"^SRID=(-?\d+);")


def local_name(element: ET.Element) -> str:
    """Return the tag of an element without its namespace."""
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def element_children(node: ET.Element) -> list[ET.Element]:
    """Return the element children of a node, skipping comments and instructions."""
    return [child for child in node if isinstance(child.tag, str)]


def first_element(node: ET.Element) -> ET.Element:
    """Return the first element child of a node; a filter without one is invalid."""
    for child in node:
        if isinstance(child.tag, str):
            return child
    raise FilterError(FilterErrorCode.FILTER)


def _format_number(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def _format_points(points: list[tuple[float, float]]) -> str:
    return ",".join(f"{_format_number(x)} {_format_number(y)}" for x, y in points)


@dataclass(frozen=True)
class Srs:
    """A spatial reference system and how its axes are ordered."""

    srid: int
    is_degree: bool = False
    is_axis_order_gis_friendly: bool = True
    honours_authority_axis_order: bool = False

    @property
    def swaps_axes(self) -> bool:
        return self.honours_authority_axis_order and not self.is_axis_order_gis_friendly


@dataclass(frozen=True)
class Bbox:
    """An axis-aligned bounding box."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float
    srid: int | None = None

    def __post_init__(self) -> None:
        if self.xmin > self.xmax or self.ymin > self.ymax:
            raise ValueError("bounding box minimum exceeds its maximum")

    def to_sql(self) -> str:
        """Return the box as a PostGIS polygon literal."""
        corners = [
            (self.xmin, self.ymin),
            (self.xmin, self.ymax),
            (self.xmax, self.ymax),
            (self.xmax, self.ymin),
            (self.xmin, self.ymin),
        ]
        prefix = f"SRID={self.srid};" if self.srid is not None else ""
        return f"'{prefix}POLYGON(({_format_points(corners)}))'::geometry"


class Catalog(ABC):
    """Database knowledge a filter needs: tables, columns and reference systems."""

    @abstractmethod
    def describe_table(self, layer: str) -> dict[str, str]: ...

    @abstractmethod
    def is_numeric_type(self, sql_type: str) -> bool: ...

    @abstractmethod
    def column_type(self, layer: str, column: str) -> str | None: ...

    @abstractmethod
    def geometry_columns(self, layer: str) -> list[str]: ...

    @abstractmethod
    def is_geometry_column(self, layer: str, column: str) -> bool: ...

    @abstractmethod
    def id_column(self, layer: str) -> str | None: ...

    @abstractmethod
    def layer_srid(self, layer: str) -> int: ...

    @abstractmethod
    def column_name(self, layer: str, index: int) -> str: ...

    @abstractmethod
    def uses_meter_units(self, layer: str) -> bool: ...

    @abstractmethod
    def srs_from_srsname(self, srsname: str) -> Srs | None: ...

    @abstractmethod
    def srs_from_srid(self, srid: int) -> Srs | None: ...

    @abstractmethod
    def gml_to_sql(self, element: ET.Element, srs: Srs | None) -> str | None: ...

    @abstractmethod
    def geometry_srid(self, geometry: str) -> int: ...

    @abstractmethod
    def layer_uri(self, typename: str) -> str: ...

    @abstractmethod
    def layer_name(self, layer: str) -> str: ...

    @abstractmethod
    def escape_string(self, value: str) -> str: ...


@dataclass
class StaticCatalog(Catalog):
    """A catalog described in memory.

    Per-layer mappings are keyed by bare layer name; any namespace prefix or
    URI in front of a layer is ignored when looking it up.
    """

    tables: dict[str, dict[str, str]] = field(default_factory=dict)
    id_columns: dict[str, str] = field(default_factory=dict)
    srids: dict[str, int] = field(default_factory=dict)
    srs: dict[int, Srs] = field(default_factory=dict)
    namespaces: dict[str, str] = field(default_factory=dict)

    def describe_table(self, layer: str) -> dict[str, str]:
        return dict(self.tables.get(self.layer_name(layer), {}))

    def is_numeric_type(self, sql_type: str) -> bool:
        return sql_type.strip().lower() in _NUMERIC_TYPES

    def column_type(self, layer: str, column: str) -> str | None:
        return self.tables.get(self.layer_name(layer), {}).get(column)

    def geometry_columns(self, layer: str) -> list[str]:
        return [
            column
            for column, sql_type in self.tables.get(self.layer_name(layer), {}).items()
            if sql_type.strip().lower() in _GEOMETRY_TYPES
        ]

    def is_geometry_column(self, layer: str, column: str) -> bool:
        return column in self.geometry_columns(layer)

    def id_column(self, layer: str) -> str | None:
        return self.id_columns.get(self.layer_name(layer))

    def layer_srid(self, layer: str) -> int:
        return self.srids.get(self.layer_name(layer), -1)

    def column_name(self, layer: str, index: int) -> str:
        """Return the column at a 1-based position, or an empty string."""
        columns = list(self.tables.get(self.layer_name(layer), {}))
        if 1 <= index <= len(columns):
            return columns[index - 1]
        return ""

    def uses_meter_units(self, layer: str) -> bool:
        srs = self.srs_from_srid(self.layer_srid(layer))
        return srs is not None and not srs.is_degree

    def srs_from_srsname(self, srsname: str) -> Srs | None:
        name = srsname.strip()
        honours = False
        match = _EPSG_CODE.match(name)
        if match is None:
            match = _URN_CODE.match(name)
            honours = match is not None
        if match is None:
            match = _FRAGMENT_CODE.search(name)
        if match is None:
            return None
        known = self.srs.get(int(match.group(1)))
        if known is None:
            return None
        return replace(known, honours_authority_axis_order=honours)

    def srs_from_srid(self, srid: int) -> Srs | None:
        known = self.srs.get(srid)
        if known is None:
            return None
        return replace(known, honours_authority_axis_order=False)

    def gml_to_sql(self, element: ET.Element, srs: Srs | None) -> str | None:
        """Convert a GML Point, LineString or Polygon into EWKT; None if invalid."""
        srsname = element.get("srsName")
        if srsname is not None:
            srs = self.srs_from_srsname(srsname)
            if srs is None:
                return None
        swap = srs is not None and srs.swaps_axes
        try:
            body = _geometry_wkt(element, swap)
        except (ValueError, FilterError):
            return None
        srid = srs.srid if srs is not None else 0
        return f"SRID={srid};{body}"

    def geometry_srid(self, geometry: str) -> int:
        match = _EWKT_SRID.match(geometry)
        return int(match.group(1)) if match else 0

    def layer_uri(self, typename: str) -> str:
        prefix, sep, local = typename.partition(":")
        if sep and prefix in self.namespaces:
            return f"{self.namespaces[prefix]}:{local}"
        return typename

    def layer_name(self, layer: str) -> str:
        return layer.rsplit(":", 1)[-1]

    def escape_string(self, value: str) -> str:
        return value.replace("'", "''")


def _pair(x: str, y: str) -> tuple[float, float]:
    return float(x), float(y)


def _coordinates(element: ET.Element, swap: bool) -> list[tuple[float, float]]:
    points: list[tuple[float, float]] = []
    for child in element_children(element):
        name = local_name(child)
        text = (child.text or "").strip()
        if name == "pos":
            numbers = text.split()
            if len(numbers) < 2:
                raise ValueError("incomplete position")
            points.append(_pair(numbers[0], numbers[1]))
        elif name == "posList":
            dimension = int(child.get("srsDimension", element.get("srsDimension", "2")))
            numbers = text.split()
            if dimension < 2 or not numbers or len(numbers) % dimension:
                raise ValueError("malformed position list")
            points.extend(
                _pair(chunk[0], chunk[1]) for chunk in zip(*[iter(numbers)] * dimension)
            )
        elif name == "coordinates":
            cs = child.get("cs", ",")
            ts = child.get("ts", " ")
            tuples = text.split() if ts.isspace() else text.split(ts)
            for tuple_text in filter(None, (t.strip() for t in tuples)):
                parts = tuple_text.split(cs)
                if len(parts) < 2:
                    raise ValueError("incomplete coordinate tuple")
                points.append(_pair(parts[0], parts[1]))
        elif name == "coord":
            values = {local_name(c): (c.text or "").strip() for c in element_children(child)}
            if "X" not in values or "Y" not in values:
                raise ValueError("incomplete coord")
            points.append(_pair(values["X"], values["Y"]))
    if swap:
        points = [(y, x) for x, y in points]
    return points


def _ring(boundary: ET.Element, swap: bool) -> list[tuple[float, float]]:
    rings = [c for c in element_children(boundary) if local_name(c) == "LinearRing"]
    if len(rings) != 1:
        raise ValueError("boundary must hold one LinearRing")
    points = _coordinates(rings[0], swap)
    if len(points) < 4 or points[0] != points[-1]:
        raise ValueError("ring must be closed with at least four points")
    return points


def _geometry_wkt(element: ET.Element, swap: bool) -> str:
    name = local_name(element)
    if name == "Point":
        points = _coordinates(element, swap)
        if len(points) != 1:
            raise ValueError("a point needs exactly one position")
        return f"POINT({_format_points(points)})"
    if name == "LineString":
        points = _coordinates(element, swap)
        if len(points) < 2:
            raise ValueError("a line needs at least two positions")
        return f"LINESTRING({_format_points(points)})"
    if name == "Polygon":
        exterior: list[list[tuple[float, float]]] = []
        interior: list[list[tuple[float, float]]] = []
        for child in element_children(element):
            kind = local_name(child)
            if kind in ("exterior", "outerBoundaryIs"):
                exterior.append(_ring(child, swap))
            elif kind in ("interior", "innerBoundaryIs"):
                interior.append(_ring(child, swap))
        if len(exterior) != 1:
            raise ValueError("a polygon needs exactly one exterior ring")
        rings = ",".join(f"({_format_points(ring)})" for ring in exterior + interior)
        return f"POLYGON({rings})"
    raise ValueError(f"unsupported geometry {name!r}")


@dataclass
class FilterEncoding:
    """State of one filter translation: the SQL built so far and its context."""

    catalog: Catalog
    typename: str
    version: int = 110
    request_srs: Srs | None = None
    sql: str = ""
    in_not: bool = False
    is_numeric: bool = False

    def layer(self) -> str:
        """Return the layer the typename refers to, with its namespace resolved."""
        return self.catalog.layer_uri(self.typename)