# ogcfilter

`ogcfilter` turns OGC Filter Encoding documents (versions 1.0.0 and 1.1.0),
as sent to a Web Feature Service, into the condition of a PostGIS query. It
also writes the `Filter_Capabilities` section of a WFS capabilities
document. It has no dependencies beyond the standard library.

## What it covers

- Comparison operators: `PropertyIsEqualTo`, `PropertyIsNotEqualTo`,
  `PropertyIsLessThan`, `PropertyIsGreaterThan`,
  `PropertyIsLessThanOrEqualTo`, `PropertyIsGreaterThanOrEqualTo`,
  `PropertyIsLike`, `PropertyIsNull`, `PropertyIsBetween`
  (`ogcfilter.comparison.comparison_op`). Equality against a `bool` column
  maps the literals `1` and `0` to `'t'` and `'f'`; `matchCase="false"`
  wraps both sides in `lower(...)`.
- Logical operators: `And`, `Or`, `Not` (`ogcfilter.logical.logical_op`).
  Inside a `Not`, `And` and `Or` are swapped.
- Spatial operators (`ogcfilter.spatial.spatial_op`): `Equals`, `Disjoint`,
  `Touches`, `Within`, `Overlaps`, `Crosses`, `Intersects`, `Contains`
  (against a GML `Box`/`Envelope` or a `Point`, `LineString` or
  `Polygon`), `DWithin` and `Beyond` (units `meters`, `#metre`,
  `kilometers`, `#kilometre`), and `BBOX`. `ogcfilter.spatial.envelope`
  turns a GML 2 `coordinates` box or a GML 3 `lowerCorner`/`upperCorner`
  envelope into a polygon literal.
- Expressions (`ogcfilter.expression.expression`): `PropertyName`
  (including positional XPath such as `*[2]`), `Literal`, `Add`, `Sub`,
  `Mul`, `Div`, and the `Function` names `abs`, `acos`, `asin`, `atan`,
  `cbrt`, `ceil`, `ceiling`, `cos`, `cot`, `degrees`, `exp`, `floor`,
  `length`, `ln`, `log`, `radians`, `round`, `sin`, `sqrt`, `tan`, `trunc`
  and the aggregates `avg`, `count`, `min`, `max`.
- `FeatureId` and `GmlObjectId` identifiers (`ogcfilter.filter.feature_id`;
  `GmlObjectId` as the top-level operator only for version 110), and the
  `BBOX` and `FEATUREID` key-value parameters (`ogcfilter.filter.kvp_bbox`,
  `ogcfilter.filter.kvp_featureid`), which return ready `WHERE` clauses.

## Usage

The translator asks a catalog about the layers it queries: which columns
exist and of which type, which are geometries, which column is the
identifier, which SRID a layer uses, how to read an `srsName` and how to
turn GML geometry into SQL. `ogcfilter.context.Catalog` is the abstract
interface; `ogcfilter.context.StaticCatalog` answers from data held in
memory. A subclass of `Catalog` can answer from a live database instead.

```python
from ogcfilter.context import FilterEncoding, Srs, StaticCatalog
from ogcfilter.filter import translate_filter

catalog = StaticCatalog(
    tables={"roads": {"gid": "int4", "name": "varchar", "geom": "geometry"}},
    id_columns={"roads": "gid"},
    srids={"roads": 4326},
    srs={4326: Srs(4326, is_degree=True)},
)
fe = FilterEncoding(catalog=catalog, typename="roads")

xml = """<Filter>
  <PropertyIsEqualTo>
    <PropertyName>name</PropertyName>
    <Literal>Main Street</Literal>
  </PropertyIsEqualTo>
</Filter>"""

translate_filter(fe, xml)
print(fe.sql)   # "name" = 'Main Street'
```

`FilterEncoding` also takes `version` (`100` or `110`, default `110`),
which selects the `escape` or `escapeChar` attribute of `PropertyIsLike`,
and `request_srs`, the reference system asked for by the request.

Key-value parameters:

```python
from ogcfilter.context import Bbox
from ogcfilter.filter import kvp_bbox, kvp_featureid

kvp_bbox(catalog, "roads", Bbox(0, 0, 10, 10, 4326))
kvp_featureid(catalog, "roads", ["roads.1", "roads.2"])
# " WHERE gid = '1' OR gid = '2'"
```

## Errors

When a filter cannot be translated, `ogcfilter.errors.FilterError` is
raised. Its `code` is a `FilterErrorCode`; its `message`, also given by
`error_message(code)`, is the text a WFS exception report carries, with
`exception_code` `InvalidParameterValue` and `locator` `FILTER`.
`describe_error(code)` gives a longer explanation, or an empty string for
codes without one.

## Capabilities

Capabilities are plain strings:

```python
from ogcfilter.capabilities import filter_capabilities_100, filter_capabilities_110

print(filter_capabilities_100())
print(filter_capabilities_110("2.0.0"))
```

`filter_capabilities_110` takes the PostGIS version, as a dotted string or
as a number such as `200`; from 2.0 on it also advertises `gml:Triangle`,
`gml:PolyhedralSurface` and `gml:Tin` operands.

## What it does not do

- It builds SQL text only; it does not connect to a database or run
  queries, and `StaticCatalog` knows only what it is given.
- It does not validate filters against the WFS XML schemas, nor check
  that the namespaces of a filter are coherent: `FilterErrorCode.NAMESPACE`
  exists but nothing raises it.
- It is a library, not a WFS server, and has no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```