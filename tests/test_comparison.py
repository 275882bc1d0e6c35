import xml.etree.ElementTree as ET

import pytest

from ogcfilter.comparison import comparison_op, is_comparison_op
from ogcfilter.context import FilterEncoding, StaticCatalog
from ogcfilter.errors import FilterError, FilterErrorCode

OGC = 'xmlns:ogc="http://www.opengis.net/ogc"'


@pytest.fixture
def catalog():
    return StaticCatalog(
        tables={
            "roads": {
                "name": "varchar",
                "width": "int4",
                "open": "bool",
                "geom": "geometry",
            }
        }
    )


@pytest.fixture
def fe(catalog):
    return FilterEncoding(catalog=catalog, typename="roads")


def parse(body):
    return ET.fromstring(body.replace("<ogc:", f"<ogc:", 1).replace(">", f" {OGC}>", 1)
                         if False else _with_ns(body))


def _with_ns(body):
    first_close = body.index(">")
    if body[first_close - 1] == "/":
        first_close -= 1
    return ET.fromstring(body[:first_close] + f" {OGC}" + body[first_close:])


@pytest.mark.parametrize(
    "name",
    [
        "PropertyIsEqualTo",
        "PropertyIsNotEqualTo",
        "PropertyIsLessThan",
        "PropertyIsGreaterThan",
        "PropertyIsLessThanOrEqualTo",
        "PropertyIsGreaterThanOrEqualTo",
        "PropertyIsLike",
        "PropertyIsNull",
        "PropertyIsBetween",
    ],
)
def test_is_comparison_op_accepts_operators(name):
    assert is_comparison_op(name) is True


@pytest.mark.parametrize("name", ["propertyisequalto", "And", "BBOX", ""])
def test_is_comparison_op_rejects_others(name):
    assert is_comparison_op(name) is False


def test_equal_to_string(fe):
    node = _with_ns(
        "<ogc:PropertyIsEqualTo><ogc:PropertyName>name</ogc:PropertyName>"
        "<ogc:Literal>foo</ogc:Literal></ogc:PropertyIsEqualTo>"
    )
    result = comparison_op(fe, node)
    assert result == "\"name\" = 'foo'"
    assert fe.sql == result


@pytest.mark.parametrize(
    "name, operator",
    [
        ("PropertyIsNotEqualTo", " != "),
        ("PropertyIsLessThan", " < "),
        ("PropertyIsGreaterThan", " > "),
        ("PropertyIsLessThanOrEqualTo", " <= "),
        ("PropertyIsGreaterThanOrEqualTo", " >= "),
    ],
)
def test_binary_operators_on_numeric_column(fe, name, operator):
    node = _with_ns(
        f"<ogc:{name}><ogc:PropertyName>width</ogc:PropertyName>"
        f"<ogc:Literal>10</ogc:Literal></ogc:{name}>"
    )
    assert comparison_op(fe, node) == '"width"' + operator + "10"


def test_case_insensitive_wraps_both_sides(fe):
    node = _with_ns(
        '<ogc:PropertyIsEqualTo matchCase="false">'
        "<ogc:PropertyName>name</ogc:PropertyName>"
        "<ogc:Literal>Foo</ogc:Literal></ogc:PropertyIsEqualTo>"
    )
    result = comparison_op(fe, node)
    assert result.startswith('lower("name")')
    assert result.endswith("lower('Foo')")


def test_match_case_true_keeps_case(fe):
    node = _with_ns(
        '<ogc:PropertyIsEqualTo matchCase="true">'
        "<ogc:PropertyName>name</ogc:PropertyName>"
        "<ogc:Literal>Foo</ogc:Literal></ogc:PropertyIsEqualTo>"
    )
    assert "lower(" not in comparison_op(fe, node)


@pytest.mark.parametrize("literal, expected", [("1", "'t'"), ("0", "'f'")])
def test_boolean_column_literal_translation(fe, literal, expected):
    node = _with_ns(
        "<ogc:PropertyIsEqualTo><ogc:PropertyName>open</ogc:PropertyName>"
        f"<ogc:Literal>{literal}</ogc:Literal></ogc:PropertyIsEqualTo>"
    )
    assert comparison_op(fe, node) == '"open" = ' + expected


def test_boolean_column_unknown_literal_is_dropped(fe):
    node = _with_ns(
        "<ogc:PropertyIsNotEqualTo><ogc:PropertyName>open</ogc:PropertyName>"
        "<ogc:Literal>yes</ogc:Literal></ogc:PropertyIsNotEqualTo>"
    )
    result = comparison_op(fe, node)
    assert result.endswith(" != ")
    assert "yes" not in result


def test_literal_is_escaped(fe):
    node = _with_ns(
        "<ogc:PropertyIsEqualTo><ogc:PropertyName>name</ogc:PropertyName>"
        "<ogc:Literal>O'Brien</ogc:Literal></ogc:PropertyIsEqualTo>"
    )
    assert comparison_op(fe, node).endswith("'O''Brien'")


def test_appends_to_existing_sql(fe):
    fe.sql = "("
    node = _with_ns(
        "<ogc:PropertyIsLessThan><ogc:PropertyName>width</ogc:PropertyName>"
        "<ogc:Literal>3</ogc:Literal></ogc:PropertyIsLessThan>"
    )
    result = comparison_op(fe, node)
    assert fe.sql == "(" + result


def test_unknown_property_raises(fe):
    node = _with_ns(
        "<ogc:PropertyIsEqualTo><ogc:PropertyName>missing</ogc:PropertyName>"
        "<ogc:Literal>x</ogc:Literal></ogc:PropertyIsEqualTo>"
    )
    with pytest.raises(FilterError) as info:
        comparison_op(fe, node)
    assert info.value.code is FilterErrorCode.PROPERTYNAME


def test_empty_left_operand_raises(fe):
    node = _with_ns(
        "<ogc:PropertyIsEqualTo><ogc:Unknown/>"
        "<ogc:Literal>x</ogc:Literal></ogc:PropertyIsEqualTo>"
    )
    with pytest.raises(FilterError) as info:
        comparison_op(fe, node)
    assert info.value.code is FilterErrorCode.FILTER


def test_missing_operand_raises(fe):
    node = _with_ns(
        "<ogc:PropertyIsEqualTo><ogc:PropertyName>name</ogc:PropertyName>"
        "</ogc:PropertyIsEqualTo>"
    )
    with pytest.raises(FilterError) as info:
        comparison_op(fe, node)
    assert info.value.code is FilterErrorCode.FILTER


def test_like_replaces_wildcards(fe):
    node = _with_ns(
        '<ogc:PropertyIsLike wildCard="*" singleChar="#" escapeChar="!">'
        "<ogc:PropertyName>name</ogc:PropertyName>"
        "<ogc:Literal>Ma*n#</ogc:Literal></ogc:PropertyIsLike>"
    )
    assert comparison_op(fe, node) == " CAST(\"name\" AS varchar) LIKE E'Ma%n_'"


def test_like_escape_character_becomes_backslashes(fe):
    node = _with_ns(
        '<ogc:PropertyIsLike wildCard="*" singleChar="#" escapeChar="!">'
        "<ogc:PropertyName>name</ogc:PropertyName>"
        "<ogc:Literal>a!b</ogc:Literal></ogc:PropertyIsLike>"
    )
    assert comparison_op(fe, node).endswith("E'a\\\\b'")


def test_like_case_insensitive(fe):
    node = _with_ns(
        '<ogc:PropertyIsLike wildCard="*" singleChar="#" escapeChar="!" matchCase="false">'
        "<ogc:PropertyName>name</ogc:PropertyName>"
        "<ogc:Literal>ab*</ogc:Literal></ogc:PropertyIsLike>"
    )
    result = comparison_op(fe, node)
    assert result.startswith('LOWER( CAST("name" AS varchar))')
    assert result.endswith(" LIKE LOWER(E'ab%')")


def test_like_version_100_uses_escape_attribute(catalog):
    fe = FilterEncoding(catalog=catalog, typename="roads", version=100)
    node = _with_ns(
        '<ogc:PropertyIsLike wildCard="*" singleChar="#" escape="!">'
        "<ogc:PropertyName>name</ogc:PropertyName>"
        "<ogc:Literal>x*</ogc:Literal></ogc:PropertyIsLike>"
    )
    assert comparison_op(fe, node).endswith("E'x%'")


def test_like_version_100_rejects_escape_char(catalog):
    fe = FilterEncoding(catalog=catalog, typename="roads", version=100)
    node = _with_ns(
        '<ogc:PropertyIsLike wildCard="*" singleChar="#" escapeChar="!">'
        "<ogc:PropertyName>name</ogc:PropertyName>"
        "<ogc:Literal>x*</ogc:Literal></ogc:PropertyIsLike>"
    )
    with pytest.raises(FilterError) as info:
        comparison_op(fe, node)
    assert info.value.code is FilterErrorCode.FILTER


def test_like_without_wildcard_attribute_raises(fe):
    node = _with_ns(
        '<ogc:PropertyIsLike singleChar="#" escapeChar="!">'
        "<ogc:PropertyName>name</ogc:PropertyName>"
        "<ogc:Literal>x</ogc:Literal></ogc:PropertyIsLike>"
    )
    with pytest.raises(FilterError) as info:
        comparison_op(fe, node)
    assert info.value.code is FilterErrorCode.FILTER


def test_is_null(fe):
    node = _with_ns(
        "<ogc:PropertyIsNull><ogc:PropertyName>name</ogc:PropertyName></ogc:PropertyIsNull>"
    )
    assert comparison_op(fe, node) == '"name" isnull'


def test_is_null_unknown_property(fe):
    node = _with_ns(
        "<ogc:PropertyIsNull><ogc:PropertyName>nope</ogc:PropertyName></ogc:PropertyIsNull>"
    )
    with pytest.raises(FilterError) as info:
        comparison_op(fe, node)
    assert info.value.code is FilterErrorCode.PROPERTYNAME


def test_between(fe):
    node = _with_ns(
        "<ogc:PropertyIsBetween>\n  <ogc:PropertyName>width</ogc:PropertyName>\n"
        "  <ogc:LowerBoundary><ogc:Literal>1</ogc:Literal></ogc:LowerBoundary>\n"
        "  <ogc:UpperBoundary>\n    <ogc:Literal>5</ogc:Literal>\n  </ogc:UpperBoundary>\n"
        "</ogc:PropertyIsBetween>"
    )
    result = comparison_op(fe, node)
    assert result.startswith('"width" Between ')
    assert result.split(" Between ")[1].split(" And ") == ["1", "5"]


def test_between_missing_boundary_raises(fe):
    node = _with_ns(
        "<ogc:PropertyIsBetween><ogc:PropertyName>width</ogc:PropertyName>"
        "<ogc:LowerBoundary><ogc:Literal>1</ogc:Literal></ogc:LowerBoundary>"
        "</ogc:PropertyIsBetween>"
    )
    with pytest.raises(FilterError) as info:
        comparison_op(fe, node)
    assert info.value.code is FilterErrorCode.FILTER


def test_unknown_operator_raises(fe):
    node = _with_ns("<ogc:And/>")
    with pytest.raises(FilterError) as info:
        comparison_op(fe, node)
    assert info.value.code is FilterErrorCode.FILTER
    assert fe.sql == ""