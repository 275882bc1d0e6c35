import xml.etree.ElementTree as ET

import pytest

from ogcfilter.capabilities import (
    FUNCTIONS,
    filter_capabilities_100,
    filter_capabilities_110,
    functions_capabilities,
)

OGC_WRAPPER = '<root xmlns:ogc="http://example.com/ogc">{}</root>'


def test_functions_100_use_underscored_tag():
    text = functions_capabilities(100)
    assert "     <ogc:Function_Name nArgs='1'>abs</ogc:Function_Name>\n" in text
    assert "FunctionName" not in text


def test_functions_110_use_plain_tag():
    text = functions_capabilities(110)
    assert "     <ogc:FunctionName nArgs='1'>trunc</ogc:FunctionName>\n" in text
    assert "Function_Name" not in text


def test_functions_list_every_function_in_order():
    text = functions_capabilities(110)
    positions = [text.index(f">{name}<") for name in FUNCTIONS]
    assert positions == sorted(positions)
    assert text.count("nArgs='1'") == len(FUNCTIONS)


def test_functions_frame():
    text = functions_capabilities(100)
    assert text.startswith("   <ogc:Functions>\n")
    assert text.endswith("   </ogc:Functions>\n")


def test_capabilities_100_content():
    text = filter_capabilities_100()
    assert text.startswith("<ogc:Filter_Capabilities>\n")
    assert text.endswith("</ogc:Filter_Capabilities>\n")
    assert "   <ogc:Intersect/>\n" in text
    assert "   <ogc:Simple_Comparisons/>\n" in text
    assert functions_capabilities(100) in text


def test_capabilities_100_is_well_formed():
    root = ET.fromstring(OGC_WRAPPER.format(filter_capabilities_100()))
    assert len(root) == 1


@pytest.mark.parametrize("version", [200, "2.0.0", "2.1.3"])
def test_capabilities_110_with_postgis_2(version):
    text = filter_capabilities_110(version)
    assert "   <ogc:GeometryOperand>gml:Tin</ogc:GeometryOperand>\n" in text
    assert "gml:PolyhedralSurface" in text


@pytest.mark.parametrize("version", [150, "1.5.3"])
def test_capabilities_110_without_postgis_2(version):
    text = filter_capabilities_110(version)
    assert "gml:Tin" not in text
    assert "gml:Triangle" not in text
    assert "   <ogc:GeometryOperand>gml:Polygon</ogc:GeometryOperand>\n" in text


def test_capabilities_110_content():
    text = filter_capabilities_110(200)
    assert "  <ogc:SpatialOperator name='Intersects'/>\n" in text
    assert "   <ogc:ComparisonOperator>NullCheck</ogc:ComparisonOperator>\n" in text
    assert "  <ogc:FID/>\n" in text
    assert functions_capabilities(110) in text


def test_capabilities_110_is_well_formed():
    root = ET.fromstring(OGC_WRAPPER.format(filter_capabilities_110(200)))
    assert len(root) == 1