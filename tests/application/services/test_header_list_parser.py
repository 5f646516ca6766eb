# tests/application/services/test_header_list_parser.py
import pytest

from application.services.header_list_parser import parse_header_list
from domain.exceptions import HeaderListFormatError
from domain.request_spec import HeaderEntry


class TestParseHeaderList:
    def test_none_and_blank_mean_no_headers(self):
        assert parse_header_list(None) == []
        assert parse_header_list("") == []
        assert parse_header_list("   \n") == []

    def test_children_in_order(self):
        xml = (
            "<Headers>"
            '<Header Name="Accept">application/json</Header>'
            '<Header Name="X-Trace">abc</Header>'
            '<Header Name="X-Trace">def</Header>'
            "</Headers>"
        )
        assert parse_header_list(xml) == [
            HeaderEntry("Accept", "application/json"),
            HeaderEntry("X-Trace", "abc"),
            HeaderEntry("X-Trace", "def"),
        ]

    def test_element_tag_is_not_significant(self):
        xml = '<root><h Name="X-A">1</h><anything Name="X-B">2</anything></root>'
        assert [e.name for e in parse_header_list(xml)] == ["X-A", "X-B"]

    def test_empty_element_has_empty_value(self):
        assert parse_header_list('<Headers><Header Name="X-Empty"/></Headers>') == [HeaderEntry("X-Empty", "")]

    def test_entities_are_decoded(self):
        xml = '<Headers><Header Name="X-Q">a &amp; b</Header></Headers>'
        assert parse_header_list(xml) == [HeaderEntry("X-Q", "a & b")]

    def test_comments_are_skipped(self):
        xml = '<Headers><!-- note --><Header Name="X-A">1</Header></Headers>'
        assert parse_header_list(xml) == [HeaderEntry("X-A", "1")]

    def test_xml_declaration_is_accepted(self):
        xml = '<?xml version="1.0" encoding="utf-8"?><Headers><Header Name="X-A">1</Header></Headers>'
        assert parse_header_list(xml) == [HeaderEntry("X-A", "1")]

    def test_malformed_xml_raises(self):
        with pytest.raises(HeaderListFormatError):
            parse_header_list('<Headers><Header Name="X-A">1</Headers>')

    def test_missing_name_attribute_raises(self):
        with pytest.raises(HeaderListFormatError) as excinfo:
            parse_header_list('<Headers><Header Name="X-A">1</Header><Header>2</Header></Headers>')
        assert "#2" in str(excinfo.value)

    def test_attribute_name_is_case_sensitive(self):
        with pytest.raises(HeaderListFormatError):
            parse_header_list('<Headers><Header name="X-A">1</Header></Headers>')
