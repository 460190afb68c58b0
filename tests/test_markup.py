import xml.etree.ElementTree as ET

import pytest

from config import OS_NAMESPACE
from core.markup import NamespaceTable, extract_data_scripts, parse_fragment, prepare_xml


def test_default_table_knows_os():
    table = NamespaceTable()
    assert table.uri("os") == OS_NAMESPACE
    assert table.prefix_for(OS_NAMESPACE) == "os"


def test_register_synthesises_uri_and_keeps_existing():
    table = NamespaceTable()
    assert table.register("test") == "urn:opensocial:data:test"
    assert table.register("os") == OS_NAMESPACE
    assert table.register("test", "http://example.com/t") == "http://example.com/t"


def test_required_declarations_only_for_known_undeclared_prefixes():
    table = NamespaceTable({"my": "http://example.com/my"})
    decls = table.required_declarations(
        '<os:DataSet key="k"><my:Req/><other:Req/></os:DataSet>'
    )
    assert f'xmlns:os="{OS_NAMESPACE}"' in decls
    assert 'xmlns:my="http://example.com/my"' in decls
    assert "other" not in decls

    already = table.required_declarations(f'<os:Req xmlns:os="{OS_NAMESPACE}"/>')
    assert already == ""


def test_prepare_xml_wraps_fragment():
    xml = prepare_xml("<os:Req/>", NamespaceTable())
    assert xml.startswith("<!DOCTYPE root")
    assert "<root" in xml and xml.endswith("<os:Req/></root>")


def test_parse_fragment_keeps_prefixed_names():
    table = NamespaceTable()
    table.register("test")
    root = parse_fragment(
        '<os:DataSet key="first"><test:request data="x" test:flag="1"/></os:DataSet>',
        table,
    )
    (dataset,) = list(root.children())
    assert dataset.tag_name == "os:DataSet"
    assert dataset.prefix == "os"
    assert dataset.local_name == "DataSet"
    assert dataset.get_attribute("key") == "first"

    (request,) = list(dataset.children())
    assert request.tag_name == "test:request"
    assert request.attributes == [("data", "x"), ("test:flag", "1")]


def test_fragment_declarations_take_precedence():
    root = parse_fragment('<foo:Req xmlns:foo="http://example.com/foo" key="k"/>',
                          NamespaceTable())
    (node,) = list(root.children())
    assert node.tag_name == "foo:Req"


def test_nbsp_entity_is_allowed():
    root = parse_fragment('<os:Req key="k" label="a&nbsp;b"/>', NamespaceTable())
    (node,) = list(root.children())
    assert node.get_attribute("label") == "a\u00a0b"


def test_undeclared_prefix_is_a_parse_error():
    with pytest.raises(ET.ParseError):
        parse_fragment("<nope:Req key='k'/>", NamespaceTable())


def test_malformed_xml_is_a_parse_error():
    with pytest.raises(ET.ParseError):
        parse_fragment('<os:Req key="k">', NamespaceTable())


def test_extract_data_scripts():
    html = """
    <html><head>
      <script type="text/javascript">var x = "<os:Ignored/>";</script>
      <script type="text/os-data"><os:ViewerRequest key="viewer"/></script>
    </head><body>
      <script type="text/os-data">
        <os:OwnerRequest key="owner"/>
      </script>
    </body></html>
    """
    scripts = extract_data_scripts(html)
    assert len(scripts) == 2
    assert '<os:ViewerRequest key="viewer"/>' in scripts[0]
    assert '<os:OwnerRequest key="owner"/>' in scripts[1]
