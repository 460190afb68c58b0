"""XML markup helpers for data pipeline fragments.

Pipeline markup usually arrives as a bare fragment such as

    <os:DataSet key="friends"><os:PeopleRequest userId="@viewer"/></os:DataSet>

with neither a single root element nor xmlns declarations. prepare_xml()
wraps it in a <root> carrying declarations for every known prefix it
uses; parse_xml() runs it through ElementTree and hands back a small
element tree that keeps "prefix:local" names.

Malformed XML raises xml.etree.ElementTree.ParseError.
"""

import logging
import re
import xml.etree.ElementTree as ET
from html.parser import HTMLParser
from typing import Dict, Iterator, List, Optional, Tuple

from config import DEFAULT_NAMESPACES, ENTITIES, SCRIPT_TYPE, SYNTHETIC_NAMESPACE_BASE

logger = logging.getLogger(__name__)

# Prefix of an element ("<os:Foo", "</os:Foo") or attribute (' test:attr=')
PREFIX_RE = re.compile(r"(?:</?|\s)([A-Za-z_][\w.-]*):[A-Za-z_][\w.-]*")
DECLARED_RE = re.compile(r"xmlns:([A-Za-z_][\w.-]*)\s*=")
RESERVED_PREFIXES = {"xml", "xmlns"}


class NamespaceTable:
    """Short XML prefix -> namespace URI."""

    def __init__(self, namespaces: Optional[Dict[str, str]] = None):
        self._uris: Dict[str, str] = dict(DEFAULT_NAMESPACES)
        if namespaces:
            self._uris.update(namespaces)

    def register(self, prefix: str, uri: Optional[str] = None) -> str:
        """Add a prefix. Existing prefixes keep their URI unless one is given."""
        if uri is None:
            if prefix in self._uris:
                return self._uris[prefix]
            uri = SYNTHETIC_NAMESPACE_BASE + prefix
        self._uris[prefix] = uri
        logger.debug("Registered namespace %s -> %s", prefix, uri)
        return uri

    def uri(self, prefix: str) -> Optional[str]:
        return self._uris.get(prefix)

    def prefix_for(self, uri: str) -> Optional[str]:
        for prefix, known in self._uris.items():
            if known == uri:
                return prefix
        return None

    def required_declarations(self, xml: str) -> str:
        """xmlns attributes for known prefixes used but not declared in xml."""
        declared = set(DECLARED_RE.findall(xml))
        used = dict.fromkeys(PREFIX_RE.findall(xml))
        decls = []
        for prefix in used:
            if prefix in RESERVED_PREFIXES or prefix in declared:
                continue
            uri = self._uris.get(prefix)
            if uri is None:
                # Left undeclared; the parser reports the unbound prefix
                continue
            decls.append(f' xmlns:{prefix}="{uri}"')
        return "".join(decls)

    def __contains__(self, prefix: str) -> bool:
        return prefix in self._uris

    def items(self):
        return self._uris.items()


class XmlElement:
    """Read-only view of an ElementTree element with prefixed names."""

    def __init__(self, element: ET.Element, prefixes: Dict[str, str]):
        self._element = element
        self._prefixes = prefixes
        self.tag_name = _qualify(element.tag, prefixes)

    @property
    def attributes(self) -> List[Tuple[str, str]]:
        """(name, value) pairs in document order."""
        return [(_qualify(name, self._prefixes), value)
                for name, value in self._element.attrib.items()]

    def get_attribute(self, name: str) -> Optional[str]:
        for attr_name, value in self.attributes:
            if attr_name == name:
                return value
        return None

    @property
    def local_name(self) -> str:
        return self.tag_name.rpartition(":")[2]

    @property
    def prefix(self) -> str:
        return self.tag_name.rpartition(":")[0]

    def children(self) -> Iterator["XmlElement"]:
        for child in self._element:
            yield XmlElement(child, self._prefixes)

    def __repr__(self) -> str:
        return f"<XmlElement {self.tag_name}>"


def _qualify(name: str, prefixes: Dict[str, str]) -> str:
    """'{uri}local' -> 'prefix:local'."""
    if not name.startswith("{"):
        return name
    uri, _, local = name[1:].partition("}")
    prefix = prefixes.get(uri)
    return f"{prefix}:{local}" if prefix else local


def prepare_xml(fragment: str, namespaces: NamespaceTable) -> str:
    """Wrap a fragment in a <root> element with the namespaces it needs."""
    decls = namespaces.required_declarations(fragment)
    return (f'<!DOCTYPE root [{ENTITIES}]>'
            f'<root xml:space="preserve"{decls}>{fragment}</root>')


def parse_xml(xml: str, namespaces: NamespaceTable) -> XmlElement:
    """Parse a prepared XML document and return its root element.

    Raises ET.ParseError on malformed input.
    """
    parser = ET.XMLPullParser(events=("start-ns", "start"))
    parser.feed(xml)
    parser.close()

    # Declarations inside the document take precedence over the table
    prefixes = {uri: prefix for prefix, uri in namespaces.items()}
    declared: Dict[str, str] = {}
    root = None
    for event, item in parser.read_events():
        if event == "start-ns":
            prefix, uri = item
            if prefix:
                declared.setdefault(uri, prefix)
        elif root is None:
            root = item

    if root is None:
        raise ET.ParseError("no element found")
    prefixes.update(declared)
    return XmlElement(root, prefixes)


def parse_fragment(fragment: str, namespaces: NamespaceTable) -> XmlElement:
    """prepare_xml() + parse_xml()."""
    return parse_xml(prepare_xml(fragment, namespaces), namespaces)


class _DataScriptCollector(HTMLParser):
    """Collects the bodies of <script type="text/os-data"> blocks."""

    def __init__(self):
        super().__init__(convert_charrefs=False)
        self.scripts: List[str] = []
        self._buffer: Optional[List[str]] = None

    def handle_starttag(self, tag, attrs):
        if tag == "script" and (dict(attrs).get("type") or "").strip().lower() == SCRIPT_TYPE:
            self._buffer = []

    def handle_data(self, data):
        if self._buffer is not None:
            self._buffer.append(data)

    def handle_endtag(self, tag):
        if tag == "script" and self._buffer is not None:
            self.scripts.append("".join(self._buffer))
            self._buffer = None


def extract_data_scripts(html: str) -> List[str]:
    """Return the markup of every os-data script block, in document order."""
    collector = _DataScriptCollector()
    collector.feed(html)
    collector.close()
    logger.debug("Found %d data script block(s)", len(collector.scripts))
    return collector.scripts
