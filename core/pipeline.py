"""Request pipeline: parse data requests, resolve them, dispatch to handlers.

    pipeline.load_requests('''
        <os:DataSet key="viewer"><os:ViewerRequest/></os:DataSet>
        <os:HttpRequest key="feed" href="http://example.com/feed/${viewer.id}"/>
    ''')
    pipeline.execute_requests()

load_requests() only parses. execute_requests() resolves each request's
attributes against the data context and calls the handler registered
for its tag; the handler stores the result under the request's key.
A request whose attributes read the key of another pending request
("feed" above reads "viewer") waits until that dataset arrives.
"""

import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from config import ATTR_KEY, DATASET_TAG
from core.api_batch import ApiBatch
from core.data_context import DataContext
from core.descriptor import RequestDescriptor
from core.errors import DuplicateRequestError, RequestParseError
from core.markup import NamespaceTable, XmlElement, extract_data_scripts, parse_fragment
from core.registry import Handler, HandlerRegistry

logger = logging.getLogger(__name__)

_DATASET_PREFIX, _, _DATASET_LOCAL = DATASET_TAG.partition(":")


def _is_dataset(node: XmlElement) -> bool:
    return node.prefix == _DATASET_PREFIX and node.local_name.lower() == _DATASET_LOCAL.lower()


class RequestPipeline:
    """Pending request table plus the logic to execute it."""

    def __init__(
        self,
        context: DataContext,
        handlers: HandlerRegistry,
        namespaces: NamespaceTable,
        api_batch: Optional[ApiBatch] = None,
    ):
        self.context = context
        self.handlers = handlers
        self.namespaces = namespaces
        self.api_batch = api_batch
        # tag name -> key -> descriptor
        self.requests: Dict[str, Dict[str, RequestDescriptor]] = {}

    def register_request_handler(self, tag_name: str, handler: Handler):
        """Register the handler for a prefixed tag name. Overwrites silently."""
        prefix, sep, _ = tag_name.partition(":")
        if sep and prefix not in self.namespaces:
            self.namespaces.register(prefix)
        self.handlers.register(tag_name, handler)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_requests(self, xml: str) -> List[RequestDescriptor]:
        """Parse markup into pending requests. Nothing is executed.

        Raises:
            xml.etree.ElementTree.ParseError: malformed markup.
            RequestParseError: a request without a key, or a duplicate.
        """
        root = parse_fragment(xml, self.namespaces)

        found: List[Tuple[XmlElement, Optional[str]]] = []
        for node in root.children():
            if _is_dataset(node):
                key = node.get_attribute(ATTR_KEY)
                found.extend((child, key) for child in node.children())
            else:
                found.append((node, None))

        descriptors = []
        seen = set()
        for node, inherited_key in found:
            descriptor = self._build(node, inherited_key)
            ident = (descriptor.tag_name, descriptor.key)
            if ident in seen or descriptor.key in self.requests.get(descriptor.tag_name, {}):
                raise DuplicateRequestError(*ident)
            seen.add(ident)
            descriptors.append(descriptor)

        for descriptor in descriptors:
            self.requests.setdefault(descriptor.tag_name, {})[descriptor.key] = descriptor

        logger.info("Loaded %d data request(s)", len(descriptors))
        return descriptors

    def _build(self, node: XmlElement, inherited_key: Optional[str]) -> RequestDescriptor:
        attributes = dict(node.attributes)
        key = attributes.get(ATTR_KEY) or inherited_key
        if not key:
            raise RequestParseError(f"{node.tag_name} has no '{ATTR_KEY}' attribute")
        return RequestDescriptor(node.tag_name, key, attributes)

    def process_document_markup(self, html: str):
        """Load every <script type="text/os-data"> block of a page, then execute."""
        for markup in extract_data_scripts(html):
            self.load_requests(markup)
        self.execute_requests()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def descriptors(self) -> Iterator[RequestDescriptor]:
        """All pending descriptors in execution order."""
        for group in list(self.requests.values()):
            yield from list(group.values())

    def get_request(self, tag_name: str, key: str) -> Optional[RequestDescriptor]:
        return self.requests.get(tag_name, {}).get(key)

    def clear_requests(self):
        self.requests.clear()

    def execute_requests(self):
        """Dispatch every pending request.

        Requests that read datasets still to be produced by another
        pending request are deferred until those datasets arrive.
        """
        pending_keys = {d.key for d in self.descriptors()}
        for descriptor in self.descriptors():
            waiting_on = self._dependencies(descriptor, pending_keys)
            if waiting_on:
                if descriptor.waiting:
                    continue
                logger.debug("%s waits on %s", descriptor, ", ".join(waiting_on))
                descriptor.waiting = True
                self.context.register_ready_listener(
                    waiting_on, self._deferred_dispatch(descriptor)
                )
            else:
                self.dispatch(descriptor)
        self.flush()

    def _dependencies(self, descriptor: RequestDescriptor, pending_keys) -> List[str]:
        return [
            key for key in sorted(descriptor.needed_keys)
            if key != descriptor.key
            and key in pending_keys
            and self.context.get_data_set(key) is None
        ]

    def _deferred_dispatch(self, descriptor: RequestDescriptor) -> Callable[[str], None]:
        def run(_key):
            descriptor.waiting = False
            self.dispatch(descriptor)
            self.flush()
        return run

    def dispatch(self, descriptor: RequestDescriptor):
        """Resolve attributes and call the descriptor's handler, if any."""
        handler = self.handlers.get(descriptor.tag_name)
        if handler is None:
            logger.debug("No handler for %s, skipping key %s", descriptor.tag_name, descriptor.key)
            return
        descriptor.resolve(self.context)
        handler(descriptor)
        descriptor.executed = True

    def flush(self):
        """Send the shared API batch if handlers queued anything."""
        if self.api_batch is not None and self.api_batch.pending:
            self.api_batch.send()
