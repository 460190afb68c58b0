"""Per-session wiring of the data pipeline.

A PipelineContext is created once per gadget/page session and owns the
data context, handler registry, namespace table, API batch and request
pipeline. Built-in handlers from the handlers package are instantiated
with the session and their config section.

    session = PipelineContext(load_config("pipeline.yaml"))
    session.register_request_handler("myapp:Greeting", greet)
    session.load_requests(markup)
    session.execute_requests()
    session.get_data_set("greeting")
"""

import logging
from typing import Any, Dict, Optional

import handlers  # noqa: F401  (registers built-in handler classes)
from config import VIEW_PARAMS_KEY
from core.api_batch import ApiBatch, Transport
from core.data_context import DataContext
from core.markup import NamespaceTable
from core.pipeline import RequestPipeline
from core.registry import HANDLER_CLASSES, HandlerRegistry
from handlers.rpc_transport import transport_from_config

logger = logging.getLogger(__name__)


class PipelineContext:
    """Everything one gadget session needs to run its data pipeline."""

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 transport: Optional[Transport] = None):
        self.config = config or {}
        handler_cfg = self.config.get("handlers") or {}

        self.data = DataContext()
        self.namespaces = NamespaceTable(self.config.get("namespaces"))
        self.handlers = HandlerRegistry()
        if transport is None:
            transport = transport_from_config(handler_cfg.get("rpc") or {})
        self.api_batch = ApiBatch(self.data, transport)
        self.pipeline = RequestPipeline(
            self.data, self.handlers, self.namespaces, self.api_batch
        )

        for tag_name, cls in HANDLER_CLASSES.items():
            section = handler_cfg.get(cls.CONFIG_SECTION) or {}
            self.pipeline.register_request_handler(tag_name, cls(self, section))

        for key, value in (self.config.get("datasets") or {}).items():
            self.data.put_data_set(key, value)

        view_params = self.config.get("view_params")
        if view_params is not None:
            self.data.put_data_set(VIEW_PARAMS_KEY, view_params)

        logger.info(
            "PipelineContext ready (%d handlers, %d datasets)",
            len(self.handlers), len(self.data.keys()),
        )

    # Convenience pass-throughs for host code

    def put_data_set(self, key: str, value: Any):
        self.data.put_data_set(key, value)

    def get_data_set(self, key: str) -> Any:
        return self.data.get_data_set(key)

    def register_listener(self, keys, callback):
        self.data.register_listener(keys, callback)

    def register_request_handler(self, tag_name: str, handler):
        self.pipeline.register_request_handler(tag_name, handler)

    def load_requests(self, xml: str):
        return self.pipeline.load_requests(xml)

    def execute_requests(self):
        self.pipeline.execute_requests()

    def process_document_markup(self, html: str):
        self.pipeline.process_document_markup(html)

    def close(self):
        """Drop pending requests, datasets and listeners."""
        self.pipeline.clear_requests()
        self.data.clear()
