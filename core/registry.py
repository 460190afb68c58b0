"""Request handler registries.

Built-in handler classes register themselves by tag name with a class
decorator. Each PipelineContext instantiates them into its own
HandlerRegistry, next to any handlers the application adds.

Usage:
    @register_handler("os:HttpRequest")
    class HttpRequestHandler(RequestHandler):
        ...

    pipeline.register_request_handler("myapp:Weather", fetch_weather)
"""

import logging
from typing import Callable, Dict, Iterator, Optional

logger = logging.getLogger(__name__)

Handler = Callable[..., None]

HANDLER_CLASSES: Dict[str, type] = {}


def register_handler(name: str):
    """Decorator to register a built-in handler class by tag name."""
    def decorator(cls):
        HANDLER_CLASSES[name] = cls
        logger.debug("Registered handler class: %s -> %s", name, cls.__name__)
        return cls
    return decorator


class HandlerRegistry:
    """Tag name -> handler callable. The last registration for a tag wins."""

    def __init__(self):
        self._handlers: Dict[str, Handler] = {}

    def register(self, tag_name: str, handler: Handler):
        if tag_name in self._handlers:
            logger.debug("Replacing handler for %s", tag_name)
        self._handlers[tag_name] = handler

    def get(self, tag_name: str) -> Optional[Handler]:
        return self._handlers.get(tag_name)

    def __contains__(self, tag_name: str) -> bool:
        return tag_name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)
