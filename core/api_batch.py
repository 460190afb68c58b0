"""Shared batch of social API requests.

Handlers for os:ViewerRequest, os:PeopleRequest etc. don't talk to the
container one by one. They queue a request here under their dataset
key; the pipeline sends the whole batch in a single transport call once
its execution pass is done, and each item of the response lands in the
data context under the key it was requested for.

A transport is any callable taking {key: request} and returning
{key: item}, e.g. handlers.rpc_transport.JsonRpcTransport.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from core.errors import PipelineError

logger = logging.getLogger(__name__)

Transport = Callable[[Dict[str, Any]], Mapping[str, Any]]
ItemCallback = Callable[[str, Any], None]


class ApiBatch:
    """Collects API requests and delivers the responses by key."""

    def __init__(self, context, transport: Optional[Transport] = None):
        self.context = context
        self.transport = transport
        self._requests: Dict[str, Any] = {}
        self._callbacks: Dict[str, ItemCallback] = {}

    def add(self, request: Any, key: str, callback: Optional[ItemCallback] = None):
        """Queue a request.

        Without a callback the response item is stored with
        put_data_set(key, item); with one, callback(key, item) is called
        instead.
        """
        if key in self._requests:
            logger.warning("API request for %s queued twice; keeping the last one", key)
        self._requests[key] = request
        if callback:
            self._callbacks[key] = callback
        else:
            self._callbacks.pop(key, None)

    @property
    def pending(self) -> List[str]:
        return list(self._requests)

    def send(self):
        """Send queued requests in one transport call and dispatch the items."""
        if not self._requests:
            return
        if self.transport is None:
            raise PipelineError(
                f"No API transport configured for {', '.join(self._requests)}"
            )

        # Reset first so callbacks can start a new batch
        requests, callbacks = self._requests, self._callbacks
        self._requests, self._callbacks = {}, {}

        logger.info("Sending %d API request(s): %s", len(requests), ", ".join(requests))
        response = self.transport(requests) or {}
        self.on_api_response(response, list(requests), callbacks)

    def on_api_response(self, response: Mapping[str, Any], keys: List[str],
                        callbacks: Mapping[str, ItemCallback]):
        """Route each requested key's item to its callback or the data context."""
        for key in keys:
            item = response.get(key)
            if key in callbacks:
                callbacks[key](key, item)
            else:
                self.context.put_data_set(key, item)
