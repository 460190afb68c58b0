"""os:HttpRequest - fetch a URL straight into a dataset.

Markup example:
    <os:HttpRequest key="weather"
        href="https://api.example.com/weather?city=${ViewParams.city}"
        format="json" method="GET"/>

format is "json" (default) or "text". params is an urlencoded string,
sent as the query string for GET and as the form body otherwise.

Config example (pipeline.yaml):
    handlers:
      http:
        timeout: 10
"""

import logging

import requests

from config import HTTP_TIMEOUT, USER_AGENT
from core.descriptor import RequestDescriptor
from core.registry import register_handler
from handlers.base import RequestHandler

logger = logging.getLogger(__name__)


@register_handler("os:HttpRequest")
class HttpRequestHandler(RequestHandler):
    """Fetches href and stores the decoded body under the request key."""

    CONFIG_SECTION = "http"

    def __init__(self, session, config):
        super().__init__(session, config)
        self._timeout = config.get("timeout", HTTP_TIMEOUT)

    def handle(self, descriptor: RequestDescriptor) -> None:
        href = descriptor.get_attribute("href")
        if not href:
            logger.warning("HttpRequest %s: missing href", descriptor.key)
            return

        fmt = str(descriptor.get_attribute("format") or "json").lower()
        method = str(descriptor.get_attribute("method") or "GET").upper()
        params = descriptor.get_attribute("params")

        headers = {"User-Agent": USER_AGENT}
        kwargs = {}
        if params:
            if method == "GET":
                kwargs["params"] = params
            else:
                kwargs["data"] = params
                headers["Content-Type"] = "application/x-www-form-urlencoded"

        try:
            resp = requests.request(
                method, href, headers=headers, timeout=self._timeout, **kwargs
            )
            resp.raise_for_status()
            data = resp.text if fmt == "text" else resp.json()
        except requests.RequestException as exc:
            logger.warning("HttpRequest %s: %s", descriptor.key, exc)
            return
        except ValueError as exc:
            logger.warning("HttpRequest %s: bad JSON from %s: %s", descriptor.key, href, exc)
            return

        self.context.put_data_set(descriptor.key, data)
