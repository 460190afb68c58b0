"""JSON-RPC transport for the shared API batch.

Posts the whole batch to the container's osapi endpoint as a JSON-RPC
array, using the dataset key as each call's id:

    [{"method": "people.get", "id": "viewer", "params": {"userId": "@viewer", ...}}, ...]

and maps the response entries back by id. An entry carrying an error
is passed on as {"error": {...}} so the gadget can see what failed.

Config example (pipeline.yaml):
    handlers:
      rpc:
        endpoint: "https://container.example.com/rpc"
        security_token: "st-abc"
        timeout: 15
"""

import logging
from typing import Any, Dict, Mapping, Optional

import requests

from config import RPC_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


class JsonRpcTransport:
    """Sends {key: request} batches to an osapi JSON-RPC endpoint."""

    def __init__(self, endpoint: str, security_token: Optional[str] = None,
                 timeout: float = RPC_TIMEOUT):
        self.endpoint = endpoint
        self.security_token = security_token
        self._timeout = timeout

    def __call__(self, batch: Mapping[str, Dict[str, Any]]) -> Dict[str, Any]:
        payload = [dict(call, id=key) for key, call in batch.items()]
        query = {"st": self.security_token} if self.security_token else None

        try:
            resp = requests.post(
                self.endpoint,
                json=payload,
                params=query,
                headers={"User-Agent": USER_AGENT},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as exc:
            logger.warning("JSON-RPC %s: %s", self.endpoint, exc)
            return {}
        except ValueError as exc:
            logger.warning("JSON-RPC %s: bad response: %s", self.endpoint, exc)
            return {}

        if isinstance(body, dict):
            body = [body]

        results: Dict[str, Any] = {}
        for entry in body:
            if not isinstance(entry, dict) or entry.get("id") is None:
                continue
            key = entry["id"]
            if "error" in entry:
                logger.warning("JSON-RPC %s failed: %s", key, entry["error"])
                results[key] = {"error": entry["error"]}
            else:
                results[key] = entry.get("result", entry.get("data"))
        return results

    def __repr__(self) -> str:
        return f"<JsonRpcTransport {self.endpoint}>"


def transport_from_config(config: Dict[str, Any]) -> Optional[JsonRpcTransport]:
    """Build a transport from the "rpc" handler section, if it names an endpoint."""
    endpoint = config.get("endpoint")
    if not endpoint:
        return None
    return JsonRpcTransport(
        endpoint,
        security_token=config.get("security_token"),
        timeout=config.get("timeout", RPC_TIMEOUT),
    )
