"""OpenSocial person and activity requests.

Each handler turns its tag into an osapi JSON-RPC call and queues it on
the session's shared API batch, which the pipeline sends in one round
trip after the execution pass.

Markup example:
    <os:ViewerRequest key="viewer" fields="name,thumbnailUrl"/>
    <os:PeopleRequest key="friends" userId="@viewer" groupId="@friends" count="20"/>
    <os:ActivitiesRequest key="activities" userId="${viewer.id}"/>
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from core.descriptor import RequestDescriptor
from core.registry import register_handler
from handlers.base import RequestHandler

logger = logging.getLogger(__name__)

SELF_GROUP = "@self"

# Optional attributes copied into the RPC params, and how to coerce them
_OPTIONAL_PARAMS = {
    "fields": "list",
    "startIndex": "int",
    "count": "int",
    "sortBy": "str",
    "sortOrder": "str",
    "filterBy": "str",
    "filterOp": "str",
    "filterValue": "str",
}


def _as_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [part.strip() for part in str(value).split(",") if part.strip()]


class SocialRequestHandler(RequestHandler):
    """Queues one osapi call per descriptor."""

    CONFIG_SECTION = "rpc"
    METHOD = "people.get"
    DEFAULT_USER: Optional[str] = None
    EXTRA_PARAMS: Dict[str, str] = {}

    def handle(self, descriptor: RequestDescriptor) -> None:
        params = self.build_params(descriptor)
        if params is None:
            return
        self.session.api_batch.add({"method": self.METHOD, "params": params}, descriptor.key)

    def build_params(self, descriptor: RequestDescriptor) -> Optional[Dict[str, Any]]:
        """RPC params for a descriptor, or None when it can't be sent."""
        user_id = descriptor.get_attribute("userId") or self.DEFAULT_USER
        if not user_id:
            logger.warning("%s %s: missing userId", descriptor.tag_name, descriptor.key)
            return None

        if isinstance(user_id, Mapping):
            logger.warning("%s %s: userId is an object, not an id", descriptor.tag_name, descriptor.key)
            return None
        user_ids = _as_list(user_id)
        if not user_ids:
            logger.warning("%s %s: missing userId", descriptor.tag_name, descriptor.key)
            return None
        params: Dict[str, Any] = {
            "userId": user_ids[0] if len(user_ids) == 1 else user_ids,
            "groupId": descriptor.get_attribute("groupId") or SELF_GROUP,
        }

        for name, kind in dict(_OPTIONAL_PARAMS, **self.EXTRA_PARAMS).items():
            value = descriptor.get_attribute(name)
            if value is None or value == "":
                continue
            if kind == "list":
                params[name] = _as_list(value)
            elif kind == "int":
                try:
                    params[name] = int(value)
                except (TypeError, ValueError):
                    logger.warning(
                        "%s %s: ignoring non-numeric %s=%r",
                        descriptor.tag_name, descriptor.key, name, value,
                    )
            else:
                params[name] = str(value)
        return params


@register_handler("os:ViewerRequest")
class ViewerRequestHandler(SocialRequestHandler):
    """The person viewing the gadget."""

    DEFAULT_USER = "@viewer"

    def build_params(self, descriptor):
        params = super().build_params(descriptor)
        params["userId"] = self.DEFAULT_USER
        params["groupId"] = SELF_GROUP
        return params


@register_handler("os:OwnerRequest")
class OwnerRequestHandler(ViewerRequestHandler):
    """The person who owns the page the gadget lives on."""

    DEFAULT_USER = "@owner"


@register_handler("os:PeopleRequest")
class PeopleRequestHandler(SocialRequestHandler):
    pass


@register_handler("os:ActivitiesRequest")
class ActivitiesRequestHandler(SocialRequestHandler):
    METHOD = "activities.get"
    EXTRA_PARAMS = {"appId": "str", "activityIds": "list"}
