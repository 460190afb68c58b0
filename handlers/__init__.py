"""Built-in data request handlers.

Importing this package registers all built-in handler types.
"""

from handlers.social import (
    ActivitiesRequestHandler,
    OwnerRequestHandler,
    PeopleRequestHandler,
    ViewerRequestHandler,
)
from handlers.http import HttpRequestHandler

__all__ = [
    "ViewerRequestHandler", "OwnerRequestHandler", "PeopleRequestHandler",
    "ActivitiesRequestHandler", "HttpRequestHandler",
]
