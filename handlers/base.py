"""Handler abstraction for data requests.

A RequestHandler is called with a resolved RequestDescriptor and is
responsible for producing the dataset, usually by calling
put_data_set(descriptor.key, ...) now or once a response arrives.
Plain functions work as handlers too; classes are only needed when the
handler wants session state or configuration.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from core.descriptor import RequestDescriptor


class RequestHandler(ABC):
    """Base class for built-in handlers.

    Subclasses implement handle(). CONFIG_SECTION names the entry under
    "handlers" in the pipeline config that is passed in as config.
    """

    CONFIG_SECTION = ""

    def __init__(self, session, config: Dict[str, Any]):
        self.session = session
        self.context = session.data
        self.config = config

    def __call__(self, descriptor: RequestDescriptor):
        self.handle(descriptor)

    @abstractmethod
    def handle(self, descriptor: RequestDescriptor) -> None:
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
