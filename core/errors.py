"""Error types raised by the data pipeline.

Malformed XML is reported by ElementTree's own ParseError and is
re-raised untouched. Missing handlers and missing data are not errors.
"""


class PipelineError(Exception):
    """Base class for data pipeline failures."""


class RequestParseError(PipelineError):
    """A request element is structurally unusable (e.g. it has no key)."""


class DuplicateRequestError(RequestParseError):
    """A request with the same tag and key is already pending."""

    def __init__(self, tag_name: str, key: str):
        super().__init__(f"Request already registered for {tag_name} key '{key}'")
        self.tag_name = tag_name
        self.key = key
