"""Core of the OpenSocial data pipeline.

Lets a gadget declare named data requests in markup, have them resolved
by registered handlers, and react when the results land.

Architecture:
    Expression      -- parsed "${dataset.path}" template string, evaluated against a DataContext
    DataContext     -- named datasets; listeners fire synchronously on every change
    RequestPipeline -- parses request markup into descriptors, resolves and dispatches them
    HandlerRegistry -- tag name -> handler, one per session
    ApiBatch        -- social API calls queued by handlers, sent once per execution pass

PipelineContext (core.pipeline_context) wires one of each per session.
"""

from core.api_batch import ApiBatch
from core.data_context import DataContext
from core.descriptor import RequestDescriptor, Resolved
from core.errors import DuplicateRequestError, PipelineError, RequestParseError
from core.expressions import Expression, Literal, evaluate, parse_expression, render, string_value
from core.markup import NamespaceTable
from core.pipeline import RequestPipeline
from core.registry import HANDLER_CLASSES, HandlerRegistry, register_handler

__all__ = [
    "ApiBatch",
    "DataContext",
    "RequestDescriptor",
    "Resolved",
    "PipelineError",
    "RequestParseError",
    "DuplicateRequestError",
    "Expression",
    "Literal",
    "evaluate",
    "parse_expression",
    "render",
    "string_value",
    "NamespaceTable",
    "RequestPipeline",
    "HANDLER_CLASSES",
    "HandlerRegistry",
    "register_handler",
]
