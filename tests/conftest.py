"""Shared pytest fixtures for the data pipeline tests."""

import pytest

from core.data_context import DataContext
from core.markup import NamespaceTable
from core.pipeline import RequestPipeline
from core.pipeline_context import PipelineContext
from core.registry import HandlerRegistry


@pytest.fixture
def context():
    """An empty data context."""
    return DataContext()


@pytest.fixture
def pipeline(context):
    """A pipeline with no handlers registered."""
    return RequestPipeline(context, HandlerRegistry(), NamespaceTable())


class FakeTransport:
    """Records API batches and answers from a canned response table."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def __call__(self, batch):
        self.calls.append(dict(batch))
        return {key: self.responses.get(key) for key in batch}


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def session(transport):
    """A PipelineContext with built-in handlers and a fake API transport."""
    return PipelineContext({}, transport=transport)
