"""
Shared pytest fixtures for integration tests.

This module provides OpenTelemetry fixtures backed by an in-memory span
exporter so tests can inspect the spans emitted by a real migration run.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest

# Module-level storage for the global test provider
_test_provider = None


@pytest.fixture(scope="session")
def setup_test_tracing() -> Generator[Any, None, None]:
    """
    Set up a global TracerProvider once per test session.

    The global provider can only be set once per process; if another
    provider is already installed it is reused.
    """
    global _test_provider

    from opentelemetry import trace
    from opentelemetry.sdk.trace import TracerProvider

    current_provider = trace.get_tracer_provider()
    if isinstance(current_provider, TracerProvider):
        _test_provider = current_provider
    else:
        _test_provider = TracerProvider()
        trace.set_tracer_provider(_test_provider)

    yield _test_provider


@pytest.fixture
def trace_exporter(setup_test_tracing: Any) -> Generator[Any, None, None]:
    """
    Create an in-memory span exporter attached to the test provider.

    Yields:
        InMemorySpanExporter capturing finished spans
    """
    from opentelemetry.sdk.trace.export import SimpleSpanProcessor
    from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

    exporter = InMemorySpanExporter()
    setup_test_tracing.add_span_processor(SimpleSpanProcessor(exporter))

    yield exporter

    # Processors cannot be removed from a provider; clearing is enough
    exporter.clear()
