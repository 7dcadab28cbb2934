"""OpenTelemetry tracing for topic runs (optional).

Each :func:`~skillcraft.pipeline.run_topic` call becomes one span carrying
the topic, scope and policy, with an event per step (scan, decide, confirm,
select, apply). Nothing is recorded unless ``SKILLCRAFT_OTEL_EXPORTER`` is
set or an exporter is installed explicitly.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

try:
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SimpleSpanProcessor

    _OTEL_AVAILABLE = True
except ImportError:  # pragma: no cover - optional dependency
    _OTEL_AVAILABLE = False

ENV_EXPORTER = "SKILLCRAFT_OTEL_EXPORTER"

_TRACER = None


def _exporter_from_env():
    preference = os.environ.get(ENV_EXPORTER, "").strip().lower()
    if preference == "console":
        return ConsoleSpanExporter()
    if preference == "otlp":
        try:  # pragma: no cover - optional dependency
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        except ImportError:
            return None
        return OTLPSpanExporter()
    return None


def install_exporter(exporter, batch: bool = True):
    """Send topic-run spans to ``exporter`` and return the tracer."""
    global _TRACER
    provider = TracerProvider(resource=Resource.create({"service.name": "skillcraft"}))
    provider.add_span_processor(BatchSpanProcessor(exporter) if batch else SimpleSpanProcessor(exporter))
    _TRACER = provider.get_tracer("skillcraft")
    return _TRACER


def reset_tracing() -> None:
    global _TRACER
    _TRACER = None


def _tracer():
    if not _OTEL_AVAILABLE:
        return None
    if _TRACER is None:
        exporter = _exporter_from_env()
        if exporter is None:
            return None
        install_exporter(exporter)
    return _TRACER


@contextmanager
def topic_span(slug: str, attributes: Dict[str, Any]) -> Iterator[Optional[Any]]:
    """Open a ``skillcraft.topic`` span, or yield ``None`` when tracing is off."""
    tracer = _tracer()
    if tracer is None:
        yield None
        return
    with tracer.start_as_current_span("skillcraft.topic", attributes={"skillcraft.slug": slug, **attributes}) as span:
        yield span


def record_step(span, step: str, attributes: Dict[str, Any]) -> None:
    if span is not None:
        span.add_event(step, attributes=attributes)


def record_result(span, attributes: Dict[str, Any]) -> None:
    if span is not None:
        span.set_attributes(attributes)
