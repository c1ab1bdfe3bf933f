"""Optional OpenTelemetry instrumentation for chunkwise.

Call ``chunkwise.instrument()`` once at startup to enable tracing.
Requires ``opentelemetry-api`` to be installed; aggregation works
identically without it.
"""

import importlib.util
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)

_tracer = None


def instrument(*, tracer_name: str = "chunkwise") -> None:
    """Enable OpenTelemetry tracing for stream aggregation.

    Call once at startup, after configuring your TracerProvider.
    Requires ``opentelemetry-api``: ``pip install chunkwise[otel]``

    Example::

        from opentelemetry import trace
        from opentelemetry.sdk.trace import TracerProvider

        trace.set_tracer_provider(TracerProvider())

        import chunkwise
        chunkwise.instrument()

    Args:
        tracer_name: Name passed to ``trace.get_tracer()``.

    Raises:
        ImportError: If ``opentelemetry-api`` is not installed.
    """
    global _tracer
    if importlib.util.find_spec("opentelemetry.trace") is None:
        raise ImportError(
            "opentelemetry-api is required for instrumentation. "
            "Install it with: pip install chunkwise[otel]"
        )
    from opentelemetry import trace
    _tracer = trace.get_tracer(tracer_name)
    if isinstance(_tracer, trace.NoOpTracer):
        logger.info(
            "No TracerProvider configured — spans will be "
            "discarded. Set up a TracerProvider to export "
            "traces."
        )
    else:
        logger.info("Chunkwise instrumentation enabled")


def uninstrument() -> None:
    """Disable OpenTelemetry tracing."""
    global _tracer
    _tracer = None


@contextmanager
def aggregation_span():
    """Wrap the aggregation of one stream in an ``aggregate_stream`` span.

    The span is never made current: the drivers yield to the caller
    while it is open, and the caller's own spans must not nest under it.
    """
    if _tracer is None:
        yield None
        return
    span = _tracer.start_span(
        "aggregate_stream",
        attributes={"gen_ai.operation.name": "aggregate_stream"},
    )
    try:
        yield span
    finally:
        span.end()


def record_usage(
    span, usage, response_model: str | None = None
):
    """Set token-usage and response-model attributes on a span."""
    if span is None:
        return
    if usage is not None:
        if usage.prompt_tokens is not None:
            span.set_attribute(
                "gen_ai.usage.input_tokens",
                usage.prompt_tokens,
            )
        if usage.completion_tokens is not None:
            span.set_attribute(
                "gen_ai.usage.output_tokens",
                usage.completion_tokens,
            )
    if response_model:
        span.set_attribute(
            "gen_ai.response.model", response_model
        )


def record_result(span, result, chunk_count: int | None = None) -> None:
    """Record id, finish reasons and usage of a finished completion."""
    if span is None or result is None:
        return
    if result.id:
        span.set_attribute("gen_ai.response.id", result.id)
    span.set_attribute(
        "gen_ai.response.finish_reasons",
        [
            c.finish_reason.value if c.finish_reason else ""
            for c in result.choices
        ],
    )
    if chunk_count is not None:
        span.set_attribute("chunkwise.chunk_count", chunk_count)
    record_usage(span, result.usage, result.model)


def record_error(span, exception: BaseException) -> None:
    """Record an exception and set ERROR status on a span.

    Sets ``error.type`` per GenAI semantic conventions.
    No-ops when *span* is ``None`` (tracing disabled).
    """
    if span is None:
        return
    from opentelemetry.trace import StatusCode

    span.set_status(StatusCode.ERROR, str(exception))
    span.record_exception(exception)
    span.set_attribute(
        "error.type", type(exception).__qualname__
    )
