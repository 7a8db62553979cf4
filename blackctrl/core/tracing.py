"""
OpenTelemetry tracing for the BLACK CTRL client.

Every API call runs in an ``outreach_api.<operation>`` span. Span attributes go
through ``safe_span_attributes``, which classifies each key by its words:

- secrets (``token``, ``cookie``, ``secret``, ``password``) are masked
- ``email`` values keep their first character and domain
- outreach text (``message``, ``copy``, ``insight``, ``context``) becomes a short
  preview with embedded addresses masked and token-like runs removed
"""

import re
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Span, Status, StatusCode

from blackctrl import __version__
from blackctrl.core.config import settings

SECRET_WORDS = frozenset({"token", "cookie", "secret", "password"})
EMAIL_WORDS = frozenset({"email"})
TEXT_WORDS = frozenset({"message", "copy", "insight", "context"})

_EMBEDDED_EMAIL = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
_TOKEN_RUN = re.compile(r"[A-Za-z0-9_-]{32,}")


def setup_tracing(exporter_type: str | None = None) -> TracerProvider:
    """
    Install the global tracer provider.

    Args:
        exporter_type: "otlp", "console" or "none"; defaults to
            ``settings.OTEL_TRACES_EXPORTER``

    Returns:
        Configured TracerProvider
    """
    resource = Resource.create(
        {
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.version": __version__,
        }
    )
    provider = TracerProvider(resource=resource)

    exporter_type = (exporter_type or settings.OTEL_TRACES_EXPORTER).lower()
    if exporter_type == "otlp":
        exporter = OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))
    elif exporter_type == "console":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    return provider


def get_tracer(name: str = __name__) -> trace.Tracer:
    return trace.get_tracer(name)


def mark_failed(span: Span, error_type: str, description: str) -> None:
    """Record a failed operation on ``span``."""
    span.set_status(Status(StatusCode.ERROR, description))
    span.set_attribute("error.type", error_type)


def mask_token(token: str | None) -> str:
    """Keep the first and last 4 characters of a magic link token or cookie."""
    if not token:
        return "<none>"
    if len(token) <= 12:
        return "***"
    return f"{token[:4]}...{token[-4:]}"


def mask_email(email: str | None) -> str:
    """
    Mask an email address for logs and spans.

    Shows first character and domain, masks the rest.
    """
    if not email:
        return "<none>"

    match = re.match(r"^([^@])([^@]*)(@.+)$", email)
    if match:
        first_char, rest, domain = match.groups()
        return f"{first_char}{'*' * min(len(rest), 5)}{domain}"

    return "***@***"


def preview_text(text: str | None, max_length: int = 80) -> str:
    """
    One-line preview of outreach text.

    Whitespace is collapsed, addresses are masked and token-like runs are
    removed before truncating, so a cut never exposes part of a secret.
    """
    if not text:
        return "<empty>"

    preview = " ".join(text.split())
    preview = _EMBEDDED_EMAIL.sub(lambda m: mask_email(m.group(0)), preview)
    preview = _TOKEN_RUN.sub("***", preview)
    if len(preview) > max_length:
        preview = preview[:max_length].rstrip() + "..."
    return preview


def safe_span_attributes(**kwargs: Any) -> dict[str, Any]:
    """
    Span attributes with sensitive values masked by key.

    Keys are matched on their ``_``-separated words, so ``company`` and
    ``key_insight`` are not mistaken for secrets. Text previews apply to string
    values only, so counters like ``landing_page_copy_length`` stay numeric.
    None values are dropped and non-primitive values are stringified.
    """
    attributes = {}

    for key, value in kwargs.items():
        if value is None:
            continue

        words = set(key.lower().split("_"))
        if words & SECRET_WORDS:
            attributes[key] = mask_token(str(value))
        elif words & EMAIL_WORDS:
            attributes[key] = mask_email(str(value))
        elif words & TEXT_WORDS and isinstance(value, str):
            attributes[key] = preview_text(value)
        elif isinstance(value, (str, int, float, bool)):
            attributes[key] = value
        else:
            attributes[key] = str(value)

    return attributes
