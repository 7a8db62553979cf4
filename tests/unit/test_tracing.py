"""Unit tests for tracing helpers and span attribute masking."""

import httpx
import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from blackctrl.core.errors import InvalidOrExpiredTokenError
from blackctrl.core.tracing import mask_email, mask_token, preview_text, safe_span_attributes
from blackctrl.integrations.outreach_api import OutreachApiClient


@pytest.fixture(scope="module")
def span_exporter():
    """Collect finished spans in memory."""
    exporter = InMemorySpanExporter()
    provider = trace.get_tracer_provider()
    if not isinstance(provider, TracerProvider):
        provider = TracerProvider()
        trace.set_tracer_provider(provider)
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return exporter


@pytest.mark.unit
class TestMasking:
    """Test token, email and text masking."""

    def test_mask_token(self):
        """Test tokens keep only their first and last 4 characters."""
        assert mask_token("abcdefghijklmnopqrstuvwxyz") == "abcd...wxyz"
        assert mask_token("short") == "***"
        assert mask_token(None) == "<none>"

    def test_mask_email(self):
        """Test emails keep their first character and domain."""
        assert mask_email("founder@blackctrl.io") == "f*****@blackctrl.io"
        assert mask_email("a@b.com") == "a@b.com"
        assert mask_email("not-an-email") == "***@***"
        assert mask_email("") == "<none>"

    def test_preview_collapses_and_truncates(self):
        """Test previews are one line and capped in length."""
        preview = preview_text("Hi Jane,\n\n  quick thought " + "word " * 40)

        assert "\n" not in preview
        assert preview.startswith("Hi Jane, quick thought")
        assert preview.endswith("...")
        assert len(preview) <= 83

    def test_preview_masks_addresses_and_token_runs(self):
        """Test embedded addresses and token-like runs never reach a span."""
        preview = preview_text("Reply to jane.smith@acme.io with code " + "A" * 40)

        assert "jane.smith@acme.io" not in preview
        assert "j*****@acme.io" in preview
        assert "A" * 32 not in preview

    def test_preview_of_empty_text(self):
        """Test empty text has a placeholder preview."""
        assert preview_text(None) == "<empty>"
        assert preview_text("") == "<empty>"


@pytest.mark.unit
class TestSafeSpanAttributes:
    """Test safe_span_attributes key classification."""

    def test_masks_sensitive_fields(self):
        """Test secrets, emails and outreach text are masked by key."""
        attrs = safe_span_attributes(
            token="magic-link-token-1234567890",
            email="founder@blackctrl.io",
            outreach_message="Hi Jane,\nsaw your launch",
            company="Acme Inc.",
        )

        assert attrs["token"] == "magi...7890"
        assert attrs["email"] == "f*****@blackctrl.io"
        assert attrs["outreach_message"] == "Hi Jane, saw your launch"
        assert attrs["company"] == "Acme Inc."

    def test_key_insight_is_text_not_a_secret(self):
        """Test key names are matched on whole words."""
        attrs = safe_span_attributes(key_insight="Churn is climbing")

        assert attrs["key_insight"] == "Churn is climbing"

    def test_counters_stay_numeric(self):
        """Test numeric values under text keys are passed through."""
        attrs = safe_span_attributes(landing_page_copy_length=120, has_additional_context=False)

        assert attrs["landing_page_copy_length"] == 120
        assert attrs["has_additional_context"] is False

    def test_drops_none_and_stringifies_objects(self):
        """Test None values are dropped and objects stringified."""
        attrs = safe_span_attributes(company=None, tags=["a", "b"], retries=2)

        assert "company" not in attrs
        assert attrs["tags"] == "['a', 'b']"
        assert attrs["retries"] == 2


@pytest.mark.unit
@pytest.mark.asyncio
class TestApiSpans:
    """Test attributes recorded on API spans."""

    async def test_generate_span_carries_message_preview(self, span_exporter, valid_form):
        """Test the generate span records a masked preview of the message."""
        span_exporter.clear()
        body = {"outreachMessage": "Hi Jane, write me at jane@acme.io"}
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)))
        api = OutreachApiClient(base_url="http://api.blackctrl.test/api", client=client)

        await api.generate(valid_form)

        span = next(s for s in span_exporter.get_finished_spans() if s.name == "outreach_api.generate")
        assert span.attributes["outreach_message"] == "Hi Jane, write me at j***@acme.io"
        assert span.attributes["key_insight"] == valid_form.key_insight
        assert span.attributes["company"] == "Acme Inc."

    async def test_failed_call_marks_span(self, span_exporter):
        """Test a rejected token marks the span as an error."""
        span_exporter.clear()
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(410)))
        api = OutreachApiClient(base_url="http://api.blackctrl.test/api", client=client)

        with pytest.raises(InvalidOrExpiredTokenError):
            await api.verify_token("expired-token-0000")

        span = next(s for s in span_exporter.get_finished_spans() if s.name == "outreach_api.verify_token")
        assert span.status.status_code is trace.StatusCode.ERROR
        assert span.attributes["error.type"] == "invalid_or_expired_token"
        assert span.attributes["token"] == "expi...0000"
