"""BLACK CTRL API client.

Async httpx client for the auth, generation, history and PDF export endpoints.
The session cookie set by ``/auth/verify`` lives in the client's cookie jar, so
one ``OutreachApiClient`` corresponds to one signed-in client session.

Every call runs inside an OpenTelemetry span and maps HTTP failures onto the
client error taxonomy in ``blackctrl.core.errors``.
"""

import logging
from typing import Any

import httpx
import pydantic
from opentelemetry.trace import Span, Status, StatusCode

from blackctrl.core.config import settings
from blackctrl.core.errors import (
    ExportError,
    GenerationError,
    InvalidOrExpiredTokenError,
    NotWhitelistedError,
    OutreachError,
    SessionExpiredError,
    TransportError,
)
from blackctrl.core.tracing import get_tracer, mark_failed, mask_email, safe_span_attributes
from blackctrl.models.outreach import OutreachFormData, OutreachResult, SavedMessage

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

# Statuses the verify endpoint uses to reject a token
TOKEN_REJECTED_STATUSES = frozenset({400, 401, 403, 404, 410})

_saved_messages_adapter = pydantic.TypeAdapter(list[SavedMessage])


def _error_detail(response: httpx.Response) -> str | None:
    """Extract a human-readable message from an error response.

    Looks for ``message``, ``error`` or ``detail`` in a JSON body and falls
    back to the raw text.
    """
    if not response.content:
        return None
    try:
        data = response.json()
    except ValueError:
        text = response.text.strip()
        return text or None
    if isinstance(data, dict):
        for key in ("message", "error", "detail"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return None


class OutreachApiClient:
    """Client for the BLACK CTRL HTTP API.

    Args:
        base_url: API root including the prefix (defaults to ``settings.API_URL``)
        client: Pre-configured ``httpx.AsyncClient``; one is created when omitted
        timeout: Default request timeout in seconds
        generate_timeout: Timeout for the generation request in seconds
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        generate_timeout: float | None = None,
    ):
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT
        self.generate_timeout = generate_timeout or settings.GENERATE_TIMEOUT
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "OutreachApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _send(
        self,
        span: Span,
        method: str,
        path: str,
        json: Any = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send one request, converting network failures into ``TransportError``."""
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(
                method,
                url,
                json=json,
                timeout=timeout or self.timeout,
            )
        except httpx.TimeoutException:
            logger.error("BLACK CTRL API timeout", extra={"method": method, "path": path})
            mark_failed(span, "timeout", "Timeout")
            raise TransportError("The BLACK CTRL API did not respond in time. Please try again.")
        except httpx.RequestError as e:
            logger.error(
                "BLACK CTRL API network error",
                extra={"method": method, "path": path, "error": str(e)},
            )
            mark_failed(span, "network_error", "Network error")
            raise TransportError()

        span.set_attribute("http.status_code", response.status_code)
        return response

    def _failure(
        self,
        span: Span,
        response: httpx.Response,
        error_cls: type[OutreachError],
        operation: str,
    ) -> OutreachError:
        """Build the error for a failed response and record it on the span."""
        detail = _error_detail(response)
        error = error_cls(detail, status_code=response.status_code)
        log = logger.warning if response.status_code < 500 else logger.error
        log(
            "BLACK CTRL API request failed",
            extra={
                "operation": operation,
                "status_code": response.status_code,
                "error_kind": error.error_code,
                "detail": detail,
            },
        )
        mark_failed(span, error.error_code, f"HTTP {response.status_code}")
        return error

    async def request_link(self, email: str) -> None:
        """Ask the server to email a magic link to ``email``.

        Raises:
            NotWhitelistedError: The email is not on the allowlist (401/403)
            TransportError: Network failure or any other error status
        """
        with tracer.start_as_current_span("outreach_api.request_link") as span:
            span.set_attributes(safe_span_attributes(email=email, operation="request_link"))
            logger.info("Requesting magic link", extra={"email": mask_email(email)})

            response = await self._send(span, "POST", "/auth/login", json={"email": email})

            if response.status_code in (401, 403):
                raise self._failure(span, response, NotWhitelistedError, "request_link")
            if response.status_code >= 400:
                raise self._failure(span, response, TransportError, "request_link")

            logger.info("Magic link sent", extra={"email": mask_email(email)})
            span.set_status(Status(StatusCode.OK))

    async def verify_token(self, token: str) -> None:
        """Exchange a magic link token for an authenticated session cookie.

        Raises:
            InvalidOrExpiredTokenError: Token unknown, already consumed or expired
            TransportError: Network failure or server error
        """
        with tracer.start_as_current_span("outreach_api.verify_token") as span:
            span.set_attributes(safe_span_attributes(token=token, operation="verify_token"))

            response = await self._send(span, "POST", "/auth/verify", json={"token": token})

            if response.status_code in TOKEN_REJECTED_STATUSES:
                raise self._failure(span, response, InvalidOrExpiredTokenError, "verify_token")
            if response.status_code >= 400:
                raise self._failure(span, response, TransportError, "verify_token")

            logger.info("Magic link token verified")
            span.set_status(Status(StatusCode.OK))

    async def logout(self) -> None:
        """Invalidate the server-side session.

        The local cookie jar is cleared even when the server call fails, so a
        failed logout can never be undone by a later status check.
        """
        with tracer.start_as_current_span("outreach_api.logout") as span:
            try:
                response = await self._send(span, "POST", "/auth/logout")
                if response.status_code >= 400:
                    raise self._failure(span, response, TransportError, "logout")
            finally:
                self._client.cookies.clear()

            span.set_status(Status(StatusCode.OK))

    async def auth_status(self) -> bool:
        """Ask the server whether the current cookie is an authenticated session.

        A non-2xx answer means "not authenticated". Network failures and
        unreadable bodies raise ``TransportError``.
        """
        with tracer.start_as_current_span("outreach_api.auth_status") as span:
            response = await self._send(span, "GET", "/auth/status")

            if not response.is_success:
                logger.info(
                    "Auth status check returned non-success",
                    extra={"status_code": response.status_code},
                )
                span.set_attribute("authenticated", False)
                return False

            try:
                data = response.json()
            except ValueError:
                mark_failed(span, "malformed_response", "Malformed response")
                raise TransportError("Malformed auth status response", status_code=response.status_code)

            authenticated = isinstance(data, dict) and bool(data.get("authenticated"))
            span.set_attribute("authenticated", authenticated)
            span.set_status(Status(StatusCode.OK))
            return authenticated

    async def generate(self, form: OutreachFormData) -> OutreachResult:
        """Submit a generation request and parse the structured result.

        ``company`` and ``targetName`` are carried through from the request
        when the response omits them.

        Raises:
            SessionExpiredError: The session cookie is no longer valid (401)
            GenerationError: Error status or malformed result
            TransportError: Network failure
        """
        with tracer.start_as_current_span("outreach_api.generate") as span:
            span.set_attributes(safe_span_attributes(
                company=form.company,
                key_insight=form.key_insight,
                landing_page_copy_length=len(form.landing_page_copy),
                has_additional_context=bool(form.additional_context.strip()),
            ))
            logger.info(
                "Submitting outreach generation",
                extra={"company": form.company, "copy_length": len(form.landing_page_copy)},
            )

            response = await self._send(
                span,
                "POST",
                "/generate",
                json=form.model_dump(by_alias=True),
                timeout=self.generate_timeout,
            )

            if response.status_code == 401:
                raise self._failure(span, response, SessionExpiredError, "generate")
            if response.status_code >= 400:
                raise self._failure(span, response, GenerationError, "generate")

            try:
                data = response.json()
                if not isinstance(data, dict):
                    raise ValueError("generation response is not an object")
                result = OutreachResult.model_validate(
                    {"targetName": form.target_name, "company": form.company, **data}
                )
            except (ValueError, pydantic.ValidationError) as e:
                logger.error("Malformed generation response", extra={"error": str(e)})
                mark_failed(span, "malformed_response", "Malformed response")
                raise GenerationError(
                    "The generation service returned a malformed result",
                    status_code=response.status_code,
                )

            logger.info(
                "Outreach generated",
                extra={
                    "company": result.company,
                    "strengths": len(result.swot.strengths),
                    "angles": len(result.internal_notes.angles),
                },
            )
            span.set_attributes(safe_span_attributes(outreach_message=result.outreach_message))
            span.set_status(Status(StatusCode.OK))
            return result

    async def list_messages(self) -> list[SavedMessage]:
        """Fetch the saved message history in storage (insertion) order."""
        with tracer.start_as_current_span("outreach_api.list_messages") as span:
            response = await self._send(span, "GET", "/messages")

            if response.status_code == 401:
                raise self._failure(span, response, SessionExpiredError, "list_messages")
            if response.status_code >= 400:
                raise self._failure(span, response, TransportError, "list_messages")

            try:
                messages = _saved_messages_adapter.validate_json(response.content)
            except pydantic.ValidationError as e:
                logger.error("Malformed message history", extra={"error": str(e)})
                mark_failed(span, "malformed_response", "Malformed response")
                raise TransportError("Malformed message history response", status_code=response.status_code)

            span.set_attribute("entries", len(messages))
            span.set_status(Status(StatusCode.OK))
            return messages

    async def save_message(self, result: OutreachResult) -> SavedMessage:
        """Append ``result`` to the saved message history."""
        with tracer.start_as_current_span("outreach_api.save_message") as span:
            span.set_attributes(safe_span_attributes(
                company=result.company,
                outreach_message=result.outreach_message,
            ))

            response = await self._send(
                span, "POST", "/messages", json=result.model_dump(mode="json", by_alias=True)
            )

            if response.status_code == 401:
                raise self._failure(span, response, SessionExpiredError, "save_message")
            if response.status_code >= 400:
                raise self._failure(span, response, TransportError, "save_message")

            try:
                saved = SavedMessage.model_validate_json(response.content)
            except pydantic.ValidationError as e:
                logger.error("Malformed save response", extra={"error": str(e)})
                mark_failed(span, "malformed_response", "Malformed response")
                raise TransportError("Malformed save response", status_code=response.status_code)

            logger.info("Message saved", extra={"saved_id": str(saved.id)})
            span.set_attribute("saved_id", str(saved.id))
            span.set_status(Status(StatusCode.OK))
            return saved

    async def export_pdf(self, result: OutreachResult) -> bytes:
        """Render ``result`` to PDF on the server and return the bytes."""
        with tracer.start_as_current_span("outreach_api.export_pdf") as span:
            span.set_attributes(safe_span_attributes(company=result.company))

            response = await self._send(
                span, "POST", "/export/pdf", json=result.model_dump(mode="json", by_alias=True)
            )

            if response.status_code == 401:
                raise self._failure(span, response, SessionExpiredError, "export_pdf")
            if response.status_code >= 400:
                raise self._failure(span, response, ExportError, "export_pdf")

            span.set_attribute("size_bytes", len(response.content))
            span.set_status(Status(StatusCode.OK))
            return response.content
