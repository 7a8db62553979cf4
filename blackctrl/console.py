"""
Console facade for one BLACK CTRL client session.

Wires the session store, auth state machine, generation workflow, message
history and export adapter together, and turns every client error into an
``Err`` with a user-facing title so a failed operation never takes the session
down. A ``SessionExpiredError`` from any operation also signs the session out;
logout and expiry both drop the current result and the cached history.
"""

import logging
from collections.abc import Awaitable
from pathlib import Path
from typing import Any

from blackctrl.auth.session_store import SessionCache, SessionStore
from blackctrl.auth.state_machine import AuthStateMachine, token_from_url
from blackctrl.core.errors import ErrorKind, OutreachError, SessionExpiredError
from blackctrl.core.result import Err, Notice, Ok, Result
from blackctrl.integrations.outreach_api import OutreachApiClient
from blackctrl.models.outreach import OutreachFormData
from blackctrl.workflow.export import ExportAdapter
from blackctrl.workflow.generation import GenerationWorkflow
from blackctrl.workflow.history import ResultStore

logger = logging.getLogger(__name__)


class OutreachConsole:
    """Entry points for the presentation layer. Every method returns ``Ok`` or ``Err``."""

    def __init__(
        self,
        api: OutreachApiClient | None = None,
        cache: SessionCache | None = None,
        downloads_dir: str | Path | None = None,
    ):
        self.api = api or OutreachApiClient()
        self.store = SessionStore(cache)
        self.auth = AuthStateMachine(self.api, self.store)
        self.history = ResultStore(self.api)
        self.exporter = ExportAdapter(self.api, downloads_dir)
        self.workflow = GenerationWorkflow(self.api, self.store, self.history, self.exporter)

    async def aclose(self) -> None:
        await self.api.aclose()

    async def __aenter__(self) -> "OutreachConsole":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _end_session(self) -> None:
        """Drop everything the previous session produced."""
        self.workflow.reset()
        self.history.invalidate()

    def _fail(self, title: str, error: OutreachError, titles: dict[ErrorKind, str] | None = None) -> Err:
        if isinstance(error, SessionExpiredError):
            self.auth.expire()
            self._end_session()
        title = (titles or {}).get(error.kind, title)
        logger.info("Operation failed", extra={"title": title, "error_kind": error.error_code})
        return Err.from_error(title, error)

    async def _run(
        self,
        operation: Awaitable[Any],
        failure_title: str,
        notice: Notice | None = None,
        titles: dict[ErrorKind, str] | None = None,
    ) -> Result:
        try:
            value = await operation
        except OutreachError as e:
            return self._fail(failure_title, e, titles)
        return Ok(value=value, notice=notice)

    async def start(self) -> Result:
        """Reconcile with the server once at startup. Never fails."""
        return Ok(value=await self.auth.check_auth())

    async def request_link(self, email: str) -> Result:
        return await self._run(
            self.auth.request_link(email),
            "Login Failed",
            Notice(
                title="Magic Link Sent",
                description="Check your email for the login link or enter token manually.",
            ),
            {ErrorKind.VALIDATION: "Email Required"},
        )

    def try_again(self) -> Result:
        self.auth.reset_link()
        return Ok()

    async def verify(self, token: str) -> Result:
        """Verify a token; ``Ok.value`` is the ``NavigationEvent`` to follow."""
        return await self._run(
            self.auth.verify(token),
            "Verification Failed",
            Notice(title="Verification Successful", description="You are now logged in."),
            {ErrorKind.VALIDATION: "Token Required"},
        )

    async def verify_link(self, url: str) -> Result:
        try:
            token = token_from_url(url)
        except OutreachError as e:
            return self._fail("Verification Failed", e)
        return await self.verify(token)

    async def logout(self) -> Result:
        try:
            return await self._run(
                self.auth.logout(),
                "Logout Failed",
                Notice(title="Logged out", description="You have been successfully logged out."),
            )
        finally:
            self._end_session()

    async def generate(self, form: OutreachFormData) -> Result:
        return await self._run(
            self.workflow.generate(form),
            "Generation Failed",
            titles={ErrorKind.VALIDATION: "Validation Error"},
        )

    def discard(self) -> Result:
        try:
            self.workflow.discard()
        except OutreachError as e:
            return self._fail("Discard Failed", e)
        return Ok()

    async def save(self) -> Result:
        return await self._run(
            self.workflow.save(),
            "Save Failed",
            Notice(title="Message Saved", description="Your message has been saved for training."),
            {ErrorKind.NO_RESULT: "No Message to Save"},
        )

    async def export_pdf(self) -> Result:
        return await self._run(
            self.workflow.export_pdf(),
            "Export Failed",
            Notice(title="PDF Exported", description="Your outreach has been exported as PDF"),
        )

    def export_json(self) -> Result:
        try:
            artifact = self.workflow.export_json()
        except OutreachError as e:
            return self._fail("Export Failed", e)
        return Ok(
            value=artifact,
            notice=Notice(title="JSON Exported", description="Your outreach has been exported as JSON"),
        )

    def copy(self) -> Result:
        """The ready outreach message; writing it to a clipboard is up to the caller."""
        try:
            text = self.workflow.copy_text()
        except OutreachError as e:
            return self._fail("Copy Failed", e)
        return Ok(value=text, notice=Notice(title="Copied", description="Message copied to clipboard"))

    def edit(self) -> Result:
        return Ok(
            notice=Notice(
                title="Edit Feature",
                description="Message editing will be available in a future update.",
            )
        )

    async def history_entries(self) -> Result:
        """Saved messages, most recent first."""
        return await self._run(self.history.recent(), "History Unavailable")
