"""
Outreach generation workflow.

Lifecycle of one outreach request for the signed-in session:

    idle -> generating -> ready
    idle -> generating -> idle     (failure, nothing kept)
    ready -> idle                  (discard or a new request)
    any -> idle                    (reset when the session ends)

At most one generation is in flight per session. The in-flight check happens
before the first await, so a second call scheduled on the same event loop
always sees ``generating`` and is rejected instead of racing the first one.
"""

import logging
from enum import Enum

from pydantic.alias_generators import to_camel

from blackctrl.auth.session_store import SessionStore
from blackctrl.core.errors import (
    AuthError,
    AuthRequiredError,
    GenerationError,
    GenerationInProgressError,
    NoResultError,
    OutreachError,
    ValidationError,
)
from blackctrl.integrations.outreach_api import OutreachApiClient
from blackctrl.models.outreach import REQUIRED_FIELDS, OutreachFormData, OutreachResult, SavedMessage
from blackctrl.workflow.export import ExportAdapter, ExportArtifact
from blackctrl.workflow.history import ResultStore

logger = logging.getLogger(__name__)


class GenerationState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"


def validate_form(form: OutreachFormData) -> None:
    """Raise ``ValidationError`` for the first blank required field."""
    for attr, label in REQUIRED_FIELDS:
        if not getattr(form, attr).strip():
            raise ValidationError(to_camel(attr), f"{label} is required")


class GenerationWorkflow:
    """Owns the current outreach result for one session.

    Args:
        api: Collaborator implementing the generation endpoint
        store: Session store gating entry to the workflow
        history: Message history used by ``save``
        exporter: Export adapter used by ``export_pdf`` / ``export_json``
    """

    def __init__(
        self,
        api: OutreachApiClient,
        store: SessionStore,
        history: ResultStore | None = None,
        exporter: ExportAdapter | None = None,
    ):
        self.api = api
        self.store = store
        self.history = history or ResultStore(api)
        self.exporter = exporter or ExportAdapter(api)
        self._state = GenerationState.IDLE
        self._result: OutreachResult | None = None
        # Bumped by reset(); a generation started before it must not publish
        self._run = 0

    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def result(self) -> OutreachResult | None:
        return self._result

    @property
    def is_generating(self) -> bool:
        return self._state is GenerationState.GENERATING

    async def generate(self, form: OutreachFormData) -> OutreachResult:
        """Validate ``form`` and run one generation.

        Raises:
            AuthRequiredError: The session is not authenticated
            ValidationError: A required field is blank (no request is sent)
            GenerationInProgressError: Another generation is still in flight
            GenerationError: The generation service failed
            SessionExpiredError: The server rejected the session cookie
        """
        if not self.store.is_authenticated:
            raise AuthRequiredError()
        validate_form(form)
        if self._state is GenerationState.GENERATING:
            raise GenerationInProgressError()

        self._result = None
        self._state = GenerationState.GENERATING
        self._run += 1
        run = self._run
        logger.info("Generation started", extra={"company": form.company})

        try:
            result = await self.api.generate(form)
        except (GenerationError, AuthError) as e:
            logger.warning("Generation failed", extra={"error_kind": e.error_code})
            raise
        except OutreachError as e:
            logger.warning("Generation failed", extra={"error_kind": e.error_code})
            raise GenerationError(e.message, status_code=e.status_code)
        except Exception as e:
            logger.exception("Unexpected error during generation")
            raise GenerationError() from e
        else:
            if run != self._run:
                logger.info("Dropping result of a generation from an ended session")
                raise AuthRequiredError()
            self._result = result
            self._state = GenerationState.READY
            logger.info("Generation ready", extra={"company": result.company})
            return result
        finally:
            if run == self._run and self._state is GenerationState.GENERATING:
                self._state = GenerationState.IDLE

    def discard(self) -> None:
        """Drop the current result. Unsaved results are lost."""
        if self._state is GenerationState.GENERATING:
            raise GenerationInProgressError()
        self._result = None
        self._state = GenerationState.IDLE

    def reset(self) -> None:
        """Forget everything when the session ends, including an in-flight generation."""
        self._run += 1
        self._result = None
        self._state = GenerationState.IDLE

    def _ready_result(self, message: str | None = None) -> OutreachResult:
        if not self.store.is_authenticated:
            raise AuthRequiredError()
        if self._state is not GenerationState.READY or self._result is None:
            raise NoResultError(message)
        return self._result

    async def save(self, result: OutreachResult | None = None) -> SavedMessage:
        """Append the ready result to the history.

        Each call creates a new entry; repeated saves are not deduplicated.
        """
        ready = self._ready_result()
        return await self.history.append(result or ready)

    async def export_pdf(self) -> ExportArtifact:
        return await self.exporter.export_pdf(self._ready_result("Nothing to export yet. Generate a message first."))

    def export_json(self) -> ExportArtifact:
        return self.exporter.export_json(self._ready_result("Nothing to export yet. Generate a message first."))

    def copy_text(self) -> str:
        """The outreach message of the ready result, for the clipboard."""
        return self._ready_result("Nothing to copy yet. Generate a message first.").outreach_message
