"""Pytest configuration and shared fixtures."""

import os
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set test environment variables before importing the package
os.environ.update({
    "API_BASE_URL": "http://testserver",
    "API_PREFIX": "/api",
    "EXPORT_PREFIX": "black-ctrl-outreach",
    "OTEL_TRACES_EXPORTER": "none",
})

from blackctrl.auth.session_store import SessionStore  # noqa: E402
from blackctrl.console import OutreachConsole  # noqa: E402
from blackctrl.core.errors import (  # noqa: E402
    InvalidOrExpiredTokenError,
    NotWhitelistedError,
    SessionExpiredError,
)
from blackctrl.models.outreach import (  # noqa: E402
    InternalNotes,
    OutreachFormData,
    OutreachResult,
    SavedMessage,
    Swot,
)


def make_result(company: str = "Acme Inc.", target_name: str = "Jane Smith") -> OutreachResult:
    return OutreachResult(
        outreach_message=f"Hi {target_name}, saw what {company} is shipping.",
        swot=Swot(
            strengths=("Clear positioning",),
            weaknesses=("Generic CTA",),
            opportunities=("Mid-market expansion",),
            threats=("Incumbent bundling",),
        ),
        internal_notes=InternalNotes(
            angles=("Status quo cost",),
            value_props=("Faster onboarding",),
            goat_tier=("Lead with their churn stat",),
        ),
        company=company,
        target_name=target_name,
    )


class FakeOutreachApi:
    """In-memory stand-in for the BLACK CTRL API.

    Enforces the allowlist and single-use, expiring magic link tokens, and
    records every call in ``calls`` so tests can assert on network traffic.
    """

    def __init__(self, allowlist: set[str] | None = None, token_ttl: timedelta = timedelta(minutes=15)):
        self.allowlist = allowlist if allowlist is not None else {"a@b.com"}
        self.token_ttl = token_ttl
        self.tokens: dict[str, dict[str, Any]] = {}
        self.session_active = False
        self.messages: list[SavedMessage] = []
        self.calls: list[str] = []
        self.generate_error: Exception | None = None
        self.next_token = "good-token"

    def issue_token(self, email: str, token: str, expires_at: datetime | None = None) -> None:
        self.tokens[token] = {
            "email": email,
            "expires_at": expires_at or datetime.now(timezone.utc) + self.token_ttl,
            "used": False,
        }

    async def request_link(self, email: str) -> None:
        self.calls.append("request_link")
        if email not in self.allowlist:
            raise NotWhitelistedError("Email not whitelisted for access", status_code=403)
        self.issue_token(email, self.next_token)

    async def verify_token(self, token: str) -> None:
        self.calls.append("verify_token")
        record = self.tokens.get(token)
        if (
            record is None
            or record["used"]
            or record["expires_at"] <= datetime.now(timezone.utc)
        ):
            raise InvalidOrExpiredTokenError(status_code=401)
        record["used"] = True
        self.session_active = True

    async def logout(self) -> None:
        self.calls.append("logout")
        self.session_active = False

    async def auth_status(self) -> bool:
        self.calls.append("auth_status")
        return self.session_active

    async def generate(self, form: OutreachFormData) -> OutreachResult:
        self.calls.append("generate")
        if not self.session_active:
            raise SessionExpiredError(status_code=401)
        if self.generate_error is not None:
            raise self.generate_error
        return make_result(company=form.company, target_name=form.target_name)

    async def list_messages(self) -> list[SavedMessage]:
        self.calls.append("list_messages")
        return list(self.messages)

    async def save_message(self, result: OutreachResult) -> SavedMessage:
        self.calls.append("save_message")
        saved = SavedMessage(
            id=len(self.messages) + 1,
            target_name=result.target_name,
            company=result.company,
            outreach_message=result.outreach_message,
            created_at=datetime.now(timezone.utc) + timedelta(seconds=len(self.messages)),
            swot=result.swot,
            internal_notes=result.internal_notes,
        )
        self.messages.append(saved)
        return saved

    async def export_pdf(self, result: OutreachResult) -> bytes:
        self.calls.append("export_pdf")
        return b"%PDF-1.4 fake"

    async def aclose(self) -> None:
        pass


@pytest.fixture
def fake_api() -> FakeOutreachApi:
    return FakeOutreachApi()


@pytest.fixture
def console(fake_api: FakeOutreachApi, tmp_path) -> OutreachConsole:
    """Console wired to the fake API, exporting into a temp directory."""
    return OutreachConsole(api=fake_api, downloads_dir=tmp_path)


@pytest.fixture
def valid_form() -> OutreachFormData:
    return OutreachFormData(
        target_name="Jane Smith",
        company="Acme Inc.",
        landing_page_copy="Ship onboarding flows in minutes, not months.",
        key_insight="Their trial-to-paid conversion is stalling.",
    )


@pytest.fixture
def sample_result() -> OutreachResult:
    return make_result()


@pytest.fixture
def authenticated_store() -> SessionStore:
    store = SessionStore()
    store.mark_authenticated()
    return store


@pytest.fixture
def mock_api(sample_result: OutreachResult) -> MagicMock:
    """Mock collaborator with every endpoint as an AsyncMock."""
    api = MagicMock()
    api.request_link = AsyncMock(return_value=None)
    api.verify_token = AsyncMock(return_value=None)
    api.logout = AsyncMock(return_value=None)
    api.auth_status = AsyncMock(return_value=False)
    api.generate = AsyncMock(return_value=sample_result)
    api.list_messages = AsyncMock(return_value=[])
    api.save_message = AsyncMock()
    api.export_pdf = AsyncMock(return_value=b"%PDF-1.4 mock")
    return api
