"""Export a ready outreach result as a downloadable PDF or JSON file.

Exports never touch the message history or the generation state. Files are
written to a temporary name inside the downloads directory and moved into
place; the temporary file is released on every exit path.
"""

import logging
import os
import re
import tempfile
from pathlib import Path

from pydantic import BaseModel

from blackctrl.core.config import settings
from blackctrl.core.errors import ExportError, OutreachError, SessionExpiredError
from blackctrl.integrations.outreach_api import OutreachApiClient
from blackctrl.models.outreach import OutreachResult

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
JSON_MEDIA_TYPE = "application/json"


class ExportArtifact(BaseModel):
    filename: str
    media_type: str
    path: Path
    size: int


def company_slug(company: str) -> str:
    """Lower-case the company name and collapse whitespace runs into one hyphen.

    >>> company_slug("  Multi   Space ")
    'multi-space'
    """
    return re.sub(r"\s+", "-", company.strip().lower())


def export_filename(company: str, extension: str, prefix: str | None = None) -> str:
    return f"{prefix or settings.EXPORT_PREFIX}-{company_slug(company)}.{extension}"


def serialize_result(result: OutreachResult) -> str:
    """Deterministic JSON for a result: camelCase keys in field order, 2-space indent."""
    return result.model_dump_json(by_alias=True, indent=2)


class ExportAdapter:
    """Turns ready results into files in ``downloads_dir``."""

    def __init__(
        self,
        api: OutreachApiClient,
        downloads_dir: str | Path | None = None,
        prefix: str | None = None,
    ):
        self.api = api
        self.downloads_dir = Path(downloads_dir or settings.DOWNLOADS_DIR)
        self.prefix = prefix or settings.EXPORT_PREFIX

    async def export_pdf(self, result: OutreachResult) -> ExportArtifact:
        """Render the result to PDF via the API and save it.

        Raises:
            ExportError: Rendering, transport or file system failure
            SessionExpiredError: The session cookie is no longer valid
        """
        filename = export_filename(result.company, "pdf", self.prefix)
        try:
            data = await self.api.export_pdf(result)
        except (ExportError, SessionExpiredError):
            raise
        except OutreachError as e:
            raise ExportError(status_code=e.status_code)

        return self._deliver(filename, data, PDF_MEDIA_TYPE, "Failed to export as PDF")

    def export_json(self, result: OutreachResult) -> ExportArtifact:
        filename = export_filename(result.company, "json", self.prefix)
        data = serialize_result(result).encode("utf-8")
        return self._deliver(filename, data, JSON_MEDIA_TYPE, "Failed to export as JSON")

    def _deliver(self, filename: str, data: bytes, media_type: str, failure: str) -> ExportArtifact:
        # Company names may contain path separators; keep the file in downloads_dir
        destination = self.downloads_dir / filename.replace("/", "-").replace("\\", "-")
        tmp_path: Path | None = None
        try:
            self.downloads_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.downloads_dir, prefix=".export-", suffix=".part")
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_path, destination)
        except OSError as e:
            logger.error("Export write failed", extra={"artifact": filename, "error": str(e)})
            raise ExportError(failure)
        finally:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)

        logger.info(
            "Export written",
            extra={"artifact": destination.name, "media_type": media_type, "size_bytes": len(data)},
        )
        return ExportArtifact(
            filename=destination.name,
            media_type=media_type,
            path=destination,
            size=len(data),
        )
