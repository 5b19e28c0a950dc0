"""Evidence validator - inspects evidence and notes, produces a report.

Network problems while probing evidence URLs never escape this module:
each probe turns them into a failed check so that validation always ends
with a report.
"""

import asyncio
import logging
from urllib.parse import urlparse

import httpx

from smt.config import settings
from smt.schemas.evaluation import ValidationCheck, ValidationReport

logger = logging.getLogger(__name__)

MSG_ALL_PASSED = "All checks passed"
MSG_SOME_FAILED = "Some checks failed"
MSG_ERROR = "Error during validation"
MSG_NO_EVIDENCE = "No evidence location provided"

URL_SCHEMES = {"http", "https"}


def is_url(value: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme.lower() in URL_SCHEMES and bool(parsed.netloc)


class EvidenceValidator:
    """Runs the url_validation, url_content and notes_quality checks."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float | None = None,
        min_content_length: int | None = None,
        min_notes_length: int | None = None,
        placeholder_phrases: list[str] | None = None,
    ):
        self.client = client
        self.timeout = timeout if timeout is not None else settings.validation_timeout_seconds
        self.min_content_length = (
            min_content_length
            if min_content_length is not None
            else settings.validation_min_content_length
        )
        self.min_notes_length = (
            min_notes_length
            if min_notes_length is not None
            else settings.validation_min_notes_length
        )
        phrases = (
            placeholder_phrases
            if placeholder_phrases is not None
            else settings.validation_placeholder_phrases
        )
        self.placeholder_phrases = [p.lower() for p in phrases]

    async def validate(self, evidence_location: str | None, notes: str | None) -> ValidationReport:
        """Validate one evaluation's evidence and notes."""
        if not evidence_location:
            return ValidationReport(valid=False, message=MSG_NO_EVIDENCE, checks=[])

        checks: list[ValidationCheck] = []
        errored = False

        if is_url(evidence_location):
            try:
                url_check = await self.check_url_reachable(evidence_location)
                checks.append(url_check)
                if url_check.valid:
                    checks.append(await self.check_url_content(evidence_location))
            except Exception:
                logger.exception("Unexpected error validating evidence URL %s", evidence_location)
                errored = True
                checks.append(
                    ValidationCheck(
                        name="url_validation",
                        valid=False,
                        message="Error during URL validation",
                    )
                )

        checks.append(self.check_notes_quality(notes))

        valid = all(c.valid for c in checks)
        if errored:
            message = MSG_ERROR
        elif valid:
            message = MSG_ALL_PASSED
        else:
            message = MSG_SOME_FAILED
        return ValidationReport(valid=valid, message=message, checks=checks)

    async def check_url_reachable(self, url: str) -> ValidationCheck:
        """Lightweight HEAD probe, bounded by the validation timeout overall."""
        try:
            async with asyncio.timeout(self.timeout):
                response = await self.client.head(
                    url, timeout=self.timeout, follow_redirects=True
                )
            response.raise_for_status()
        except (httpx.HTTPError, TimeoutError) as exc:
            logger.warning("Evidence URL %s not reachable: %r", url, exc)
            return ValidationCheck(
                name="url_validation", valid=False, message="URL is not reachable"
            )
        return ValidationCheck(
            name="url_validation", valid=True, message="URL is valid and reachable"
        )

    async def check_url_content(self, url: str) -> ValidationCheck:
        """
        Fetch the resource and require a minimum amount of content.

        The body is streamed and reading stops once enough text has arrived,
        so a large or endless resource is never held in memory. The whole
        fetch shares one timeout, however slowly the server trickles data.
        """
        try:
            async with asyncio.timeout(self.timeout):
                content = await self._read_prefix(url)
        except (httpx.HTTPError, TimeoutError) as exc:
            logger.warning("Could not fetch evidence URL %s: %r", url, exc)
            return ValidationCheck(
                name="url_content",
                valid=False,
                message="Could not retrieve content from URL",
            )

        if len(content) < self.min_content_length:
            return ValidationCheck(
                name="url_content",
                valid=False,
                message="URL content is too short to be meaningful",
            )
        return ValidationCheck(
            name="url_content", valid=True, message="URL contains meaningful content"
        )

    async def _read_prefix(self, url: str) -> str:
        async with self.client.stream(
            "GET", url, timeout=self.timeout, follow_redirects=True
        ) as response:
            response.raise_for_status()
            content = ""
            async for chunk in response.aiter_text():
                content += chunk
                if len(content) >= self.min_content_length:
                    break
            return content

    def check_notes_quality(self, notes: str | None) -> ValidationCheck:
        if not notes:
            return ValidationCheck(name="notes_quality", valid=False, message="No notes provided")
        if len(notes) < self.min_notes_length:
            return ValidationCheck(
                name="notes_quality",
                valid=False,
                message="Notes are too short to be meaningful",
            )
        lowered = notes.lower()
        for phrase in self.placeholder_phrases:
            if phrase in lowered:
                return ValidationCheck(
                    name="notes_quality",
                    valid=False,
                    message=f'Notes contain placeholder text: "{phrase}"',
                )
        return ValidationCheck(
            name="notes_quality", valid=True, message="Notes are of good quality"
        )
