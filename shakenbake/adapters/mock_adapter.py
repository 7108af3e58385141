"""In-memory destination adapter.

Use this module as a reference when implementing new destination adapters.
Implement BaseDestinationAdapter and register the destination in
DestinationAdapterFactory.
"""

import asyncio
import itertools
from typing import ClassVar

from shakenbake.adapters.base import BaseDestinationAdapter
from shakenbake.core.models import BugReport, Category, Severity, SubmitResult
from shakenbake.logging.logger import Log


class MockAdapter(BaseDestinationAdapter):
    """Destination adapter that keeps submitted reports in memory.

    No network calls and never fails. Useful for local development, tests,
    and demo apps.
    """

    name = "mock"

    BASE_URL: ClassVar[str] = "https://mock.shakenbake.dev"

    def __init__(self, delay_seconds: float = 0.0) -> None:
        self._delay_seconds = delay_seconds
        self._submitted_reports: list[BugReport] = []
        self._uploaded_files: list[str] = []
        self._ids = itertools.count(1)

    @property
    def submitted_reports(self) -> list[BugReport]:
        return list(self._submitted_reports)

    @property
    def uploaded_files(self) -> list[str]:
        return list(self._uploaded_files)

    def clear_reports(self) -> None:
        self._submitted_reports.clear()
        self._uploaded_files.clear()

    async def upload_image(self, data: bytes, filename: str) -> str:
        Log.debug(f"[MockAdapter] upload_image: {filename} ({len(data)} bytes)")
        self._uploaded_files.append(filename)
        await self._simulate_delay()
        return f"{self.BASE_URL}/images/{next(self._ids)}.png"

    async def create_issue(self, report: BugReport) -> SubmitResult:
        self._submitted_reports.append(report)
        Log.info(
            f'[MockAdapter] create_issue: "{report.title}" '
            f"({Severity(report.severity).value}/{Category(report.category).value})"
        )
        await self._simulate_delay()
        issue_id = str(next(self._ids))
        return SubmitResult(url=f"{self.BASE_URL}/issues/{issue_id}", id=issue_id, success=True)

    async def test_connection(self) -> bool:
        await self._simulate_delay()
        return True

    async def _simulate_delay(self) -> None:
        if self._delay_seconds > 0:
            await asyncio.sleep(self._delay_seconds)
