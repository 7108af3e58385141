from abc import ABC, abstractmethod

from shakenbake.core.models import BugReport, SubmitResult


class BaseDestinationAdapter(ABC):
    """Contract for all issue-tracker destination adapters."""

    name: str = ""

    @abstractmethod
    async def upload_image(self, data: bytes, filename: str) -> str:
        """Upload a binary asset and return a URL that references it.

        Args:
            data: Raw file content (already base64-decoded).
            filename: Name used to derive the content type and for display.

        Returns:
            URL of the stored asset. May be empty for destinations that
            store assets inline with the issue.

        Raises:
            ShakeNbakeError: on any failure.
        """

    @abstractmethod
    async def create_issue(self, report: BugReport) -> SubmitResult:
        """Create an issue for a finalized report.

        Raises:
            ShakeNbakeError: on any failure.
        """

    @abstractmethod
    async def test_connection(self) -> bool:
        """Return True if the destination is reachable and credentials work."""
