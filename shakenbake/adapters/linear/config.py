from dataclasses import dataclass, field

from shakenbake.core.models import Category, Severity

DEFAULT_API_URL = "https://api.linear.app/graphql"

# Linear priority: 0=none, 1=urgent, 2=high, 3=medium, 4=low
DEFAULT_SEVERITY_MAPPING: dict[Severity, int] = {
    Severity.CRITICAL: 1,
    Severity.HIGH: 2,
    Severity.MEDIUM: 3,
    Severity.LOW: 4,
}


@dataclass(frozen=True)
class LinearConfig:
    """Configuration for ``LinearAdapter``.

    ``team_id`` and ``project_id`` are trimmed by the adapter; an empty
    ``project_id`` means issues are created without a project.
    """

    api_key: str
    team_id: str
    project_id: str | None = None
    default_label_ids: list[str] = field(default_factory=list)
    default_assignee_id: str | None = None
    default_priority: int | None = None
    severity_mapping: dict[Severity, int] = field(
        default_factory=lambda: dict(DEFAULT_SEVERITY_MAPPING)
    )
    category_labels: dict[Category, str] = field(default_factory=dict)
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = 30
    upload_fallback_timeout_seconds: float = 30.0
