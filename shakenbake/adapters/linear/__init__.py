from shakenbake.adapters.linear.adapter import LinearAdapter
from shakenbake.adapters.linear.config import DEFAULT_SEVERITY_MAPPING, LinearConfig
from shakenbake.adapters.linear.markdown import build_issue_description

__all__ = [
    "DEFAULT_SEVERITY_MAPPING",
    "LinearAdapter",
    "LinearConfig",
    "build_issue_description",
]
