from shakenbake.core.errors import ERROR_MESSAGES, ErrorCode, ShakeNbakeError
from shakenbake.core.flow import FlowController, FlowState, FlowStep, flow_reducer
from shakenbake.core.models import (
    BugReport,
    CaptureResult,
    Category,
    DeviceContext,
    Dimensions,
    ReportInput,
    Severity,
    SubmitResult,
)
from shakenbake.core.registry import PluginRegistry
from shakenbake.core.validation import FieldError, is_form_valid, validate_form

__all__ = [
    "ERROR_MESSAGES",
    "BugReport",
    "CaptureResult",
    "Category",
    "DeviceContext",
    "Dimensions",
    "ErrorCode",
    "FieldError",
    "FlowController",
    "FlowState",
    "FlowStep",
    "PluginRegistry",
    "ReportInput",
    "Severity",
    "ShakeNbakeError",
    "SubmitResult",
    "flow_reducer",
    "is_form_valid",
    "validate_form",
]
