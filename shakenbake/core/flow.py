"""Bug-reporting flow state machine.

``flow_reducer`` is a pure function; ``FlowController`` only holds the current
state and notifies observers. An action received in the wrong step returns the
very same state object, so observers can compare by identity.
"""

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum

from shakenbake.core.models import CaptureResult, DeviceContext, SubmitResult


class FlowStep(str, Enum):
    IDLE = "idle"
    TRIGGERED = "triggered"
    CAPTURING = "capturing"
    ANNOTATING = "annotating"
    FORM = "form"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class FlowData:
    """Data accumulated while a report moves through the flow."""

    capture_result: CaptureResult | None = None
    context: DeviceContext | None = None
    annotated_screenshot: str | None = None
    original_screenshot: str | None = None
    submit_result: SubmitResult | None = None
    error: str | None = None
    error_retryable: bool = False

    def has_screenshots(self) -> bool:
        return bool(self.annotated_screenshot)


@dataclass(frozen=True)
class FlowState:
    step: FlowStep = FlowStep.IDLE
    data: FlowData = field(default_factory=FlowData)


# Actions


@dataclass(frozen=True)
class Trigger:
    pass


@dataclass(frozen=True)
class CaptureStart:
    pass


@dataclass(frozen=True)
class CaptureDone:
    capture_result: CaptureResult
    context: DeviceContext


@dataclass(frozen=True)
class CaptureError:
    error: str
    retryable: bool = False


@dataclass(frozen=True)
class AnnotateDone:
    annotated_screenshot: str
    original_screenshot: str


@dataclass(frozen=True)
class AnnotateCancel:
    pass


@dataclass(frozen=True)
class ReAnnotate:
    pass


@dataclass(frozen=True)
class SubmitStart:
    pass


@dataclass(frozen=True)
class SubmitDone:
    result: SubmitResult


@dataclass(frozen=True)
class SubmitError:
    error: str
    retryable: bool = False


@dataclass(frozen=True)
class Retry:
    pass


@dataclass(frozen=True)
class Reset:
    pass


FlowAction = (
    Trigger
    | CaptureStart
    | CaptureDone
    | CaptureError
    | AnnotateDone
    | AnnotateCancel
    | ReAnnotate
    | SubmitStart
    | SubmitDone
    | SubmitError
    | Retry
    | Reset
)


def create_flow_state() -> FlowState:
    return FlowState(step=FlowStep.IDLE, data=FlowData())


def flow_reducer(state: FlowState, action: FlowAction) -> FlowState:
    """Return the state that follows ``state`` under ``action``."""
    step = state.step
    data = state.data

    match action:
        case Trigger() if step == FlowStep.IDLE:
            return FlowState(FlowStep.TRIGGERED, FlowData())

        case CaptureStart() if step == FlowStep.TRIGGERED:
            return FlowState(FlowStep.CAPTURING, FlowData())

        case CaptureDone(capture_result=capture, context=context) if step == FlowStep.CAPTURING:
            return FlowState(
                FlowStep.ANNOTATING,
                FlowData(capture_result=capture, context=context),
            )

        case CaptureError(error=error, retryable=retryable) if step == FlowStep.CAPTURING:
            return FlowState(
                FlowStep.ERROR, FlowData(error=error, error_retryable=retryable)
            )

        case AnnotateDone(annotated_screenshot=annotated, original_screenshot=original) if (
            step == FlowStep.ANNOTATING
        ):
            return FlowState(
                FlowStep.FORM,
                replace(data, annotated_screenshot=annotated, original_screenshot=original),
            )

        case AnnotateCancel() if step == FlowStep.ANNOTATING:
            return create_flow_state()

        case ReAnnotate() if step == FlowStep.FORM:
            return FlowState(
                FlowStep.ANNOTATING,
                FlowData(capture_result=data.capture_result, context=data.context),
            )

        case SubmitStart() if step == FlowStep.FORM:
            return FlowState(FlowStep.SUBMITTING, data)

        case SubmitDone(result=result) if step == FlowStep.SUBMITTING:
            return FlowState(FlowStep.SUCCESS, replace(data, submit_result=result))

        case SubmitError(error=error, retryable=retryable) if step == FlowStep.SUBMITTING:
            return FlowState(
                FlowStep.ERROR, replace(data, error=error, error_retryable=retryable)
            )

        case Retry() if step == FlowStep.ERROR:
            if data.has_screenshots():
                return FlowState(
                    FlowStep.FORM, replace(data, error=None, error_retryable=False)
                )
            return create_flow_state()

        case Reset():
            return create_flow_state()

    return state


FlowListener = Callable[[FlowState], None]


class FlowController:
    """Holds the current flow state and applies actions through the reducer."""

    def __init__(self, initial: FlowState | None = None) -> None:
        self._state = initial or create_flow_state()
        self._listeners: list[FlowListener] = []

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def step(self) -> FlowStep:
        return self._state.step

    def dispatch(self, action: FlowAction) -> FlowState:
        """Apply ``action``; listeners run only when the state actually changed."""
        next_state = flow_reducer(self._state, action)
        if next_state is self._state:
            return next_state
        self._state = next_state
        for listener in list(self._listeners):
            listener(next_state)
        return next_state

    def subscribe(self, listener: FlowListener) -> Callable[[], None]:
        """Register a state listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def can_retry(self) -> bool:
        """True when the error view may offer retry instead of only a reset."""
        if self._state.step != FlowStep.ERROR:
            return False
        data = self._state.data
        return data.has_screenshots() or data.error_retryable
