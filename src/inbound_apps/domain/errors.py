"""Exception classes shared by every inbound-apps component."""

from inbound_apps.domain.types import WizardStep


class InboundAppError(Exception):
    """Base class for all errors raised by inbound-apps."""


class ConfigurationError(InboundAppError):
    """Raised when required credentials or settings are missing or invalid.

    Always raised at construction/startup time, never per call.
    """


class UpstreamError(InboundAppError):
    """Raised when the Inbound API answers with a non-2xx status.

    Attributes:
        status_code: The HTTP status returned upstream, or ``None`` when no
            response was received at all (DNS failure, refused connection,
            timeout).
        message: The upstream ``error`` field, or the HTTP status line.
    """

    def __init__(self, status_code: int | None, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class ValidationError(InboundAppError):
    """Raised for malformed user input before anything touches the network.

    Attributes:
        field: The offending form field, if the error is tied to one.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        self.message = message
        super().__init__(message)


class ProcessingError(InboundAppError):
    """Raised when a content transformation or rendering step fails."""


class InvalidTransitionError(InboundAppError):
    """Raised when a wizard action is not allowed from the current step.

    Attributes:
        step: The step the wizard was in.
        action: The rejected action.
    """

    def __init__(self, step: WizardStep, action: str) -> None:
        self.step = step
        self.action = action
        super().__init__(f"Cannot {action} while on step {int(step)} ({step.title})")
