from typing import Optional


class AssistantError(Exception):
    """Base exception for page-assistant errors."""


class InvalidChatInput(AssistantError):
    """Raised when a chat message is missing or empty."""

    status_code = 400


class ProviderError(AssistantError):
    """Raised when a call to the assistant provider fails."""

    status_code = 502

    def __init__(
        self,
        message: str,
        http_status: Optional[int] = None,
        thread_id: Optional[str] = None,
        run_id: Optional[str] = None,
        status: Optional[str] = None,
    ):
        self.http_status = http_status
        self.thread_id = thread_id
        self.run_id = run_id
        self.status = status
        super().__init__(message)


class RunError(AssistantError):
    """Base for errors that end a run; carries context for diagnosis."""

    status_code = 502

    def __init__(
        self,
        message: str,
        thread_id: Optional[str] = None,
        run_id: Optional[str] = None,
        status: Optional[str] = None,
    ):
        self.thread_id = thread_id
        self.run_id = run_id
        self.status = status
        super().__init__(message)


class RunFailed(RunError):
    """Raised when a run ends in a terminal failure status."""


class RunTimeout(RunError):
    """Raised when the poll budget runs out before the run settles."""

    status_code = 504


class ActionLimitExceeded(RunError):
    """Raised when a run keeps requiring tools past max_action_rounds."""


class IncompleteToolOutputs(RunError):
    """Raised when a tool output batch does not answer every tool call."""


class ToolValidationError(AssistantError):
    """Raised when tool input fails Pydantic validation."""


class ToolNotFound(AssistantError):
    """Raised when the assistant calls a tool that isn't registered."""


class ToolExecutionError(AssistantError):
    """Raised by tools when execution fails."""
