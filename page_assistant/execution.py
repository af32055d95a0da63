import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class RunStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    INCOMPLETE = "incomplete"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    @property
    def is_failure(self) -> bool:
        return self in _TERMINAL and self is not RunStatus.COMPLETED


_TERMINAL = frozenset(
    {
        RunStatus.COMPLETED,
        RunStatus.FAILED,
        RunStatus.EXPIRED,
        RunStatus.CANCELLED,
        RunStatus.INCOMPLETE,
    }
)


@dataclass(frozen=True)
class Message:
    role: str  # "user" | "assistant"
    content: str
    id: Optional[str] = None
    run_id: Optional[str] = None
    created_at: Optional[int] = None


@dataclass
class Thread:
    id: str
    messages: list[Message] = field(default_factory=list)
    is_new: bool = False


@dataclass(frozen=True)
class ToolCall:
    id: str
    tool_name: str
    # Raw JSON string as sent by the provider, or an already decoded object
    arguments: Union[str, dict, None] = None
    timestamp: float = field(default_factory=time.time, compare=False)


@dataclass(frozen=True)
class ToolOutput:
    call_id: str
    output: str  # JSON-encoded
    success: bool = True


@dataclass
class Run:
    id: str
    thread_id: str
    status: RunStatus
    tool_calls: list[ToolCall] = field(default_factory=list)
    last_error: Optional[str] = None


@dataclass
class Execution:
    input: str
    thread_id: Optional[str] = None
    run_id: Optional[str] = None
    status: Optional[RunStatus] = None
    response: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_outputs: list[list[ToolOutput]] = field(default_factory=list)
    poll_attempts: int = 0
    action_rounds: int = 0
    state: str = "running"  # "running" | "completed" | "failed" | "timeout" | "cancelled"
    metadata: dict[str, Any] = field(default_factory=dict)
