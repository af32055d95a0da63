"""Hook system for page-assistant.

Lets callers observe and steer a chat turn without touching the run loop.
Follows Flask's before_request/after_request pattern.

Architecture:
- HookRegistry is the CORE implementation
- Decorator (@hooks.on, @agent.hook) and Middleware are convenience wrappers
- Everything goes through HookRegistry
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class HookEvent(str, Enum):
    """Available hook points in a chat turn."""

    BEFORE_RUN = "before_run"
    AFTER_RUN = "after_run"

    ON_RUN_STATUS = "on_run_status"

    BEFORE_TOOL_BATCH = "before_tool_batch"
    AFTER_TOOL_BATCH = "after_tool_batch"

    BEFORE_TOOL_CALL = "before_tool_call"
    AFTER_TOOL_CALL = "after_tool_call"
    ON_TOOL_ERROR = "on_tool_error"


# ============================================================================
# Hook Event Data Classes
# ============================================================================


@dataclass
class BeforeRunEventData:
    """Called before the user message is sent."""

    agent: Any  # Agent instance
    input: str
    thread_id: Optional[str]
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class AfterRunEventData:
    """Called after the turn settles, successfully or not."""

    execution: Any  # Execution instance
    total_time_ms: float
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class RunStatusEventData:
    """Called for every run status observed by the poller."""

    execution: Any
    status: Any  # RunStatus
    poll_attempt: int


@dataclass
class BeforeToolBatchEventData:
    execution: Any
    tool_calls: List[Any]  # List of ToolCall objects
    action_round: int


@dataclass
class AfterToolBatchEventData:
    execution: Any
    tool_outputs: List[Any]  # List of ToolOutput objects
    action_round: int
    execution_time_ms: float


@dataclass
class BeforeToolCallEventData:
    """Called before executing a tool."""

    tool_call: Any
    tool_name: str
    arguments: Dict[str, Any]
    thread_id: Optional[str] = None
    run_id: Optional[str] = None


@dataclass
class AfterToolCallEventData:
    """Called after a tool produced an output (success or envelope)."""

    tool_call: Any
    tool_name: str
    output: Any  # ToolOutput
    execution_time_ms: float


@dataclass
class OnToolErrorEventData:
    """Called when tool execution fails."""

    tool_call: Any
    tool_name: str
    arguments: Dict[str, Any]
    error: Exception
    error_message: str
    attempt: int


# ============================================================================
# Hook Response
# ============================================================================


@dataclass
class HookResponse:
    """What a hook can return to influence execution."""

    action: Optional[str] = None  # 'retry', 'skip'
    cached_result: Any = None  # Result to use instead of running the tool
    arguments: Optional[Dict[str, Any]] = None  # Modified tool arguments
    delay_ms: Optional[int] = None  # Delay before retry

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["HookResponse"]:
        """Convert dict to HookResponse."""
        if data is None:
            return None
        if isinstance(data, HookResponse):
            return data
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


# ============================================================================
# Hook Registry
# ============================================================================


class HookRegistry:
    """Central registry for all hooks.

    Usage:
        hooks = HookRegistry()

        @hooks.on('after_tool_call')
        async def log_tool(event):
            print(f"Tool: {event.tool_name}")

        # Or direct registration
        hooks.register_handler('on_run_status', my_hook)
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {
            event.value: [] for event in HookEvent
        }

    def on(self, hook_name: str):
        """Decorator for registering hook handlers."""

        def decorator(func: Callable) -> Callable:
            self.register_handler(hook_name, func)
            return func

        return decorator

    def register_handler(self, hook_name: str, handler: Callable) -> None:
        """Register a hook handler.

        Raises:
            ValueError: If hook_name is not valid
        """
        if hook_name not in self._handlers:
            valid_hooks = [e.value for e in HookEvent]
            raise ValueError(
                f"Invalid hook name '{hook_name}'. Valid hooks: {valid_hooks}"
            )
        self._handlers[hook_name].append(handler)

    async def trigger(
        self,
        hook_name: str,
        event_data: Any,
    ) -> Optional[HookResponse]:
        """Execute all handlers for a hook.

        Returns:
            First non-None response from any handler, or None
        """
        handlers = self._handlers.get(hook_name, [])

        for handler in handlers:
            try:
                result = await handler(event_data)
                if result is not None:
                    return HookResponse.from_dict(result)
            except Exception as e:
                # Log but don't fail execution
                logger.warning(f"Hook '{hook_name}' raised exception: {e}")

        return None

    def has_handlers(self, hook_name: str) -> bool:
        return len(self._handlers.get(hook_name, [])) > 0

    def clear(self) -> None:
        """Clear all handlers (useful for testing)."""
        for hook_name in self._handlers:
            self._handlers[hook_name] = []


# ============================================================================
# Middleware Base Class (Optional, for stateful handlers)
# ============================================================================


class Middleware:
    """Base class for middleware (stateful hook handlers).

    Override methods for hooks you want to handle.

    Usage:
        class AuditMiddleware(Middleware):
            async def after_tool_call(self, event):
                audit_log.append(event.tool_name)

        agent = Agent(provider=..., tools=..., middlewares=[AuditMiddleware()])
    """

    async def before_run(self, event: BeforeRunEventData) -> Optional[Dict]:
        pass

    async def after_run(self, event: AfterRunEventData) -> Optional[Dict]:
        pass

    async def on_run_status(self, event: RunStatusEventData) -> Optional[Dict]:
        pass

    async def before_tool_batch(
        self, event: BeforeToolBatchEventData
    ) -> Optional[Dict]:
        pass

    async def after_tool_batch(self, event: AfterToolBatchEventData) -> Optional[Dict]:
        pass

    async def before_tool_call(self, event: BeforeToolCallEventData) -> Optional[Dict]:
        pass

    async def after_tool_call(self, event: AfterToolCallEventData) -> Optional[Dict]:
        pass

    async def on_tool_error(self, event: OnToolErrorEventData) -> Optional[Dict]:
        pass
