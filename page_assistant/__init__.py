from page_assistant.adaptors.openai import OpenAIAssistantsAdaptor
from page_assistant.agent import Agent
from page_assistant.dispatcher import ToolDispatcher
from page_assistant.exceptions import (
    ActionLimitExceeded,
    AssistantError,
    IncompleteToolOutputs,
    InvalidChatInput,
    ProviderError,
    RunError,
    RunFailed,
    RunTimeout,
    ToolExecutionError,
    ToolNotFound,
    ToolValidationError,
)
from page_assistant.execution import (
    Execution,
    Message,
    Run,
    RunStatus,
    Thread,
    ToolCall,
    ToolOutput,
)
from page_assistant.hooks import (
    AfterRunEventData,
    AfterToolBatchEventData,
    AfterToolCallEventData,
    BeforeRunEventData,
    BeforeToolBatchEventData,
    BeforeToolCallEventData,
    HookEvent,
    HookRegistry,
    HookResponse,
    Middleware,
    OnToolErrorEventData,
    RunStatusEventData,
)
from page_assistant.poller import RunPoller
from page_assistant.provider import AssistantProvider
from page_assistant.replies import extract_reply
from page_assistant.threads import (
    InMemoryThreadStore,
    ThreadManager,
    ThreadPolicy,
    ThreadStore,
)
from page_assistant.tools import Tool, ToolInput, ToolRegistry

__all__ = [
    # Core
    "Agent",
    "AssistantProvider",
    "Execution",
    "Message",
    "OpenAIAssistantsAdaptor",
    "Run",
    "RunPoller",
    "RunStatus",
    "Thread",
    "Tool",
    "ToolCall",
    "ToolDispatcher",
    "ToolInput",
    "ToolOutput",
    "ToolRegistry",
    "extract_reply",
    # Threads
    "InMemoryThreadStore",
    "ThreadManager",
    "ThreadPolicy",
    "ThreadStore",
    # Hooks
    "HookRegistry",
    "HookEvent",
    "HookResponse",
    "Middleware",
    # Hook Event Data
    "BeforeRunEventData",
    "AfterRunEventData",
    "RunStatusEventData",
    "BeforeToolBatchEventData",
    "AfterToolBatchEventData",
    "BeforeToolCallEventData",
    "AfterToolCallEventData",
    "OnToolErrorEventData",
    # Exceptions
    "ActionLimitExceeded",
    "AssistantError",
    "IncompleteToolOutputs",
    "InvalidChatInput",
    "ProviderError",
    "RunError",
    "RunFailed",
    "RunTimeout",
    "ToolExecutionError",
    "ToolNotFound",
    "ToolValidationError",
]
