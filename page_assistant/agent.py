import asyncio
import logging
import os
import time
from typing import TYPE_CHECKING, Optional, Union

from page_assistant.dispatcher import ToolDispatcher
from page_assistant.exceptions import AssistantError, ProviderError, RunTimeout
from page_assistant.execution import Execution
from page_assistant.poller import RunPoller
from page_assistant.provider import AssistantProvider
from page_assistant.replies import DEFAULT_PLACEHOLDER, extract_reply
from page_assistant.threads import ThreadManager, build_message_content
from page_assistant.tools import Tool, ToolRegistry

if TYPE_CHECKING:
    from page_assistant.hooks import HookRegistry, Middleware

logger = logging.getLogger(__name__)


class Agent:
    """One chat turn against a remote assistant, with local tools.

    Resolves the thread, appends the user message, drives the run through
    any tool calls and returns the assistant's reply in an Execution.
    """

    def __init__(
        self,
        provider: AssistantProvider,
        tools: Union[list[Tool], ToolRegistry],
        assistant_id: Optional[str] = None,
        threads: Optional[ThreadManager] = None,
        poll_interval: float = 1.0,
        max_poll_attempts: int = 60,
        max_action_rounds: int = 10,
        instructions: Optional[str] = None,
        empty_reply_placeholder: str = DEFAULT_PLACEHOLDER,
        name: str = "Agent",
        hooks: Optional["HookRegistry"] = None,
        middlewares: Optional[list["Middleware"]] = None,
    ):
        self.assistant_id = assistant_id or os.environ.get("ASSISTANT_ID")
        if not self.assistant_id:
            raise ValueError(
                "Assistant id not provided. "
                "Pass assistant_id argument or set ASSISTANT_ID environment variable."
            )

        self.provider = provider
        self.tools = tools if isinstance(tools, ToolRegistry) else ToolRegistry(tools)
        self.threads = threads or ThreadManager(provider)
        self.instructions = instructions
        self.empty_reply_placeholder = empty_reply_placeholder
        self.name = name

        if hooks is None:
            from page_assistant.hooks import HookRegistry

            hooks = HookRegistry()
        self.hooks = hooks

        if middlewares:
            self._register_middlewares(middlewares)

        self.dispatcher = ToolDispatcher(self.tools, hooks=self.hooks)
        self.poller = RunPoller(
            provider,
            self.dispatcher,
            poll_interval=poll_interval,
            max_poll_attempts=max_poll_attempts,
            max_action_rounds=max_action_rounds,
            hooks=self.hooks,
        )

    def _register_middlewares(self, middlewares: list["Middleware"]) -> None:
        """Convert middleware instances to HookRegistry handlers."""
        from page_assistant.hooks import HookEvent

        hook_names = [e.value for e in HookEvent]
        for middleware in middlewares:
            for hook_name in hook_names:
                handler = getattr(middleware, hook_name, None)
                if handler is not None and asyncio.iscoroutinefunction(handler):
                    self.hooks.register_handler(hook_name, handler)

    def hook(self, hook_name: str):
        """Decorator for registering hooks directly on agent.

        Usage:
            @agent.hook('on_tool_error')
            async def report(event):
                print(f"{event.tool_name} failed: {event.error_message}")
        """
        return self.hooks.on(hook_name)

    def run(
        self,
        input: str,
        thread_id: Optional[str] = None,
        session_key: Optional[str] = None,
    ) -> Execution:
        """Run one chat turn synchronously."""
        return asyncio.run(self.run_async(input, thread_id, session_key))

    async def run_async(
        self,
        input: str,
        thread_id: Optional[str] = None,
        session_key: Optional[str] = None,
    ) -> Execution:
        """Run one chat turn.

        Raises:
            InvalidChatInput: Before any remote call, if the message is empty.
            RunError: If the run fails, times out or misbehaves.
            ProviderError: If the provider cannot be reached.
        """
        from page_assistant.hooks import AfterRunEventData, BeforeRunEventData

        content = build_message_content(input)
        start_time = time.time()

        await self.hooks.trigger(
            "before_run",
            BeforeRunEventData(agent=self, input=input, thread_id=thread_id),
        )

        execution = Execution(input=input)
        try:
            thread = await self.threads.resolve(thread_id, session_key=session_key)
            execution.thread_id = thread.id
            execution.metadata["new_thread"] = thread.is_new

            await self.threads.append(thread, content)
            run = await self.poller.start(
                execution, self.assistant_id, instructions=self.instructions
            )

            execution.response = await extract_reply(
                self.provider,
                thread.id,
                run_id=run.id,
                placeholder=self.empty_reply_placeholder,
            )
            execution.state = "completed"
        except RunTimeout:
            execution.state = "timeout"
            raise
        except ProviderError as e:
            execution.state = "failed"
            e.thread_id = e.thread_id or execution.thread_id
            e.run_id = e.run_id or execution.run_id
            if e.status is None and execution.status is not None:
                e.status = execution.status.value
            raise
        except AssistantError:
            execution.state = "failed"
            raise
        except asyncio.CancelledError:
            execution.state = "cancelled"
            logger.info(
                f"Chat turn cancelled (thread {execution.thread_id}, run {execution.run_id})"
            )
            raise
        finally:
            total_time = (time.time() - start_time) * 1000
            await self.hooks.trigger(
                "after_run",
                AfterRunEventData(execution=execution, total_time_ms=total_time),
            )

        return execution
