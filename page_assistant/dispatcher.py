import asyncio
import json
import logging
import time
from typing import Any, Optional

from pydantic import BaseModel

from page_assistant.exceptions import ToolNotFound
from page_assistant.execution import Run, ToolCall, ToolOutput
from page_assistant.hooks import (
    AfterToolCallEventData,
    BeforeToolCallEventData,
    HookRegistry,
    OnToolErrorEventData,
)
from page_assistant.tools import ToolRegistry

logger = logging.getLogger(__name__)


def failure_envelope(error: str) -> str:
    return json.dumps({"success": False, "error": error}, ensure_ascii=False)


def encode_result(result: Any) -> str:
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json")
    return json.dumps(result, ensure_ascii=False)


class ToolDispatcher:
    """Runs one batch of tool calls and returns one output per call.

    Every call is resolved independently and concurrently. Failures never
    escape: a missing tool, bad arguments or a raising handler all become
    a failure envelope for that call only.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        hooks: Optional[HookRegistry] = None,
        max_attempts: int = 3,
    ):
        self.registry = registry
        self.hooks = hooks or HookRegistry()
        self.max_attempts = max_attempts

    async def dispatch(
        self, tool_calls: list[ToolCall], run: Optional[Run] = None
    ) -> list[ToolOutput]:
        outputs = await asyncio.gather(
            *(self._resolve(call, run) for call in tool_calls)
        )
        return list(outputs)

    async def _resolve(self, tool_call: ToolCall, run: Optional[Run]) -> ToolOutput:
        start = time.time()
        output = await self._execute(tool_call, run)
        await self.hooks.trigger(
            "after_tool_call",
            AfterToolCallEventData(
                tool_call=tool_call,
                tool_name=tool_call.tool_name,
                output=output,
                execution_time_ms=(time.time() - start) * 1000,
            ),
        )
        return output

    async def _execute(self, tool_call: ToolCall, run: Optional[Run]) -> ToolOutput:
        try:
            tool = self.registry.get(tool_call.tool_name)
        except ToolNotFound as e:
            logger.warning(f"Assistant requested unknown tool '{tool_call.tool_name}'")
            return self._failed(tool_call, str(e))

        try:
            arguments = _decode_arguments(tool_call.arguments)
        except ValueError as e:
            return self._failed(tool_call, f"Invalid arguments for '{tool.name}': {e}")

        before = await self.hooks.trigger(
            "before_tool_call",
            BeforeToolCallEventData(
                tool_call=tool_call,
                tool_name=tool.name,
                arguments=arguments,
                thread_id=run.thread_id if run else None,
                run_id=run.id if run else None,
            ),
        )
        if before and before.action == "skip" and before.cached_result is not None:
            return self._succeeded(tool_call, before.cached_result)

        attempt = 0
        error_message = ""
        while attempt < self.max_attempts:
            attempt += 1
            try:
                result = await tool(arguments)
                return self._succeeded(tool_call, result)
            except Exception as e:
                error_message = str(e) or e.__class__.__name__
                logger.warning(
                    f"Tool '{tool.name}' failed (attempt {attempt}): {error_message}"
                )
                hook_response = await self.hooks.trigger(
                    "on_tool_error",
                    OnToolErrorEventData(
                        tool_call=tool_call,
                        tool_name=tool.name,
                        arguments=arguments,
                        error=e,
                        error_message=error_message,
                        attempt=attempt,
                    ),
                )
                if hook_response and hook_response.action == "retry":
                    if hook_response.delay_ms:
                        await asyncio.sleep(hook_response.delay_ms / 1000)
                    if hook_response.arguments is not None:
                        arguments = hook_response.arguments
                    continue
                break

        return self._failed(tool_call, error_message)

    def _succeeded(self, tool_call: ToolCall, result: Any) -> ToolOutput:
        try:
            encoded = encode_result(result)
        except (TypeError, ValueError) as e:
            return self._failed(
                tool_call, f"Tool '{tool_call.tool_name}' returned a non-JSON result: {e}"
            )
        return ToolOutput(call_id=tool_call.id, output=encoded)

    def _failed(self, tool_call: ToolCall, error: str) -> ToolOutput:
        return ToolOutput(
            call_id=tool_call.id, output=failure_envelope(error), success=False
        )


def _decode_arguments(arguments: Any) -> dict:
    if arguments is None or arguments == "":
        return {}
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise ValueError(f"not valid JSON ({e.msg})") from e
    if not isinstance(arguments, dict):
        raise ValueError("expected a JSON object")
    return arguments
