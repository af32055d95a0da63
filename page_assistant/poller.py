import asyncio
import logging
import time
from typing import Optional

from page_assistant.dispatcher import ToolDispatcher
from page_assistant.exceptions import (
    ActionLimitExceeded,
    IncompleteToolOutputs,
    RunFailed,
    RunTimeout,
)
from page_assistant.execution import Execution, Run, RunStatus, ToolCall, ToolOutput
from page_assistant.hooks import (
    AfterToolBatchEventData,
    BeforeToolBatchEventData,
    HookRegistry,
    RunStatusEventData,
)
from page_assistant.provider import AssistantProvider

logger = logging.getLogger(__name__)


class RunPoller:
    """Drives one remote run until it completes, fails or runs out of budget.

    Status checks happen at a fixed interval and count against
    max_poll_attempts for the whole run. Each requires_action state is
    answered with one full batch of tool outputs; the number of such rounds
    is capped by max_action_rounds.
    """

    def __init__(
        self,
        provider: AssistantProvider,
        dispatcher: ToolDispatcher,
        poll_interval: float = 1.0,
        max_poll_attempts: int = 60,
        max_action_rounds: int = 10,
        hooks: Optional[HookRegistry] = None,
    ):
        self.provider = provider
        self.dispatcher = dispatcher
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.max_action_rounds = max_action_rounds
        self.hooks = hooks or HookRegistry()

    async def start(
        self,
        execution: Execution,
        assistant_id: str,
        instructions: Optional[str] = None,
    ) -> Run:
        run = await self.provider.create_run(
            execution.thread_id, assistant_id, instructions=instructions
        )
        execution.run_id = run.id
        return await self.wait(execution, run)

    async def wait(self, execution: Execution, run: Run) -> Run:
        while True:
            execution.status = run.status
            await self.hooks.trigger(
                "on_run_status",
                RunStatusEventData(
                    execution=execution,
                    status=run.status,
                    poll_attempt=execution.poll_attempts,
                ),
            )
            logger.debug(
                f"Run {run.id} on thread {run.thread_id}: {run.status.value} "
                f"(attempt {execution.poll_attempts})"
            )

            if run.status is RunStatus.COMPLETED:
                return run

            if run.status.is_failure:
                detail = f": {run.last_error}" if run.last_error else ""
                logger.error(
                    f"Run {run.id} on thread {run.thread_id} ended as "
                    f"{run.status.value}{detail}"
                )
                raise RunFailed(
                    f"Assistant run ended with status '{run.status.value}'",
                    thread_id=run.thread_id,
                    run_id=run.id,
                    status=run.status.value,
                )

            if run.status is RunStatus.REQUIRES_ACTION:
                run = await self._handle_action(execution, run)
                continue

            if execution.poll_attempts >= self.max_poll_attempts:
                logger.warning(
                    f"Gave up on run {run.id} on thread {run.thread_id} after "
                    f"{execution.poll_attempts} polls; last status {run.status.value}"
                )
                raise RunTimeout(
                    f"Assistant run did not finish after {execution.poll_attempts} "
                    f"status checks (last status '{run.status.value}')",
                    thread_id=run.thread_id,
                    run_id=run.id,
                    status=run.status.value,
                )

            await asyncio.sleep(self.poll_interval)
            execution.poll_attempts += 1
            run = await self.provider.retrieve_run(run.thread_id, run.id)

    async def _handle_action(self, execution: Execution, run: Run) -> Run:
        if execution.action_rounds >= self.max_action_rounds:
            raise ActionLimitExceeded(
                f"Assistant requested tools more than {self.max_action_rounds} times",
                thread_id=run.thread_id,
                run_id=run.id,
                status=run.status.value,
            )
        if not run.tool_calls:
            raise RunFailed(
                "Assistant run requires action but requested no tools",
                thread_id=run.thread_id,
                run_id=run.id,
                status=run.status.value,
            )

        execution.action_rounds += 1
        tool_calls = list(run.tool_calls)
        await self.hooks.trigger(
            "before_tool_batch",
            BeforeToolBatchEventData(
                execution=execution,
                tool_calls=tool_calls,
                action_round=execution.action_rounds,
            ),
        )

        start = time.time()
        outputs = await self.dispatcher.dispatch(tool_calls, run=run)
        _check_batch(run, tool_calls, outputs)

        execution.tool_calls.extend(tool_calls)
        execution.tool_outputs.append(outputs)
        await self.hooks.trigger(
            "after_tool_batch",
            AfterToolBatchEventData(
                execution=execution,
                tool_outputs=outputs,
                action_round=execution.action_rounds,
                execution_time_ms=(time.time() - start) * 1000,
            ),
        )

        return await self.provider.submit_tool_outputs(run.thread_id, run.id, outputs)


def _check_batch(run: Run, tool_calls: list[ToolCall], outputs: list[ToolOutput]) -> None:
    expected = [call.id for call in tool_calls]
    answered = [output.call_id for output in outputs]
    if len(answered) != len(expected) or set(answered) != set(expected):
        raise IncompleteToolOutputs(
            f"Tool outputs {answered} do not answer tool calls {expected}",
            thread_id=run.thread_id,
            run_id=run.id,
            status=run.status.value,
        )
