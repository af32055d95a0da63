#!/usr/bin/env python3
"""Run one chat turn against a simulated assistant.

No OpenAI key or network access is needed: a scripted provider plays the
part of the Assistants API, asks for two tool calls in one round, then
completes with a reply. Useful for seeing the run loop and the execution
trace without API costs.

Run:
    python examples/mock_assistant.py
"""

import asyncio
import json
import os
import sys
from typing import Optional

# Ensure the project root is in the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from page_assistant import (
    Agent,
    AssistantProvider,
    Message,
    Run,
    RunStatus,
    Thread,
    Tool,
    ToolCall,
    ToolInput,
)


class MockAssistantProvider(AssistantProvider):
    """Simulated Assistants API.

    The first status check asks for tools; once outputs are submitted the
    run completes and the reply summarizes what the tools returned.
    """

    def __init__(self):
        self.outputs = []
        self.runs = {}

    async def create_thread(self) -> Thread:
        return Thread(id="thread_mock", is_new=True)

    async def create_message(self, thread_id, content) -> Message:
        return Message(role="user", content=content if isinstance(content, str) else "")

    async def create_run(self, thread_id, assistant_id, instructions=None) -> Run:
        self.runs["run_mock"] = "queued"
        return Run(id="run_mock", thread_id=thread_id, status=RunStatus.QUEUED)

    async def retrieve_run(self, thread_id, run_id) -> Run:
        if self.runs[run_id] == "queued":
            self.runs[run_id] = "requires_action"
            return Run(
                id=run_id,
                thread_id=thread_id,
                status=RunStatus.REQUIRES_ACTION,
                tool_calls=[
                    ToolCall(
                        id="call_title",
                        tool_name="getWebsiteTitle",
                        arguments="{}",
                    ),
                    ToolCall(
                        id="call_post",
                        tool_name="postToFacebookPage",
                        arguments=json.dumps({"message": "Fresh bread every morning!"}),
                    ),
                ],
            )
        return Run(id=run_id, thread_id=thread_id, status=RunStatus.COMPLETED)

    async def submit_tool_outputs(self, thread_id, run_id, outputs) -> Run:
        self.outputs = [json.loads(output.output) for output in outputs]
        self.runs[run_id] = "in_progress"
        return Run(id=run_id, thread_id=thread_id, status=RunStatus.IN_PROGRESS)

    async def list_messages(self, thread_id, limit=20) -> list[Message]:
        title = self.outputs[0].get("title") if self.outputs else None
        post_id = self.outputs[1].get("postId") if len(self.outputs) > 1 else None
        return [
            Message(
                role="assistant",
                content=f"Your site is titled '{title}'. Posted it as {post_id}.",
                run_id="run_mock",
            )
        ]


class FakeTitle(Tool):
    name = "getWebsiteTitle"
    description = "Get the <title> of the website's index.html"

    async def execute(self) -> dict:
        return {"success": True, "title": "Acme Bakery"}


class PostInput(ToolInput):
    message: str
    link: Optional[str] = None


class FakePost(Tool):
    name = "postToFacebookPage"
    description = "Publish a post on the linked Facebook page"
    input_model = PostInput

    async def execute(self, message: str, link: Optional[str]) -> dict:
        return {"success": True, "postId": "page_1_post_42"}


def print_execution_trace(execution) -> None:
    print(f"\n{'=' * 70}\n  Execution Trace\n{'=' * 70}\n")
    print(f"  Input:         {execution.input}")
    print(f"  Thread / Run:  {execution.thread_id} / {execution.run_id}")
    print(f"  State:         {execution.state}")
    print(f"  Poll attempts: {execution.poll_attempts}")
    print(f"  Tool rounds:   {execution.action_rounds}")

    for round_number, outputs in enumerate(execution.tool_outputs, 1):
        print(f"\n  Round {round_number}:")
        for output in outputs:
            print(f"    {output.call_id}: {output.output}")

    print(f"\n  Reply: {execution.response}\n")


async def main() -> None:
    agent = Agent(
        provider=MockAssistantProvider(),
        tools=[FakeTitle(), FakePost()],
        assistant_id="asst_mock",
        poll_interval=0.1,
    )
    execution = await agent.run_async("Post our website title to the page")
    print_execution_trace(execution)


if __name__ == "__main__":
    asyncio.run(main())
