from typing import Optional, Union

from page_assistant.execution import Message, Run, Thread, ToolOutput

# Plain text, or a list of content parts ({"type": "text" | "image_url", ...})
MessageContent = Union[str, list[dict]]


class AssistantProvider:
    """Remote assistant API: threads, messages and runs."""

    async def create_thread(self) -> Thread:
        raise NotImplementedError

    async def create_message(self, thread_id: str, content: MessageContent) -> Message:
        """Append a user message to a thread."""
        raise NotImplementedError

    async def create_run(
        self, thread_id: str, assistant_id: str, instructions: Optional[str] = None
    ) -> Run:
        raise NotImplementedError

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        raise NotImplementedError

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: list[ToolOutput]
    ) -> Run:
        raise NotImplementedError

    async def list_messages(self, thread_id: str, limit: int = 20) -> list[Message]:
        """Return the thread's messages, newest first."""
        raise NotImplementedError
