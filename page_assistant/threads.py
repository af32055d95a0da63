import logging
import re
from enum import Enum
from typing import Any, Optional

from page_assistant.exceptions import InvalidChatInput
from page_assistant.execution import Message, Thread
from page_assistant.provider import AssistantProvider, MessageContent

logger = logging.getLogger(__name__)

IMAGE_URL_PATTERN = re.compile(
    r"(https?://[^\s]+?\.(?:png|jpg|jpeg|gif|webp))", re.IGNORECASE
)


class ThreadPolicy(str, Enum):
    """Who remembers a conversation's thread between requests."""

    REQUEST = "request"  # the caller sends threadId back on every request
    SESSION = "session"  # the server keeps it per session key


class ThreadStore:
    """Storage for session key -> thread id."""

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def put(self, key: str, thread_id: str) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError


class InMemoryThreadStore(ThreadStore):
    def __init__(self):
        self._threads: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._threads.get(key)

    async def put(self, key: str, thread_id: str) -> None:
        self._threads[key] = thread_id

    async def delete(self, key: str) -> None:
        self._threads.pop(key, None)


class ThreadManager:
    """Resolves the remote thread a chat turn belongs to."""

    def __init__(
        self,
        provider: AssistantProvider,
        store: Optional[ThreadStore] = None,
        policy: ThreadPolicy = ThreadPolicy.REQUEST,
    ):
        self.provider = provider
        self.store = store or InMemoryThreadStore()
        self.policy = ThreadPolicy(policy)

    async def resolve(
        self, thread_id: Optional[str] = None, session_key: Optional[str] = None
    ) -> Thread:
        """Return the caller's thread, creating a remote one if there is none."""
        remember = self.policy is ThreadPolicy.SESSION and session_key is not None

        if thread_id:
            if remember:
                await self.store.put(session_key, thread_id)
            return Thread(id=thread_id)

        if remember:
            stored = await self.store.get(session_key)
            if stored:
                return Thread(id=stored)

        thread = await self.provider.create_thread()
        thread.is_new = True
        logger.info(f"Created thread {thread.id}")
        if remember:
            await self.store.put(session_key, thread.id)
        return thread

    async def append(self, thread: Thread, content: MessageContent) -> Message:
        message = await self.provider.create_message(thread.id, content)
        thread.messages.append(message)
        return message


def build_message_content(text: Any) -> MessageContent:
    """Turn a chat message into the content sent to the assistant.

    Image URLs become image_url parts so the assistant can see them; the
    rest of the text goes in a leading text part.

    Raises:
        InvalidChatInput: If there is nothing to send.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidChatInput('The request must include a non-empty "message" field.')

    image_urls = IMAGE_URL_PATTERN.findall(text)
    if not image_urls:
        return text.strip()

    parts: list[dict] = []
    remaining = IMAGE_URL_PATTERN.sub("", text).strip()
    if remaining:
        parts.append({"type": "text", "text": remaining})
    for url in image_urls:
        parts.append({"type": "image_url", "image_url": {"url": url}})
    return parts
