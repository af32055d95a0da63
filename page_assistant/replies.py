from typing import Optional

from page_assistant.provider import AssistantProvider

DEFAULT_PLACEHOLDER = "(The assistant did not return a text reply.)"


async def extract_reply(
    provider: AssistantProvider,
    thread_id: str,
    run_id: Optional[str] = None,
    placeholder: str = DEFAULT_PLACEHOLDER,
    limit: int = 20,
) -> str:
    """Return the text of the newest assistant message for a completed run.

    Messages tagged with a different run are skipped. A missing or blank
    reply yields ``placeholder`` instead of an error.
    """
    messages = await provider.list_messages(thread_id, limit=limit)
    for message in messages:
        if message.role != "assistant":
            continue
        if run_id and message.run_id and message.run_id != run_id:
            continue
        text = message.content.strip()
        return text or placeholder
    return placeholder
