#!/usr/bin/env python3
"""Chat with a real OpenAI assistant from the terminal.

Each line you type becomes one chat turn on the same thread, so the
assistant keeps the conversation history. Tools are built from the same
settings the HTTP service uses; only integrations with credentials are
offered to the assistant.

Requirements:
- OPENAI_API_KEY and ASSISTANT_ID environment variables set
- Optional GITHUB_* and FACEBOOK_* variables for the website and page tools

Run:
    python examples/chat_with_assistant.py
"""

import asyncio
import logging
import os
import sys

# Ensure the project root is in the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from page_assistant import AssistantError
from page_assistant.config import get_settings
from page_assistant.server import build_agent
from page_assistant.storage import create_session_factory, init_db


async def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    factory, engine = create_session_factory(settings.database_url)
    await init_db(engine)
    agent = build_agent(settings, factory)
    print(f"Tools: {', '.join(agent.tools.names())}")
    print("Type a message, or an empty line to quit.\n")

    thread_id = None
    try:
        while True:
            text = input("you> ").strip()
            if not text:
                break
            try:
                execution = await agent.run_async(text, thread_id=thread_id)
            except AssistantError as e:
                print(f"error> {e}\n")
                continue
            thread_id = execution.thread_id
            print(f"assistant> {execution.response}\n")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
