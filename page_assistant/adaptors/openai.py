"""OpenAI Assistants API adaptor for page-assistant."""

import logging
import os
from typing import Any, Optional

import httpx

from page_assistant.exceptions import ProviderError
from page_assistant.execution import Message, Run, RunStatus, Thread, ToolCall, ToolOutput
from page_assistant.provider import AssistantProvider, MessageContent

logger = logging.getLogger(__name__)


class OpenAIAssistantsAdaptor(AssistantProvider):
    """Assistants v2 REST client.

    Args:
        api_key: OpenAI API key. Falls back to OPENAI_API_KEY environment variable.
        base_url: Base URL for the API (default: https://api.openai.com/v1).
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError(
                "OpenAI API key not provided. "
                "Pass api_key argument or set OPENAI_API_KEY environment variable."
            )

        self.base_url = (base_url or "https://api.openai.com/v1").rstrip("/")
        self.timeout = timeout

    async def create_thread(self) -> Thread:
        data = await self._request("POST", "/threads", json={})
        return Thread(id=data["id"], is_new=True)

    async def create_message(self, thread_id: str, content: MessageContent) -> Message:
        data = await self._request(
            "POST",
            f"/threads/{thread_id}/messages",
            json={"role": "user", "content": content},
        )
        return self._parse_message(data)

    async def create_run(
        self, thread_id: str, assistant_id: str, instructions: Optional[str] = None
    ) -> Run:
        payload: dict[str, Any] = {"assistant_id": assistant_id}
        if instructions:
            payload["additional_instructions"] = instructions
        data = await self._request("POST", f"/threads/{thread_id}/runs", json=payload)
        return self._parse_run(data)

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        data = await self._request("GET", f"/threads/{thread_id}/runs/{run_id}")
        return self._parse_run(data)

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: list[ToolOutput]
    ) -> Run:
        payload = {
            "tool_outputs": [
                {"tool_call_id": output.call_id, "output": output.output}
                for output in outputs
            ]
        }
        data = await self._request(
            "POST",
            f"/threads/{thread_id}/runs/{run_id}/submit_tool_outputs",
            json=payload,
        )
        return self._parse_run(data)

    async def list_messages(self, thread_id: str, limit: int = 20) -> list[Message]:
        data = await self._request(
            "GET",
            f"/threads/{thread_id}/messages",
            params={"order": "desc", "limit": limit},
        )
        return [self._parse_message(item) for item in data.get("data", [])]

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> dict:
        """Send one request and return the decoded JSON body.

        Raises:
            ProviderError: On transport failure or a non-2xx response.
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    json=json,
                    params=params,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                        "OpenAI-Beta": "assistants=v2",
                    },
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_msg = response.json().get("error", {}).get("message", "Unknown error")
            except ValueError:
                error_msg = response.text or "Unknown error"
            raise ProviderError(
                f"OpenAI API error ({response.status_code}): {error_msg}",
                http_status=response.status_code,
            )

        return response.json()

    def _parse_run(self, data: dict) -> Run:
        """Parse a run object.

        Raises:
            ProviderError: If the run status is not one we know.
        """
        try:
            status = RunStatus(data["status"])
        except (KeyError, ValueError) as e:
            raise ProviderError(f"Unexpected run status: {data.get('status')!r}") from e

        tool_calls = []
        required_action = data.get("required_action") or {}
        submit = required_action.get("submit_tool_outputs") or {}
        for call in submit.get("tool_calls", []):
            function = call.get("function", {})
            tool_calls.append(
                ToolCall(
                    id=call["id"],
                    tool_name=function.get("name", ""),
                    arguments=function.get("arguments"),
                )
            )

        last_error = data.get("last_error") or {}
        return Run(
            id=data["id"],
            thread_id=data["thread_id"],
            status=status,
            tool_calls=tool_calls,
            last_error=last_error.get("message"),
        )

    def _parse_message(self, data: dict) -> Message:
        return Message(
            role=data.get("role", "assistant"),
            content=self._text_from_parts(data.get("content", [])),
            id=data.get("id"),
            run_id=data.get("run_id"),
            created_at=data.get("created_at"),
        )

    def _text_from_parts(self, parts: list) -> str:
        """Join the text parts of a message; image and file parts are dropped."""
        texts = []
        for part in parts:
            if part.get("type") == "text":
                text = part.get("text") or {}
                value = text.get("value") if isinstance(text, dict) else text
                if value:
                    texts.append(value)
        return "\n".join(texts)
