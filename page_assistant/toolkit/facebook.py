"""Facebook Graph API tools."""

from typing import Optional

import httpx
from pydantic import Field

from page_assistant.exceptions import ToolExecutionError
from page_assistant.tools import Tool, ToolInput


class PostInput(ToolInput):
    message: str = Field(min_length=1, description="Text of the post")
    link: Optional[str] = Field(default=None, description="Optional URL to attach")


class PostToFacebookPage(Tool):
    name = "postToFacebookPage"
    description = "Publish a post on the linked Facebook page"
    input_model = PostInput

    def __init__(
        self,
        page_id: str,
        access_token: str,
        graph_version: str = "v19.0",
        base_url: str = "https://graph.facebook.com",
    ):
        self.page_id = page_id
        self.access_token = access_token
        self.graph_url = f"{base_url.rstrip('/')}/{graph_version}"

    async def execute(self, message: str, link: Optional[str]) -> dict:
        data = {"message": message, "access_token": self.access_token}
        if link:
            data["link"] = link

        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.graph_url}/{self.page_id}/feed", data=data, timeout=30.0
            )

        if response.status_code != 200:
            try:
                error_msg = response.json().get("error", {}).get("message", "Unknown error")
            except ValueError:
                error_msg = response.text or "Unknown error"
            raise ToolExecutionError(f"Facebook API error: {error_msg}")

        return {"success": True, "postId": response.json().get("id")}
