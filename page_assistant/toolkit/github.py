"""Repository tools: read and edit website files through the GitHub contents API."""

import base64
import html
import logging
import re
from typing import Optional

import httpx
from pydantic import Field

from page_assistant.exceptions import ToolExecutionError
from page_assistant.tools import Tool, ToolInput

logger = logging.getLogger(__name__)

TITLE_PATTERN = re.compile(r"<title>(.*?)</title>", re.IGNORECASE | re.DOTALL)


class GitHubClient:
    """Minimal contents API client for one repository branch.

    Args:
        token: Personal access token with contents read/write.
        owner: Repository owner.
        repo: Repository name.
        branch: Branch to read from and commit to.
        editable_extensions: File extensions that may be changed; empty allows all.
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        branch: str = "main",
        editable_extensions: Optional[list[str]] = None,
        base_url: str = "https://api.github.com",
    ):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.editable_extensions = [ext.lower() for ext in editable_extensions or []]
        self.base_url = base_url.rstrip("/")

    def is_editable(self, path: str) -> bool:
        if not self.editable_extensions:
            return True
        return any(path.lower().endswith(ext) for ext in self.editable_extensions)

    async def get_contents(self, path: str):
        path = path.strip("/")
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{self._contents_url()}/{path}",
                params={"ref": self.branch},
                headers=self._headers(),
                timeout=30.0,
            )
        self._raise_for_status(response, path)
        return response.json()

    async def read_file(self, path: str) -> tuple[str, str]:
        """Return (text, sha) of a file."""
        data = await self.get_contents(path)
        if isinstance(data, list) or data.get("type") != "file":
            raise ToolExecutionError(f"'{path}' is not a file")
        text = base64.b64decode(data.get("content", "")).decode("utf-8")
        return text, data["sha"]

    async def write_file(
        self, path: str, text: str, message: str, sha: Optional[str] = None
    ) -> dict:
        path = path.strip("/")
        if not self.is_editable(path):
            raise ToolExecutionError(
                f"Editing '{path}' is not allowed; editable extensions: "
                f"{', '.join(self.editable_extensions)}"
            )
        payload = {
            "message": message,
            "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
            "branch": self.branch,
        }
        if sha:
            payload["sha"] = sha
        async with httpx.AsyncClient() as client:
            response = await client.put(
                f"{self._contents_url()}/{path}",
                json=payload,
                headers=self._headers(),
                timeout=30.0,
            )
        self._raise_for_status(response, path)
        return response.json()

    def _contents_url(self) -> str:
        return f"{self.base_url}/repos/{self.owner}/{self.repo}/contents"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
        }

    def _raise_for_status(self, response: httpx.Response, path: str) -> None:
        if response.status_code == 404:
            raise ToolExecutionError(f"'{path}' was not found on branch {self.branch}")
        if response.status_code >= 400:
            try:
                detail = response.json().get("message", "")
            except ValueError:
                detail = response.text
            raise ToolExecutionError(f"GitHub API error ({response.status_code}): {detail}")


class ListFilesInput(ToolInput):
    directoryPath: str = Field(default="", description="Directory to list; empty for the root")


class ListFiles(Tool):
    name = "listFiles"
    description = "List files and folders in a directory of the website repository"
    input_model = ListFilesInput

    def __init__(self, github: GitHubClient):
        self.github = github

    async def execute(self, directoryPath: str) -> dict:
        data = await self.github.get_contents(directoryPath)
        if not isinstance(data, list):
            raise ToolExecutionError(f"'{directoryPath}' is a file, not a directory")
        return {
            "success": True,
            "files": [{"name": item["name"], "path": item["path"], "type": item["type"]} for item in data],
        }


class ReadFileInput(ToolInput):
    filePath: str = Field(description="Path of the file in the repository")


class ReadFileContent(Tool):
    name = "readFileContent"
    description = "Read the text content of a file in the website repository"
    input_model = ReadFileInput

    def __init__(self, github: GitHubClient):
        self.github = github

    async def execute(self, filePath: str) -> dict:
        text, _ = await self.github.read_file(filePath)
        return {"success": True, "filePath": filePath, "content": text}


class UpdateFileInput(ToolInput):
    filePath: str = Field(description="Path of the file in the repository")
    newContent: str = Field(description="Full new content of the file")
    commitMessage: Optional[str] = Field(default=None, description="Commit message")


class UpdateFileContent(Tool):
    name = "updateFileContent"
    description = "Replace the content of a file in the website repository and commit it"
    input_model = UpdateFileInput

    def __init__(self, github: GitHubClient):
        self.github = github

    async def execute(
        self, filePath: str, newContent: str, commitMessage: Optional[str]
    ) -> dict:
        _, sha = await self.github.read_file(filePath)
        result = await self.github.write_file(
            filePath,
            newContent,
            commitMessage or f"Update {filePath} via assistant",
            sha=sha,
        )
        logger.info(f"Committed change to {filePath}")
        return {
            "success": True,
            "filePath": filePath,
            "commit": result.get("commit", {}).get("sha"),
        }


class GetWebsiteTitle(Tool):
    name = "getWebsiteTitle"
    description = "Get the <title> of the website's index.html"

    def __init__(self, github: GitHubClient, index_path: str = "index.html"):
        self.github = github
        self.index_path = index_path

    async def execute(self) -> dict:
        page, _ = await self.github.read_file(self.index_path)
        match = TITLE_PATTERN.search(page)
        if not match:
            raise ToolExecutionError(f"No <title> tag in {self.index_path}")
        return {"success": True, "title": html.unescape(match.group(1).strip())}


class UpdateTitleInput(ToolInput):
    newTitle: str = Field(min_length=1, description="New website title")


class UpdateWebsiteTitle(Tool):
    name = "updateWebsiteTitle"
    description = "Change the <title> of the website's index.html and commit it"
    input_model = UpdateTitleInput

    def __init__(self, github: GitHubClient, index_path: str = "index.html"):
        self.github = github
        self.index_path = index_path

    async def execute(self, newTitle: str) -> dict:
        page, sha = await self.github.read_file(self.index_path)
        if not TITLE_PATTERN.search(page):
            raise ToolExecutionError(f"No <title> tag in {self.index_path}")
        escaped = html.escape(newTitle, quote=False)
        updated = TITLE_PATTERN.sub(lambda _: f"<title>{escaped}</title>", page, count=1)
        await self.github.write_file(
            self.index_path, updated, f"Update website title to {newTitle}", sha=sha
        )
        return {"success": True, "title": newTitle}
