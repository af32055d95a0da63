import base64
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from page_assistant.config import Settings
from page_assistant.exceptions import ToolExecutionError
from page_assistant.toolkit import build_toolkit
from page_assistant.toolkit.facebook import PostToFacebookPage
from page_assistant.toolkit.github import (
    GetWebsiteTitle,
    GitHubClient,
    ListFiles,
    ReadFileContent,
    UpdateFileContent,
    UpdateWebsiteTitle,
)

INDEX_HTML = "<html><head><title> Old Title </title></head><body></body></html>"


def mock_response(data, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = data
    return response


def file_payload(text, sha="sha_1", path="index.html"):
    return {
        "type": "file",
        "path": path,
        "sha": sha,
        "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
    }


def make_github(**kwargs):
    kwargs.setdefault("editable_extensions", [".html", ".css"])
    return GitHubClient(token="ghp_test", owner="acme", repo="site", **kwargs)


# --- GitHub Tools ---


class TestGitHubClient:
    def test_is_editable(self):
        github = make_github()
        assert github.is_editable("index.html")
        assert github.is_editable("styles/MAIN.CSS")
        assert not github.is_editable("app.py")

    def test_everything_editable_without_extensions(self):
        assert make_github(editable_extensions=[]).is_editable("app.py")

    @pytest.mark.asyncio
    async def test_write_rejects_non_editable_file(self):
        github = make_github()
        with patch("httpx.AsyncClient") as mock_client:
            with pytest.raises(ToolExecutionError, match="not allowed"):
                await github.write_file("app.py", "print()", "msg")
            mock_client.assert_not_called()


class TestGitHubTools:
    @pytest.mark.asyncio
    async def test_list_files(self):
        tool = ListFiles(make_github())

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.return_value = mock_response(
                [
                    {"name": "index.html", "path": "index.html", "type": "file", "sha": "a"},
                    {"name": "css", "path": "css", "type": "dir", "sha": "b"},
                ]
            )

            result = await tool({})

            assert result == {
                "success": True,
                "files": [
                    {"name": "index.html", "path": "index.html", "type": "file"},
                    {"name": "css", "path": "css", "type": "dir"},
                ],
            }
            args, kwargs = mock_instance.get.call_args
            assert args[0] == "https://api.github.com/repos/acme/site/contents/"
            assert kwargs["params"] == {"ref": "main"}
            assert kwargs["headers"]["Authorization"] == "Bearer ghp_test"

    @pytest.mark.asyncio
    async def test_read_file_content(self):
        tool = ReadFileContent(make_github())

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.return_value = mock_response(file_payload(INDEX_HTML))

            result = await tool({"filePath": "index.html"})

            assert result == {"success": True, "filePath": "index.html", "content": INDEX_HTML}

    @pytest.mark.asyncio
    async def test_read_missing_file(self):
        tool = ReadFileContent(make_github())

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.return_value = mock_response({"message": "Not Found"}, 404)

            with pytest.raises(ToolExecutionError, match="was not found on branch main"):
                await tool({"filePath": "missing.html"})

    @pytest.mark.asyncio
    async def test_update_file_content_commits_with_sha(self):
        tool = UpdateFileContent(make_github())

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.return_value = mock_response(file_payload("body {}", sha="sha_9"))
            mock_instance.put.return_value = mock_response({"commit": {"sha": "commit_1"}}, 200)

            result = await tool({"filePath": "main.css", "newContent": "body { color: red; }"})

            assert result == {"success": True, "filePath": "main.css", "commit": "commit_1"}
            _, kwargs = mock_instance.put.call_args
            assert kwargs["json"]["sha"] == "sha_9"
            assert kwargs["json"]["branch"] == "main"
            assert kwargs["json"]["message"] == "Update main.css via assistant"
            assert base64.b64decode(kwargs["json"]["content"]).decode() == "body { color: red; }"

    @pytest.mark.asyncio
    async def test_get_website_title(self):
        tool = GetWebsiteTitle(make_github())

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.return_value = mock_response(file_payload(INDEX_HTML))

            assert await tool({}) == {"success": True, "title": "Old Title"}

    @pytest.mark.asyncio
    async def test_update_website_title(self):
        tool = UpdateWebsiteTitle(make_github())

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.return_value = mock_response(file_payload(INDEX_HTML))
            mock_instance.put.return_value = mock_response({"commit": {"sha": "c"}}, 201)

            result = await tool({"newTitle": "Acme Bakery"})

            assert result == {"success": True, "title": "Acme Bakery"}
            _, kwargs = mock_instance.put.call_args
            html = base64.b64decode(kwargs["json"]["content"]).decode()
            assert "<title>Acme Bakery</title>" in html
            assert "Old Title" not in html

    @pytest.mark.asyncio
    async def test_update_website_title_escapes_markup(self):
        tool = UpdateWebsiteTitle(make_github())

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.return_value = mock_response(file_payload(INDEX_HTML))
            mock_instance.put.return_value = mock_response({"commit": {"sha": "c"}}, 200)

            await tool({"newTitle": "Bread & Co</title><script>alert(1)</script>"})

            _, kwargs = mock_instance.put.call_args
            html = base64.b64decode(kwargs["json"]["content"]).decode()
            assert "<script>" not in html
            assert (
                "<title>Bread &amp; Co&lt;/title&gt;&lt;script&gt;alert(1)"
                "&lt;/script&gt;</title>" in html
            )

    @pytest.mark.asyncio
    async def test_get_website_title_unescapes_entities(self):
        tool = GetWebsiteTitle(make_github())

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.return_value = mock_response(
                file_payload("<title>Bread &amp; Co</title>")
            )

            assert await tool({}) == {"success": True, "title": "Bread & Co"}

    @pytest.mark.asyncio
    async def test_update_website_title_without_title_tag(self):
        tool = UpdateWebsiteTitle(make_github())

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.get.return_value = mock_response(file_payload("<html></html>"))

            with pytest.raises(ToolExecutionError, match="No <title> tag"):
                await tool({"newTitle": "Acme"})
            mock_instance.put.assert_not_called()


# --- Facebook Tool ---


class TestPostToFacebookPage:
    @pytest.mark.asyncio
    async def test_post(self):
        tool = PostToFacebookPage(page_id="page_1", access_token="token_1")

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.post.return_value = mock_response({"id": "page_1_post_9"})

            result = await tool({"message": "hello world"})

            assert result == {"success": True, "postId": "page_1_post_9"}
            args, kwargs = mock_instance.post.call_args
            assert args[0] == "https://graph.facebook.com/v19.0/page_1/feed"
            assert kwargs["data"] == {"message": "hello world", "access_token": "token_1"}

    @pytest.mark.asyncio
    async def test_api_error(self):
        tool = PostToFacebookPage(page_id="page_1", access_token="bad")

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_instance
            mock_instance.post.return_value = mock_response(
                {"error": {"message": "Invalid OAuth access token."}}, 400
            )

            with pytest.raises(ToolExecutionError, match="Invalid OAuth access token"):
                await tool({"message": "hello"})


# --- Toolkit Assembly ---


class TestBuildToolkit:
    def test_records_only_when_nothing_configured(self):
        settings = Settings(openai_api_key="sk-test", assistant_id="asst_1", _env_file=None)
        names = [tool.name for tool in build_toolkit(settings, session_factory=None)]
        assert names == ["schedulePost", "createProjectTask"]

    def test_all_tools_when_configured(self):
        settings = Settings(
            openai_api_key="sk-test",
            assistant_id="asst_1",
            github_token="ghp",
            github_owner="acme",
            github_repo="site",
            editable_file_extensions=".html, .CSS",
            facebook_page_id="page_1",
            facebook_page_access_token="token_1",
            _env_file=None,
        )
        tools = build_toolkit(settings, session_factory=None)

        assert [tool.name for tool in tools] == [
            "schedulePost",
            "createProjectTask",
            "listFiles",
            "readFileContent",
            "updateFileContent",
            "getWebsiteTitle",
            "updateWebsiteTitle",
            "postToFacebookPage",
        ]
        assert tools[2].github.editable_extensions == [".html", ".css"]
