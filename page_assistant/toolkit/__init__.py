"""Built-in tools the assistant can call."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from page_assistant.config import Settings
from page_assistant.tools import Tool
from page_assistant.toolkit.facebook import PostToFacebookPage
from page_assistant.toolkit.github import (
    GetWebsiteTitle,
    GitHubClient,
    ListFiles,
    ReadFileContent,
    UpdateFileContent,
    UpdateWebsiteTitle,
)
from page_assistant.toolkit.records import CreateProjectTask, SchedulePost

__all__ = [
    "CreateProjectTask",
    "GetWebsiteTitle",
    "GitHubClient",
    "ListFiles",
    "PostToFacebookPage",
    "ReadFileContent",
    "SchedulePost",
    "UpdateFileContent",
    "UpdateWebsiteTitle",
    "build_toolkit",
]


def build_toolkit(
    settings: Settings, session_factory: async_sessionmaker[AsyncSession]
) -> list[Tool]:
    """Return the tools whose backing services are configured."""
    tools: list[Tool] = [
        SchedulePost(session_factory),
        CreateProjectTask(session_factory),
    ]

    if settings.github_configured:
        github = GitHubClient(
            token=settings.github_token,
            owner=settings.github_owner,
            repo=settings.github_repo,
            branch=settings.github_branch,
            editable_extensions=settings.editable_extensions,
        )
        tools += [
            ListFiles(github),
            ReadFileContent(github),
            UpdateFileContent(github),
            GetWebsiteTitle(github),
            UpdateWebsiteTitle(github),
        ]

    if settings.facebook_configured:
        tools.append(
            PostToFacebookPage(
                page_id=settings.facebook_page_id,
                access_token=settings.facebook_page_access_token,
                graph_version=settings.facebook_graph_version,
            )
        )

    return tools
