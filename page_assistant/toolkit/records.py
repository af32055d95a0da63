"""Tools that write records into the relational store."""

from datetime import UTC, date, datetime
from typing import Optional

from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from page_assistant.storage import ProjectTask, ScheduledPost, to_utc_naive
from page_assistant.tools import Tool, ToolInput


class SchedulePostInput(ToolInput):
    platform: str = Field(min_length=1, description="Target platform, e.g. facebook")
    content: str = Field(min_length=1, description="Text of the post")
    scheduledTime: datetime = Field(
        description="When to publish (ISO 8601; UTC when no offset is given)"
    )


class SchedulePost(Tool):
    name = "schedulePost"
    description = "Schedule a social media post for later publication"
    input_model = SchedulePostInput

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def execute(self, platform: str, content: str, scheduledTime: datetime) -> dict:
        scheduled = to_utc_naive(scheduledTime)
        async with self.session_factory() as session:
            post = ScheduledPost(
                platform=platform,
                content=content,
                scheduled_time=scheduled,
                status="pending",
            )
            session.add(post)
            await session.commit()
            return {
                "success": True,
                "postId": post.id,
                "scheduledTime": scheduled.replace(tzinfo=UTC).isoformat(),
                "status": post.status,
            }


class CreateTaskInput(ToolInput):
    taskName: str = Field(min_length=1)
    projectName: str = Field(min_length=1)
    dueDate: date = Field(description="Due date (YYYY-MM-DD)")
    assignee: Optional[str] = None


class CreateProjectTask(Tool):
    name = "createProjectTask"
    description = "Create a task on the marketing/operations project board"
    input_model = CreateTaskInput

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def execute(
        self, taskName: str, projectName: str, dueDate: date, assignee: Optional[str]
    ) -> dict:
        async with self.session_factory() as session:
            task = ProjectTask(
                task_name=taskName,
                project_name=projectName,
                due_date=dueDate,
                assignee=assignee,
                status="todo",
            )
            session.add(task)
            await session.commit()
            return {
                "success": True,
                "taskId": task.id,
                "dueDate": dueDate.isoformat(),
                "status": task.status,
            }
