"""FastAPI service exposing the assistant chat endpoint."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from typing import Any, Optional, TypeVar

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from page_assistant.adaptors.openai import OpenAIAssistantsAdaptor
from page_assistant.agent import Agent
from page_assistant.config import Settings, get_settings
from page_assistant.exceptions import InvalidChatInput, ProviderError, RunError
from page_assistant.storage import SqlThreadStore, create_session_factory, init_db
from page_assistant.threads import ThreadManager
from page_assistant.toolkit import build_toolkit

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Seconds between client-disconnect checks while a chat turn runs
DISCONNECT_CHECK_INTERVAL = 0.5

router = APIRouter(prefix="/api/agent", tags=["agent"])


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    thread_id: Optional[str] = Field(default=None, alias="threadId")


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    thread_id: str = Field(alias="threadId")
    message: str


class ClientDisconnected(Exception):
    """The HTTP client went away before the chat turn finished."""


def require_user(request: Request) -> dict[str, Any]:
    """Session-authenticated user, as stored by the login endpoint."""
    user = request.session.get("user")
    if not user:
        raise HTTPException(status_code=403, detail="Not authorized, please log in first")
    return user


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    request: Request,
    user: dict[str, Any] = Depends(require_user),
) -> ChatResponse | JSONResponse:
    """Send one message to the assistant and return its reply."""
    agent: Agent = request.app.state.agent
    session_key = user.get("userId") or user.get("username")

    try:
        execution = await run_until_disconnect(
            request,
            agent.run_async(
                body.message,
                thread_id=body.thread_id,
                session_key=str(session_key) if session_key is not None else None,
            ),
        )
    except InvalidChatInput as exc:
        return _error_response(exc.status_code, str(exc))
    except RunError as exc:
        return _error_response(
            exc.status_code,
            str(exc),
            thread_id=exc.thread_id,
            run_id=exc.run_id,
            status=exc.status,
        )
    except ProviderError as exc:
        logger.exception("Assistant provider error during /api/agent/chat")
        return _error_response(
            exc.status_code,
            "The assistant service could not be reached",
            thread_id=exc.thread_id or body.thread_id,
            run_id=exc.run_id,
            status=exc.status,
        )
    except ClientDisconnected:
        return _error_response(499, "Client closed request", thread_id=body.thread_id)

    return ChatResponse(thread_id=execution.thread_id, message=execution.response)


async def run_until_disconnect(
    request: Request,
    awaitable: Awaitable[T],
    check_interval: float = DISCONNECT_CHECK_INTERVAL,
) -> T:
    """Await ``awaitable`` as a task, cancelling it if the client disconnects.

    Cancellation reaches every pending await inside the chat turn: the poll
    sleep, the provider request and the tool fan-out.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=check_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("Client disconnected; cancelling chat turn")
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                raise ClientDisconnected()
    except asyncio.CancelledError:
        task.cancel()
        raise


health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


def _error_response(
    status_code: int,
    message: str,
    thread_id: Optional[str] = None,
    run_id: Optional[str] = None,
    status: Optional[str] = None,
) -> JSONResponse:
    content: dict[str, Any] = {"error": message}
    if thread_id:
        content["threadId"] = thread_id
    if run_id:
        content["runId"] = run_id
    if status:
        content["status"] = status
    return JSONResponse(status_code=status_code, content=content)


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers
    )


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Malformed chat request"})


def build_agent(
    settings: Settings, session_factory: async_sessionmaker[AsyncSession]
) -> Agent:
    """Wire the provider, toolkit and thread store from settings."""
    provider = OpenAIAssistantsAdaptor(
        api_key=settings.openai_api_key, base_url=settings.openai_base_url
    )
    return Agent(
        provider=provider,
        tools=build_toolkit(settings, session_factory),
        assistant_id=settings.assistant_id,
        threads=ThreadManager(
            provider,
            store=SqlThreadStore(session_factory),
            policy=settings.thread_policy,
        ),
        poll_interval=settings.poll_interval,
        max_poll_attempts=settings.max_poll_attempts,
        max_action_rounds=settings.max_action_rounds,
        empty_reply_placeholder=settings.empty_reply_placeholder,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the agent and database on startup unless one was injected."""
    if getattr(app.state, "agent", None) is not None:
        yield
        return

    settings: Settings = app.state.settings
    factory, engine = create_session_factory(settings.database_url)
    await init_db(engine)
    app.state.db_factory = factory
    app.state.agent = build_agent(settings, factory)
    logger.info(f"Assistant tools: {', '.join(app.state.agent.tools.names())}")

    yield

    await engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    agent: Optional[Agent] = None,
    session_secret: Optional[str] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None and agent is None:
        settings = get_settings()

    app = FastAPI(title="page-assistant", lifespan=lifespan)
    app.state.settings = settings
    app.state.agent = agent

    secret = session_secret or (settings.session_secret if settings else "secret-key")
    app.add_middleware(SessionMiddleware, secret_key=secret, same_site="lax")

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)

    app.include_router(router)
    app.include_router(health_router)
    return app


def main() -> None:
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
