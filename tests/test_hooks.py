"""Tests for hook system."""

import json

import pytest

from page_assistant.agent import Agent
from page_assistant.execution import ToolCall
from page_assistant.hooks import (
    BeforeRunEventData,
    HookEvent,
    HookRegistry,
    HookResponse,
    Middleware,
    OnToolErrorEventData,
)
from tests.fakes import BoomTool, EchoTool, ScriptedProvider, make_run


def make_agent(provider, tools=None, **kwargs):
    return Agent(
        provider=provider,
        tools=tools or [],
        assistant_id="asst_test",
        poll_interval=0,
        **kwargs,
    )


def tool_then_complete(call):
    return ScriptedProvider([make_run("requires_action", [call]), make_run("completed")])


# --- HookRegistry Tests ---


class TestHookRegistryBasic:
    @pytest.mark.asyncio
    async def test_hook_registration_and_triggering(self):
        """Test basic hook registration and triggering."""
        registry = HookRegistry()

        events = []

        @registry.on("before_run")
        async def capture_event(event):
            events.append(event)

        event = BeforeRunEventData(agent=None, input="test", thread_id=None)
        await registry.trigger("before_run", event)

        assert len(events) == 1
        assert events[0].input == "test"

    @pytest.mark.asyncio
    async def test_hook_with_response(self):
        """Test hook that returns response to influence execution."""
        registry = HookRegistry()

        @registry.on("on_tool_error")
        async def retry_on_error(event):
            if event.attempt < 3:
                return {"action": "retry", "delay_ms": 100}
            return None

        event = OnToolErrorEventData(
            tool_call=None,
            tool_name="postToFacebookPage",
            arguments={},
            error=Exception("Network error"),
            error_message="Network error",
            attempt=1,
        )

        response = await registry.trigger("on_tool_error", event)

        assert response is not None
        assert response.action == "retry"
        assert response.delay_ms == 100

    @pytest.mark.asyncio
    async def test_multiple_handlers(self):
        registry = HookRegistry()

        calls = []

        @registry.on("before_run")
        async def handler1(event):
            calls.append("h1")

        @registry.on("before_run")
        async def handler2(event):
            calls.append("h2")

        await registry.trigger(
            "before_run", BeforeRunEventData(agent=None, input="test", thread_id=None)
        )

        assert calls == ["h1", "h2"]

    @pytest.mark.asyncio
    async def test_hook_exception_does_not_crash(self):
        """Test that hook exception doesn't crash execution."""
        registry = HookRegistry()

        @registry.on("before_run")
        async def bad_hook(event):
            raise ValueError("Intentional error")

        @registry.on("before_run")
        async def good_hook(event):
            return None

        response = await registry.trigger(
            "before_run", BeforeRunEventData(agent=None, input="test", thread_id=None)
        )

        assert response is None

    def test_invalid_hook_name_raises(self):
        registry = HookRegistry()

        with pytest.raises(ValueError) as exc_info:
            registry.register_handler("after_model_call", lambda e: None)

        assert "Invalid hook name" in str(exc_info.value)

    def test_every_event_has_a_middleware_method(self):
        for event in HookEvent:
            assert hasattr(Middleware, event.value)

    def test_has_handlers_and_clear(self):
        registry = HookRegistry()

        assert registry.has_handlers("on_run_status") is False

        @registry.on("on_run_status")
        async def handler(event):
            pass

        assert registry.has_handlers("on_run_status") is True
        registry.clear()
        assert registry.has_handlers("on_run_status") is False


class TestHookResponse:
    def test_from_dict(self):
        data = {"action": "retry", "delay_ms": 100, "arguments": {"message": "new"}}

        response = HookResponse.from_dict(data)

        assert response.action == "retry"
        assert response.delay_ms == 100
        assert response.arguments == {"message": "new"}

    def test_from_dict_none(self):
        assert HookResponse.from_dict(None) is None

    def test_from_dict_passes_through_instances(self):
        response = HookResponse(action="skip")
        assert HookResponse.from_dict(response) is response

    def test_from_dict_ignores_unknown_fields(self):
        response = HookResponse.from_dict({"action": "retry", "unknown_field": "ignored"})

        assert response.action == "retry"
        assert not hasattr(response, "unknown_field")


# --- Agent Integration Tests ---


class TestAgentHooks:
    @pytest.mark.asyncio
    async def test_decorator_style_hook(self):
        agent = make_agent(ScriptedProvider([make_run("completed")]))

        calls = []

        @agent.hook("before_run")
        async def log_run(event):
            calls.append(event.input)

        await agent.run_async("test query")

        assert calls == ["test query"]

    @pytest.mark.asyncio
    async def test_hook_order_for_one_tool_round(self):
        provider = tool_then_complete(
            ToolCall(id="c1", tool_name="echo", arguments='{"text": "hi"}')
        )
        agent = make_agent(provider, tools=[EchoTool()])

        events = []
        for name in [
            "before_run",
            "before_tool_batch",
            "before_tool_call",
            "after_tool_call",
            "after_tool_batch",
            "after_run",
        ]:
            async def record(event, name=name):
                events.append(name)

            agent.hooks.register_handler(name, record)

        await agent.run_async("Echo hi")

        assert events == [
            "before_run",
            "before_tool_batch",
            "before_tool_call",
            "after_tool_call",
            "after_tool_batch",
            "after_run",
        ]

    @pytest.mark.asyncio
    async def test_external_hook_registry(self):
        hooks = HookRegistry()

        calls = []

        @hooks.on("before_run")
        async def log_run(event):
            calls.append(event.input)

        agent = make_agent(ScriptedProvider([make_run("completed")]), hooks=hooks)

        await agent.run_async("test from external")

        assert calls == ["test from external"]

    @pytest.mark.asyncio
    async def test_shared_registry_across_agents(self):
        hooks = HookRegistry()

        calls = []

        @hooks.on("before_run")
        async def log_run(event):
            calls.append(f"{event.agent.name}:{event.input}")

        agent1 = make_agent(ScriptedProvider([make_run("completed")]), hooks=hooks, name="A1")
        agent2 = make_agent(ScriptedProvider([make_run("completed")]), hooks=hooks, name="A2")

        await agent1.run_async("one")
        await agent2.run_async("two")

        assert calls == ["A1:one", "A2:two"]

    @pytest.mark.asyncio
    async def test_tool_error_hook_sees_failure(self):
        provider = tool_then_complete(ToolCall(id="c1", tool_name="boom"))
        agent = make_agent(provider, tools=[BoomTool()])

        errors = []

        @agent.hook("on_tool_error")
        async def on_error(event):
            errors.append((event.tool_name, event.error_message, event.attempt))

        result = await agent.run_async("explode")

        assert errors == [("boom", "kaboom", 1)]
        assert result.state == "completed"
        assert json.loads(provider.submissions[0][0].output)["success"] is False
