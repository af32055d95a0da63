from collections.abc import Iterable, Iterator
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ValidationError

from page_assistant.exceptions import ToolNotFound, ToolValidationError


class ToolInput(BaseModel):
    """Subclass this for tool-specific input validation."""


class Tool:
    name: str
    description: str
    input_model: type[BaseModel] = ToolInput

    def schema(self) -> dict:
        """Return JSON schema from Pydantic model."""
        return self.input_model.model_json_schema()

    def definition(self) -> dict:
        """Return the function-tool definition the assistant is configured with."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.schema(),
            },
        }

    async def __call__(self, arguments: dict) -> Any:
        """Validate raw JSON arguments and execute.

        Rejecting malformed arguments is the tool's own job; the dispatcher
        only sees the raised error.
        """
        try:
            validated = self.input_model(**arguments)
        except ValidationError as e:
            raise ToolValidationError(f"Invalid arguments for '{self.name}': {e}") from e
        return await self.execute(**validated.model_dump())

    async def execute(self, **kwargs) -> Any:
        """Execute tool and return a JSON-serializable value."""
        raise NotImplementedError


class ToolRegistry:
    """Read-only table of tool name -> tool, built once at startup."""

    def __init__(self, tools: Iterable[Tool] = ()):
        table: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in table:
                raise ValueError(f"Tool already registered: {tool.name}")
            table[tool.name] = tool
        self._tools = MappingProxyType(table)

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFound(f"Unknown tool: {name}") from None

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[dict]:
        return [tool.definition() for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())
