"""Core data types exchanged with language-model providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class LLMMessage:
    """A single chat message."""

    role: str = ""
    content: str = ""
    tool_call_id: str = ""

    def to_dict(self) -> dict[str, str]:
        """Return the wire form of the message."""
        data = {"role": self.role, "content": self.content}
        if self.tool_call_id:
            data["tool_call_id"] = self.tool_call_id
        return data


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""

    id: str = ""
    name: str = ""
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolFunction:
    """The function part of a tool definition."""

    name: str = ""
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolDefinition:
    """A tool offered to the model."""

    type: str = "function"
    function: ToolFunction = field(default_factory=ToolFunction)

    def to_dict(self) -> dict[str, Any]:
        """Return the wire form of the tool definition."""
        return {
            "type": self.type,
            "function": {
                "name": self.function.name,
                "description": self.function.description,
                "parameters": dict(self.function.parameters),
            },
        }


@dataclass
class LLMResponse:
    """The final result of a chat request."""

    content: str = ""
    finish_reason: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    prompt_tokens: int = 0
    completion_tokens: int = 0


@dataclass
class ConversationThread:
    """A conversation with its messages and metadata."""

    id: str = ""
    title: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    messages: list[LLMMessage] = field(default_factory=list)
    current_model: str = ""
    is_active: bool = False


class LLMProvider(ABC):
    """Interface every language-model backend implements."""

    def __init__(self, name: str = "") -> None:
        self.name = name

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider is configured well enough to be used."""

    @abstractmethod
    def available_models(self) -> list[str]:
        """Model identifiers the provider offers."""

    @abstractmethod
    def chat(
        self,
        messages: Sequence[LLMMessage],
        tools: Sequence[ToolDefinition],
        model: str,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Send a request and return the complete response."""

    @abstractmethod
    def chat_stream(
        self,
        messages: Sequence[LLMMessage],
        tools: Sequence[ToolDefinition],
        model: str,
        on_chunk: Callable[[str], None],
        on_done: Callable[[LLMResponse], None],
        on_error: Callable[[str], None],
        temperature: float = 0.7,
    ) -> None:
        """Send a request, reporting chunks, the final response or an error."""