"""The agent loop: conversation threads, model calls and tool execution."""

from __future__ import annotations

import json
import uuid
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from codeagent.editorcontext import EditorContext
from codeagent.ghosttext import GhostTextProvider
from codeagent.messages import (
    ConversationThread,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    ToolCall,
    ToolDefinition,
)
from codeagent.threadstore import ThreadJsonStorage

MAX_REQUEST_MESSAGES = 100
DEFAULT_MAX_ITERATIONS = 20
_TITLE_LIMIT = 50


class AgentProfile(Enum):
    """How much the agent is allowed to do."""

    WRITE = "Write"
    ASK = "Ask"
    MINIMAL = "Minimal"


_PROFILE_PROMPTS = {
    AgentProfile.WRITE: (
        "You are a coding assistant with full access to read, edit, and execute. "
        "You can modify files freely. Always show what you changed."
    ),
    AgentProfile.ASK: (
        "You are a coding assistant in read-only mode. Answer questions about the "
        "code but do NOT modify any files. You can only read and search."
    ),
    AgentProfile.MINIMAL: (
        "You are a brief coding assistant. Give concise answers. Minimize context usage."
    ),
}


def system_prompt_for_profile(profile: AgentProfile) -> str:
    """The system prompt that goes with a profile."""
    return _PROFILE_PROMPTS.get(profile, "You are a coding assistant.")


def string_to_profile(text: str) -> AgentProfile:
    """Parse a profile name, ignoring case; unknown names give WRITE."""
    lowered = text.lower()
    for profile in AgentProfile:
        if profile.value.lower() == lowered:
            return profile
    return AgentProfile.WRITE


def profile_to_string(profile: AgentProfile) -> str:
    """The display name of a profile."""
    return profile.value


def generate_title(first_message: str) -> str:
    """A thread title from its first message, cut to 50 characters."""
    if len(first_message) > _TITLE_LIMIT:
        return first_message[:47] + "..."
    return first_message


class ToolExecutor(Protocol):
    """What the loop needs from a tool registry."""

    def get_tool_definitions(self) -> list[ToolDefinition]: ...

    def execute_tool(self, name: str, arguments: Mapping[str, Any]) -> dict[str, Any]: ...


class _Signal:
    """A list of callbacks invoked with the same arguments."""

    def __init__(self) -> None:
        self._slots: list[Callable[..., None]] = []

    def connect(self, slot: Callable[..., None]) -> None:
        self._slots.append(slot)

    def emit(self, *args: Any) -> None:
        for slot in list(self._slots):
            slot(*args)


def _result_text(result: Mapping[str, Any]) -> str:
    if not result:
        return ""
    return json.dumps(result, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


class AgentLoop:
    """Runs conversation turns: calls the model and executes requested tools."""

    def __init__(
        self,
        provider: LLMProvider | None,
        registry: ToolExecutor | None,
        storage: ThreadJsonStorage | None = None,
        context_provider: Callable[[], EditorContext | None] | None = None,
        system_prompt: str = "",
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> None:
        self.provider = provider
        self.registry = registry
        self.storage = storage
        self.context_provider = context_provider
        self.system_prompt = system_prompt
        self.max_iterations = max_iterations
        self.ghost_text = GhostTextProvider()

        self.response_chunk = _Signal()
        self.tool_call_started = _Signal()
        self.tool_call_completed = _Signal()
        self.turn_completed = _Signal()
        self.error = _Signal()
        self.running_changed = _Signal()

        self._running = False
        self._iteration = 0
        self._threads: dict[str, ConversationThread] = {}
        if storage is not None:
            self._load_threads(storage)

    def _load_threads(self, storage: ThreadJsonStorage) -> None:
        for thread_id in storage.list_threads_for_project(storage.project_id):
            self._threads[thread_id] = ConversationThread(
                id=thread_id, messages=storage.load_thread(thread_id)
            )

    @property
    def threads(self) -> Mapping[str, ConversationThread]:
        """The known threads by id."""
        return self._threads

    @property
    def is_running(self) -> bool:
        return self._running

    def _set_running(self, running: bool) -> None:
        self._running = running
        self.running_changed.emit(running)

    def _save(self, thread: ConversationThread) -> None:
        if self.storage is not None:
            self.storage.save_thread(thread.id, thread.messages, thread.title)

    def create_thread(self, title: str = "") -> ConversationThread:
        """A new active thread, opened with the system prompt if one is set."""
        now = datetime.now()
        thread = ConversationThread(
            id=str(uuid.uuid4()), title=title, created_at=now, updated_at=now, is_active=True
        )
        if self.system_prompt:
            thread.messages.append(LLMMessage(role="system", content=self.system_prompt))
        return thread

    def add_user_message(self, thread_id: str, content: str) -> None:
        """Append a user message, creating the thread if it does not exist."""
        if thread_id not in self._threads:
            thread = self.create_thread()
            thread.id = thread_id
            self._threads[thread_id] = thread
            self._save(thread)
        thread = self._threads[thread_id]
        thread.messages.append(LLMMessage(role="user", content=content))
        thread.updated_at = datetime.now()
        self._save(thread)

    def execute_turn(self, thread_id: str) -> None:
        """Run a turn: call the model until it stops requesting tools."""
        if thread_id not in self._threads:
            raise KeyError(f"Thread not found: {thread_id}")
        if self.provider is None:
            raise RuntimeError("No LLM provider set")

        self._iteration = 0
        self._set_running(True)
        model = self._threads[thread_id].current_model
        if not model:
            models = self.provider.available_models()
            if not models:
                self._set_running(False)
                raise RuntimeError("No models available")
            model = models[0]
        self._call_llm(thread_id, model)

    def _call_llm(self, thread_id: str, model: str) -> None:
        assert self.provider is not None
        messages, tools = self.build_request(thread_id)
        self.provider.chat_stream(
            messages,
            tools,
            model,
            self.response_chunk.emit,
            lambda final: self._on_done(thread_id, model, final),
            self._on_stream_error,
        )

    def _on_done(self, thread_id: str, model: str, final: LLMResponse) -> None:
        thread = self._threads[thread_id]
        if final.content:
            thread.messages.append(LLMMessage(role="assistant", content=final.content))

        if not final.tool_calls:
            self._save(thread)
            self._finish(thread_id)
            return

        if self._iteration >= self.max_iterations:
            self.error.emit(f"Max iterations ({self.max_iterations}) reached")
            self._finish(thread_id)
            return

        self._handle_tool_calls(final.tool_calls, thread_id)
        self._iteration += 1
        if self._iteration < self.max_iterations and self._running:
            self._call_llm(thread_id, model)
        else:
            self._finish(thread_id)

    def _finish(self, thread_id: str) -> None:
        self.turn_completed.emit(thread_id)
        self._iteration = 0
        self._set_running(False)

    def _on_stream_error(self, message: str) -> None:
        self.error.emit(f"LLM streaming error: {message}")
        self._iteration = 0
        self._set_running(False)

    def build_request(self, thread_id: str) -> tuple[list[LLMMessage], list[ToolDefinition]]:
        """The messages and tools to send for a thread's next model call."""
        thread = self._threads.get(thread_id)
        if thread is None:
            raise KeyError(f"Thread not found: {thread_id}")

        total = len(thread.messages)
        start = 0
        if total > MAX_REQUEST_MESSAGES:
            has_system = thread.messages[0].role == "system"
            keep = MAX_REQUEST_MESSAGES - 1 if has_system else MAX_REQUEST_MESSAGES
            start = total - keep

        request: list[LLMMessage] = []
        if self.context_provider is not None:
            context = self.context_provider()
            chunk = context.to_system_prompt_chunk() if context is not None else ""
            if chunk:
                request.append(
                    LLMMessage(
                        role="system",
                        content="Editor context injected below."
                        "\n\n# Current Editor Context:\n" + chunk,
                    )
                )
        request.extend(thread.messages[start:])

        tools = self.registry.get_tool_definitions() if self.registry is not None else []
        return request, list(tools)

    def _handle_tool_calls(self, tool_calls: Sequence[ToolCall], thread_id: str) -> None:
        if not tool_calls:
            return
        registry = self.registry
        if registry is None:
            self.error.emit("Tool registry not set")
            return

        for call in tool_calls:
            self.tool_call_started.emit(call.name, call.arguments)
        with ThreadPoolExecutor(max_workers=len(tool_calls)) as pool:
            results = list(
                pool.map(lambda call: registry.execute_tool(call.name, call.arguments), tool_calls)
            )
        for call, result in zip(tool_calls, results):
            self.tool_call_completed.emit(call.id, result)
            self._add_tool_result(thread_id, call.id, result)

    def _add_tool_result(
        self, thread_id: str, tool_call_id: str, result: Mapping[str, Any]
    ) -> None:
        thread = self._threads.get(thread_id)
        if thread is None:
            self.error.emit(f"Thread not found: {thread_id}")
            return
        thread.messages.append(
            LLMMessage(role="tool", content=_result_text(result), tool_call_id=tool_call_id)
        )
        thread.updated_at = datetime.now()

    def abort(self) -> None:
        """Stop the running turn after the current model call."""
        self._set_running(False)

    def save_all_threads(self) -> None:
        for thread in self._threads.values():
            self._save(thread)

    def show_ghost_text(self, suggestion: str, line: int, column: int) -> None:
        self.ghost_text.set_suggestion(suggestion, line, column)

    def clear_ghost_text(self) -> None:
        self.ghost_text.clear_suggestion()

    def accept_ghost_text(self) -> str | None:
        """Take the current suggestion, clearing it; None if there is none."""
        if not self.ghost_text.has_suggestion():
            return None
        text = self.ghost_text.suggestion
        self.ghost_text.clear_suggestion()
        return text

    def has_ghost_text(self) -> bool:
        return self.ghost_text.has_suggestion()