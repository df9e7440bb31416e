"""Provider for OpenAI-compatible chat-completion endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from typing import Any

import requests

from codeagent.messages import (
    LLMMessage,
    LLMProvider,
    LLMResponse,
    ToolCall,
    ToolDefinition,
)

logger = logging.getLogger(__name__)

FALLBACK_MODEL = "qwen3-coder-next"
MODELS_TIMEOUT = 5.0

_STATUS_MESSAGES = {
    401: "Authentication failed: Invalid API key or missing authentication",
    403: "Access forbidden: Check your API key and permissions",
    404: "Endpoint not found: Check your base URL",
}


def build_payload(
    messages: Sequence[LLMMessage],
    tools: Sequence[ToolDefinition],
    model: str,
    temperature: float = 0.7,
) -> dict[str, Any]:
    """Return the JSON body of a chat-completion request."""
    payload: dict[str, Any] = {
        "model": model,
        "temperature": temperature,
        "messages": [msg.to_dict() for msg in messages],
    }
    if tools:
        payload["tools"] = [tool.to_dict() for tool in tools]
    return payload


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def parse_response(data: bytes | str | dict[str, Any]) -> LLMResponse:
    """Read a chat-completion response body; malformed parts become empty."""
    if isinstance(data, (bytes, str)):
        try:
            root = json.loads(data)
        except (ValueError, UnicodeDecodeError):
            root = {}
    else:
        root = data
    root = _as_dict(root)

    response = LLMResponse()
    choices = root.get("choices")
    if not isinstance(choices, list) or not choices:
        return response

    choice = _as_dict(choices[0])
    message = _as_dict(choice.get("message"))
    response.content = _as_str(message.get("content"))
    response.finish_reason = _as_str(choice.get("finish_reason"))

    tool_calls = message.get("tool_calls")
    if isinstance(tool_calls, list):
        for item in tool_calls:
            call = _as_dict(item)
            function = _as_dict(call.get("function"))
            response.tool_calls.append(
                ToolCall(
                    id=_as_str(call.get("id")),
                    name=_as_str(function.get("name")),
                    arguments=dict(_as_dict(function.get("arguments"))),
                )
            )
    return response


class OpenAIProvider(LLMProvider):
    """Talks to an OpenAI-compatible server over HTTP."""

    def __init__(
        self,
        base_url: str = "",
        api_key: str = "",
        name: str = "",
        default_model: str = "",
        timeout: float | None = 120.0,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(name)
        self.base_url = base_url
        self.api_key = api_key
        self.default_model = default_model
        self.timeout = timeout
        self._session = session or requests.Session()

    def update_config(self, base_url: str, api_key: str) -> None:
        self.base_url = base_url
        self.api_key = api_key

    def is_available(self) -> bool:
        return bool(self.base_url) and bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def available_models(self) -> list[str]:
        """Model ids reported by the server, or the fallback model."""
        if not self.base_url or not self.api_key:
            return [FALLBACK_MODEL]
        try:
            reply = self._session.get(
                self.base_url + "/models", headers=self._headers(), timeout=MODELS_TIMEOUT
            )
            reply.raise_for_status()
            root = _as_dict(json.loads(reply.content))
        except (requests.RequestException, ValueError):
            return [FALLBACK_MODEL]
        entries = root.get("data")
        models = [
            model_id
            for model_id in (
                _as_str(_as_dict(entry).get("id"))
                for entry in (entries if isinstance(entries, list) else [])
            )
            if model_id
        ]
        return models or [FALLBACK_MODEL]

    def _post(
        self,
        messages: Sequence[LLMMessage],
        tools: Sequence[ToolDefinition],
        model: str,
        temperature: float,
    ) -> requests.Response:
        url = self.base_url + "/chat/completions"
        body = json.dumps(build_payload(messages, tools, model, temperature))
        logger.debug("Sending request to: %s", url)
        return self._session.post(
            url, data=body.encode("utf-8"), headers=self._headers(), timeout=self.timeout
        )

    @staticmethod
    def _status_text(reply: requests.Response) -> str:
        return f"HTTP {reply.status_code}: {reply.reason or 'error'}"

    def chat(
        self,
        messages: Sequence[LLMMessage],
        tools: Sequence[ToolDefinition],
        model: str,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Send a request; failures come back as a response with finish reason "error"."""
        try:
            reply = self._post(messages, tools, model, temperature)
        except requests.RequestException as exc:
            error = str(exc)
        else:
            if reply.ok:
                return parse_response(reply.content)
            error = _STATUS_MESSAGES.get(reply.status_code) or self._status_text(reply)
        logger.warning("OpenAIProvider chat error: %s", error)
        return LLMResponse(content=error, finish_reason="error")

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
        """Send a request and report the final response or an error."""
        try:
            reply = self._post(messages, tools, model, temperature)
        except requests.RequestException as exc:
            on_error(str(exc))
            return
        if not reply.ok:
            error = self._status_text(reply)
            logger.debug("HTTP error %s, body: %r", error, reply.content)
            on_error(error)
            return
        response = parse_response(reply.content)
        logger.debug("Calling on_done with content length: %d", len(response.content))
        on_done(response)