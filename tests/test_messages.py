import pytest

from codeagent.messages import (
    ConversationThread,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    ToolCall,
    ToolDefinition,
    ToolFunction,
)


class EchoProvider(LLMProvider):
    def __init__(self):
        super().__init__("echo")
        self.seen_temperature = None

    def is_available(self):
        return True

    def available_models(self):
        return ["echo-model"]

    def chat(self, messages, tools, model, temperature=0.7):
        self.seen_temperature = temperature
        return LLMResponse(content=messages[-1].content, finish_reason="stop")

    def chat_stream(self, messages, tools, model, on_chunk, on_done, on_error,
                    temperature=0.7):
        response = self.chat(messages, tools, model, temperature)
        on_chunk(response.content)
        on_done(response)


def test_message_to_dict_without_tool_call_id():
    msg = LLMMessage(role="user", content="Hello")
    assert msg.to_dict() == {"role": "user", "content": "Hello"}


def test_message_to_dict_with_tool_call_id():
    msg = LLMMessage(role="tool", content="{}", tool_call_id="call_1")
    assert msg.to_dict() == {"role": "tool", "content": "{}", "tool_call_id": "call_1"}


def test_tool_definition_to_dict():
    params = {"type": "object", "properties": {"path": {"type": "string"}}}
    tool = ToolDefinition(
        type="function",
        function=ToolFunction(name="read_file", description="Read a file", parameters=params),
    )
    assert tool.to_dict() == {
        "type": "function",
        "function": {"name": "read_file", "description": "Read a file", "parameters": params},
    }


def test_tool_call_arguments_are_independent():
    first = ToolCall(id="a", name="grep")
    second = ToolCall(id="b", name="grep")
    first.arguments["pattern"] = "x"
    assert second.arguments == {}


def test_response_defaults():
    response = LLMResponse()
    assert response.tool_calls == []
    assert response.prompt_tokens == 0
    assert response.completion_tokens == 0


def test_thread_defaults():
    thread = ConversationThread(id="t1")
    other = ConversationThread(id="t2")
    thread.messages.append(LLMMessage(role="user", content="hi"))
    assert other.messages == []
    assert thread.is_active is False
    assert thread.updated_at >= thread.created_at


def test_provider_is_abstract():
    with pytest.raises(TypeError):
        LLMProvider()


def test_provider_chat_default_temperature():
    provider = EchoProvider()
    response = provider.chat([LLMMessage(role="user", content="ping")], [], "echo-model")
    assert response.content == "ping"
    assert provider.seen_temperature == 0.7


def test_provider_stream_callbacks():
    provider = EchoProvider()
    chunks, finals = [], []
    provider.chat_stream(
        [LLMMessage(role="user", content="ping")], [], "echo-model",
        chunks.append, finals.append, pytest.fail,
    )
    assert chunks == ["ping"]
    assert [r.content for r in finals] == ["ping"]
    assert provider.name == "echo"