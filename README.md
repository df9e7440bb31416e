# codeagent

The core pieces of a coding assistant that lives next to a text editor and
talks to an OpenAI-compatible chat completions endpoint. It is a library:
there is no command to run and no user interface.

## Modules

- `codeagent.messages`: the shared data types `LLMMessage`, `ToolCall`,
  `ToolFunction`, `ToolDefinition`, `LLMResponse` and `ConversationThread`,
  and the abstract base class `LLMProvider` (`is_available`,
  `available_models`, `chat`, `chat_stream`).
- `codeagent.openai`: `OpenAIProvider`, built on `requests`, posts to
  `<base_url>/chat/completions` and lists models from `<base_url>/models`
  (falling back to `qwen3-coder-next` when no base URL or key is set or the
  request fails). `build_payload` and `parse_response` produce and read the
  JSON bodies. `chat` returns failures as an `LLMResponse` whose
  `finish_reason` is `"error"`. `chat_stream` sends one ordinary request and
  calls `on_done` with the whole response, or `on_error` with a message; it
  never calls `on_chunk`.
- `codeagent.agentloop`: `AgentLoop` keeps conversation threads. It sends a
  thread to the provider and runs the tool calls the model asks for, in
  parallel. It appends their results as `tool` messages and repeats until the
  model asks for no more tools or `max_iterations` is reached. Only the last
  100 messages are sent. Progress is reported through signal objects with a
  `connect(callback)` method: `response_chunk`, `tool_call_started`,
  `tool_call_completed`, `turn_completed`, `error` and `running_changed`.
  `AgentProfile` (`WRITE`, `ASK`, `MINIMAL`) chooses a system prompt through
  `system_prompt_for_profile`. `string_to_profile` ignores case and gives
  `WRITE` for unknown names. `generate_title` cuts a first message to 50
  characters.
- `codeagent.editorcontext`: `EditorContext` records the active file, the
  cursor, the selection and up to ten open files, and renders them with
  `to_system_prompt_chunk`. File content is kept to 2000 characters and the
  selection to 1000. `get_buffer_context` and
  `get_buffer_context_around_cursor` cut out the lines around a cursor.
- `codeagent.threadstore`: `ThreadJsonStorage` saves threads as JSON files
  named `<project>_<thread id>.json`. By default they go under
  `$XDG_CONFIG_HOME/kate/agents` (or `~/.config/kate/agents`; on Windows under
  `%LOCALAPPDATA%`). The project is the one you set, else the name of the
  enclosing git repository, else the name of the working directory. Only role
  and content are stored for each message.
- `codeagent.checkpoint`: `create_backup` copies a file to
  `file.bak.YYYYMMDD-HHMMSS` and keeps the five newest backups.
  `restore_backup`, `list_backups` (newest first), `cleanup_old_backups`,
  `total_backup_size` and `cleanup_all_backups` complete the set.
- `codeagent.permissions`: `PermissionManager` holds a policy for each tool
  (`PermissionPolicy.ALLOW`, `DENY`, `CONFIRM`; the default is `CONFIRM`). It
  also remembers grants and denials for the session.
- `codeagent.ghosttext`: `GhostTextProvider` holds one inline suggestion and
  its position. `AgentLoop.accept_ghost_text` returns and clears it.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Example

```python
from codeagent.agentloop import AgentLoop, AgentProfile, system_prompt_for_profile
from codeagent.openai import OpenAIProvider
from codeagent.threadstore import ThreadJsonStorage

provider = OpenAIProvider("http://localhost:8000/v1", api_key="placeholder")
loop = AgentLoop(
    provider,
    registry=None,
    storage=ThreadJsonStorage(directory="threads", project_id="demo"),
    system_prompt=system_prompt_for_profile(AgentProfile.ASK),
)
loop.turn_completed.connect(lambda thread_id: print("done", thread_id))
loop.error.connect(print)

loop.add_user_message("first-chat", "What does main() do?")
loop.execute_turn("first-chat")
print(loop.threads["first-chat"].messages[-1].content)
```

`add_user_message` creates the thread if it does not exist yet.
`execute_turn` raises `KeyError` for an unknown thread and `RuntimeError`
when no provider or no model is available. Errors from the model call are
reported through the `error` signal instead.

Keeping backups before an edit:

```python
from codeagent.checkpoint import create_backup, list_backups, restore_backup

backup = create_backup("src/main.py")   # None if the file does not exist
# ... edit the file ...
restore_backup(backup, "src/main.py")
print(list_backups("src/main.py"))      # newest first
```

## What this package does not do

- It has no tools. `AgentLoop` takes a registry object with
  `get_tool_definitions()` and `execute_tool(name, arguments)`. You must
  supply that object and the tools it runs.
- It does not connect to an editor. It has no panels, menus, dialogs or
  inline rendering. To give the loop editor state, pass a `context_provider`
  callable that returns an `EditorContext`.
- It has no settings storage. The base URL, key, model and limits are passed
  in by the caller.
- It does not stream tokens. Responses arrive whole.

## Running the tests

```
pytest
```