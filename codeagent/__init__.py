"""Building blocks for an editor-embedded coding agent: message types, an
OpenAI-compatible provider, the agent loop, editor context, thread storage,
file backups, tool permissions and ghost-text suggestions."""

__version__ = "0.1.0"

__all__ = [
    "agentloop",
    "checkpoint",
    "editorcontext",
    "ghosttext",
    "messages",
    "openai",
    "permissions",
    "threadstore",
]