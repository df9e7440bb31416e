"""Conversation threads stored as JSON files, grouped by project."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from typing import Any

from codeagent.messages import LLMMessage

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = ' /\\:*?"<>|'
_CONFIG_NAME = "config"


def default_thread_dir() -> str:
    """Return the per-user directory for thread files, creating it if needed."""
    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(
            os.path.expanduser("~"), ".config"
        )
    directory = os.path.join(base, "kate", "agents")
    os.makedirs(directory, exist_ok=True)
    return directory


def project_prefix(project_id: str) -> str:
    """Return the filename prefix for a project, or "" for no project."""
    if not project_id:
        return ""
    sanitized = "".join("_" if char in _UNSAFE_CHARS else char for char in project_id)
    return sanitized + "_"


def detect_git_repo_root(start: str | None = None) -> str | None:
    """Return the nearest directory at or above start that holds a .git entry."""
    path = os.path.abspath(start or os.getcwd())
    while True:
        if os.path.exists(os.path.join(path, ".git")):
            return path
        parent = os.path.dirname(path)
        if parent == path:
            return None
        path = parent


def messages_to_json(messages: Iterable[LLMMessage]) -> dict[str, Any]:
    """Return the stored form of a message list."""
    return {
        "messages": [{"role": msg.role, "content": msg.content} for msg in messages]
    }


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def json_to_messages(data: Any) -> list[LLMMessage]:
    """Read messages from their stored form; malformed parts become empty."""
    if not isinstance(data, dict) or not isinstance(data.get("messages"), list):
        return []
    messages = []
    for item in data["messages"]:
        obj = item if isinstance(item, dict) else {}
        messages.append(
            LLMMessage(role=_as_str(obj.get("role")), content=_as_str(obj.get("content")))
        )
    return messages


def _complete_base_name(file_name: str) -> str:
    base, _, _ = file_name.rpartition(".")
    return base


class ThreadJsonStorage:
    """Saves, loads and lists threads as JSON files named by project and id."""

    def __init__(self, directory: str | None = None, project_id: str | None = None) -> None:
        self._directory = directory
        self._project_id = project_id or ""

    @property
    def thread_dir(self) -> str:
        """The directory holding thread files; created on access."""
        if self._directory is None:
            return default_thread_dir()
        os.makedirs(self._directory, exist_ok=True)
        return self._directory

    @property
    def project_id(self) -> str:
        """The current project: as set, else the git repository or working directory name."""
        if self._project_id:
            return self._project_id
        root = detect_git_repo_root()
        if root:
            self._project_id = os.path.basename(root)
            logger.debug("Detected git project: %s", self._project_id)
        else:
            self._project_id = os.path.basename(os.getcwd())
            logger.debug("Using current directory as project ID: %s", self._project_id)
        return self._project_id

    @project_id.setter
    def project_id(self, value: str) -> None:
        self._project_id = value

    def _file(self, name: str) -> str:
        return os.path.join(self.thread_dir, name + ".json")

    def _full_id(self, thread_id: str, prefix: str) -> str:
        if prefix and thread_id.startswith(prefix):
            return thread_id
        return prefix + thread_id

    def thread_path(self, thread_id: str) -> str:
        """Path of the file for a thread, adding the project prefix if absent."""
        return self._file(self._full_id(thread_id, project_prefix(self.project_id)))

    def save_thread(
        self, thread_id: str, messages: Iterable[LLMMessage], title: str = ""
    ) -> str | None:
        """Write a thread; return its path, or None if it cannot be written."""
        project = self.project_id
        path = self._file(self._full_id(thread_id, project_prefix(project)))
        root = messages_to_json(messages)
        root["title"] = title
        root["projectId"] = project
        try:
            with open(path, "w", encoding="utf-8") as handle:
                json.dump(root, handle, indent=4, ensure_ascii=False)
                handle.write("\n")
        except OSError:
            logger.warning("Cannot write thread: %s", path)
            return None
        return path

    def _read(self, path: str) -> bytes | None:
        try:
            with open(path, "rb") as handle:
                return handle.read()
        except OSError:
            return None

    def load_thread(self, thread_id: str) -> list[LLMMessage]:
        """Read a thread's messages; an unreadable or invalid file gives []."""
        prefix = project_prefix(self.project_id)
        data = self._read(self._file(prefix + thread_id))
        if data is None and prefix and thread_id.startswith(prefix):
            data = self._read(self._file(thread_id))
        if data is None:
            return []
        try:
            document = json.loads(data.decode("utf-8"))
        except (ValueError, UnicodeDecodeError):
            return []
        if not isinstance(document, dict):
            return []
        return json_to_messages(document)

    def _stored_ids(self) -> list[str]:
        directory = self.thread_dir
        names = sorted(
            name
            for name in os.listdir(directory)
            if name.endswith(".json") and os.path.isfile(os.path.join(directory, name))
        )
        return [_complete_base_name(name) for name in names]

    def list_threads(self) -> list[str]:
        """Ids of all stored threads of every project, sorted by file name."""
        return [tid for tid in self._stored_ids() if tid != _CONFIG_NAME]

    def list_threads_for_project(self, project_id: str) -> list[str]:
        """Ids of a project's threads without their prefix.

        With no project, old global threads are listed: those whose id
        does not contain "_chat_".
        """
        prefix = project_prefix(project_id)
        threads = []
        for tid in self._stored_ids():
            if tid == _CONFIG_NAME:
                continue
            if prefix:
                if tid.startswith(prefix):
                    threads.append(tid[len(prefix):])
            elif "_chat_" not in tid:
                threads.append(tid)
        return threads

    def delete_thread(self, thread_id: str) -> bool:
        """Remove a thread's file; return whether a file was removed."""
        prefix = project_prefix(self.project_id)
        try:
            os.remove(self._file(prefix + thread_id))
            return True
        except OSError:
            pass
        if prefix and thread_id.startswith(prefix):
            try:
                os.remove(self._file(thread_id))
                return True
            except OSError:
                return False
        return False