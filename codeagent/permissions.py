"""Per-tool permission policies and session decisions."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum


class PermissionPolicy(Enum):
    """How a tool's use is decided."""

    ALLOW = "allow"
    DENY = "deny"
    CONFIRM = "confirm"


class PermissionManager:
    """Decides whether tools may run, with per-session overrides."""

    def __init__(self, default_policy: PermissionPolicy = PermissionPolicy.CONFIRM) -> None:
        self.default_policy = default_policy
        self._tool_policies: dict[str, PermissionPolicy] = {}
        self._session_permissions: dict[str, bool] = {}
        self.requested_callbacks: list[Callable[[str], None]] = []
        self.granted_callbacks: list[Callable[[str], None]] = []
        self.denied_callbacks: list[Callable[[str], None]] = []

    def set_tool_policy(self, tool_name: str, policy: PermissionPolicy) -> None:
        self._tool_policies[tool_name] = policy

    def get_tool_policy(self, tool_name: str) -> PermissionPolicy:
        return self._tool_policies.get(tool_name, self.default_policy)

    def requires_confirmation(self, tool_name: str) -> bool:
        return self.get_tool_policy(tool_name) is PermissionPolicy.CONFIRM

    def is_allowed(self, tool_name: str) -> bool:
        if tool_name in self._session_permissions:
            return self._session_permissions[tool_name]
        return self.get_tool_policy(tool_name) is PermissionPolicy.ALLOW

    def request_permission(self, tool_name: str) -> bool:
        """Announce a request; return the decision unless confirmation is needed."""
        for callback in self.requested_callbacks:
            callback(tool_name)
        if not self.requires_confirmation(tool_name):
            return self.is_allowed(tool_name)
        return False

    def grant_permission(self, tool_name: str) -> None:
        self._session_permissions[tool_name] = True
        for callback in self.granted_callbacks:
            callback(tool_name)

    def deny_permission(self, tool_name: str) -> None:
        self._session_permissions[tool_name] = False
        for callback in self.denied_callbacks:
            callback(tool_name)

    def clear_session_permissions(self) -> None:
        self._session_permissions.clear()