from codeagent.permissions import PermissionManager, PermissionPolicy


def test_default_policy_is_confirm():
    manager = PermissionManager()
    assert manager.get_tool_policy("read_file") is PermissionPolicy.CONFIRM
    assert manager.requires_confirmation("read_file")
    assert not manager.is_allowed("read_file")


def test_tool_policy_overrides_default():
    manager = PermissionManager()
    manager.set_tool_policy("grep", PermissionPolicy.ALLOW)
    assert manager.get_tool_policy("grep") is PermissionPolicy.ALLOW
    assert manager.is_allowed("grep")
    assert not manager.requires_confirmation("grep")
    assert manager.get_tool_policy("terminal") is manager.default_policy


def test_changed_default_policy():
    manager = PermissionManager()
    manager.default_policy = PermissionPolicy.DENY
    assert manager.get_tool_policy("anything") is PermissionPolicy.DENY
    assert not manager.is_allowed("anything")


def test_session_grant_overrides_policy():
    manager = PermissionManager()
    manager.set_tool_policy("terminal", PermissionPolicy.DENY)
    manager.grant_permission("terminal")
    assert manager.is_allowed("terminal")


def test_session_deny_overrides_allow():
    manager = PermissionManager()
    manager.set_tool_policy("edit_file", PermissionPolicy.ALLOW)
    manager.deny_permission("edit_file")
    assert not manager.is_allowed("edit_file")


def test_clear_session_permissions():
    manager = PermissionManager()
    manager.grant_permission("terminal")
    manager.clear_session_permissions()
    assert not manager.is_allowed("terminal")


def test_request_permission_confirm_returns_false_even_if_granted():
    manager = PermissionManager()
    manager.grant_permission("terminal")
    assert manager.request_permission("terminal") is False


def test_request_permission_allow_and_deny():
    manager = PermissionManager()
    manager.set_tool_policy("grep", PermissionPolicy.ALLOW)
    manager.set_tool_policy("terminal", PermissionPolicy.DENY)
    assert manager.request_permission("grep") is True
    assert manager.request_permission("terminal") is False


def test_callbacks_receive_tool_name():
    manager = PermissionManager()
    requested, granted, denied = [], [], []
    manager.requested_callbacks.append(requested.append)
    manager.granted_callbacks.append(granted.append)
    manager.denied_callbacks.append(denied.append)
    manager.request_permission("grep")
    manager.grant_permission("grep")
    manager.deny_permission("terminal")
    assert requested == ["grep"]
    assert granted == ["grep"]
    assert denied == ["terminal"]