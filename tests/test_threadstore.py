import json
import os

import pytest

from codeagent.messages import LLMMessage
from codeagent.threadstore import (
    ThreadJsonStorage,
    default_thread_dir,
    detect_git_repo_root,
    json_to_messages,
    messages_to_json,
    project_prefix,
)


@pytest.fixture
def storage(tmp_path):
    return ThreadJsonStorage(str(tmp_path / "threads"), project_id="demo")


def test_default_thread_dir_created(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
    directory = default_thread_dir()
    assert directory == os.path.join(str(tmp_path), "kate", "agents")
    assert os.path.isdir(directory)


def test_thread_dir_exists(storage, tmp_path):
    assert storage.thread_dir == str(tmp_path / "threads")
    assert os.path.isdir(str(tmp_path / "threads")) is True


def test_save_and_load_thread(storage):
    messages = [LLMMessage("user", "Hello"), LLMMessage("assistant", "Hi there!")]
    path = storage.save_thread("test-thread-1", messages, "Test Thread")
    assert path is not None
    assert os.path.exists(path)
    loaded = storage.load_thread("test-thread-1")
    assert len(loaded) == 2
    assert loaded[0].role == "user"
    assert loaded[0].content == "Hello"
    assert loaded[1].content == "Hi there!"


def test_saved_file_contents(storage):
    path = storage.save_thread("t1", [LLMMessage("user", "Test")], "Title")
    assert os.path.basename(path) == "demo_t1.json"
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    assert data == {
        "messages": [{"role": "user", "content": "Test"}],
        "title": "Title",
        "projectId": "demo",
    }


def test_save_does_not_double_prefix(storage):
    path = storage.save_thread("demo_t2", [LLMMessage("user", "x")], "")
    assert os.path.basename(path) == "demo_t2.json"
    assert storage.thread_path("demo_t2") == path
    assert storage.thread_path("t2") == path


def test_delete_thread(storage):
    path = storage.save_thread("test-delete", [LLMMessage("user", "Test")], "Test")
    assert path is not None
    assert storage.delete_thread("test-delete") is True
    assert not os.path.exists(path)
    assert storage.delete_thread("test-delete") is False


def test_delete_with_prefixed_id(storage):
    path = storage.save_thread("t3", [LLMMessage("user", "Test")], "")
    assert storage.delete_thread("demo_t3") is True
    assert not os.path.exists(path)


def test_list_threads(storage):
    storage.save_thread("test-list", [LLMMessage("user", "Test")], "Test")
    assert "demo_test-list" in storage.list_threads()
    storage.delete_thread("test-list")
    assert "demo_test-list" not in storage.list_threads()


def test_list_threads_skips_config(storage):
    with open(os.path.join(storage.thread_dir, "config.json"), "w") as handle:
        handle.write("{}")
    storage.save_thread("b", [], "")
    storage.save_thread("a", [], "")
    assert storage.list_threads() == ["demo_a", "demo_b"]


def test_list_threads_for_project(storage):
    storage.save_thread("one", [], "")
    storage.project_id = "other"
    storage.save_thread("two", [], "")
    assert storage.list_threads_for_project("demo") == ["one"]
    assert storage.list_threads_for_project("other") == ["two"]


def test_list_threads_without_project(storage):
    directory = storage.thread_dir
    for name in ("legacy.json", "demo_chat_1.json", "config.json"):
        with open(os.path.join(directory, name), "w") as handle:
            handle.write("{}")
    assert storage.list_threads_for_project("") == ["legacy"]


def test_load_missing_thread(storage):
    assert storage.load_thread("nope") == []


def test_load_invalid_json(storage):
    with open(os.path.join(storage.thread_dir, "demo_bad.json"), "w") as handle:
        handle.write("[1, 2]")
    assert storage.load_thread("bad") == []


def test_project_prefix_sanitizes():
    assert project_prefix("my project/x:y") == "my_project_x_y_"
    assert project_prefix('a*b?c"d<e>f|g\\h') == "a_b_c_d_e_f_g_h_"
    assert project_prefix("") == ""


def test_prefix_used_for_project_with_spaces(tmp_path):
    store = ThreadJsonStorage(str(tmp_path), project_id="My Repo")
    path = store.save_thread("t", [], "")
    assert os.path.basename(path) == "My_Repo_t.json"


def test_messages_round_trip():
    messages = [LLMMessage("system", "s"), LLMMessage("user", "u")]
    assert json_to_messages(messages_to_json(messages)) == messages


def test_json_to_messages_malformed():
    assert json_to_messages({}) == []
    assert json_to_messages({"messages": "x"}) == []
    assert json_to_messages({"messages": [5, {"role": 1, "content": "c"}]}) == [
        LLMMessage("", ""),
        LLMMessage("", "c"),
    ]


def test_detect_git_repo_root(tmp_path):
    repo = tmp_path / "my-repo"
    (repo / ".git").mkdir(parents=True)
    nested = repo / "src" / "pkg"
    nested.mkdir(parents=True)
    assert detect_git_repo_root(str(nested)) == str(repo)


def test_project_id_from_git(tmp_path, monkeypatch):
    repo = tmp_path / "sample-repo"
    (repo / ".git").mkdir(parents=True)
    sub = repo / "sub"
    sub.mkdir()
    monkeypatch.chdir(sub)
    store = ThreadJsonStorage(str(tmp_path / "threads"))
    assert store.project_id == "sample-repo"
    path = store.save_thread("t", [], "")
    assert os.path.basename(path) == "sample-repo_t.json"