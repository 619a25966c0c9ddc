import pytest

import navshell.actions as actions


class PopenRecorder:
    def __init__(self) -> None:
        self.commands: list[str] = []

    def __call__(self, command, **kwargs):
        assert kwargs["shell"] is True
        self.commands.append(command)
        return object()


@pytest.fixture
def popen(monkeypatch) -> PopenRecorder:
    recorder = PopenRecorder()
    monkeypatch.setattr(actions.subprocess, "Popen", recorder)
    return recorder


def test_exec_spawns_command(popen) -> None:
    actions.execute_action({"type": "exec", "value": "firefox --new-window"})
    assert popen.commands == ["firefox --new-window"]


def test_elevated_quotes_command_into_template(popen) -> None:
    actions.execute_action({"type": "elevated", "value": "gparted /dev/sda", "template": "sudo -A sh -c {command}"})
    assert popen.commands == ["sudo -A sh -c 'gparted /dev/sda'"]


def test_spawn_failure_is_reported_not_raised(monkeypatch) -> None:
    def refuse(*_args, **_kwargs):
        raise OSError("no shell")

    monkeypatch.setattr(actions.subprocess, "Popen", refuse)
    assert actions.spawn("anything") is False


def test_empty_command_is_ignored(popen) -> None:
    assert actions.spawn("") is False
    assert popen.commands == []


def test_info_copies_path_and_notifies(popen, monkeypatch) -> None:
    copied: list[str] = []
    monkeypatch.setattr(actions.pyperclip, "copy", copied.append)
    monkeypatch.setattr(actions.shutil, "which", lambda name: "/usr/bin/notify-send")

    actions.execute_action({"type": "info", "value": "/usr/share/applications/gimp.desktop"})

    assert copied == ["/usr/share/applications/gimp.desktop"]
    assert popen.commands[0].startswith("notify-send ")


def test_info_without_notifier(popen, monkeypatch) -> None:
    monkeypatch.setattr(actions.pyperclip, "copy", lambda text: None)
    monkeypatch.setattr(actions.shutil, "which", lambda name: None)
    assert actions.show_info("/x.desktop") is True
    assert popen.commands == []


def test_copy_and_url(monkeypatch) -> None:
    copied: list[str] = []
    opened: list[str] = []
    monkeypatch.setattr(actions.pyperclip, "copy", copied.append)
    monkeypatch.setattr(actions.webbrowser, "open", opened.append)

    actions.execute_action({"type": "copy", "value": "hello"})
    actions.execute_action({"type": "url", "value": "https://example.org"})

    assert copied == ["hello"]
    assert opened == ["https://example.org"]


def test_unknown_type_and_failures_do_not_raise(monkeypatch) -> None:
    def broken(_text):
        raise RuntimeError("clipboard gone")

    monkeypatch.setattr(actions.pyperclip, "copy", broken)
    actions.execute_action({"type": "teleport", "value": "mars"})
    actions.execute_action({"type": "copy", "value": "x"})
