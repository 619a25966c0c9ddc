import pytest

from navshell.config import ShutdownConfig
from navshell.popup import PopupState
from navshell.shutdown import ShutdownDialog


@pytest.fixture
def ran() -> list[dict]:
    return []


@pytest.fixture
def dialog(qt_app, host, scheduler, ran) -> ShutdownDialog:
    dialog = ShutdownDialog(host, schedule=scheduler, run_action=ran.append)
    dialog.show()
    scheduler.run_all()
    return dialog


def test_default_actions_render_as_buttons(dialog) -> None:
    assert [button.data["name"] for button in dialog.buttons] == ["Shut Down", "Restart", "Sleep"]
    assert dialog.registry.current_index == 1
    assert dialog.buttons[0].is_focused


def test_overlay_is_always_on(dialog) -> None:
    assert dialog.overlay is not None
    assert dialog.overlay.isVisible()


def test_left_right_wrap(dialog) -> None:
    dialog.process_key(set(), "Left")
    assert dialog.registry.current_index == 3
    dialog.process_key(set(), "Right")
    assert dialog.registry.current_index == 1
    dialog.process_key(set(), "Right")
    assert dialog.registry.current_index == 2


def test_enter_runs_command_and_hides(dialog, ran) -> None:
    dialog.process_key(set(), "Right")
    dialog.process_key(set(), "Return")
    assert ran == [{"type": "exec", "value": "systemctl reboot"}]
    assert dialog.state is PopupState.HIDDEN


def test_click_runs_command(dialog, ran) -> None:
    dialog.buttons[2].on_activate()
    assert ran == [{"type": "exec", "value": "systemctl suspend"}]
    assert dialog.state is PopupState.HIDDEN


def test_overlay_click_hides_without_running(dialog, ran) -> None:
    dialog.overlay.on_click()
    assert dialog.state is PopupState.HIDDEN
    assert ran == []


def test_reopen_rebuilds_and_resets(dialog, scheduler) -> None:
    dialog.process_key(set(), "Right")
    dialog.process_key(set(), "Escape")
    dialog.show()
    scheduler.run_all()
    assert len(dialog.registry) == 3
    assert dialog.registry.current_index == 1


def test_actions_without_command_are_skipped(qt_app, host, scheduler, ran) -> None:
    config = ShutdownConfig(actions=[
        {"name": "Lock", "command": "loginctl lock-session"},
        {"name": "Broken"},
    ])
    dialog = ShutdownDialog(host, config, schedule=scheduler, run_action=ran.append)
    dialog.show()
    scheduler.run_all()
    assert [button.data["name"] for button in dialog.buttons] == ["Lock"]
