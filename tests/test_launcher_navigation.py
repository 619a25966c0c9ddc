import pytest
from PyQt6.QtCore import Qt

from navshell.catalog import CatalogEntry
from navshell.config import LauncherConfig
from navshell.launcher import FocusCursor, Launcher, PinnedDrag, Zone
from navshell.launcher_widgets import SubFocus
from navshell.pinned import PinnedEntry, PinnedStore
from navshell.popup import PopupState

NAMES = ["Files", "Firefox", "GIMP", "Inkscape", "Terminal", "Text Editor"]


class FakeCatalog:
    def __init__(self, names=NAMES) -> None:
        self.names = list(names)
        self.calls = 0
        self.fail = False

    def entries(self):
        self.calls += 1
        if self.fail:
            raise OSError("applications directory vanished")
        return [
            CatalogEntry(
                display_name=name,
                launch_command=name.lower().replace(" ", "-"),
                source_path=f"/usr/share/applications/{name.lower()}.desktop",
            )
            for name in self.names
        ]


class ActionRecorder:
    def __init__(self) -> None:
        self.actions: list[dict] = []

    def __call__(self, action: dict) -> None:
        self.actions.append(action)


@pytest.fixture
def store(tmp_path) -> PinnedStore:
    return PinnedStore(str(tmp_path / "pinned_apps.json"), max_pinned=8)


@pytest.fixture
def actions() -> ActionRecorder:
    return ActionRecorder()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


def make_launcher(host, catalog, store, scheduler, actions, **config):
    options = dict(list_height=120, item_height=40, item_spacing=0)
    options.update(config)
    return Launcher(
        host, catalog,
        config=LauncherConfig(**options),
        store=store,
        schedule=scheduler,
        run_action=actions,
    )


def pin_names(store, *names) -> None:
    for name in names:
        store.pin(PinnedEntry(name=name, exec=name.lower()))


def open_launcher(launcher, scheduler) -> Launcher:
    launcher.show()
    scheduler.run_all()
    assert launcher.state is PopupState.VISIBLE
    return launcher


@pytest.fixture
def launcher(qt_app, host, catalog, store, scheduler, actions) -> Launcher:
    return open_launcher(make_launcher(host, catalog, store, scheduler, actions), scheduler)


@pytest.fixture
def pinned_launcher(qt_app, host, catalog, store, scheduler, actions) -> Launcher:
    pin_names(store, "X", "Y", "Z")
    return open_launcher(make_launcher(host, catalog, store, scheduler, actions), scheduler)


def test_pinned_drag_gesture() -> None:
    drag = PinnedDrag(cell_width=50)
    assert drag.move(500) == 0

    drag.press(1, 100)
    assert drag.move(140) == 0
    assert drag.move(151) == 1
    assert drag.origin_x == 151
    assert drag.move(90) == -1
    assert drag.release() is False
    assert not drag.active

    drag.press(2, 100)
    assert drag.release() is True


def test_show_focuses_first_catalog_entry(launcher) -> None:
    assert launcher.cursor == FocusCursor(Zone.LIST_ROW, 1)
    assert launcher.list_view.get_focused_index() == 1
    assert launcher.list_view.item_for(1).is_focused
    assert not launcher.pinned_row.isVisibleTo(launcher.surface)


def test_show_prefers_pinned_row(pinned_launcher) -> None:
    assert pinned_launcher.cursor == FocusCursor(Zone.PINNED_ROW, 1)
    assert pinned_launcher.pinned_items[0].is_focused
    assert pinned_launcher.list_view.get_focused_index() == 0


def test_catalog_is_reread_on_every_show(launcher, catalog, scheduler) -> None:
    launcher.hide()
    catalog.names.append("Zed")
    open_launcher(launcher, scheduler)
    assert catalog.calls == 2
    assert launcher.list_view.get_count() == len(NAMES) + 1


def test_catalog_failure_keeps_launcher_hidden(qt_app, host, catalog, store, scheduler, actions) -> None:
    catalog.fail = True
    launcher = make_launcher(host, catalog, store, scheduler, actions)
    launcher.show()
    assert launcher.state is PopupState.HIDDEN
    assert scheduler.scheduled == []


def test_up_from_first_entry_moves_to_pinned_row(pinned_launcher) -> None:
    pinned_launcher.process_key(set(), "Down")
    assert pinned_launcher.cursor == FocusCursor(Zone.LIST_ROW, 1)
    assert not pinned_launcher.pinned_items[0].is_focused

    pinned_launcher.process_key(set(), "Down")
    assert pinned_launcher.cursor.index == 2
    pinned_launcher.process_key(set(), "Up")
    pinned_launcher.process_key(set(), "Up")
    assert pinned_launcher.cursor == FocusCursor(Zone.PINNED_ROW, 1)
    assert pinned_launcher.list_view.get_focused_index() == 0


def test_up_without_pinned_entries_stays_on_first(launcher) -> None:
    launcher.process_key(set(), "Up")
    assert launcher.cursor == FocusCursor(Zone.LIST_ROW, 1)


def test_down_scrolls_and_clamps(launcher) -> None:
    for _ in range(10):
        launcher.process_key(set(), "Down")
    assert launcher.cursor.index == len(NAMES)
    assert launcher.list_view.start == len(NAMES) - 2
    launcher.process_key(set(), "Home")
    assert launcher.cursor.index == 1
    assert launcher.list_view.start == 1
    launcher.process_key(set(), "End")
    assert launcher.cursor.index == len(NAMES)


def test_right_cycles_subcontrols_without_wrapping(launcher) -> None:
    launcher.process_key(set(), "Right")
    assert launcher.cursor.subfocus is SubFocus.PIN_TOGGLE
    assert launcher.list_view.item_for(1).pin_button.focused
    launcher.process_key(set(), "Right")
    assert launcher.cursor.subfocus is SubFocus.INFO_ACTION
    launcher.process_key(set(), "Right")
    assert launcher.cursor.subfocus is SubFocus.INFO_ACTION
    assert launcher.list_view.item_for(1).info_button.focused


def test_left_steps_back_to_primary(launcher) -> None:
    launcher.set_cursor(Zone.LIST_ROW, 1, SubFocus.INFO_ACTION)
    launcher.process_key(set(), "Left")
    assert launcher.cursor.subfocus is SubFocus.PIN_TOGGLE
    launcher.process_key(set(), "Left")
    assert launcher.cursor.subfocus is SubFocus.NONE
    launcher.process_key(set(), "Left")
    assert launcher.cursor.subfocus is SubFocus.NONE


def test_vertical_move_drops_subfocus(launcher) -> None:
    launcher.process_key(set(), "Right")
    launcher.process_key(set(), "Down")
    assert launcher.cursor == FocusCursor(Zone.LIST_ROW, 2)
    assert launcher.list_view.item_for(1).subfocus is SubFocus.NONE


def test_enter_on_pin_toggle_pins_entry(launcher, store, actions) -> None:
    launcher.process_key(set(), "Right")
    launcher.process_key(set(), "Return")

    assert [entry.name for entry in store.entries] == ["Files"]
    assert len(launcher.pinned_items) == 1
    assert launcher.list_view.item_for(1).pin_button.text() == "Unpin"
    assert launcher.cursor == FocusCursor(Zone.LIST_ROW, 1, SubFocus.PIN_TOGGLE)
    assert launcher.state is PopupState.VISIBLE
    assert actions.actions == []

    launcher.process_key(set(), "Return")
    assert store.entries == []
    assert launcher.list_view.item_for(1).pin_button.text() == "Pin"


def test_enter_on_info_runs_info_action(launcher, actions) -> None:
    launcher.set_cursor(Zone.LIST_ROW, 2, SubFocus.INFO_ACTION)
    launcher.process_key(set(), "Return")
    assert actions.actions == [
        {"type": "info", "value": "/usr/share/applications/firefox.desktop"},
    ]
    assert launcher.state is PopupState.VISIBLE


def test_enter_launches_and_hides(launcher, actions, host) -> None:
    launcher.process_key(set(), "Down")
    launcher.process_key(set(), "Return")
    assert actions.actions == [{"type": "exec", "value": "firefox"}]
    assert launcher.state is PopupState.HIDDEN
    assert host.calls[-1] == "restore_focus"


def test_modifier_enter_takes_elevated_path(launcher, actions) -> None:
    launcher.process_key(set(), "Control_L")
    assert launcher.secondary_mode
    launcher.process_key({"Control"}, "Return")
    assert actions.actions == [
        {"type": "elevated", "value": "files", "template": "pkexec sh -c {command}"},
    ]


def test_released_modifier_enter_takes_default_path(launcher, actions) -> None:
    launcher.process_key(set(), "Control_L")
    launcher.process_key_release({"Control"}, "Control_L")
    assert not launcher.secondary_mode
    launcher.process_key(set(), "Return")
    assert actions.actions == [{"type": "exec", "value": "files"}]


def test_secondary_mode_restyles_focused_item(launcher) -> None:
    item = launcher.list_view.item_for(1)
    normal = item.styleSheet()
    launcher.process_key(set(), "Control_R")
    assert item.secondary
    assert item.styleSheet() != normal
    launcher.process_key_release(set(), "Control_R")
    assert not item.secondary
    assert item.styleSheet() == normal


def test_secondary_mode_survives_scrolling(launcher) -> None:
    launcher.process_key(set(), "Control_L")
    for _ in range(4):
        launcher.process_key({"Control"}, "Down")
    assert all(item.secondary for _i, item in launcher.list_view.rendered_items())


def test_pinned_row_left_right_without_wrap(pinned_launcher) -> None:
    pinned_launcher.process_key(set(), "Left")
    assert pinned_launcher.cursor.index == 1
    pinned_launcher.process_key(set(), "Right")
    pinned_launcher.process_key(set(), "Right")
    pinned_launcher.process_key(set(), "Right")
    assert pinned_launcher.cursor == FocusCursor(Zone.PINNED_ROW, 3)
    assert pinned_launcher.pinned_items[2].is_focused


def test_tab_cycles_pinned_row(pinned_launcher) -> None:
    pinned_launcher.process_key(set(), "End")
    pinned_launcher.process_key(set(), "Tab")
    assert pinned_launcher.cursor.index == 1
    pinned_launcher.process_key({"Shift"}, "Tab")
    assert pinned_launcher.cursor.index == 3


def test_modifier_arrows_reorder_pinned_entries(pinned_launcher, store) -> None:
    pinned_launcher.process_key({"Control"}, "Right")

    assert [entry.name for entry in store.entries] == ["Y", "X", "Z"]
    assert pinned_launcher.cursor == FocusCursor(Zone.PINNED_ROW, 2)
    assert pinned_launcher.pinned_items[1].data.name == "X"
    assert pinned_launcher.pinned_items[1].is_focused

    reloaded = PinnedStore(str(store.path))
    assert [entry.name for entry in reloaded.load()] == ["Y", "X", "Z"]


def test_reorder_at_edges_is_noop(pinned_launcher, store) -> None:
    pinned_launcher.process_key({"Control"}, "Left")
    assert [entry.name for entry in store.entries] == ["X", "Y", "Z"]
    pinned_launcher.process_key(set(), "End")
    pinned_launcher.process_key({"Control"}, "Right")
    assert [entry.name for entry in store.entries] == ["X", "Y", "Z"]
    assert pinned_launcher.cursor.index == 3


def test_drag_right_past_one_cell_swaps(pinned_launcher, store, actions) -> None:
    cell = pinned_launcher.launcher_config.pin_cell_width
    pinned_launcher.pin_drag_press(1, 100)
    pinned_launcher.pin_drag_move(100 + cell // 2)
    assert [entry.name for entry in store.entries] == ["X", "Y", "Z"]

    pinned_launcher.pin_drag_move(100 + cell + 1)
    assert [entry.name for entry in store.entries] == ["Y", "X", "Z"]
    assert pinned_launcher.cursor == FocusCursor(Zone.PINNED_ROW, 2)

    pinned_launcher.pin_drag_release()
    assert actions.actions == []
    assert pinned_launcher.state is PopupState.VISIBLE


def test_continued_drag_keeps_swapping(pinned_launcher, store) -> None:
    cell = pinned_launcher.launcher_config.pin_cell_width
    pinned_launcher.pin_drag_press(1, 0)
    pinned_launcher.pin_drag_move(cell + 1)
    pinned_launcher.pin_drag_move(2 * cell + 2)
    assert [entry.name for entry in store.entries] == ["Y", "Z", "X"]
    assert pinned_launcher.cursor.index == 3
    pinned_launcher.pin_drag_release()


def test_click_on_pinned_icon_launches(pinned_launcher, actions) -> None:
    pinned_launcher.pin_drag_press(2, 100)
    pinned_launcher.pin_drag_release()
    assert actions.actions == [{"type": "exec", "value": "y"}]
    assert pinned_launcher.state is PopupState.HIDDEN


def test_enter_on_pinned_entry_launches(pinned_launcher, actions) -> None:
    pinned_launcher.process_key(set(), "Right")
    pinned_launcher.process_key({"Control"}, "Return")
    assert actions.actions[0]["type"] == "elevated"
    assert actions.actions[0]["value"] == "y"


def test_unpin_last_focused_entry_moves_to_list(pinned_launcher, store) -> None:
    pinned_launcher.process_key(set(), "End")
    for _ in range(3):
        pinned_launcher.unpin_at(1)
    assert len(store) == 0
    assert not pinned_launcher.pinned_items
    assert pinned_launcher.cursor == FocusCursor(Zone.LIST_ROW, 1)


def test_typing_filters_case_insensitively(launcher) -> None:
    launcher.process_key({"Shift"}, "F")
    launcher.process_key(set(), "i")
    assert [entry.display_name for entry in launcher.filtered] == ["Files", "Firefox"]
    assert launcher.search_field.text() == "Fi"

    launcher.process_key(set(), "BackSpace")
    launcher.process_key(set(), "BackSpace")
    launcher.process_key(set(), "t")
    assert [entry.display_name for entry in launcher.filtered] == ["Terminal", "Text Editor"]


def test_filter_matches_substrings_not_prefixes(launcher) -> None:
    for char in "scape":
        launcher.process_key(set(), char)
    assert [entry.display_name for entry in launcher.filtered] == ["Inkscape"]


def test_filter_change_resets_scroll_and_focus(launcher) -> None:
    for _ in range(5):
        launcher.process_key(set(), "Down")
    assert launcher.list_view.start > 1

    launcher.process_key(set(), "e")

    assert launcher.list_view.start == 1
    assert launcher.cursor == FocusCursor(Zone.LIST_ROW, 1)
    assert launcher.list_view.get_focused_index() == 1


def test_filter_without_matches(launcher, actions) -> None:
    launcher.process_key(set(), "q")
    assert launcher.filtered == []
    assert launcher.cursor == FocusCursor(Zone.LIST_ROW, 0)
    launcher.process_key(set(), "Down")
    launcher.process_key(set(), "Return")
    assert actions.actions == []


def test_show_clears_previous_filter(launcher, scheduler) -> None:
    launcher.process_key(set(), "g")
    launcher.hide()
    open_launcher(launcher, scheduler)
    assert launcher.search.text == ""
    assert len(launcher.filtered) == len(NAMES)


def test_hover_moves_cursor_between_zones(pinned_launcher) -> None:
    pinned_launcher.list_view.item_for(2).hover()
    assert pinned_launcher.cursor == FocusCursor(Zone.LIST_ROW, 2)
    assert not pinned_launcher.pinned_items[0].is_focused

    pinned_launcher.pinned_items[2].hover()
    assert pinned_launcher.cursor == FocusCursor(Zone.PINNED_ROW, 3)
    assert pinned_launcher.list_view.get_focused_index() == 0


def test_unhandled_keys_pass_through(launcher, host) -> None:
    assert launcher.process_key({"Mod4"}, "e") is False
    assert host.keybinds == [({"Mod4"}, "e")]
    assert launcher.search.text == ""


def test_escape_hides(launcher) -> None:
    launcher.process_key(set(), "Escape")
    assert launcher.state is PopupState.HIDDEN
    assert launcher.cursor == FocusCursor()


def test_pin_click_rerenders_and_resyncs_hover(launcher, store, scheduler, mouse_event) -> None:
    row = launcher.list_view.item_for(1)
    event = mouse_event()
    row.pin_button.mousePressEvent(event)

    assert event.accepted
    assert [entry.name for entry in store.entries] == ["Files"]
    assert scheduler.delays == [launcher.config.hover_resync_ms]
    scheduler.run_all()
    assert launcher.state is PopupState.VISIBLE


def test_keyboard_pin_toggle_leaves_hover_alone(launcher, scheduler) -> None:
    launcher.process_key(set(), "Right")
    launcher.process_key(set(), "Return")
    assert scheduler.scheduled == []


def test_right_click_unpins_and_resyncs_hover(pinned_launcher, store, scheduler, mouse_event) -> None:
    pinned_launcher.pinned_items[0].mousePressEvent(mouse_event(Qt.MouseButton.RightButton))

    assert [entry.name for entry in store.entries] == ["Y", "Z"]
    assert scheduler.delays == [pinned_launcher.config.hover_resync_ms]
    scheduler.run_all()
    assert pinned_launcher.state is PopupState.VISIBLE


def test_failing_pinned_press_is_contained(pinned_launcher, mouse_event) -> None:
    def boom(*args):
        raise RuntimeError("press handler broke")

    item = pinned_launcher.pinned_items[0]
    item.on_press = boom
    event = mouse_event(x=10.0)
    item.mousePressEvent(event)

    assert event.accepted
    assert pinned_launcher.state is PopupState.VISIBLE
