from navshell.focus import FocusRegistry


class RecordingHandle:
    def __init__(self, name: str) -> None:
        self.name = name
        self.events: list[str] = []
        self.hover = None

    def on_focus(self) -> None:
        self.events.append("focus")

    def on_unfocus(self) -> None:
        self.events.append("unfocus")

    def bind_hover(self, callback) -> None:
        self.hover = callback


def build(count: int = 3, wrap: bool = True):
    registry = FocusRegistry(wrap=wrap)
    handles = [RecordingHandle(f"h{i}") for i in range(1, count + 1)]
    for handle in handles:
        registry.register(handle, handle.name)
    return registry, handles


def focused_count(registry: FocusRegistry) -> int:
    return sum(1 for item in registry.items if item.focused)


def test_register_returns_one_based_indices() -> None:
    registry = FocusRegistry()
    assert registry.register(RecordingHandle("a")) == 1
    assert registry.register(RecordingHandle("b")) == 2
    assert len(registry) == 2
    assert registry.current_index == 0


def test_focus_marks_exactly_one_item() -> None:
    registry, handles = build(4)
    for index in (2, 4, 1, 3):
        registry.focus(index)
        assert focused_count(registry) == 1
        assert registry.current_index == index
    assert handles[1].events == ["focus", "unfocus"]


def test_focus_out_of_range_is_ignored() -> None:
    registry, handles = build(2)
    registry.focus(1)
    registry.focus(0)
    registry.focus(3)
    registry.focus(-1)
    assert registry.current_index == 1
    assert handles[0].events == ["focus"]


def test_focus_is_idempotent() -> None:
    registry, handles = build(2)
    notified: list[int] = []
    registry.add_listener(notified.append)
    registry.focus(2)
    registry.focus(2)
    assert handles[1].events == ["focus"]
    assert notified == [2]


def test_navigate_next_wraps_back_to_start() -> None:
    registry, _ = build(3, wrap=True)
    registry.focus(2)
    for _ in range(3):
        registry.navigate_next()
    assert registry.current_index == 2


def test_navigate_next_clamps_without_wrap() -> None:
    registry, handles = build(3, wrap=False)
    registry.focus(1)
    for _ in range(5):
        registry.navigate_next()
    assert registry.current_index == 3
    assert handles[2].events == ["focus"]


def test_navigate_prev_wrap_and_clamp() -> None:
    wrapping, _ = build(3, wrap=True)
    wrapping.focus(1)
    wrapping.navigate_prev()
    assert wrapping.current_index == 3

    clamped, _ = build(3, wrap=False)
    clamped.focus(1)
    clamped.navigate_prev()
    assert clamped.current_index == 1


def test_navigate_on_empty_registry_is_noop() -> None:
    registry = FocusRegistry()
    registry.navigate_next()
    registry.navigate_prev()
    registry.navigate_last()
    assert registry.current_index == 0
    assert registry.activate_current() is False


def test_first_and_last() -> None:
    registry, _ = build(5)
    registry.navigate_last()
    assert registry.current_index == 5
    registry.navigate_first()
    assert registry.current_index == 1


def test_hover_focuses_registered_item() -> None:
    registry, handles = build(3)
    handles[2].hover()
    assert registry.current_index == 3


def test_stale_hover_after_clear_is_ignored() -> None:
    registry, handles = build(3)
    registry.clear()
    fresh = RecordingHandle("fresh")
    registry.register(fresh)
    handles[0].hover()
    assert registry.current_index == 0
    assert fresh.events == []


def test_clear_resets_current_index() -> None:
    registry, _ = build(3)
    registry.focus(2)
    registry.clear()
    assert registry.current_index == 0
    assert len(registry) == 0


def test_blur_keeps_items_and_notifies_zero() -> None:
    registry, handles = build(2)
    notified: list[int] = []
    registry.add_listener(notified.append)
    registry.focus(1)
    registry.blur()
    assert registry.current_index == 0
    assert len(registry) == 2
    assert handles[0].events == ["focus", "unfocus"]
    assert notified == [1, 0]


def test_reset_focuses_first_item() -> None:
    registry, _ = build(3)
    registry.focus(3)
    registry.reset()
    assert registry.current_index == 1


def test_activate_current_passes_data_and_index() -> None:
    registry = FocusRegistry()
    calls: list[tuple] = []
    registry.register(RecordingHandle("a"), "alpha", lambda data, index: calls.append((data, index)))
    registry.register(RecordingHandle("b"), "beta", lambda data, index: calls.append((data, index)))
    registry.focus(2)
    assert registry.activate_current() is True
    assert calls == [("beta", 2)]


def test_failing_activation_does_not_raise() -> None:
    registry = FocusRegistry()

    def boom(_data, _index):
        raise RuntimeError("boom")

    registry.register(RecordingHandle("a"), None, boom)
    registry.focus(1)
    assert registry.activate_current() is True


def test_failing_handle_still_moves_focus() -> None:
    class Broken(RecordingHandle):
        def on_unfocus(self) -> None:
            raise RuntimeError("unfocus failed")

    registry = FocusRegistry()
    registry.register(Broken("a"))
    registry.register(RecordingHandle("b"))
    registry.focus(1)
    registry.focus(2)
    assert registry.current_index == 2
    assert focused_count(registry) == 1


def test_handles_without_hover_support_register() -> None:
    registry = FocusRegistry()
    registry.register(object(), "plain")
    registry.focus(1)
    assert registry.focused_item().data == "plain"
