import io
import logging
import random

from rich.console import Console

from rexit.actions import Action
from rexit.animation import AnimationState
from rexit.config import AnimationSettings, BorderSettings, Colors, HelpSettings, LayoutSettings, Theme
from rexit.render import Rect, help_bar, menu_area, menu_lines, render
from rexit.state import MenuState

HELP_LINE = "Up/k/Down/j Navigate | Enter Select | Esc/q Quit"


def _screen(state, width=80, height=24, theme=None):
    console = Console(width=width, height=height, file=io.StringIO(), record=True, color_system=None)
    console.print(render(state, width, height, theme))
    return console.export_text().splitlines()


def test_frame_fills_viewport_with_help_on_bottom_row():
    lines = _screen(MenuState())
    assert len(lines) == 24
    assert HELP_LINE in lines[-1]
    assert all(HELP_LINE not in line for line in lines[:-1])


def test_menu_is_centered_with_title_and_all_actions():
    lines = _screen(MenuState())
    area = menu_area(80, 24, MenuState().actions, Theme())
    assert area == Rect(25, 7, 30, 10)

    top = lines[area.y]
    assert top[area.x] == "╭"
    assert "rexit" in top
    assert lines[area.y + area.height - 1][area.x] == "╰"
    body = "\n".join(lines[area.y + 1:area.y + area.height - 1])
    for label in ("Shutdown", "Reboot", "Suspend", "Lock", "Logout", "Cancel"):
        assert label in body


def test_labels_appear_in_presentation_order():
    lines = _screen(MenuState())
    order = ["Shutdown", "Reboot", "Suspend", "Lock", "Logout", "Cancel"]
    rows = [next(i for i, line in enumerate(lines) if label in line) for label in order]
    assert rows == sorted(rows)


def test_only_selected_line_is_highlighted():
    state = MenuState(selected_index=2)
    lines = menu_lines(state, Theme())
    assert [line.plain.endswith("Suspend") for line in lines].index(True) == 2
    highlighted = [i for i, line in enumerate(lines) if line.style.bgcolor is not None]
    assert highlighted == [2]
    assert lines[2].style.bold


def test_help_bar_styles_keys():
    bar = help_bar(Theme())
    assert bar.plain == HELP_LINE
    keys = [bar.plain[span.start:span.end] for span in bar.spans if span.style.bold]
    assert keys == ["Up/k/Down/j", "Enter", "Esc/q"]


def test_help_bar_can_be_disabled():
    theme = Theme(help_text=HelpSettings(enabled=False))
    lines = _screen(MenuState(), theme=theme)
    assert len(lines) == 24
    assert all("Navigate" not in line for line in lines)


def test_menu_area_clamps_to_small_viewport():
    area = menu_area(20, 8, list(Action), Theme())
    assert area == Rect(0, 0, 20, 7)


def test_menu_area_never_covers_help_row():
    for height in range(1, 30):
        area = menu_area(80, height, list(Action), Theme())
        assert area.y + area.height <= height - 1 or height <= 1


def test_fixed_layout_uses_margins():
    theme = Theme(layout=LayoutSettings(auto_scale=False))
    assert menu_area(100, 40, list(Action), theme) == Rect(30, 12, 40, 16)


def test_minimums_apply_without_border():
    theme = Theme(border=BorderSettings(enabled=False))
    area = menu_area(80, 24, list(Action), theme)
    assert area.width == 30
    assert area.height == 10


def test_render_tiny_viewport_does_not_fail():
    lines = _screen(MenuState(), width=10, height=3)
    assert len(lines) == 3


def test_render_is_pure():
    state = MenuState(selected_index=4)
    first = _screen(state)
    second = _screen(state)
    assert first == second
    assert state.selected_index == 4
    assert state.should_quit is False


def test_bad_color_warns_at_most_once_across_frames(caplog):
    theme = Theme(colors=Colors(border="orange"))
    with caplog.at_level(logging.WARNING, logger="rexit.config"):
        for _ in range(10):
            _screen(MenuState(), theme=theme)
    assert len([r for r in caplog.records if "orange" in r.getMessage()]) <= 1


def _stepped_animation(kind, color="white", steps=3):
    ticks = iter(range(100))
    animation = AnimationState(
        AnimationSettings(animation_type=kind, color=color),
        clock=lambda: next(ticks),
        rng=random.Random(7),
    )
    for _ in range(steps):
        animation.update(80, 24)
    return animation


def test_backdrop_is_drawn_around_the_panel_only():
    animation = _stepped_animation("stars")
    state = MenuState()
    area = menu_area(80, 24, state.actions, Theme())

    lines = _screen_with(state, animation)

    def covered(x, y):
        in_panel = area.x <= x < area.x + area.width and area.y <= y < area.y + area.height
        return in_panel or y == 23

    visible = [xy for xy in animation.cells(80, 24) if not covered(*xy)]
    drawn = sum(line.count("★") + line.count("☆") for line in lines)
    assert visible
    assert drawn == len(visible)
    assert lines[area.y][area.x] == "╭"
    assert HELP_LINE in lines[-1]


def test_render_does_not_advance_animation():
    animation = _stepped_animation("snow")
    before = (animation.tick, [(p.x, p.y) for p in animation.particles])
    _screen_with(MenuState(), animation)
    _screen_with(MenuState(), animation)
    assert (animation.tick, [(p.x, p.y) for p in animation.particles]) == before


def test_disabled_animation_draws_blank_backdrop():
    ticks = iter(range(100))
    animation = AnimationState(AnimationSettings(enabled=False), clock=lambda: next(ticks))
    animation.update(80, 24)
    assert animation.cells(80, 24) == {}
    lines = _screen_with(MenuState(), animation)
    assert lines[0].strip() == ""


def _screen_with(state, animation, width=80, height=24):
    console = Console(width=width, height=height, file=io.StringIO(), record=True, color_system=None)
    console.print(render(state, width, height, Theme(), animation))
    return console.export_text().splitlines()
