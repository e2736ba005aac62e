"""Frame rendering for the menu.

``render`` is a pure function of the menu state, the viewport size, the
theme and the background animation. It returns a rich ``Layout`` covering
the whole viewport: the animation backdrop, the menu panel centered on it
and a one-row help bar on the bottom row.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from rich import box
from rich.cells import cell_len
from rich.console import RenderableType
from rich.layout import Layout
from rich.padding import Padding
from rich.panel import Panel
from rich.text import Text

from rexit.actions import Action, display_text
from rexit.animation import AnimationState, Cells
from rexit.config import Theme, cached_style
from rexit.keys import KEY_LABELS
from rexit.state import MenuState

BORDER_BOXES = {
    "plain": box.SQUARE,
    "rounded": box.ROUNDED,
    "double": box.DOUBLE,
    "thick": box.HEAVY,
}

TITLE_ALIGNMENTS = ("left", "center", "right")


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int


def _help_rows(theme: Theme) -> int:
    return 1 if theme.help_text.enabled else 0


def menu_area(width: int, height: int, actions: Sequence[Action], theme: Theme) -> Rect:
    """Return the centered rectangle the menu panel is drawn in.

    The rectangle always has room for every action plus the border (as far
    as the viewport allows) and never covers the help bar row.
    """
    settings = theme.layout
    border = 2 if theme.border.enabled else 0
    padding = settings.padding
    rows_needed = len(actions) + border

    if settings.auto_scale:
        label_width = max((cell_len(display_text(action)) for action in actions), default=0)
        title_width = cell_len(theme.title) if theme.border.enabled else 0
        content_width = max(label_width, title_width - 2)
        menu_width = content_width + padding * 2 + border
        if settings.max_width > 0:
            menu_width = min(menu_width, settings.max_width)
        menu_width = max(menu_width, settings.min_width)
        menu_height = max(len(actions) + padding * 2 + border, settings.min_height)
    else:
        top = height * settings.vertical_margin // 100
        side = width * settings.horizontal_margin // 100
        menu_height = max(height - top * 2, settings.min_height)
        menu_width = max(width - side * 2, settings.min_width)

    usable_height = max(0, height - _help_rows(theme))
    menu_height = min(max(menu_height, rows_needed), usable_height)
    menu_width = min(menu_width, width)
    x = (width - menu_width) // 2
    y = (height - menu_height) // 2
    if y + menu_height > usable_height:
        y = max(0, usable_height - menu_height)
    return Rect(x, y, menu_width, menu_height)


def menu_lines(state: MenuState, theme: Theme) -> List[Text]:
    """One styled line per action; the selected one is highlighted."""
    colors = theme.colors
    normal = theme.style(colors.foreground)
    selected = theme.style(colors.selected_fg, colors.selected_modifier, bgcolor=colors.selected_bg)
    return [
        Text(display_text(action), style=selected if index == state.selected_index else normal)
        for index, action in enumerate(state.actions)
    ]


def menu_panel(state: MenuState, theme: Theme) -> RenderableType:
    body = Text("\n").join(menu_lines(state, theme))
    foreground = theme.style(theme.colors.foreground)
    padding = (0, theme.layout.padding)
    if not theme.border.enabled:
        return Padding(body, padding, style=foreground)
    align = theme.title_alignment if theme.title_alignment in TITLE_ALIGNMENTS else "center"
    return Panel(
        body,
        title=Text(theme.title),
        title_align=align,
        box=BORDER_BOXES.get(theme.border.style, box.ROUNDED),
        border_style=theme.style(theme.colors.border),
        style=foreground,
        padding=padding,
    )


def help_bar(theme: Theme) -> Text:
    """Key hints: navigation, confirm and quit keys with descriptions."""
    colors = theme.colors
    key_style = theme.style(colors.help_key_fg, colors.help_key_modifier)
    text_style = theme.style(colors.help_fg)
    segments = [
        ("/".join(KEY_LABELS["up"] + KEY_LABELS["down"]), " Navigate"),
        ("/".join(KEY_LABELS["select"]), " Select"),
        ("/".join(KEY_LABELS["quit"]), " Quit"),
    ]
    bar = Text(justify="center", no_wrap=True, overflow="ellipsis")
    for index, (key_names, description) in enumerate(segments):
        if index:
            bar.append(theme.help_text.separator)
        bar.append(key_names, style=key_style)
        bar.append(description, style=text_style)
    return bar


def backdrop(cells: Cells, x: int, y: int, width: int, height: int) -> Text:
    """The width x height slice of the animation cells whose top-left is (x, y)."""
    text = Text(no_wrap=True, overflow="crop")
    for row in range(y, y + height):
        if row > y:
            text.append("\n")
        for col in range(x, x + width):
            cell = cells.get((col, row))
            if cell is None:
                text.append(" ")
            else:
                glyph, color = cell
                text.append(glyph, style=cached_style(color))
    return text


def _band(name: str, size: int, cells: Cells, x: int, y: int, width: int, height: int) -> Layout:
    body = backdrop(cells, x, y, width, height) if cells else Text("")
    return Layout(body, name=name, size=size)


def render(
    state: MenuState,
    width: int,
    height: int,
    theme: Optional[Theme] = None,
    animation: Optional[AnimationState] = None,
) -> Layout:
    """Build the full-screen frame for state in a width x height viewport.

    When animation is given its current cells fill the screen around the
    menu panel. The panel and the help bar are drawn over it.
    """
    theme = theme or Theme()
    area = menu_area(width, height, state.actions, theme)
    cells = animation.cells(width, height) if animation is not None else {}

    # Every band gets an explicit size: rich gives zero-sized flexible
    # bands one row, which would push the help bar off screen.
    rows: List[Layout] = []
    if area.y:
        rows.append(_band("top", area.y, cells, 0, 0, width, area.y))
    if area.height and area.width:
        columns: List[Layout] = []
        if area.x:
            columns.append(_band("left", area.x, cells, 0, area.y, area.x, area.height))
        columns.append(Layout(menu_panel(state, theme), name="menu", size=area.width))
        right = width - area.x - area.width
        if right > 0:
            columns.append(_band("right", right, cells, area.x + area.width, area.y, right, area.height))
        middle = Layout(name="middle", size=area.height)
        middle.split_row(*columns)
        rows.append(middle)
    bottom = height - _help_rows(theme) - area.y - area.height
    if bottom > 0:
        rows.append(_band("bottom", bottom, cells, 0, area.y + area.height, width, bottom))
    if theme.help_text.enabled and height > 0:
        rows.append(Layout(help_bar(theme), name="help", size=1))

    screen = Layout(Text(""), name="screen")
    if rows:
        screen.split_column(*rows)
    return screen
