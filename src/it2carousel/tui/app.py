from __future__ import annotations

from typing import Any, Optional

from loguru import logger
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.coordinate import Coordinate
from textual.widgets import DataTable, Static

from it2carousel.backend.protocol import Backend, BackendError, HostEvent, KeyPress
from it2carousel.domain.controller import CarouselController
from it2carousel.domain.keybinds import Keybinds

HELP_TEXT = (
    "Help: <ENTER> - focus selected, <0-9> - focus index, <↓↑> - navigate, "
    "<Del> - delete selected, <ESC> - hide"
)
EMPTY_TEXT = "NO ITEMS."


def key_press_from_event(event: events.Key) -> KeyPress:
    *modifiers, key = event.key.split("+")
    return KeyPress(key=key, modifiers=frozenset(modifiers))


class CarouselApp(App[None]):
    CSS = """
    Screen { layout: vertical; align: center middle; }
    #body { width: auto; height: auto; }
    #title { color: $success; text-style: bold; content-align: center middle; width: 100%; }
    #explanation { margin: 1 0; }
    #table { height: auto; max-height: 12; }
    #empty { color: $text-muted; }
    #help { margin-top: 1; color: $text-muted; }
    #status { height: auto; }
    """

    def __init__(
        self,
        *,
        backend: Backend,
        keybinds: Optional[Keybinds] = None,
        watch_events: bool = True,
    ) -> None:
        super().__init__()
        self.controller = CarouselController(backend=backend, keybinds=keybinds)
        self._watch_events = watch_events

    def compose(self) -> ComposeResult:
        with Vertical(id="body"):
            yield Static("CAROUSEL", id="title")
            yield Static(self._explanation_text(), id="explanation")
            yield DataTable(id="table")
            yield Static(EMPTY_TEXT, id="empty")
            yield Static(HELP_TEXT, id="help")
            yield Static("", id="status")

    async def on_mount(self) -> None:
        table = self._table()
        table.cursor_type = "row"
        table.can_focus = False
        table.add_columns("*", "#", "Pane")
        await self._bind_keys()
        self._render()
        if self._watch_events:
            self.run_worker(self._consume_events(), exclusive=True, group="backend-events")

    async def _bind_keys(self) -> None:
        try:
            await self.controller.ensure_keybinds()
        except BackendError as e:
            logger.warning("Keybind registration failed", operation="bind_keys", error=str(e))
            self.controller.status = str(e)

    def _explanation_text(self) -> str:
        keybinds = self.controller.keybinds
        return (
            f"Press <{keybinds.mark_pane_shortcut}> while focused on any pane to bookmark it.\n"
            f"Press <{keybinds.show_self_shortcut}> to show this list."
        )

    def _table(self) -> DataTable[Any]:
        return self.query_one("#table", DataTable)

    def _render(self) -> None:
        table = self._table()
        table.clear(columns=False)

        rows = self.controller.list_rows()
        for row in rows:
            focused = "▶" if row.is_focused else ""
            table.add_row(focused, f"<{row.index}>", row.title)

        table.display = bool(rows)
        self.query_one("#empty", Static).display = not rows
        if rows:
            table.cursor_coordinate = Coordinate(self.controller.bookmarks.selected_index, 0)
        self._render_status()

    def _render_status(self) -> None:
        self.query_one("#status", Static).update(self.controller.status.strip())

    def _status(self, message: str) -> None:
        self.controller.status = message
        self._render_status()

    async def _dispatch(self, event: HostEvent) -> None:
        try:
            changed = await self.controller.update(event)
        except BackendError as e:
            self._status(str(e))
            return
        if changed:
            self._render()

    async def _consume_events(self) -> None:
        async for event in self.controller.backend.events():
            await self._dispatch(event)

    async def on_key(self, event: events.Key) -> None:
        key = key_press_from_event(event)
        if key.has_no_modifiers() and (
            key.key in ("up", "down", "enter", "delete", "escape") or key.key.isdigit()
        ):
            self.controller.status = ""
            if not self.controller.keybinds.bound_key:
                await self._bind_keys()
            await self._dispatch(key)
            self._render_status()
            event.stop()
