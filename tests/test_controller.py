from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import pytest

from it2carousel.backend.protocol import (
    HostEvent,
    KeyPress,
    PaneUpdate,
    PipeMessage,
    TabUpdate,
)
from it2carousel.domain.controller import CarouselController
from it2carousel.domain.keybinds import KeyChord
from it2carousel.domain.models import UNKNOWN_TITLE, PaneIdentity, PaneSnapshot, TabSnapshot


@dataclass
class FakeBackend:
    focused: list[tuple[PaneIdentity, bool]] = field(default_factory=list)
    visibility: list[str] = field(default_factory=list)
    registered: list[tuple[str, KeyChord, KeyChord]] = field(default_factory=list)

    async def focus_pane(self, pane: PaneIdentity, show_host_ui: bool) -> None:
        self.focused.append((pane, show_host_ui))

    async def show_self(self) -> None:
        self.visibility.append("show")

    async def hide_self(self) -> None:
        self.visibility.append("hide")

    async def register_keybinds(self, mode: str, mark_pane: KeyChord, show_self: KeyChord) -> None:
        self.registered.append((mode, mark_pane, show_self))

    async def events(self) -> AsyncIterator[HostEvent]:  # pragma: no cover
        return
        yield


async def _focus(c: CarouselController, pane_id: int, title: str = "") -> None:
    await c.update(TabUpdate(tabs=[TabSnapshot(position=0, active=True)]))
    await c.update(
        PaneUpdate(manifest={0: [PaneSnapshot(id=pane_id, title=title, is_focused=True)]})
    )


@pytest.mark.asyncio
async def test_mark_pane_toggles_focused_pane() -> None:
    c = CarouselController(backend=FakeBackend())
    await _focus(c, 5, "shell")
    assert await c.update(PipeMessage(name="mark_pane"))
    assert c.bookmarks.panes == [PaneIdentity.terminal(5)]

    assert await c.update(PipeMessage(name="mark_pane"))
    assert c.bookmarks.panes == []


@pytest.mark.asyncio
async def test_mark_pane_without_focus_is_noop() -> None:
    c = CarouselController(backend=FakeBackend())
    assert await c.update(PipeMessage(name="mark_pane")) is False
    assert c.bookmarks.panes == []


@pytest.mark.asyncio
async def test_show_self_and_escape_drive_visibility() -> None:
    backend = FakeBackend()
    c = CarouselController(backend=backend)
    await c.update(PipeMessage(name="show_self"))
    await c.update(KeyPress(key="escape"))
    assert backend.visibility == ["show", "hide"]


@pytest.mark.asyncio
async def test_enter_and_digits_focus_bookmarks() -> None:
    backend = FakeBackend()
    c = CarouselController(backend=backend)
    for pane_id in (1, 2):
        await _focus(c, pane_id)
        await c.update(PipeMessage(name="mark_pane"))

    await c.update(KeyPress(key="down"))
    await c.update(KeyPress(key="enter"))
    await c.update(KeyPress(key="0"))
    await c.update(KeyPress(key="7"))
    assert backend.focused == [
        (PaneIdentity.terminal(2), True),
        (PaneIdentity.terminal(1), True),
    ]


@pytest.mark.asyncio
async def test_keys_with_modifiers_are_ignored() -> None:
    c = CarouselController(backend=FakeBackend())
    for pane_id in (1, 2):
        await _focus(c, pane_id)
        await c.update(PipeMessage(name="mark_pane"))
    assert await c.update(KeyPress(key="down", modifiers=frozenset({"shift"}))) is False
    assert c.bookmarks.selected_index == 0


@pytest.mark.asyncio
async def test_delete_removes_selected() -> None:
    c = CarouselController(backend=FakeBackend())
    await _focus(c, 1)
    await c.update(PipeMessage(name="mark_pane"))
    assert await c.update(KeyPress(key="delete"))
    assert c.bookmarks.panes == []


@pytest.mark.asyncio
async def test_keybinds_registered_once() -> None:
    backend = FakeBackend()
    c = CarouselController(backend=backend)
    assert await c.ensure_keybinds()
    assert await c.ensure_keybinds() is False
    assert len(backend.registered) == 1
    mode, mark, show = backend.registered[0]
    assert (mode, str(mark), str(show)) == ("normal", "Ctrl Shift i", "Ctrl Shift o")


@pytest.mark.asyncio
async def test_list_rows_resolves_titles_and_focus() -> None:
    c = CarouselController(backend=FakeBackend())
    await _focus(c, 1, "editor")
    await c.update(PipeMessage(name="mark_pane"))
    c.bookmarks.toggle_focused(PaneIdentity.plugin(9))

    rows = c.list_rows()
    assert [(r.index, r.title, r.is_selected, r.is_focused) for r in rows] == [
        (0, "editor", True, True),
        (1, UNKNOWN_TITLE, False, False),
    ]
