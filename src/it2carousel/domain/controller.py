from __future__ import annotations

from typing import Optional

from loguru import logger

from it2carousel.backend.protocol import (
    MARK_PANE,
    SHOW_SELF,
    Backend,
    HostEvent,
    KeybindsLost,
    KeyPress,
    PaneUpdate,
    PipeMessage,
    TabUpdate,
)
from it2carousel.domain.bookmarks import BookmarkList
from it2carousel.domain.keybinds import Keybinds
from it2carousel.domain.models import UNKNOWN_TITLE, BookmarkRow, PaneIdentity
from it2carousel.domain.tracker import WorkspaceTracker


class CarouselController:
    def __init__(self, backend: Backend, keybinds: Optional[Keybinds] = None) -> None:
        self.backend = backend
        self.keybinds = keybinds or Keybinds()
        self.tracker = WorkspaceTracker()
        self.bookmarks = BookmarkList()
        self.status = ""

    async def ensure_keybinds(self) -> bool:
        if self.keybinds.bound_key:
            return False
        await self.backend.register_keybinds(
            self.keybinds.mode,
            self.keybinds.mark_pane_shortcut,
            self.keybinds.show_self_shortcut,
        )
        self.keybinds.bound_key = True
        logger.info(
            "Keybinds registered",
            operation="ensure_keybinds",
            mode=self.keybinds.mode,
            mark_pane=str(self.keybinds.mark_pane_shortcut),
            show_self=str(self.keybinds.show_self_shortcut),
        )
        return True

    async def update(self, event: HostEvent) -> bool:
        """Apply one host event; returns True when the view needs a refresh."""
        if isinstance(event, TabUpdate):
            self.tracker.ingest_tab_topology(event.tabs)
            return True
        if isinstance(event, PaneUpdate):
            self.tracker.ingest_pane_topology(event.manifest)
            return True
        if isinstance(event, PipeMessage):
            return await self.pipe(event)
        if isinstance(event, KeyPress):
            return await self.handle_key(event)
        if isinstance(event, KeybindsLost):
            self.keybinds.bound_key = False
            self.status = event.message
            return True
        return False

    async def pipe(self, message: PipeMessage) -> bool:
        if message.name == MARK_PANE:
            return self.bookmarks.toggle_focused(self.tracker.resolve_focused_pane())
        if message.name == SHOW_SELF:
            await self.backend.show_self()
            return True
        logger.debug("Ignoring unknown pipe message", operation="pipe", name=message.name)
        return False

    async def handle_key(self, key: KeyPress) -> bool:
        if not key.has_no_modifiers():
            return False
        if key.key == "down":
            return self.bookmarks.move_selection(1)
        if key.key == "up":
            return self.bookmarks.move_selection(-1)
        if key.key == "delete":
            return self.bookmarks.remove_selected()
        if key.key == "enter":
            await self.activate()
            return False
        if key.key == "escape":
            await self.backend.hide_self()
            return False
        if len(key.key) == 1 and key.key.isdigit():
            await self.activate(int(key.key))
            return False
        return False

    async def activate(self, index: Optional[int] = None) -> Optional[PaneIdentity]:
        if index is None:
            pane = self.bookmarks.selected()
        else:
            pane = self.bookmarks.at(index)
        if pane is None:
            return None
        await self.backend.focus_pane(pane, True)
        logger.debug("Focus requested", operation="activate", pane=str(pane))
        return pane

    def list_rows(self) -> list[BookmarkRow]:
        self.bookmarks.clamp_selection()
        focused = self.tracker.resolve_focused_pane()
        return [
            BookmarkRow(
                index=i,
                pane=pane,
                title=self.tracker.resolve_title(pane) or UNKNOWN_TITLE,
                is_selected=(i == self.bookmarks.selected_index),
                is_focused=(pane == focused),
            )
            for i, pane in enumerate(self.bookmarks.panes)
        ]
