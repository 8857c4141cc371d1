from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from it2carousel.domain.models import PaneIdentity

MAX_BOOKMARKS = 10


@dataclass
class BookmarkList:
    panes: list[PaneIdentity] = field(default_factory=list)
    selected_index: int = 0

    def clamp_selection(self) -> None:
        if not self.panes:
            self.selected_index = 0
            return
        self.selected_index = max(0, min(self.selected_index, len(self.panes) - 1))

    def toggle_focused(self, focused: Optional[PaneIdentity]) -> bool:
        if focused is None:
            return False
        if focused in self.panes:
            self.panes.remove(focused)
            self.clamp_selection()
            logger.debug("Bookmark removed", operation="toggle_focused", pane=str(focused))
            return True
        if len(self.panes) >= MAX_BOOKMARKS:
            evicted = self.panes.pop(0)
            logger.debug("Bookmark evicted", operation="toggle_focused", pane=str(evicted))
        self.panes.append(focused)
        logger.debug("Bookmark added", operation="toggle_focused", pane=str(focused))
        return True

    def move_selection(self, delta: int) -> bool:
        if not self.panes:
            self.selected_index = 0
            return False
        target = max(0, min(self.selected_index + delta, len(self.panes) - 1))
        if target == self.selected_index:
            return False
        self.selected_index = target
        return True

    def remove_selected(self) -> bool:
        if not self.panes:
            return False
        self.clamp_selection()
        removed = self.panes.pop(self.selected_index)
        self.clamp_selection()
        logger.debug("Bookmark removed", operation="remove_selected", pane=str(removed))
        return True

    def selected(self) -> Optional[PaneIdentity]:
        if not self.panes:
            return None
        self.clamp_selection()
        return self.panes[self.selected_index]

    def at(self, index: int) -> Optional[PaneIdentity]:
        if 0 <= index < len(self.panes):
            return self.panes[index]
        return None
