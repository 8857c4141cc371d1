from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Mapping, Sequence

UNKNOWN_TITLE = "<UNKNOWN>"


class PaneKind(enum.IntEnum):
    TERMINAL = 0
    PLUGIN = 1


@dataclass(frozen=True, order=True)
class PaneIdentity:
    kind: PaneKind
    id: int

    @classmethod
    def terminal(cls, pane_id: int) -> PaneIdentity:
        return cls(PaneKind.TERMINAL, pane_id)

    @classmethod
    def plugin(cls, pane_id: int) -> PaneIdentity:
        return cls(PaneKind.PLUGIN, pane_id)

    @property
    def is_plugin(self) -> bool:
        return self.kind is PaneKind.PLUGIN

    def __str__(self) -> str:
        return f"{self.kind.name.capitalize()}({self.id})"


@dataclass(frozen=True)
class TabSnapshot:
    position: int
    active: bool = False
    floating_visible: bool = False


@dataclass(frozen=True)
class PaneSnapshot:
    id: int
    title: str = ""
    is_plugin: bool = False
    is_floating: bool = False
    is_focused: bool = False
    is_suppressed: bool = False

    @property
    def identity(self) -> PaneIdentity:
        if self.is_plugin:
            return PaneIdentity.plugin(self.id)
        return PaneIdentity.terminal(self.id)


PaneManifest = Mapping[int, Sequence[PaneSnapshot]]


@dataclass(frozen=True)
class BookmarkRow:
    index: int
    pane: PaneIdentity
    title: str
    is_selected: bool
    is_focused: bool

    @property
    def label(self) -> str:
        return f"<{self.index}> {self.title}"
