from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol, Sequence, Union

from it2carousel.domain.keybinds import KeyChord
from it2carousel.domain.models import PaneIdentity, PaneManifest, TabSnapshot

MARK_PANE = "mark_pane"
SHOW_SELF = "show_self"


@dataclass(frozen=True)
class BackendError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover
        return self.message


@dataclass(frozen=True)
class KeyPress:
    key: str
    modifiers: frozenset[str] = frozenset()

    def has_no_modifiers(self) -> bool:
        return not self.modifiers


@dataclass(frozen=True)
class TabUpdate:
    tabs: Sequence[TabSnapshot]


@dataclass(frozen=True)
class PaneUpdate:
    manifest: PaneManifest


@dataclass(frozen=True)
class PipeMessage:
    name: str


@dataclass(frozen=True)
class KeybindsLost:
    message: str


HostEvent = Union[KeyPress, TabUpdate, PaneUpdate, PipeMessage, KeybindsLost]


class Backend(Protocol):
    async def focus_pane(self, pane: PaneIdentity, show_host_ui: bool) -> None: ...

    async def show_self(self) -> None: ...

    async def hide_self(self) -> None: ...

    async def register_keybinds(
        self, mode: str, mark_pane: KeyChord, show_self: KeyChord
    ) -> None: ...

    def events(self) -> AsyncIterator[HostEvent]: ...
