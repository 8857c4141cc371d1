from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from loguru import logger

from it2carousel.domain.models import PaneIdentity, PaneManifest, TabSnapshot


@dataclass(frozen=True)
class ActiveTab:
    position: int
    floating_visible: bool


@dataclass
class WorkspaceState:
    focused_pane: Optional[PaneIdentity] = None
    active_tab: Optional[ActiveTab] = None
    pane_titles: dict[PaneIdentity, str] = field(default_factory=dict)
    last_pane_topology: Optional[PaneManifest] = None


class WorkspaceTracker:
    """Reconciles tab and pane notifications into focus and title lookups.

    Each notification replaces only the half of the topology it describes;
    derived fields are then rebuilt from the latest stored pair.
    """

    def __init__(self) -> None:
        self.state = WorkspaceState()

    def ingest_tab_topology(self, tabs: Sequence[TabSnapshot]) -> None:
        for tab in tabs:
            if tab.active:
                self.state.active_tab = ActiveTab(
                    position=tab.position, floating_visible=tab.floating_visible
                )
                break
        self._reconcile()

    def ingest_pane_topology(self, manifest: PaneManifest) -> None:
        self.state.last_pane_topology = manifest
        self._reconcile()

    def resolve_title(self, identity: PaneIdentity) -> Optional[str]:
        return self.state.pane_titles.get(identity)

    def resolve_focused_pane(self) -> Optional[PaneIdentity]:
        return self.state.focused_pane

    def _reconcile(self) -> None:
        focused: Optional[PaneIdentity] = None
        manifest = self.state.last_pane_topology
        active_tab = self.state.active_tab
        if manifest is not None:
            for position, panes in manifest.items():
                for pane in panes:
                    if pane.is_suppressed:
                        continue
                    identity = pane.identity
                    self.state.pane_titles[identity] = pane.title
                    if (
                        active_tab is not None
                        and position == active_tab.position
                        and pane.is_focused
                        and pane.is_floating == active_tab.floating_visible
                    ):
                        # Transient upstream states may flag two panes; last one wins.
                        focused = identity

        if focused != self.state.focused_pane:
            logger.debug(
                "Focused pane changed",
                operation="reconcile",
                previous=str(self.state.focused_pane),
                current=str(focused),
            )
        self.state.focused_pane = focused
