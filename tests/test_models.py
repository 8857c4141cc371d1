from __future__ import annotations

from it2carousel.domain.models import BookmarkRow, PaneIdentity, PaneKind, PaneSnapshot


def test_pane_identity_equality_and_ordering_by_kind_then_id() -> None:
    assert PaneIdentity.terminal(3) == PaneIdentity(PaneKind.TERMINAL, 3)
    assert PaneIdentity.terminal(3) != PaneIdentity.plugin(3)
    ids = [PaneIdentity.plugin(1), PaneIdentity.terminal(9), PaneIdentity.terminal(2)]
    assert sorted(ids) == [
        PaneIdentity.terminal(2),
        PaneIdentity.terminal(9),
        PaneIdentity.plugin(1),
    ]
    assert len({PaneIdentity.terminal(1), PaneIdentity.terminal(1)}) == 1


def test_pane_snapshot_identity_uses_plugin_flag() -> None:
    assert PaneSnapshot(id=4).identity == PaneIdentity.terminal(4)
    assert PaneSnapshot(id=4, is_plugin=True).identity == PaneIdentity.plugin(4)


def test_identity_and_row_display() -> None:
    assert str(PaneIdentity.terminal(5)) == "Terminal(5)"
    assert str(PaneIdentity.plugin(2)) == "Plugin(2)"
    row = BookmarkRow(
        index=0, pane=PaneIdentity.terminal(1), title="vim", is_selected=True, is_focused=False
    )
    assert row.label == "<0> vim"
