from __future__ import annotations

import asyncio
import contextlib
import os
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from loguru import logger

from it2carousel.backend.protocol import (
    MARK_PANE,
    SHOW_SELF,
    BackendError,
    HostEvent,
    KeybindsLost,
    PaneUpdate,
    PipeMessage,
    TabUpdate,
)
from it2carousel.domain.keybinds import KeyChord
from it2carousel.domain.models import PaneIdentity, PaneSnapshot, TabSnapshot

BURIED_TAB_POSITION = -1
TITLE_VARIABLES = ("session.name", "session.title")

_ITERM2_MODIFIERS = {
    "ctrl": "CONTROL",
    "alt": "OPTION",
    "shift": "SHIFT",
    "super": "COMMAND",
}


def _safe_session_name(session: Any) -> str:
    for attr in ("name", "auto_name", "autoName", "title"):
        value = getattr(session, attr, None)
        if isinstance(value, str) and value.strip():
            return value
    try:
        return str(session)
    except Exception:
        return ""


def _own_session_id() -> str:
    # ITERM_SESSION_ID looks like "w0t1p0:<uuid>"; the API only knows the uuid.
    raw = os.environ.get("ITERM_SESSION_ID", "")
    return raw.split(":", 1)[-1] if raw else ""


class PaneIdAllocator:
    """Maps iTerm2 session id strings onto stable numeric pane ids."""

    def __init__(self) -> None:
        self._ids: dict[str, int] = {}
        self._sessions: dict[int, str] = {}

    def allocate(self, session_id: str) -> int:
        pane_id = self._ids.get(session_id)
        if pane_id is None:
            pane_id = len(self._ids)
            self._ids[session_id] = pane_id
            self._sessions[pane_id] = session_id
        return pane_id

    def session_id(self, pane_id: int) -> Optional[str]:
        return self._sessions.get(pane_id)


def topology_from_app(
    app: Any, pane_ids: PaneIdAllocator, own_session_id: str = ""
) -> tuple[list[TabSnapshot], dict[int, list[PaneSnapshot]]]:
    current_window = getattr(app, "current_terminal_window", None)
    current_tab = getattr(current_window, "current_tab", None) if current_window else None
    current_tab_id = _tab_id(current_tab) if current_tab is not None else ""

    tabs: list[TabSnapshot] = []
    manifest: dict[int, list[PaneSnapshot]] = {}

    def pane(session: Any, *, focused: bool, suppressed: bool = False) -> PaneSnapshot:
        session_id = _session_id(session)
        return PaneSnapshot(
            id=pane_ids.allocate(session_id),
            title=_safe_session_name(session),
            is_plugin=bool(own_session_id) and session_id == own_session_id,
            is_floating=False,
            is_focused=focused,
            is_suppressed=suppressed,
        )

    position = 0
    for window in _iter_windows(app):
        for tab in getattr(window, "tabs", []) or []:
            active_session = getattr(tab, "current_session", None)
            active_session_id = _session_id(active_session) if active_session is not None else ""
            tab_id = _tab_id(tab)
            tabs.append(
                TabSnapshot(
                    position=position,
                    active=bool(tab_id) and tab_id == current_tab_id,
                    floating_visible=False,
                )
            )
            manifest[position] = [
                pane(session, focused=_session_id(session) == active_session_id)
                for session in getattr(tab, "sessions", []) or []
            ]
            position += 1

    buried: Iterable[Any] = getattr(app, "buried_sessions", None) or []
    buried_panes = [pane(session, focused=False, suppressed=True) for session in buried]
    if buried_panes:
        manifest[BURIED_TAB_POSITION] = buried_panes

    return tabs, manifest


def keystroke_command(
    chords: Iterable[tuple[KeyChord, str]], keystroke: Any
) -> Optional[str]:
    characters = getattr(keystroke, "characters_ignoring_modifiers", None) or getattr(
        keystroke, "characters", ""
    )
    key = str(characters or "").lower()
    modifiers = {
        str(getattr(m, "name", m)).upper() for m in getattr(keystroke, "modifiers", []) or []
    }
    for chord, command in chords:
        wanted = {_ITERM2_MODIFIERS[m] for m in chord.modifiers}
        if chord.key.lower() == key and wanted == modifiers:
            return command
    return None


@dataclass
class Iterm2Backend:
    connection: Any
    own_session_id: str = field(default_factory=_own_session_id)
    pane_ids: PaneIdAllocator = field(default_factory=PaneIdAllocator)
    _queue: asyncio.Queue[HostEvent] = field(default_factory=asyncio.Queue, init=False)
    _chords: list[tuple[KeyChord, str]] = field(default_factory=list, init=False)
    _keystroke_task: Optional[asyncio.Task[None]] = field(default=None, init=False)
    _return_to: Optional[str] = field(default=None, init=False)

    async def topology(self) -> tuple[list[TabSnapshot], dict[int, list[PaneSnapshot]]]:
        app = await self._app()
        return topology_from_app(app, self.pane_ids, self.own_session_id)

    def events(self) -> AsyncIterator[HostEvent]:
        return self._events()

    async def focus_pane(self, pane: PaneIdentity, show_host_ui: bool) -> None:
        session_id = self.pane_ids.session_id(pane.id)
        if session_id is None:
            raise BackendError(f"Unknown pane: {pane}")
        await self._activate(session_id, order_window_front=show_host_ui)

    async def show_self(self) -> None:
        if not self.own_session_id:
            raise BackendError("ITERM_SESSION_ID is not set; run it2carousel inside iTerm2.")
        app = await self._app()
        current = _current_session_id(app)
        if current and current != self.own_session_id:
            self._return_to = current
        await self._activate(self.own_session_id, order_window_front=True)

    async def hide_self(self) -> None:
        if self._return_to is None:
            return
        session_id, self._return_to = self._return_to, None
        await self._activate(session_id, order_window_front=True)

    async def register_keybinds(self, mode: str, mark_pane: KeyChord, show_self: KeyChord) -> None:
        iterm2 = _import_iterm2()
        if getattr(iterm2, "KeystrokeMonitor", None) is None:
            raise BackendError("This iterm2 module does not support keystroke monitoring.")
        if mode != "normal":
            logger.warning(
                "iTerm2 has no input modes; binding in normal mode",
                operation="register_keybinds",
                mode=mode,
            )
        self._chords = [(mark_pane, MARK_PANE), (show_self, SHOW_SELF)]
        if self._keystroke_task is None:
            self._keystroke_task = asyncio.create_task(self._watch_keystrokes(iterm2))
            self._keystroke_task.add_done_callback(self._on_keystroke_task_done)

    def _on_keystroke_task_done(self, task: asyncio.Task[None]) -> None:
        if self._keystroke_task is task:
            self._keystroke_task = None
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return
        logger.warning(
            "Keystroke watcher stopped", operation="watch_keystrokes", error=repr(error)
        )
        self._emit(KeybindsLost(message=f"Hotkeys stopped: {error}"))

    async def _watch_keystrokes(self, iterm2: Any) -> None:
        patterns = [_keystroke_pattern(iterm2, chord) for chord, _ in self._chords]
        filter_cls = getattr(iterm2, "KeystrokeFilter", None)
        async with contextlib.AsyncExitStack() as stack:
            if filter_cls is not None:
                await stack.enter_async_context(filter_cls(self.connection, patterns))
            monitor = await stack.enter_async_context(iterm2.KeystrokeMonitor(self.connection))
            while True:
                keystroke = await monitor.async_get()
                command = keystroke_command(self._chords, keystroke)
                if command is not None:
                    self._emit(PipeMessage(name=command))

    def _emit(self, event: HostEvent) -> None:
        self._queue.put_nowait(event)

    async def _publish_topology(self) -> None:
        try:
            tabs, manifest = await self.topology()
        except BackendError as e:
            logger.warning("Topology refresh failed", operation="publish_topology", error=str(e))
            return
        self._emit(TabUpdate(tabs=tabs))
        self._emit(PaneUpdate(manifest=manifest))

    async def _events(self) -> AsyncIterator[HostEvent]:
        iterm2 = _import_iterm2()
        tokens: list[Any] = []

        async def subscribe(callback: Callable[[Any, Any], Any], name: str) -> None:
            fn = getattr(iterm2.notifications, name, None)
            if fn is None:
                return
            try:
                token = await fn(self.connection, callback)
            except Exception as e:
                logger.warning(
                    "Subscription failed", operation="subscribe", name=name, error=str(e)
                )
                return
            tokens.append(token)

        async def on_topology_change(connection: Any, notification: Any) -> None:  # noqa: ARG001
            await self._publish_topology()

        async def on_new_session(connection: Any, notification: Any) -> None:  # noqa: ARG001
            await self._publish_topology()
            session_id = _get_notification_session_id(notification)
            if session_id:
                await _subscribe_session_variables(
                    iterm2=iterm2,
                    connection=self.connection,
                    session_id=session_id,
                    on_change=on_topology_change,
                    tokens=tokens,
                )

        await subscribe(on_topology_change, "async_subscribe_to_layout_change_notification")
        await subscribe(on_topology_change, "async_subscribe_to_focus_change_notification")
        await subscribe(on_new_session, "async_subscribe_to_new_session_notification")
        await subscribe(on_topology_change, "async_subscribe_to_terminate_session_notification")

        try:
            app = await self._app()
        except BackendError:
            app = None
        if app is not None:
            for session_id in [_session_id(s) for s in _iter_sessions(app)]:
                if session_id:
                    await _subscribe_session_variables(
                        iterm2=iterm2,
                        connection=self.connection,
                        session_id=session_id,
                        on_change=on_topology_change,
                        tokens=tokens,
                    )

        await self._publish_topology()

        try:
            while True:
                yield await self._queue.get()
        finally:
            for token in tokens:
                with contextlib.suppress(Exception):
                    await iterm2.notifications.async_unsubscribe(  # type: ignore[no-untyped-call]
                        self.connection, token
                    )
            if self._keystroke_task is not None:
                self._keystroke_task.cancel()
                self._keystroke_task = None

    async def _app(self) -> Any:
        iterm2 = _import_iterm2()
        try:
            return await iterm2.async_get_app(self.connection)  # type: ignore[attr-defined]
        except Exception as e:
            raise BackendError(
                "Failed to connect to iTerm2 Python API. "
                "Enable `Prefs > General > Magic > Enable Python API`, then retry and allow the prompt."
            ) from e

    async def _activate(self, session_id: str, *, order_window_front: bool) -> None:
        app = await self._app()
        session = _find_session(app, session_id)
        if session is None:
            raise BackendError(f"Session not found: {session_id}")
        try:
            await session.async_activate(select_tab=True, order_window_front=order_window_front)
        except Exception as e:
            raise BackendError(
                "Failed to activate session. Ensure iTerm2 is running and the Python API is permitted."
            ) from e


def _import_iterm2() -> Any:
    try:
        import iterm2
    except Exception as e:
        raise BackendError(
            "Failed to import iterm2. Run inside iTerm2 and ensure dependencies are installed."
        ) from e
    return iterm2


def _keystroke_pattern(iterm2: Any, chord: KeyChord) -> Any:
    pattern = iterm2.KeystrokePattern()
    pattern.required_modifiers = [
        getattr(iterm2.Modifier, _ITERM2_MODIFIERS[m]) for m in sorted(chord.modifiers)
    ]
    characters = [chord.key]
    if "shift" in chord.modifiers and chord.key.upper() != chord.key:
        characters.append(chord.key.upper())
    pattern.characters_ignoring_modifiers = characters
    return pattern


def _string_id(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return str(value)
    except Exception:
        return ""


def _session_id(session: Any) -> str:
    return _string_id(getattr(session, "session_id", None) or getattr(session, "id", None))


def _tab_id(tab: Any) -> str:
    return _string_id(getattr(tab, "tab_id", None) or getattr(tab, "id", None))


def _iter_windows(app: Any) -> Iterable[Any]:
    try:
        return getattr(app, "terminal_windows", None) or getattr(app, "windows", []) or []
    except Exception:
        return []


def _iter_sessions(app: Any) -> Iterable[Any]:
    for window in _iter_windows(app):
        for tab in getattr(window, "tabs", []) or []:
            yield from getattr(tab, "sessions", []) or []
    yield from getattr(app, "buried_sessions", None) or []


def _find_session(app: Any, session_id: str) -> Optional[Any]:
    for session in _iter_sessions(app):
        if _session_id(session) == session_id:
            return session
    return None


def _current_session_id(app: Any) -> Optional[str]:
    window = getattr(app, "current_terminal_window", None)
    tab = getattr(window, "current_tab", None) if window is not None else None
    session = getattr(tab, "current_session", None) if tab is not None else None
    if session is None:
        return None
    return _session_id(session) or None


def _get_notification_session_id(notification: Any) -> str:
    for attr in ("session_id", "sessionId", "session"):
        value = getattr(notification, attr, None)
        if isinstance(value, str) and value:
            return value
        if value is not None and attr == "session":
            sid = _session_id(value)
            if sid:
                return sid
    return ""


async def _subscribe_session_variables(
    *,
    iterm2: Any,
    connection: Any,
    session_id: str,
    on_change: Callable[[Any, Any], Any],
    tokens: list[Any],
) -> None:
    scope = getattr(iterm2, "VariableScopes", None)
    if scope is None:
        variables_mod = getattr(iterm2, "variables", None)
        scope = (
            getattr(variables_mod, "VariableScopes", None) if variables_mod is not None else None
        )
    if scope is None:
        return

    session_scope: Any = getattr(scope, "SESSION", None)
    if session_scope is None:
        return
    session_scope_value: Any = getattr(session_scope, "value", session_scope)

    for name in TITLE_VARIABLES:
        try:
            token = await iterm2.notifications.async_subscribe_to_variable_change_notification(
                connection,
                on_change,
                session_scope_value,
                name,
                session_id,
            )
        except Exception as e:
            logger.warning(
                "Variable subscription failed",
                operation="subscribe_session_variables",
                name=name,
                session_id=session_id,
                error=str(e),
            )
            continue
        tokens.append(token)
