from __future__ import annotations

import sys

from loguru import logger

from it2carousel.config import ConfigError, load_config
from it2carousel.logging_config import setup_logger


def _print_error(message: str) -> None:
    print(f"it2carousel: {message}", file=sys.stderr)


def main() -> None:
    try:
        config = load_config()
    except ConfigError as e:
        _print_error(str(e))
        raise SystemExit(2)
    setup_logger(config)

    try:
        import iterm2
    except Exception:
        _print_error(
            "Missing dependency 'iterm2'. Run `uv sync` and ensure you're on macOS with iTerm2 installed."
        )
        raise SystemExit(2)

    async def _amain(connection: object) -> None:
        from it2carousel.backend.iterm2_backend import Iterm2Backend
        from it2carousel.backend.protocol import BackendError
        from it2carousel.tui.app import CarouselApp

        backend = Iterm2Backend(connection)

        try:
            await backend.topology()
        except BackendError as e:
            _print_error(str(e))
            raise SystemExit(1)

        logger.info("Starting carousel", operation="main", own_session=backend.own_session_id)
        app = CarouselApp(backend=backend, keybinds=config.keybinds())
        await app.run_async()

    try:
        iterm2.run_until_complete(_amain)  # type: ignore[attr-defined]
    except KeyboardInterrupt:
        raise SystemExit(130)
