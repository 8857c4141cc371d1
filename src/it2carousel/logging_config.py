from __future__ import annotations

from pathlib import Path

import platformdirs
from loguru import logger

from it2carousel.config import APP_NAME, CarouselConfig


def setup_logger(config: CarouselConfig) -> Path | None:
    # stderr belongs to the TUI, so the default sink goes away.
    logger.remove()
    if not config.log_to_file:
        return None

    # macOS: ~/Library/Logs/it2carousel/
    log_dir = Path(platformdirs.user_log_dir(appname=APP_NAME, ensure_exists=True))
    log_path = log_dir / "carousel.log"
    logger.add(
        str(log_path),
        level=config.log_level,
        format="{time:YYYY-MM-DDTHH:mm:ss.SSS} {level} {name}:{function} {message} {extra}",
        rotation="5 MB",
        retention="7 days",
    )
    return log_path
