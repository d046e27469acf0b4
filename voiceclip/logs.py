"""
Logging setup for VoiceClip.
"""

import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "[VoiceClip] %(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: Union[int, str] = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Configure the root logger.

    Args:
        level: Level name or number
        log_file: Also append to this file (background runs have no terminal)
    """
    handlers = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
