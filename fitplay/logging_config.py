"""Logging setup for applications embedding the engine"""
import logging
from typing import Optional

from fitplay.config import LOG_LEVEL

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging with the project format"""
    level_name = (level or LOG_LEVEL).upper()
    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, level_name, logging.INFO)
    )
    logging.getLogger(__name__).debug(f"Logging configured at {level_name}")
