"""
Engine configuration.

Settings come from environment variables, falling back to built-in defaults:

    LEDGER_LOG_LEVEL   -> log_level   (default WARNING)
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class EngineSettings:
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)


def _parse_log_level(value: Optional[str]) -> str:
    if not value:
        return DEFAULT_LOG_LEVEL
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        return DEFAULT_LOG_LEVEL
    return level


def load_settings(environ: Optional[Mapping[str, str]] = None) -> EngineSettings:
    """Build settings from the environment (os.environ unless given)."""
    if environ is None:
        environ = os.environ
    return EngineSettings(log_level=_parse_log_level(environ.get("LEDGER_LOG_LEVEL")))
