"""
Runtime settings (env driven, ConfigMap/Secret friendly).

Recommended vars:
- AUTHFLOW_LOG_OUTCOMES=1
- AUTHFLOW_MASK_SUBJECTS=1
- AUTHFLOW_LOG_LEVEL=info
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "y", "on")


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name, "") or "").strip() or default


@dataclass(frozen=True)
class AuthFlowSettings:
    # One INFO line per completed execution
    log_outcomes: bool = True
    # Subject ids are masked in log lines
    mask_subjects: bool = True
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def load_settings() -> AuthFlowSettings:
    """
    Load settings from environment variables.

    Cached for the process; tests call `load_settings.cache_clear()` after
    changing the environment.
    """
    return AuthFlowSettings(
        log_outcomes=_env_bool("AUTHFLOW_LOG_OUTCOMES", True),
        mask_subjects=_env_bool("AUTHFLOW_MASK_SUBJECTS", True),
        log_level=_env_str("AUTHFLOW_LOG_LEVEL", "info").upper(),
    )


def configure_logging(level: Optional[str] = None) -> None:
    """Basic stderr logging for hosts that don't configure logging themselves."""
    lvl = (level or load_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, lvl, logging.INFO), format=_LOG_FORMAT, stream=sys.stderr)
    logging.getLogger("authflow").setLevel(getattr(logging, lvl, logging.INFO))
