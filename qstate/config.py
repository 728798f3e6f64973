# qstate/config.py
"""Runtime configuration for qstate."""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Optional

from . import kernels
from .logging import get_logger, set_log_level

logger = get_logger(__name__)


@dataclass(frozen=True)
class QStateConfig:
    """Knobs shared by the state layer and the kernels."""

    # numba thread pool size; None keeps numba's default
    num_threads: Optional[int] = None

    # probabilities below this are clamped before taking the log in get_entropy
    entropy_floor: float = 1e-15

    # default tolerance for StateRef.check_normalized
    norm_tolerance: float = 1e-6

    log_level: str = "WARNING"


DEFAULT_CONFIG = QStateConfig()

_current = DEFAULT_CONFIG


def get_config() -> QStateConfig:
    return _current


def configure(**overrides) -> QStateConfig:
    """Update the active configuration and apply its side effects.

    Unknown keys raise TypeError.
    """
    global _current
    known = {f.name for f in fields(QStateConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise TypeError(f"unknown config keys: {sorted(unknown)}")

    new = replace(_current, **overrides)
    if new.num_threads is not None and new.num_threads < 1:
        raise ValueError(f"num_threads must be >= 1, got {new.num_threads}")
    if new.entropy_floor <= 0.0:
        raise ValueError(f"entropy_floor must be positive, got {new.entropy_floor}")

    if new.num_threads is not None:
        kernels.set_threads(int(new.num_threads))
    set_log_level(new.log_level)

    _current = new
    logger.info("configuration updated: %s", new)
    return new
