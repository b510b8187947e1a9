# tensorad/core/config.py
from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

import numpy as np


@dataclass
class EngineConfig:
    """Configuration for tensor storage and contract checking."""
    # Storage
    dtype: Any = np.float64           # scalar type of every new tensor buffer

    # Contract checks
    debug_checks: bool = True         # bounds/shape validation (off == NDEBUG)
    on_violation: Optional[Callable[[Exception], None]] = None

    # Binding tables
    initial_capacity: int = 4


# Module-level active configuration (read through the module, not imported by name)
config = EngineConfig()


@contextmanager
def use_config(cfg: Optional[EngineConfig] = None, **overrides):
    """
    Context manager to temporarily switch the active configuration:
        with use_config(debug_checks=False):
            ... evaluate without bounds checks ...
    """
    global config
    prev = config
    try:
        config = replace(cfg or prev, **overrides)
        yield config
    finally:
        config = prev
