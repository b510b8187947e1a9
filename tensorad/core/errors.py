# tensorad/core/errors.py
"""
Contract violations raised by the engine.

Every error here is a programming error by the author of the graph (wrong
shapes, missing bindings, reuse of a consumed table, double release). None of
them is caught inside the library. Allocation failure is left to Python's own
MemoryError.
"""
import logging

from . import config as config_mod  # module access so use_config() is honoured

logger = logging.getLogger(__name__)


class ContractViolation(Exception):
    """Base class: a fail-fast contract violation."""


class ShapeMismatch(ContractViolation, ValueError):
    """Rank or shape disagreement, or an index outside the shape."""


class MissingBinding(ContractViolation, KeyError):
    """Lookup of a key that is not present in a binding table."""

    def __str__(self):
        # KeyError repr()s its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class NotDifferentiable(ContractViolation, NotImplementedError):
    """An operator without a derivative was reached by differentiate()."""


class ConsumedTable(ContractViolation, RuntimeError):
    """A destroyed (consumed) or frozen binding table was mutated or read."""


class NodeLifetimeError(ContractViolation, RuntimeError):
    """A node was used, retained or released after it was freed."""


def violation(exc: ContractViolation):
    """
    Report a contract violation and return it for raising:

        raise violation(ShapeMismatch("..."))

    The configured `on_violation` hook (if any) sees the exception first.
    """
    hook = config_mod.config.on_violation
    if hook is not None:
        hook(exc)
    logger.debug("contract violation: %s: %s", type(exc).__name__, exc)
    return exc


def require(condition: bool, exc_type=ContractViolation, message: str = "contract violated"):
    """Raise `exc_type(message)` through `violation()` unless `condition` holds."""
    if not condition:
        raise violation(exc_type(message))
