"""
Base exception for user-facing errors.

All expected errors that should be displayed to the user
as clean messages (without stack traces) must inherit from ELTUserError:
syntax errors in expressions, type errors during evaluation,
unresolvable properties, malformed templates, bad configuration.

Programming errors and bugs should NOT inherit from ELTUserError;
they will propagate with full tracebacks.
"""

from __future__ import annotations


class ELTUserError(Exception):
    """
    Base class for all user-facing errors of the expression/template engine.

    There is no recovery policy anywhere in the engine: every error aborts
    the current parse, evaluate, compile or render call.
    """
    pass


__all__ = ["ELTUserError"]
