"""Error hierarchy for expression evaluation.

Every failure is an ``EvalError``.  The dispatcher records the innermost
node that failed on the way out; outer nodes never overwrite it, so the
reported position is the one closest to the fault.
"""

from __future__ import annotations


class EvalError(Exception):
    """Runtime error while evaluating an expression."""

    def __init__(self, message: str, node: object | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.node = node

    @property
    def pos(self):
        """Source position of the failing node, if the parser supplied one."""
        return getattr(self.node, "pos", None)

    def __str__(self) -> str:
        pos = self.pos
        if pos is not None:
            return f"{pos}: {self.message}"
        return self.message


class LiteralParseError(EvalError):
    """Numeric literal text is malformed or out of range."""


class UndefinedIdentifierError(EvalError):
    def __init__(self, name: str, node: object | None = None) -> None:
        super().__init__(f"undefined symbol '{name}'", node)
        self.name = name


class UndefinedTypeError(EvalError):
    def __init__(self, name: str, node: object | None = None) -> None:
        super().__init__(f"undefined type '{name}'", node)
        self.name = name


class InvalidOperationError(EvalError):
    pass


class NoSuchFieldError(EvalError):
    pass


class IndexOutOfRangeError(EvalError):
    pass


class InvalidIndexTypeError(EvalError):
    pass


class InvalidSliceRangeError(EvalError):
    pass


class UnsupportedKindError(EvalError):
    """A value's kind does not support the requested operation."""


class InvalidTypeConversionError(EvalError):
    pass


class UnknownOperatorError(EvalError):
    pass


class DivisionByZeroError(EvalError):
    pass


class DereferenceError(EvalError):
    pass


class NilTypeError(EvalError):
    """A construction form resolved its type to nil."""


class ConstructionError(EvalError):
    """Allocation of a sequence or type alias failed."""


class ChannelConstructionError(ConstructionError):
    pass


class InvalidChannelOperationError(EvalError):
    pass


class ChannelOperationError(EvalError):
    """A send or receive on a channel failed (e.g. the channel is closed)."""


class ArgumentCountError(EvalError):
    pass


class NotCallableError(EvalError):
    pass


class HostCallError(EvalError):
    """A host callable raised; the original exception is chained."""


class RecursionDepthError(EvalError):
    pass
