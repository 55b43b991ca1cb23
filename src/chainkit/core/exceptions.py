# File: src/chainkit/core/exceptions.py

from __future__ import annotations

import traceback
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .runnables import Runnable


class SequenceError(Exception):
    """
    Raised by a composite runnable when one of its steps fails.

    Carries the failing step, its position inside the composite (an int for
    sequences, the branch key for maps), the original exception and the
    formatted traceback of where it was raised. A SequenceError is created once
    per failure: outer composites re-raise it as-is instead of wrapping it again.
    """

    def __init__(self, runnable: Runnable, index: int | str, error: BaseException, trace: str | None = None):
        self.runnable = runnable
        self.index = index
        self.error = error
        if trace is None:
            trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        self.trace = trace
        super().__init__(runnable, index, error)

    @classmethod
    def wrap(cls, runnable: Runnable, index: int | str, error: BaseException) -> SequenceError:
        """Return `error` unchanged if it is already a SequenceError, else wrap it."""
        if isinstance(error, SequenceError):
            return error
        return cls(runnable=runnable, index=index, error=error)

    def __str__(self) -> str:
        return (
            f"SequenceError: of runnable {self.runnable!r} ({type(self.runnable).__name__}) "
            f"at index {self.index!r} with error {self.error!r}"
        )


class OutputParserError(ValueError):
    """Raised when a parser cannot turn model output into the expected structure."""

    def __init__(self, message: str, llm_output: str | None = None):
        super().__init__(message)
        self.llm_output = llm_output
