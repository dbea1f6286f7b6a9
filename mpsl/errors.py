from typing import Any


class MPSLError(Exception):
    """Exception type used to propagate MPSL runtime errors.

    The message is the complete user-visible text. Errors raised by
    native functions carry a bare message; the interpreter locates them
    at the call site.
    """
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @classmethod
    def at(cls, token, message: str) -> 'MPSLError':
        if token is None:
            return cls(message)
        return cls(f"[L{token.line}, C{token.column}] Runtime Error: {message}")


class BreakSignal:
    """Result of executing a `break`; returned, never raised.

    Loops and function calls consume it. `outcome` is the value of the
    enclosing block at the moment the break ran.
    """
    def __init__(self, token: Any, outcome: Any):
        self.token = token
        self.outcome = outcome
