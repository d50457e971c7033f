from __future__ import annotations

from typing import Optional


class SSError(Exception):
    """Base class for every failure raised by sscrypt."""


class NoInverseError(SSError, ValueError):
    pass


class PrimeSearchTimeout(SSError, TimeoutError):
    pass


class MalformedInputError(SSError, ValueError):
    def __init__(self, message: str, line: Optional[int] = None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


class MalformedCiphertextError(MalformedInputError):
    pass


class MalformedKeyError(MalformedInputError):
    pass
