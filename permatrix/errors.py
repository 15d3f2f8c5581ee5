"""Typed errors raised by the permission model and its codecs."""

from __future__ import annotations


class PermatrixError(Exception):
    """Base class for every recoverable permatrix failure.

    ``kind`` is a stable identifier callers can switch on without
    matching class names.
    """

    kind: str = "PermatrixError"


class DuplicateResourceError(PermatrixError):
    kind = "DuplicateResource"

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"Resource already exists: {uri!r}")


class UnknownResourceError(PermatrixError):
    kind = "UnknownResource"

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"Unknown resource: {uri!r}")


class UnknownRoleOnResourceError(PermatrixError):
    kind = "UnknownRoleOnResource"

    def __init__(self, role: str, uri: str) -> None:
        self.role = role
        self.uri = uri
        super().__init__(f"Role {role!r} has no grant on resource {uri!r}")


class MalformedHeaderError(PermatrixError):
    """CSV header row is missing or does not start with ``Role``."""

    kind = "MalformedHeader"

    def __init__(self, found: str | None) -> None:
        self.found = found
        if found is None:
            message = "CSV document has no header row"
        else:
            message = f'First column must be "Role", got {found!r}'
        super().__init__(message)


class InvalidShapeError(PermatrixError):
    """Structured document parsed but does not have the expected shape."""

    kind = "InvalidShape"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid format: {reason}")


class ParseFailureError(PermatrixError):
    """Input text is malformed at the lexical level."""

    kind = "ParseFailure"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)
