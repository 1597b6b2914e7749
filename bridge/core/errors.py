"""Error taxonomy for the bridge.

Initialization failures (configuration, documents, namespace) are fatal to the
runtime-state build and leave nothing cached. A write denial is a policy decision,
not a fault, and is never raised from initialization.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


class BridgeError(Exception):
    pass


class InitializationError(BridgeError):
    """Base for failures that abort the runtime-state build."""


class ConfigurationUnavailable(InitializationError):
    def __init__(self, message: str, *, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key


class DocumentUnreadable(InitializationError):
    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class NamespaceUnavailable(InitializationError):
    def __init__(self, message: str, *, view_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.view_name = view_name


class AuthorizationDenied(BridgeError):
    """
    The target datapoint is not among the permitted write targets.

    The message always lists every allowed pattern so the caller can correct the
    request; it never implies that the identifier itself is invalid.
    """

    def __init__(self, identifier: str, allowed_patterns: Sequence[str]) -> None:
        self.identifier = identifier
        self.allowed_patterns: Tuple[str, ...] = tuple(allowed_patterns)
        super().__init__(format_denial(identifier, self.allowed_patterns))


def format_denial(identifier: str, allowed_patterns: Sequence[str]) -> str:
    if not allowed_patterns:
        return (
            f"Write to '{identifier}' refused: it is not among the permitted write targets. "
            "No datapoints are currently designated for AI writes."
        )
    return (
        f"Write to '{identifier}' refused: it is not among the permitted write targets. "
        f"Only {', '.join(allowed_patterns)} allowed to be set."
    )
