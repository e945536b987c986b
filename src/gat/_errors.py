"""Exceptions raised while building, pinning and rendering workflows."""

from __future__ import annotations


class GatError(Exception):
    """The base class for gat errors."""


class StructuralError(GatError):
    """Happens when a workflow is assembled with invalid jobs, steps or events."""


class ResolutionError(GatError):
    """Happens when an action reference cannot be pinned to a commit."""

    def __init__(self, message: str, reference: str):
        super().__init__(message)
        self.reference = reference


class UnresolvableReference(ResolutionError):
    """Happens when no tag on the remote matches the requested version."""

    def __init__(self, reference: str, repository: str, version: str, reason: str = ""):
        message = (
            f"Unable to pin '{reference}': no tag '{version}' found"
            f" in repository '{repository}'"
        )
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, reference)
        self.repository = repository
        self.version = version


class MissingLockEntry(ResolutionError):
    """Happens when the lock file lacks an entry and network access is disallowed."""

    def __init__(self, reference: str):
        super().__init__(
            f"'{reference}' is not in the lock file and network resolution is disabled",
            reference,
        )


class TagLookupError(GatError):
    """Happens when the tags of a repository cannot be listed."""


class TransientNetworkError(TagLookupError):
    """Happens when a tag lookup keeps failing because of connectivity or rate limits."""


class LockFileError(GatError):
    """Happens when the lock file exists but is not a mapping of strings."""


class SerializationError(GatError):
    """Happens when a compiled document holds a value YAML cannot represent."""
