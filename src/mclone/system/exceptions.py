# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/system/exceptions.py

"""
Mclone-specific exception classes.

Every error the core raises derives from MCloneError so the CLI can report
it uniformly. Lookup errors carry the offending pattern, format errors the
offending manifest path, aggregate errors the list of individual failures.
"""


class MCloneError(Exception):
    """Base exception for all mclone errors."""
    pass


class ConfigError(MCloneError):
    """Raised when the user configuration cannot be loaded or validated."""
    pass


class ValidationError(MCloneError):
    """Raised on invalid task attributes (unknown mode, conflicting credential inputs)."""
    pass


# === LOOKUP ERRORS ===

class PatternError(MCloneError):
    """Base class for identity-by-pattern lookup errors."""

    def __init__(self, message: str, pattern: str = None):
        self.pattern = pattern
        super().__init__(message)


class NotFoundError(PatternError):
    """No identity matches the pattern."""
    pass


class AmbiguousPatternError(PatternError):
    """Two or more identities match the pattern."""
    pass


class LocateError(MCloneError):
    """Raised when a path does not belong to any loaded volume."""

    def __init__(self, message: str, path: str = None):
        self.path = path
        super().__init__(message)


# === FORMAT ERRORS ===

class ManifestError(MCloneError):
    """Raised when a volume manifest is malformed or has an unsupported version."""

    def __init__(self, message: str, path: str = None):
        self.path = path
        super().__init__(message)


# === GUARDS AND SECRETS ===

class GuardError(MCloneError):
    """Raised when a destructive action is refused (use force to override)."""
    pass


class CredentialError(MCloneError):
    """Raised on conflicting credential registration or obscuring failure."""
    pass


# === AGGREGATE ERRORS ===

class BatchError(MCloneError):
    """Base class for errors collected across a batch of independent steps."""

    def __init__(self, message: str, failures: list[tuple[str, str]] = None):
        self.failures = list(failures or [])
        super().__init__(message)


class CommitError(BatchError):
    """One or more volumes failed to persist their manifest."""
    pass


class ProcessingError(BatchError):
    """One or more tasks failed during rclone processing."""
    pass
